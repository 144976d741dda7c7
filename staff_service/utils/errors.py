"""Error handling utilities."""

from typing import Optional
from pydantic import ValidationError as PydanticValidationError


class StaffServiceError(Exception):
    """Base exception for the staff management service."""
    pass


class ValidationError(StaffServiceError):
    """Malformed or incomplete request."""

    def __init__(self, message: str, details: Optional[list[str]] = None):
        super().__init__(message)
        self.details = details or []

    @classmethod
    def from_pydantic(cls, error: PydanticValidationError, message: str = "Invalid request") -> "ValidationError":
        details = []
        for item in error.errors():
            location = ".".join(str(part) for part in item["loc"])
            details.append(f"{location}: {item['msg']}" if location else item["msg"])
        return cls(message, details=details)


class NotFoundError(StaffServiceError):
    """Unknown staff, team or territory reference."""
    pass


class InvalidTransitionError(StaffServiceError):
    """Illegal staff status move."""
    pass


class ConflictError(StaffServiceError):
    """Duplicate membership, leader removal or last-team removal."""
    pass


class ConfigurationError(StaffServiceError):
    """Required configuration missing or inconsistent."""
    pass


class SupabaseError(StaffServiceError):
    """Supabase operation error."""
    pass


class ConcurrentUpdateError(SupabaseError):
    """Row kept changing underneath a conditional update."""
    pass
