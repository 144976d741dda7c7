"""Validation helpers shared by the status, workload and assignment services."""

import re
from datetime import date, datetime, timezone
from typing import Any, Optional
from pydantic import BaseModel, Field

from staff_service.models.staff import STATUS_TRANSITIONS, License, StaffStatus, StaffType
from staff_service.models.assignment import AssignmentType
from staff_service.models.territory import TerritoryOperation

EMAIL_PATTERN = re.compile(r'^[^\s@]+@[^\s@]+\.[^\s@]+$')
PHONE_PATTERN = re.compile(r'^\+?[\d\s-]{10,}$')


class ValidationResult(BaseModel):
    valid: bool = True
    errors: list[str] = Field(default_factory=list)

    @classmethod
    def from_errors(cls, errors: list[str]) -> "ValidationResult":
        return cls(valid=not errors, errors=errors)


def validate_status_transition(current: StaffStatus, target: StaffStatus) -> ValidationResult:
    """Check a status move against STATUS_TRANSITIONS."""
    current = StaffStatus(current)
    target = StaffStatus(target)
    errors: list[str] = []

    if current == target:
        errors.append(f"Status is already {current.value}")
    else:
        allowed = STATUS_TRANSITIONS[current]
        if target not in allowed:
            allowed_str = ", ".join(sorted(s.value for s in allowed)) or "none"
            errors.append(
                f"Cannot transition from {current.value} to {target.value}. "
                f"Allowed transitions: {allowed_str}"
            )

    return ValidationResult.from_errors(errors)


def parse_iso_date(value: Optional[str]) -> Optional[date]:
    """Parse 'YYYY-MM-DD' or a full ISO timestamp down to a date."""
    if not value or not isinstance(value, str):
        return None
    try:
        if "T" in value:
            return datetime.fromisoformat(value.replace("Z", "+00:00")).date()
        return date.fromisoformat(value)
    except ValueError:
        return None


def validate_license(license: Any) -> ValidationResult:
    """Required fields plus issue/expiry date format and ordering."""
    if isinstance(license, License):
        data = license.model_dump()
    elif isinstance(license, dict):
        data = license
    else:
        return ValidationResult.from_errors(["License must be an object"])
    errors: list[str] = []

    required = [
        ("license_type", "licenseType", "License type is required"),
        ("license_number", "licenseNumber", "License number is required"),
        ("issuing_authority", "issuingAuthority", "Issuing authority is required"),
        ("issue_date", "issueDate", "Issue date is required"),
        ("expiry_date", "expiryDate", "Expiry date is required"),
    ]
    values = {}
    for key, alias, message in required:
        values[key] = data.get(key) or data.get(alias)
        if not values[key]:
            errors.append(message)

    if values["issue_date"] and values["expiry_date"]:
        issue = parse_iso_date(values["issue_date"])
        expiry = parse_iso_date(values["expiry_date"])
        if issue is None:
            errors.append("Invalid issue date format")
        if expiry is None:
            errors.append("Invalid expiry date format")
        if issue and expiry and issue >= expiry:
            errors.append("Issue date must be before expiry date")

    return ValidationResult.from_errors(errors)


def validate_email(email: Optional[str]) -> ValidationResult:
    if not email:
        return ValidationResult.from_errors(["Email is required"])
    if not isinstance(email, str) or not EMAIL_PATTERN.match(email):
        return ValidationResult.from_errors(["Invalid email format"])
    return ValidationResult()


def validate_phone(phone: Optional[str]) -> ValidationResult:
    if not phone:
        return ValidationResult.from_errors(["Phone number is required"])
    if not isinstance(phone, str) or not PHONE_PATTERN.match(phone):
        return ValidationResult.from_errors(["Invalid phone number format"])
    return ValidationResult()


def _today() -> date:
    return datetime.now(timezone.utc).date()


def is_license_expired(license: License, today: Optional[date] = None) -> bool:
    expiry = parse_iso_date(license.expiry_date)
    return expiry is not None and expiry < (today or _today())


def get_days_until_expiry(license: License, today: Optional[date] = None) -> int:
    """Whole days from today (UTC) to the expiry date; negative once expired."""
    expiry = parse_iso_date(license.expiry_date)
    if expiry is None:
        raise ValueError(f"Invalid expiry date: {license.expiry_date!r}")
    return (expiry - (today or _today())).days


def needs_renewal_alert(license: License, alert_days: list[int], today: Optional[date] = None) -> Optional[int]:
    """
    Return the alert threshold the license currently falls under.

    That is the smallest configured day count that is still >= the days left.
    Expired licenses and licenses outside every window return None.
    """
    days_left = get_days_until_expiry(license, today=today)
    if days_left <= 0:
        return None

    for threshold in sorted(alert_days):
        if days_left <= threshold:
            return threshold
    return None


def validate_create_staff_request(request: dict) -> ValidationResult:
    """Check a raw create-staff body (camelCase or snake_case keys)."""
    def get(snake: str, camel: str) -> Any:
        return request.get(camel, request.get(snake))

    errors: list[str] = []

    if not get("azure_ad_id", "azureAdId"):
        errors.append("Azure AD ID is required")

    email = get("email", "email")
    if not email:
        errors.append("Email is required")
    else:
        errors.extend(validate_email(email).errors)

    if not get("first_name", "firstName"):
        errors.append("First name is required")
    if not get("last_name", "lastName"):
        errors.append("Last name is required")

    phone = get("phone", "phone")
    if not phone:
        errors.append("Phone is required")
    else:
        errors.extend(validate_phone(phone).errors)

    if not get("employee_id", "employeeId"):
        errors.append("Employee ID is required")
    if not get("job_title", "jobTitle"):
        errors.append("Job title is required")
    if not get("department", "department"):
        errors.append("Department is required")

    staff_type = get("staff_type", "staffType")
    if not staff_type:
        errors.append("Staff type is required")
    elif not isinstance(staff_type, str) or staff_type not in {t.value for t in StaffType}:
        errors.append(f"Unknown staff type: {staff_type}")

    hire_date = get("hire_date", "hireDate")
    if not hire_date:
        errors.append("Hire date is required")
    elif parse_iso_date(hire_date) is None:
        errors.append("Invalid hire date format")

    team_ids = get("team_ids", "teamIds")
    if not team_ids or not isinstance(team_ids, list):
        errors.append("At least one team is required")

    licenses = get("licenses", "licenses") or []
    if not isinstance(licenses, list):
        errors.append("Licenses must be an array")
    else:
        for i, license in enumerate(licenses, start=1):
            result = validate_license(license)
            if not result.valid:
                errors.append(f"License {i}: {', '.join(result.errors)}")

    return ValidationResult.from_errors(errors)


def validate_assignment_request(request: dict) -> ValidationResult:
    errors: list[str] = []

    assignment_type = request.get("assignmentType", request.get("assignment_type"))
    if not assignment_type:
        errors.append("Assignment type is required")
    elif not isinstance(assignment_type, str) or assignment_type not in {t.value for t in AssignmentType}:
        errors.append(f"Unknown assignment type: {assignment_type}")

    territory = request.get("territory")
    if not territory or not isinstance(territory, str):
        errors.append("Territory is required")

    return ValidationResult.from_errors(errors)


def validate_territory_request(request: dict) -> ValidationResult:
    errors: list[str] = []

    territories = request.get("territories")
    if territories is None or not isinstance(territories, list):
        errors.append("Territories array is required")
    elif not all(isinstance(t, str) and t for t in territories):
        errors.append("Territory ids must be non-empty strings")

    operation = request.get("operation")
    if not isinstance(operation, str) or operation not in {op.value for op in TerritoryOperation}:
        errors.append('Operation must be "add", "remove", or "replace"')

    return ValidationResult.from_errors(errors)
