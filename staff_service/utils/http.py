"""Request parsing and response shaping for the serverless function entry points."""

import asyncio
import json
from typing import Any, Awaitable, Callable, Iterable, Optional
from pydantic import BaseModel

from staff_service.utils.errors import (
    ConflictError,
    InvalidTransitionError,
    NotFoundError,
    StaffServiceError,
    ValidationError,
)
from staff_service.utils.logging import correlation_context, get_structured_logger
from staff_service.utils.logging_config import LoggingConfig

logger = get_structured_logger(__name__)

# Most specific first
ERROR_STATUS: list[tuple[type, int, str]] = [
    (ValidationError, 400, "Validation Error"),
    (InvalidTransitionError, 400, "Invalid Status Transition"),
    (NotFoundError, 404, "Not Found"),
    (ConflictError, 409, "Conflict"),
]

Operation = Callable[[], Awaitable[tuple[int, Any]]]


def get_header(request: dict, name: str) -> Optional[str]:
    """Case-insensitive header lookup."""
    headers = request.get("headers") or {}
    wanted = name.lower()
    for key, value in headers.items():
        if key.lower() == wanted:
            return value
    return None


def get_user_id(request: dict) -> str:
    return get_header(request, "x-user-id") or "system"


def parse_json_body(request: dict) -> Any:
    """Body as parsed JSON. Missing body is {}."""
    body = request.get("body")
    if body is None or body == "" or body == b"":
        return {}
    if isinstance(body, (dict, list)):
        return body
    if isinstance(body, bytes):
        body = body.decode("utf-8")
    try:
        return json.loads(body)
    except json.JSONDecodeError as e:
        raise ValidationError("Request body must be valid JSON", details=[str(e)]) from e


def parse_json_object(request: dict) -> dict:
    body = parse_json_body(request)
    if not isinstance(body, dict):
        raise ValidationError("Request body must be a JSON object")
    return body


def get_path_param(request: dict, name: str, label: Optional[str] = None) -> str:
    """Path parameter, falling back to the query string."""
    params = request.get("params") or {}
    query = request.get("query") or {}
    value = params.get(name) or query.get(name)
    if not value:
        raise ValidationError(f"{label or name} is required")
    return value


def _encode(body: Any) -> Any:
    if isinstance(body, BaseModel):
        return body.model_dump(mode="json", by_alias=True)
    if isinstance(body, list):
        return [_encode(item) for item in body]
    if isinstance(body, dict):
        return {key: _encode(value) for key, value in body.items()}
    return body


def json_response(status_code: int, body: Any, correlation_id: Optional[str] = None) -> dict:
    headers = {"Content-Type": "application/json"}
    if correlation_id:
        headers[LoggingConfig.LOG_CORRELATION_ID_HEADER] = correlation_id
    return {
        "statusCode": status_code,
        "headers": headers,
        "body": json.dumps(_encode(body)),
    }


def error_response(error: Exception, correlation_id: Optional[str] = None) -> dict:
    """Map an exception to an HTTP error response."""
    for error_type, status_code, label in ERROR_STATUS:
        if isinstance(error, error_type):
            body = {"error": label, "message": str(error)}
            if isinstance(error, ValidationError) and error.details:
                body["details"] = error.details
            return json_response(status_code, body, correlation_id)

    return json_response(
        500,
        {"error": "Internal Server Error", "message": str(error) or type(error).__name__},
        correlation_id,
    )


def run_handler(
    request: dict,
    operation: Operation,
    name: str,
    methods: Iterable[str] = ("GET", "POST"),
) -> dict:
    """
    Run an async operation for a function entry point.

    Sets up logging and the correlation id, rejects unsupported methods and
    turns domain errors into 4xx responses and anything else into a 500.
    """
    LoggingConfig.ensure_configured()
    request = request or {}

    incoming = get_header(request, LoggingConfig.LOG_CORRELATION_ID_HEADER)
    with correlation_context(incoming) as correlation_id:
        method = (request.get("method") or "GET").upper()
        allowed = [m.upper() for m in methods]
        if method not in allowed:
            return json_response(
                405,
                {"error": "Method Not Allowed", "message": f"Use {', '.join(allowed)}"},
                correlation_id,
            )

        try:
            status_code, body = asyncio.run(operation())
        except StaffServiceError as e:
            if any(isinstance(e, error_type) for error_type, _, _ in ERROR_STATUS):
                logger.warning(f"{name} rejected request", handler=name, error=str(e), error_type=type(e).__name__)
            else:
                logger.exception(f"{name} failed", handler=name, error=str(e), error_type=type(e).__name__)
            return error_response(e, correlation_id)
        except Exception as e:
            logger.exception(f"{name} failed", handler=name, error=str(e))
            return error_response(e, correlation_id)

        return json_response(status_code, body, correlation_id)
