"""Test helper functions."""

import json
from typing import Any, Dict, Optional


def create_vercel_request(
    method: str = "POST",
    path: str = "/api/staff",
    body: Any = None,
    headers: Optional[Dict[str, str]] = None,
    params: Optional[Dict[str, str]] = None,
    query: Optional[Dict[str, str]] = None
) -> Dict[str, Any]:
    """Create a Vercel request object for testing."""
    if headers is None:
        headers = {
            "content-type": "application/json"
        }

    return {
        "method": method,
        "path": path,
        "headers": headers,
        "body": json.dumps(body) if isinstance(body, (dict, list)) else body,
        "params": params or {},
        "query": query or {}
    }


def lifecycle_event(event_type: str, **data) -> Dict[str, Any]:
    """Event Grid style lifecycle event."""
    return {
        "id": f"evt-{event_type}",
        "eventType": event_type,
        "subject": "/test",
        "eventTime": "2026-10-19T12:00:00Z",
        "data": data,
    }


def response_json(response: Dict[str, Any]) -> Any:
    return json.loads(response["body"])
