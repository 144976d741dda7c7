"""Outbound staff/team events, appended to the staff_events outbox table."""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from supabase import Client
from ulid import ULID

from staff_service.services.supabase_client import insert_row
from staff_service.utils.config import StoreConfig
from staff_service.utils.logging import get_correlation_id, get_structured_logger

logger = get_structured_logger(__name__)

DATA_VERSION = "1.0"


class StaffEventType(str, Enum):
    STAFF_CREATED = "staff.created"
    STAFF_UPDATED = "staff.updated"
    STAFF_ACTIVATED = "staff.activated"
    STAFF_DEACTIVATED = "staff.deactivated"
    STAFF_TERRITORY_ASSIGNED = "staff.territory_assigned"
    STAFF_TEAM_JOINED = "staff.team_joined"
    STAFF_TEAM_LEFT = "staff.team_left"
    STAFF_LICENSE_EXPIRING = "staff.license_expiring"
    TEAM_CREATED = "team.created"
    TEAM_UPDATED = "team.updated"
    TEAM_DELETED = "team.deleted"


class EventPublisher:
    """
    Writes events to the outbox table the bus relays from.

    Store errors propagate: an event that cannot be recorded fails the
    operation that produced it.
    """

    def __init__(self, client: Client, store: StoreConfig):
        self.client = client
        self.table = store.events_table

    async def publish(self, event_type: StaffEventType, subject: str, data: dict[str, Any]) -> dict:
        event = {
            "event_id": str(ULID()),
            "event_type": StaffEventType(event_type).value,
            "subject": subject,
            "data_version": DATA_VERSION,
            "data": {**data, "timestamp": datetime.now(timezone.utc).isoformat()},
            "correlation_id": get_correlation_id(),
        }
        await insert_row(self.client, self.table, event)
        logger.info("Event published", event_type=event["event_type"], subject=subject, event_id=event["event_id"])
        return event

    async def publish_staff_event(self, event_type: StaffEventType, staff_id: str, data: Optional[dict] = None) -> dict:
        return await self.publish(event_type, f"/staff/{staff_id}", {"staffId": staff_id, **(data or {})})

    async def publish_team_event(self, event_type: StaffEventType, team_id: str, data: Optional[dict] = None) -> dict:
        return await self.publish(event_type, f"/teams/{team_id}", {"teamId": team_id, **(data or {})})

    async def publish_license_expiring(
        self,
        staff_id: str,
        email: str,
        display_name: str,
        license: dict,
        days_until_expiry: int,
        threshold: int,
        manager_id: Optional[str] = None,
        manager_email: Optional[str] = None
    ) -> dict:
        return await self.publish(
            StaffEventType.STAFF_LICENSE_EXPIRING,
            f"/staff/{staff_id}/license",
            {
                "staffId": staff_id,
                "email": email,
                "displayName": display_name,
                "license": license,
                "daysUntilExpiry": days_until_expiry,
                "alertThreshold": threshold,
                "managerId": manager_id,
                "managerEmail": manager_email,
            },
        )
