"""Staff repository - staff_members table access."""

from datetime import date, datetime, timedelta, timezone
from typing import Callable, Optional
from supabase import Client

from staff_service.models.staff import StaffMember, StaffStatus, StaffType
from staff_service.services.status_service import StatusChangeResult, request_transition
from staff_service.services.supabase_client import SupabaseClient, fetch_one, insert_row, update_with_retry
from staff_service.services.validators import parse_iso_date
from staff_service.utils.config import StoreConfig
from staff_service.utils.errors import ConflictError, NotFoundError, SupabaseError
from staff_service.utils.logging import get_structured_logger

logger = get_structured_logger(__name__)

# Receives the freshly read record; returns changed columns or None to skip
StaffMutation = Callable[[StaffMember], Optional[dict]]


class StaffRepository:
    """CRUD and conditional updates for staff members."""

    def __init__(self, client: Client, store: StoreConfig):
        self.client = client
        self.store = store
        self.table = store.staff_table

    async def create(self, staff: StaffMember) -> StaffMember:
        row = await insert_row(self.client, self.table, staff.model_dump(mode="json"))
        logger.info("Staff member created", staff_id=staff.staff_id, staff_type=staff.staff_type.value)
        return StaffMember.model_validate(row)

    async def find_by_id(self, staff_id: str) -> Optional[StaffMember]:
        row = await fetch_one(self.client, self.table, "staff_id", staff_id)
        return StaffMember.model_validate(row) if row else None

    async def get(self, staff_id: str) -> StaffMember:
        staff = await self.find_by_id(staff_id)
        if staff is None:
            raise NotFoundError(f'Staff member "{staff_id}" not found')
        return staff

    async def find_by_email(self, email: str) -> Optional[StaffMember]:
        row = await fetch_one(self.client, self.table, "email", email.lower())
        return StaffMember.model_validate(row) if row else None

    async def find_by_azure_ad_id(self, azure_ad_id: str) -> Optional[StaffMember]:
        row = await fetch_one(self.client, self.table, "azure_ad_id", azure_ad_id)
        return StaffMember.model_validate(row) if row else None

    async def find_by_employee_id(self, employee_id: str) -> Optional[StaffMember]:
        row = await fetch_one(self.client, self.table, "employee_id", employee_id)
        return StaffMember.model_validate(row) if row else None

    async def list_staff(
        self,
        status: Optional[StaffStatus] = StaffStatus.ACTIVE,
        team_id: Optional[str] = None,
        territory: Optional[str] = None,
        staff_type: Optional[StaffType] = None
    ) -> list[StaffMember]:
        """List staff ordered by display name. status=None lists every status."""
        async with SupabaseClient(self.client) as db:
            try:
                query = db.table(self.table).select("*")
                if status is not None:
                    query = query.eq("status", StaffStatus(status).value)
                if team_id:
                    query = query.contains("team_ids", [team_id])
                if territory:
                    query = query.contains("territories", [territory])
                if staff_type:
                    query = query.eq("staff_type", StaffType(staff_type).value)
                result = query.order("display_name").execute()
            except Exception as e:
                raise SupabaseError(f"Failed to list staff: {e}") from e

        return [StaffMember.model_validate(row) for row in result.data or []]

    async def update(self, staff_id: str, mutate: StaffMutation) -> Optional[StaffMember]:
        """
        Apply ``mutate`` under optimistic concurrency.

        The mutation sees the latest stored record on every attempt, so it
        must derive its changes from that record rather than from a copy the
        caller read earlier. updated_at is stamped automatically.

        Returns:
            The updated record, or None if the mutation skipped the write
        """
        def apply(row: dict) -> Optional[dict]:
            changes = mutate(StaffMember.model_validate(row))
            if changes is None:
                return None
            return {**changes, "updated_at": datetime.now(timezone.utc).isoformat()}

        try:
            row = await update_with_retry(
                self.client,
                self.table,
                "staff_id",
                staff_id,
                apply,
                max_attempts=self.store.max_update_attempts,
                backoff_seconds=self.store.conflict_backoff_seconds,
            )
        except NotFoundError:
            raise NotFoundError(f'Staff member "{staff_id}" not found') from None

        return StaffMember.model_validate(row) if row else None

    async def change_status(
        self,
        staff_id: str,
        target: StaffStatus,
        reason: Optional[str] = None,
        away_until: Optional[str] = None,
        updated_by: Optional[str] = None
    ) -> StatusChangeResult:
        """
        Persist a status transition.

        The transition is validated against the status read inside each
        conditional-write attempt, so a concurrent change forces
        re-validation and previous_status is always the status replaced.
        """
        outcome: dict[str, StatusChangeResult] = {}

        def transition(staff: StaffMember) -> dict:
            result = request_transition(staff, target, reason=reason, away_until=away_until)
            outcome["result"] = result
            return {
                "status": result.current_status.value,
                "status_changed_at": result.status_changed_at,
                "status_reason": reason,
                "availability": result.availability.model_dump(mode="json"),
                "updated_by": updated_by,
            }

        await self.update(staff_id, transition)
        result = outcome["result"]

        logger.info(
            "Staff status changed",
            staff_id=staff_id,
            previous_status=result.previous_status.value,
            current_status=result.current_status.value
        )
        return result

    async def set_team_ids(
        self,
        staff_id: str,
        compute: Callable[[list[str]], list[str]],
        updated_by: Optional[str] = None
    ) -> StaffMember:
        def apply(staff: StaffMember) -> Optional[dict]:
            team_ids = compute(list(staff.team_ids))
            if team_ids == staff.team_ids:
                return None
            return {"team_ids": team_ids, "updated_by": updated_by}

        updated = await self.update(staff_id, apply)
        return updated or await self.get(staff_id)

    async def leave_team(self, staff_id: str, team_id: str, updated_by: Optional[str] = None) -> StaffMember:
        """
        Remove team_id from the staff member's teams.

        The at-least-one-team rule is checked against the record read inside
        each conditional-write attempt, so two concurrent removals cannot
        both succeed and leave the staff member with no team.

        Raises:
            ConflictError: team_id is the staff member's only team
        """
        def leave(staff: StaffMember) -> Optional[dict]:
            if team_id not in staff.team_ids:
                return None
            if len(staff.team_ids) <= 1:
                raise ConflictError("Staff member must belong to at least one team")
            return {"team_ids": [t for t in staff.team_ids if t != team_id], "updated_by": updated_by}

        updated = await self.update(staff_id, leave)
        return updated or await self.get(staff_id)

    async def get_staff_with_expiring_licenses(
        self,
        days_until_expiry: int,
        today: Optional[date] = None
    ) -> list[StaffMember]:
        """Active staff holding at least one license expiring within the window (inclusive)."""
        today = today or datetime.now(timezone.utc).date()
        horizon = today + timedelta(days=days_until_expiry)

        expiring = []
        for staff in await self.list_staff(status=StaffStatus.ACTIVE):
            for license in staff.licenses:
                expiry = parse_iso_date(license.expiry_date)
                if expiry is not None and today <= expiry <= horizon:
                    expiring.append(staff)
                    break
        return expiring
