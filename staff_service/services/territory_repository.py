"""Territory repository - territories table and its assigned_staff_ids reverse index."""

from datetime import datetime, timezone
from typing import Literal, Optional
from supabase import Client

from staff_service.models.territory import DEFAULT_TERRITORIES, Territory
from staff_service.services.supabase_client import SupabaseClient, fetch_one, insert_row, update_with_retry
from staff_service.utils.config import StoreConfig
from staff_service.utils.errors import NotFoundError, SupabaseError
from staff_service.utils.logging import get_structured_logger

logger = get_structured_logger(__name__)


class TerritoryRepository:

    def __init__(self, client: Client, store: StoreConfig):
        self.client = client
        self.store = store
        self.table = store.territories_table

    async def find_by_id(self, territory_id: str) -> Optional[Territory]:
        row = await fetch_one(self.client, self.table, "id", territory_id)
        return Territory.model_validate(row) if row else None

    async def list_territories(self, active_only: bool = True) -> list[Territory]:
        async with SupabaseClient(self.client) as db:
            try:
                query = db.table(self.table).select("*")
                if active_only:
                    query = query.eq("is_active", True)
                result = query.order("name").execute()
            except Exception as e:
                raise SupabaseError(f"Failed to list territories: {e}") from e

        return [Territory.model_validate(row) for row in result.data or []]

    async def find_missing(self, territory_ids: list[str]) -> list[str]:
        """Ids from the list that have no territory row, in request order."""
        if not territory_ids:
            return []

        async with SupabaseClient(self.client) as db:
            try:
                result = db.table(self.table).select("id").in_("id", list(territory_ids)).execute()
            except Exception as e:
                raise SupabaseError(f"Failed to look up territories: {e}") from e

        known = {row["id"] for row in result.data or []}
        return [t for t in territory_ids if t not in known]

    async def update_staff_assignment(
        self,
        territory_id: str,
        staff_id: str,
        operation: Literal["add", "remove"]
    ) -> Optional[Territory]:
        """Add or remove one staff id in assigned_staff_ids."""
        def apply(row: dict) -> Optional[dict]:
            assigned = list(row.get("assigned_staff_ids") or [])
            if operation == "add":
                if staff_id in assigned:
                    return None
                assigned.append(staff_id)
            else:
                if staff_id not in assigned:
                    return None
                assigned = [s for s in assigned if s != staff_id]
            return {
                "assigned_staff_ids": assigned,
                "updated_at": datetime.now(timezone.utc).isoformat(),
            }

        try:
            row = await update_with_retry(
                self.client,
                self.table,
                "id",
                territory_id,
                apply,
                max_attempts=self.store.max_update_attempts,
                backoff_seconds=self.store.conflict_backoff_seconds,
            )
        except NotFoundError:
            raise NotFoundError(f'Territory "{territory_id}" not found') from None

        return Territory.model_validate(row) if row else None

    async def replace_staff_assignments(self, territory_id: str, staff_ids: list[str]) -> Optional[Territory]:
        """Overwrite assigned_staff_ids; skipped when already equal."""
        def apply(row: dict) -> Optional[dict]:
            if list(row.get("assigned_staff_ids") or []) == staff_ids:
                return None
            return {
                "assigned_staff_ids": list(staff_ids),
                "updated_at": datetime.now(timezone.utc).isoformat(),
            }

        row = await update_with_retry(
            self.client,
            self.table,
            "id",
            territory_id,
            apply,
            max_attempts=self.store.max_update_attempts,
            backoff_seconds=self.store.conflict_backoff_seconds,
        )
        return Territory.model_validate(row) if row else None

    async def seed_territories(self) -> list[str]:
        """Create the default territories that do not exist yet. Returns created ids."""
        created = []
        now = datetime.now(timezone.utc).isoformat()

        for territory in DEFAULT_TERRITORIES:
            if await self.find_by_id(territory["id"]):
                logger.debug("Territory already exists", territory_id=territory["id"])
                continue

            record = Territory(**territory, created_at=now, updated_at=now)
            await insert_row(self.client, self.table, record.model_dump(mode="json"))
            created.append(record.id)
            logger.info("Territory created", territory_id=record.id)

        return created
