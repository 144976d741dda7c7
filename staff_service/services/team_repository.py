"""Team repository - teams table access."""

from datetime import datetime, timezone
from typing import Callable, Optional
from supabase import Client

from staff_service.models.team import Team, TeamType
from staff_service.services.supabase_client import (
    SupabaseClient,
    delete_if_unchanged,
    fetch_one,
    insert_row,
    update_with_retry,
)
from staff_service.utils.config import StoreConfig
from staff_service.utils.errors import ConflictError, NotFoundError, SupabaseError
from staff_service.utils.logging import get_structured_logger

logger = get_structured_logger(__name__)

TeamMutation = Callable[[Team], Optional[dict]]


class TeamRepository:
    """CRUD and conditional updates for teams."""

    def __init__(self, client: Client, store: StoreConfig):
        self.client = client
        self.store = store
        self.table = store.teams_table

    async def create(self, team: Team) -> Team:
        row = await insert_row(self.client, self.table, team.model_dump(mode="json"))
        logger.info("Team created", team_id=team.team_id, team_type=team.type.value)
        return Team.model_validate(row)

    async def find_by_id(self, team_id: str) -> Optional[Team]:
        row = await fetch_one(self.client, self.table, "team_id", team_id)
        return Team.model_validate(row) if row else None

    async def get(self, team_id: str) -> Team:
        team = await self.find_by_id(team_id)
        if team is None:
            raise NotFoundError(f'Team "{team_id}" not found')
        return team

    async def list_teams(
        self,
        is_active: Optional[bool] = True,
        team_type: Optional[TeamType] = None,
        territory: Optional[str] = None
    ) -> list[Team]:
        """List teams ordered by name. is_active=None lists inactive teams too."""
        async with SupabaseClient(self.client) as db:
            try:
                query = db.table(self.table).select("*")
                if is_active is not None:
                    query = query.eq("is_active", is_active)
                if team_type:
                    query = query.eq("type", TeamType(team_type).value)
                if territory:
                    query = query.contains("territories", [territory])
                result = query.order("name").execute()
            except Exception as e:
                raise SupabaseError(f"Failed to list teams: {e}") from e

        return [Team.model_validate(row) for row in result.data or []]

    async def update(self, team_id: str, mutate: TeamMutation) -> Optional[Team]:
        """Apply ``mutate`` under optimistic concurrency; stamps updated_at."""
        def apply(row: dict) -> Optional[dict]:
            changes = mutate(Team.model_validate(row))
            if changes is None:
                return None
            return {**changes, "updated_at": datetime.now(timezone.utc).isoformat()}

        try:
            row = await update_with_retry(
                self.client,
                self.table,
                "team_id",
                team_id,
                apply,
                max_attempts=self.store.max_update_attempts,
                backoff_seconds=self.store.conflict_backoff_seconds,
            )
        except NotFoundError:
            raise NotFoundError(f'Team "{team_id}" not found') from None

        return Team.model_validate(row) if row else None

    async def add_member(self, team_id: str, staff_id: str, updated_by: Optional[str] = None) -> Team:
        """Append a member; a no-op when already present."""
        def apply(team: Team) -> Optional[dict]:
            if staff_id in team.member_ids:
                return None
            member_ids = [*team.member_ids, staff_id]
            return {"member_ids": member_ids, "member_count": len(member_ids), "updated_by": updated_by}

        updated = await self.update(team_id, apply)
        return updated or await self.get(team_id)

    async def remove_member(self, team_id: str, staff_id: str, updated_by: Optional[str] = None) -> Team:
        """Drop a member; the current leader can never be removed, checked on every attempt."""
        def apply(team: Team) -> Optional[dict]:
            if team.leader_id == staff_id:
                raise ConflictError("Cannot remove team leader from team")
            if staff_id not in team.member_ids:
                return None
            member_ids = [m for m in team.member_ids if m != staff_id]
            return {"member_ids": member_ids, "member_count": len(member_ids), "updated_by": updated_by}

        updated = await self.update(team_id, apply)
        return updated or await self.get(team_id)

    async def delete(self, team_id: str, row_version: int) -> None:
        """
        Delete the team if it is unchanged since row_version was read.

        Raises:
            ConflictError: the row changed in between, e.g. a member was added
        """
        if not await delete_if_unchanged(self.client, self.table, "team_id", team_id, row_version):
            raise ConflictError(f'Team "{team_id}" changed while being deleted')
        logger.info("Team deleted", team_id=team_id)
