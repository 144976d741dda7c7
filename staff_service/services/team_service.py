"""Team administration - teams and their membership."""

from datetime import datetime, timezone
from typing import Optional
from pydantic import ValidationError as PydanticValidationError
from ulid import ULID

from staff_service.models.team import CreateTeamRequest, Team, TeamMembershipChange, UpdateTeamRequest
from staff_service.services.event_publisher import EventPublisher, StaffEventType
from staff_service.services.staff_repository import StaffRepository
from staff_service.services.team_repository import TeamRepository
from staff_service.utils.errors import ConflictError, NotFoundError, ValidationError
from staff_service.utils.logging import get_structured_logger

logger = get_structured_logger(__name__)


class TeamService:
    """
    Keeps Team.member_ids and StaffMember.team_ids in step.

    Joins write the team row first, then the staff row. Removals and deletes
    write the staff row first, so its at-least-one-team rule is checked
    before the team changes. A store failure between the two writes is not
    rolled back.
    """

    def __init__(self, team_repository: TeamRepository, staff_repository: StaffRepository, publisher: EventPublisher):
        self.teams = team_repository
        self.staff = staff_repository
        self.publisher = publisher

    async def create_team(self, request: dict, created_by: str = "system") -> Team:
        try:
            parsed = CreateTeamRequest.model_validate(request)
        except PydanticValidationError as e:
            raise ValidationError.from_pydantic(e, "Invalid team request") from e

        leader = await self.staff.find_by_id(parsed.leader_id)
        if leader is None:
            raise NotFoundError(f'Leader "{parsed.leader_id}" not found')

        now = datetime.now(timezone.utc).isoformat()
        team = Team(
            team_id=str(ULID()),
            name=parsed.name,
            description=parsed.description,
            type=parsed.type,
            leader_id=leader.staff_id,
            leader_email=leader.email,
            member_ids=[leader.staff_id],
            member_count=1,
            territories=parsed.territories,
            specializations=parsed.specializations,
            organization_id=parsed.organization_id or "default",
            parent_team_id=parsed.parent_team_id,
            created_at=now,
            created_by=created_by,
            updated_at=now,
            updated_by=created_by,
        )

        created = await self.teams.create(team)
        await self._add_team_to_staff(leader.staff_id, created.team_id, created_by)

        await self.publisher.publish_team_event(
            StaffEventType.TEAM_CREATED,
            created.team_id,
            {"name": created.name, "type": created.type.value, "leaderId": created.leader_id, "createdBy": created_by},
        )
        return created

    async def update_team(self, team_id: str, request: dict, updated_by: str = "system") -> Team:
        """Update team fields. A new leader is added as a member if not one already."""
        try:
            parsed = UpdateTeamRequest.model_validate(request)
        except PydanticValidationError as e:
            raise ValidationError.from_pydantic(e, "Invalid team update") from e

        existing = await self.teams.get(team_id)

        new_leader = None
        if parsed.leader_id and parsed.leader_id != existing.leader_id:
            new_leader = await self.staff.find_by_id(parsed.leader_id)
            if new_leader is None:
                raise NotFoundError(f'New leader "{parsed.leader_id}" not found')

        def mutate(team: Team) -> Optional[dict]:
            changes = {}
            for field in ("name", "description", "territories", "specializations", "parent_team_id", "is_active"):
                value = getattr(parsed, field)
                if value is not None and value != getattr(team, field):
                    changes[field] = value
            if parsed.type is not None and parsed.type != team.type:
                changes["type"] = parsed.type.value
            if new_leader is not None and new_leader.staff_id != team.leader_id:
                changes["leader_id"] = new_leader.staff_id
                changes["leader_email"] = new_leader.email
                if new_leader.staff_id not in team.member_ids:
                    member_ids = [*team.member_ids, new_leader.staff_id]
                    changes["member_ids"] = member_ids
                    changes["member_count"] = len(member_ids)
            if not changes:
                return None
            return {**changes, "updated_by": updated_by}

        updated = await self.teams.update(team_id, mutate)
        if updated is None:
            return existing

        if new_leader is not None:
            await self._add_team_to_staff(new_leader.staff_id, team_id, updated_by)

        await self.publisher.publish_team_event(
            StaffEventType.TEAM_UPDATED,
            team_id,
            {"name": updated.name, "leaderId": updated.leader_id, "isActive": updated.is_active, "updatedBy": updated_by},
        )
        return updated

    async def add_team_member(self, team_id: str, staff_id: str, updated_by: str = "system") -> TeamMembershipChange:
        """
        Raises:
            NotFoundError: unknown team or staff member
            ConflictError: already a member
        """
        team = await self.teams.get(team_id)
        await self.staff.get(staff_id)

        if staff_id in team.member_ids:
            raise ConflictError(f'Staff member "{staff_id}" is already a member of this team')

        updated = await self.teams.add_member(team_id, staff_id, updated_by=updated_by)
        await self._add_team_to_staff(staff_id, team_id, updated_by)

        await self.publisher.publish_staff_event(
            StaffEventType.STAFF_TEAM_JOINED,
            staff_id,
            {"teamId": team_id, "teamName": updated.name, "updatedBy": updated_by},
        )

        return TeamMembershipChange(
            team_id=team_id,
            staff_id=staff_id,
            member_count=updated.member_count,
            changed_at=updated.updated_at or datetime.now(timezone.utc).isoformat(),
        )

    async def remove_team_member(self, team_id: str, staff_id: str, updated_by: str = "system") -> TeamMembershipChange:
        """
        Take a staff member off a team.

        The staff row is written first so the at-least-one-team rule is
        enforced on the freshest record. If the team row then refuses because
        the staff member became its leader in the meantime, the team is put
        back on the staff record.

        Raises:
            NotFoundError: unknown team or staff member, or not a member
            ConflictError: staff member leads the team, or it is their only team
        """
        log = logger.bind(team_id=team_id, staff_id=staff_id)
        team = await self.teams.get(team_id)
        await self.staff.get(staff_id)

        if staff_id not in team.member_ids:
            raise NotFoundError(f'Staff member "{staff_id}" is not a member of this team')
        if team.leader_id == staff_id:
            raise ConflictError("Cannot remove team leader from team")

        await self.staff.leave_team(staff_id, team_id, updated_by=updated_by)
        try:
            updated = await self.teams.remove_member(team_id, staff_id, updated_by=updated_by)
        except ConflictError:
            log.warning("Staff member became team leader during removal, restoring membership")
            await self._add_team_to_staff(staff_id, team_id, updated_by)
            raise

        await self.publisher.publish_staff_event(
            StaffEventType.STAFF_TEAM_LEFT,
            staff_id,
            {"teamId": team_id, "teamName": updated.name, "updatedBy": updated_by},
        )
        log.info("Staff member left team", member_count=updated.member_count)

        return TeamMembershipChange(
            team_id=team_id,
            staff_id=staff_id,
            member_count=updated.member_count,
            changed_at=updated.updated_at or datetime.now(timezone.utc).isoformat(),
        )

    async def delete_team(self, team_id: str, deleted_by: str = "system") -> None:
        """
        Delete a team that has no members besides its leader.

        The leader leaves first, and must belong to another team. The team row
        is then deleted only if nobody changed it since it was read.

        Raises:
            NotFoundError: unknown team
            ConflictError: the team still has members, it is the leader's only
                team, or it changed while being deleted
        """
        log = logger.bind(team_id=team_id)
        team = await self.teams.get(team_id)

        if any(member != team.leader_id for member in team.member_ids):
            raise ConflictError("Cannot delete team with active members")

        await self.staff.leave_team(team.leader_id, team_id, updated_by=deleted_by)
        try:
            await self.teams.delete(team_id, team.row_version)
        except ConflictError:
            log.warning("Team changed during delete, restoring leader membership", leader_id=team.leader_id)
            await self._add_team_to_staff(team.leader_id, team_id, deleted_by)
            raise

        await self.publisher.publish_team_event(
            StaffEventType.TEAM_DELETED,
            team_id,
            {"name": team.name, "deletedBy": deleted_by},
        )
        log.info("Team deleted", deleted_by=deleted_by)

    async def _add_team_to_staff(self, staff_id: str, team_id: str, updated_by: str) -> None:
        await self.staff.set_team_ids(
            staff_id,
            lambda ids: ids if team_id in ids else [*ids, team_id],
            updated_by=updated_by,
        )
