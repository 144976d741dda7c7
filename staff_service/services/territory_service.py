"""Territory assignment for staff members and repair of the territory reverse index."""

from typing import Optional

from staff_service.models.staff import StaffMember
from staff_service.models.territory import (
    AssignTerritoryRequest,
    AssignTerritoryResult,
    ReconciliationReport,
    TerritoryOperation,
)
from staff_service.services.event_publisher import EventPublisher, StaffEventType
from staff_service.services.staff_repository import StaffRepository
from staff_service.services.territory_repository import TerritoryRepository
from staff_service.services.validators import validate_territory_request
from staff_service.utils.errors import NotFoundError, StaffServiceError, ValidationError
from staff_service.utils.logging import get_structured_logger, log_timing

logger = get_structured_logger(__name__)


def apply_territory_operation(current: list[str], requested: list[str], operation: TerritoryOperation) -> list[str]:
    """
    add: current order, then new ids not yet present (deduplicated)
    remove: current minus requested
    replace: requested, deduplicated, in request order
    """
    operation = TerritoryOperation(operation)
    if operation == TerritoryOperation.ADD:
        merged = list(current)
        for territory in requested:
            if territory not in merged:
                merged.append(territory)
        return merged
    if operation == TerritoryOperation.REMOVE:
        return [t for t in current if t not in requested]
    return list(dict.fromkeys(requested))


class TerritoryService:

    def __init__(
        self,
        staff_repository: StaffRepository,
        territory_repository: TerritoryRepository,
        publisher: EventPublisher
    ):
        self.staff = staff_repository
        self.territories = territory_repository
        self.publisher = publisher

    async def assign_territories(
        self,
        staff_id: str,
        request: dict,
        updated_by: Optional[str] = None
    ) -> AssignTerritoryResult:
        """
        Add, remove or replace a staff member's territories.

        The staff record is written first, then assigned_staff_ids on each
        added or removed territory. The two writes are not atomic; a failure
        after the first is logged with the territories left to fix and
        re-raised. reconcile_territory_assignments repairs the index.

        Raises:
            ValidationError: malformed request
            NotFoundError: unknown staff member or territory
        """
        validation = validate_territory_request(request)
        if not validation.valid:
            raise ValidationError("Invalid territory request", details=validation.errors)
        parsed = AssignTerritoryRequest.model_validate(request)

        await self.staff.get(staff_id)

        missing = await self.territories.find_missing(parsed.territories)
        if missing:
            raise NotFoundError(f"Territories not found: {', '.join(missing)}")

        captured: dict[str, list[str]] = {}

        def mutate(staff: StaffMember) -> Optional[dict]:
            captured["previous"] = list(staff.territories)
            territories = apply_territory_operation(staff.territories, parsed.territories, parsed.operation)
            captured["current"] = territories
            if territories == staff.territories:
                return None
            return {"territories": territories, "updated_by": updated_by}

        updated = await self.staff.update(staff_id, mutate)
        previous, current = captured["previous"], captured["current"]
        updated_at = updated.updated_at if updated else (await self.staff.get(staff_id)).updated_at

        added = [t for t in current if t not in previous]
        removed = [t for t in previous if t not in current]

        pending = [("add", t) for t in added] + [("remove", t) for t in removed]
        for index, (operation, territory_id) in enumerate(pending):
            try:
                await self.territories.update_staff_assignment(territory_id, staff_id, operation)
            except StaffServiceError as e:
                logger.error(
                    "Territory index update failed after staff record was written",
                    staff_id=staff_id,
                    failed_territory=territory_id,
                    pending_territories=[t for _, t in pending[index:]],
                    error=str(e)
                )
                raise

        if added or removed:
            await self.publisher.publish_staff_event(
                StaffEventType.STAFF_TERRITORY_ASSIGNED,
                staff_id,
                {
                    "previousTerritories": previous,
                    "currentTerritories": current,
                    "operation": parsed.operation.value,
                },
            )

        logger.info(
            "Territories assigned",
            staff_id=staff_id,
            operation=parsed.operation.value,
            added=added,
            removed=removed
        )

        return AssignTerritoryResult(
            staff_id=staff_id,
            previous_territories=previous,
            current_territories=current,
            updated_at=updated_at or "",
        )

    async def reconcile_territory_assignments(self) -> ReconciliationReport:
        """Rebuild every territory's assigned_staff_ids from the staff records."""
        report = ReconciliationReport()

        with log_timing("reconcile_territory_assignments", logger=logger):
            roster = await self.staff.list_staff(status=None)
            expected: dict[str, list[str]] = {}
            for staff in roster:
                for territory_id in staff.territories:
                    expected.setdefault(territory_id, []).append(staff.staff_id)

            for territory in await self.territories.list_territories(active_only=False):
                report.territories_checked += 1
                wanted = sorted(expected.pop(territory.id, []))
                if sorted(territory.assigned_staff_ids) == wanted:
                    continue

                await self.territories.replace_staff_assignments(territory.id, wanted)
                report.territories_repaired.append(territory.id)
                logger.warning(
                    "Territory index repaired",
                    territory_id=territory.id,
                    stored_count=len(territory.assigned_staff_ids),
                    expected_count=len(wanted)
                )

            for territory_id, staff_ids in expected.items():
                logger.warning(
                    "Staff reference unknown territory",
                    territory_id=territory_id,
                    staff_count=len(staff_ids)
                )

        return report

    async def seed_territories(self) -> list[str]:
        return await self.territories.seed_territories()
