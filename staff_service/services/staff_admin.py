"""Staff administration - hire, profile updates and status changes."""

from datetime import datetime, timezone
from typing import Optional
from pydantic import ValidationError as PydanticValidationError
from ulid import ULID

from staff_service.models.staff import (
    CreateStaffRequest,
    NotificationPreferences,
    StaffMember,
    StaffStatus,
    UpdateStaffRequest,
    UpdateStaffStatusRequest,
    Workload,
)
from staff_service.services.event_publisher import EventPublisher, StaffEventType
from staff_service.services.staff_repository import StaffRepository
from staff_service.services.status_service import StatusChangeResult
from staff_service.services.team_repository import TeamRepository
from staff_service.services.territory_repository import TerritoryRepository
from staff_service.services.validators import (
    validate_create_staff_request,
    validate_license,
    validate_phone,
)
from staff_service.utils.errors import ConflictError, NotFoundError, ValidationError
from staff_service.utils.logging import get_structured_logger, mask_email

logger = get_structured_logger(__name__)

_PROFILE_FIELDS = ("first_name", "last_name", "phone", "photo", "job_title", "department", "manager_id")


class StaffAdminService:

    def __init__(
        self,
        staff_repository: StaffRepository,
        team_repository: TeamRepository,
        territory_repository: TerritoryRepository,
        publisher: EventPublisher
    ):
        self.staff = staff_repository
        self.teams = team_repository
        self.territories = territory_repository
        self.publisher = publisher

    async def create_staff(self, request: dict, created_by: str = "system") -> StaffMember:
        """
        Hire a staff member.

        The record starts active and available with empty workload. Team
        membership and the territory reverse index are updated after the
        staff record is written.

        Raises:
            ValidationError: malformed request
            ConflictError: email, directory id or employee id already in use
            NotFoundError: unknown team or territory
        """
        validation = validate_create_staff_request(request)
        if not validation.valid:
            raise ValidationError("Invalid staff request", details=validation.errors)

        try:
            parsed = CreateStaffRequest.model_validate(request)
        except PydanticValidationError as e:
            raise ValidationError.from_pydantic(e, "Invalid staff request") from e

        email = parsed.email.lower()
        if await self.staff.find_by_email(email):
            raise ConflictError(f'Staff member with email "{email}" already exists')
        if await self.staff.find_by_azure_ad_id(parsed.azure_ad_id):
            raise ConflictError("Staff member with this Azure AD ID already exists")
        if await self.staff.find_by_employee_id(parsed.employee_id):
            raise ConflictError(f'Staff member with employee ID "{parsed.employee_id}" already exists')

        team_ids = list(dict.fromkeys(parsed.team_ids))
        for team_id in team_ids:
            if await self.teams.find_by_id(team_id) is None:
                raise NotFoundError(f'Team "{team_id}" not found')

        territories = list(dict.fromkeys(parsed.territories))
        missing = await self.territories.find_missing(territories)
        if missing:
            raise NotFoundError(f"Territories not found: {', '.join(missing)}")

        now = datetime.now(timezone.utc).isoformat()
        staff = StaffMember(
            staff_id=str(ULID()),
            azure_ad_id=parsed.azure_ad_id,
            email=email,
            first_name=parsed.first_name,
            last_name=parsed.last_name,
            display_name=f"{parsed.first_name} {parsed.last_name}",
            phone=parsed.phone,
            photo=parsed.photo,
            employee_id=parsed.employee_id,
            job_title=parsed.job_title,
            department=parsed.department,
            staff_type=parsed.staff_type,
            hire_date=parsed.hire_date,
            status=StaffStatus.ACTIVE,
            status_changed_at=now,
            team_ids=team_ids,
            manager_id=parsed.manager_id,
            organization_id=parsed.organization_id or "default",
            territories=territories,
            licenses=parsed.licenses,
            workload=Workload(max_leads=parsed.max_leads, max_customers=parsed.max_customers),
            notification_preferences=parsed.notification_preferences or NotificationPreferences(),
            metadata=parsed.metadata,
            created_at=now,
            created_by=created_by,
            updated_at=now,
            updated_by=created_by,
        )

        created = await self.staff.create(staff)

        for team_id in team_ids:
            await self.teams.add_member(team_id, created.staff_id, updated_by=created_by)
        for territory_id in territories:
            await self.territories.update_staff_assignment(territory_id, created.staff_id, "add")

        await self.publisher.publish_staff_event(
            StaffEventType.STAFF_CREATED,
            created.staff_id,
            {
                "email": created.email,
                "displayName": created.display_name,
                "staffType": created.staff_type.value,
                "teamIds": created.team_ids,
                "territories": created.territories,
                "createdBy": created_by,
            },
        )

        logger.info(
            "Staff member hired",
            staff_id=created.staff_id,
            email=mask_email(created.email),
            team_count=len(team_ids)
        )
        return created

    async def update_staff(self, staff_id: str, request: dict, updated_by: str = "system") -> StaffMember:
        """
        Update profile fields, capacity limits, licenses, preferences and metadata.

        workload_reset is the only path that sets workload counters directly.
        Status, teams and territories have their own operations.
        """
        try:
            parsed = UpdateStaffRequest.model_validate(request)
        except PydanticValidationError as e:
            raise ValidationError.from_pydantic(e, "Invalid staff update") from e

        errors = []
        if parsed.phone is not None:
            errors.extend(validate_phone(parsed.phone).errors)
        for i, license in enumerate(parsed.licenses or [], start=1):
            result = validate_license(license)
            if not result.valid:
                errors.append(f"License {i}: {', '.join(result.errors)}")
        if errors:
            raise ValidationError("Invalid staff update", details=errors)

        provided = parsed.model_fields_set
        changed_fields: list[str] = []

        def mutate(staff: StaffMember) -> Optional[dict]:
            changes: dict = {}
            for field in _PROFILE_FIELDS:
                value = getattr(parsed, field)
                if field in provided and value is not None and value != getattr(staff, field):
                    changes[field] = value

            if "first_name" in changes or "last_name" in changes:
                first = changes.get("first_name", staff.first_name)
                last = changes.get("last_name", staff.last_name)
                changes["display_name"] = f"{first} {last}"

            if parsed.staff_type is not None and parsed.staff_type != staff.staff_type:
                changes["staff_type"] = parsed.staff_type.value
            if parsed.licenses is not None:
                changes["licenses"] = [license.model_dump(mode="json") for license in parsed.licenses]
            if parsed.notification_preferences is not None:
                changes["notification_preferences"] = parsed.notification_preferences.model_dump(mode="json")
            if parsed.metadata is not None:
                changes["metadata"] = parsed.metadata

            workload_updates = {}
            if parsed.max_leads is not None:
                workload_updates["max_leads"] = parsed.max_leads
            if parsed.max_customers is not None:
                workload_updates["max_customers"] = parsed.max_customers
            if parsed.workload_reset is not None:
                workload_updates.update(parsed.workload_reset.model_dump(exclude_none=True))
            if workload_updates:
                workload = staff.workload.model_copy(update=workload_updates)
                if workload != staff.workload:
                    changes["workload"] = workload.model_dump(mode="json")

            changed_fields[:] = sorted(changes)
            if not changes:
                return None
            return {**changes, "updated_by": updated_by}

        updated = await self.staff.update(staff_id, mutate)
        if updated is None:
            return await self.staff.get(staff_id)

        if parsed.workload_reset is not None:
            logger.warning(
                "Workload counters reset by administrator",
                staff_id=staff_id,
                updated_by=updated_by,
                workload=updated.workload.model_dump()
            )

        await self.publisher.publish_staff_event(
            StaffEventType.STAFF_UPDATED,
            staff_id,
            {"updatedFields": changed_fields, "updatedBy": updated_by},
        )
        return updated

    async def change_status(self, staff_id: str, request: dict, updated_by: str = "system") -> StatusChangeResult:
        """
        Move a staff member to a new status.

        Publishes staff.activated when the new status is active and
        staff.deactivated otherwise.

        Raises:
            ValidationError: missing or unknown status
            NotFoundError: unknown staff member
            InvalidTransitionError: move not allowed from the current status
        """
        try:
            parsed = UpdateStaffStatusRequest.model_validate(request)
        except PydanticValidationError as e:
            raise ValidationError.from_pydantic(e, "Status is required") from e

        result = await self.staff.change_status(
            staff_id,
            parsed.status,
            reason=parsed.reason,
            away_until=parsed.away_until,
            updated_by=updated_by,
        )

        staff = await self.staff.get(staff_id)
        event_type = (
            StaffEventType.STAFF_ACTIVATED
            if result.current_status == StaffStatus.ACTIVE
            else StaffEventType.STAFF_DEACTIVATED
        )
        await self.publisher.publish_staff_event(
            event_type,
            staff_id,
            {
                "email": staff.email,
                "displayName": staff.display_name,
                "previousStatus": result.previous_status.value,
                "currentStatus": result.current_status.value,
                "reason": result.reason,
                "requiresWorkloadReassignment": result.requires_workload_reassignment,
                "updatedBy": updated_by,
            },
        )

        if result.requires_workload_reassignment:
            logger.info(
                "Staff left active status with open workload",
                staff_id=staff_id,
                active_leads=staff.workload.active_leads,
                active_customers=staff.workload.active_customers
            )
        return result
