"""Staff status state machine and derived availability."""

from datetime import datetime, timezone
from typing import Optional
from pydantic import Field

from staff_service.models.staff import Availability, StaffMember, StaffStatus, WireModel
from staff_service.services.validators import validate_status_transition
from staff_service.utils.errors import InvalidTransitionError

STATUS_LABELS: dict[StaffStatus, str] = {
    StaffStatus.ACTIVE: "Active",
    StaffStatus.INACTIVE: "Inactive",
    StaffStatus.SUSPENDED: "Suspended",
    StaffStatus.ON_LEAVE: "On Leave",
    StaffStatus.TERMINATED: "Terminated",
}


class StatusChangeResult(WireModel):
    staff_id: Optional[str] = None
    previous_status: StaffStatus
    current_status: StaffStatus
    status_changed_at: str
    availability: Availability
    reason: Optional[str] = None
    requires_workload_reassignment: bool = Field(default=False)


def calculate_availability(
    status: StaffStatus,
    away_until: Optional[str] = None,
    reason: Optional[str] = None
) -> Availability:
    """Availability is a pure function of status."""
    status = StaffStatus(status)

    if status == StaffStatus.ACTIVE:
        return Availability(is_available=True)

    if status == StaffStatus.ON_LEAVE:
        return Availability(
            is_available=False,
            away_until=away_until,
            away_reason=reason or "On leave"
        )

    return Availability(
        is_available=False,
        away_reason=reason or f"Status: {status.value}"
    )


def can_accept_assignments(status: StaffStatus) -> bool:
    return StaffStatus(status) == StaffStatus.ACTIVE


def requires_workload_reassignment(previous: StaffStatus, new: StaffStatus) -> bool:
    """True only when leaving active for a non-active status."""
    return StaffStatus(previous) == StaffStatus.ACTIVE and StaffStatus(new) != StaffStatus.ACTIVE


def get_status_label(status: StaffStatus) -> str:
    return STATUS_LABELS[StaffStatus(status)]


def request_transition(
    staff: StaffMember,
    target: StaffStatus,
    reason: Optional[str] = None,
    away_until: Optional[str] = None,
    now: Optional[datetime] = None
) -> StatusChangeResult:
    """
    Validate a status move and compute its result.

    The staff record is not modified; persisting the result is the caller's job.

    Raises:
        InvalidTransitionError: target equals the current status or is not allowed from it
    """
    target = StaffStatus(target)
    validation = validate_status_transition(staff.status, target)
    if not validation.valid:
        raise InvalidTransitionError("; ".join(validation.errors))

    changed_at = (now or datetime.now(timezone.utc)).isoformat()

    return StatusChangeResult(
        staff_id=staff.staff_id,
        previous_status=staff.status,
        current_status=target,
        status_changed_at=changed_at,
        availability=calculate_availability(target, away_until, reason),
        reason=reason,
        requires_workload_reassignment=requires_workload_reassignment(staff.status, target),
    )
