"""Tests for the staff status state machine."""

import itertools
from datetime import datetime, timezone
import pytest

from staff_service.models.staff import STATUS_TRANSITIONS, StaffStatus
from staff_service.services.status_service import (
    calculate_availability,
    can_accept_assignments,
    get_status_label,
    request_transition,
    requires_workload_reassignment,
)
from staff_service.utils.errors import InvalidTransitionError
from tests.utils.factories import make_staff


@pytest.mark.unit
@pytest.mark.parametrize(
    "current,target",
    list(itertools.product(list(StaffStatus), list(StaffStatus)))
)
def test_request_transition_follows_table(current, target):
    """A move succeeds exactly when the target is listed for the current status."""
    staff = make_staff(status=current.value)
    allowed = target in STATUS_TRANSITIONS[current] and target != current

    if allowed:
        result = request_transition(staff, target)
        assert result.previous_status == current
        assert result.current_status == target
    else:
        with pytest.raises(InvalidTransitionError):
            request_transition(staff, target)


@pytest.mark.unit
def test_terminated_has_no_outgoing_transitions():
    staff = make_staff(status="terminated")
    assert STATUS_TRANSITIONS[StaffStatus.TERMINATED] == frozenset()
    for target in StaffStatus:
        with pytest.raises(InvalidTransitionError):
            request_transition(staff, target)


@pytest.mark.unit
def test_same_status_is_rejected_as_already_in_status():
    staff = make_staff(status="active")
    with pytest.raises(InvalidTransitionError, match="already active"):
        request_transition(staff, StaffStatus.ACTIVE)


@pytest.mark.unit
def test_on_leave_to_suspended_rejected():
    """Only active is reachable from on_leave."""
    staff = make_staff(status="on_leave")
    with pytest.raises(InvalidTransitionError, match="Allowed transitions: active"):
        request_transition(staff, StaffStatus.SUSPENDED)


@pytest.mark.unit
def test_on_leave_transition_keeps_away_until_and_default_reason():
    staff = make_staff(status="active")
    result = request_transition(staff, StaffStatus.ON_LEAVE, away_until="2026-11-01")

    assert result.availability.is_available is False
    assert result.availability.away_until == "2026-11-01"
    assert result.availability.away_reason == "On leave"
    assert result.requires_workload_reassignment is True


@pytest.mark.unit
def test_transition_uses_given_timestamp_and_reason():
    staff = make_staff(status="active")
    now = datetime(2026, 10, 19, 9, 30, tzinfo=timezone.utc)

    result = request_transition(staff, StaffStatus.SUSPENDED, reason="Compliance review", now=now)

    assert result.status_changed_at == now.isoformat()
    assert result.reason == "Compliance review"
    assert result.availability.away_reason == "Compliance review"


@pytest.mark.unit
def test_request_transition_does_not_modify_staff():
    staff = make_staff(status="active")
    request_transition(staff, StaffStatus.INACTIVE)
    assert staff.status == StaffStatus.ACTIVE


@pytest.mark.unit
def test_calculate_availability_active_clears_away_fields():
    availability = calculate_availability(StaffStatus.ACTIVE, away_until="2026-12-01", reason="ignored")
    assert availability.is_available is True
    assert availability.away_until is None
    assert availability.away_reason is None


@pytest.mark.unit
@pytest.mark.parametrize("status", [StaffStatus.INACTIVE, StaffStatus.SUSPENDED, StaffStatus.TERMINATED])
def test_calculate_availability_non_active_default_reason(status):
    availability = calculate_availability(status, away_until="2026-12-01")
    assert availability.is_available is False
    assert availability.away_until is None
    assert availability.away_reason == f"Status: {status.value}"


@pytest.mark.unit
def test_requires_workload_reassignment_only_when_leaving_active():
    assert requires_workload_reassignment(StaffStatus.ACTIVE, StaffStatus.ON_LEAVE) is True
    assert requires_workload_reassignment(StaffStatus.ACTIVE, StaffStatus.TERMINATED) is True
    assert requires_workload_reassignment(StaffStatus.SUSPENDED, StaffStatus.TERMINATED) is False
    assert requires_workload_reassignment(StaffStatus.INACTIVE, StaffStatus.ACTIVE) is False


@pytest.mark.unit
def test_can_accept_assignments_and_labels():
    assert can_accept_assignments(StaffStatus.ACTIVE) is True
    assert all(not can_accept_assignments(s) for s in StaffStatus if s != StaffStatus.ACTIVE)
    assert get_status_label("on_leave") == "On Leave"
