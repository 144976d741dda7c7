"""Tests for workload counters and capacity arithmetic."""

import pytest

from staff_service.models.staff import Workload
from staff_service.services.workload_service import (
    WorkloadStatus,
    calculate_customer_utilization,
    calculate_lead_utilization,
    calculate_overall_utilization,
    can_accept_new,
    can_accept_new_customer,
    can_accept_new_lead,
    decrement_workload,
    get_workload_breakdown,
    get_workload_info,
    get_workload_status,
    increment_workload,
)
from staff_service.utils.config import WorkloadConfig
from tests.utils.factories import make_staff


@pytest.mark.unit
def test_increment_has_no_ceiling():
    workload = Workload(active_leads=20, max_leads=20)
    bumped = increment_workload(workload, "active_leads")
    assert bumped.active_leads == 21
    assert workload.active_leads == 20


@pytest.mark.unit
@pytest.mark.parametrize("field", ["active_leads", "active_customers", "active_policies", "pending_approvals"])
def test_decrement_clamps_at_zero(field):
    workload = Workload()
    assert getattr(decrement_workload(workload, field), field) == 0

    one = Workload(**{field: 1})
    once = decrement_workload(one, field)
    twice = decrement_workload(once, field)
    assert getattr(once, field) == 0
    assert getattr(twice, field) == 0


@pytest.mark.unit
def test_unknown_field_rejected():
    with pytest.raises(ValueError):
        increment_workload(Workload(), "active_quotes")


@pytest.mark.unit
def test_utilization_uses_defaults_when_max_missing_or_zero():
    assert calculate_lead_utilization(Workload(active_leads=10)) == 0.5
    assert calculate_lead_utilization(Workload(active_leads=10, max_leads=0)) == 0.5
    assert calculate_customer_utilization(Workload(active_customers=30)) == 0.5


@pytest.mark.unit
def test_utilization_with_custom_config():
    config = WorkloadConfig(default_max_leads=10, default_max_customers=10)
    assert calculate_lead_utilization(Workload(active_leads=5), config) == 0.5


@pytest.mark.unit
def test_zero_default_max_reports_zero_utilization():
    config = WorkloadConfig(default_max_leads=0)
    assert calculate_lead_utilization(Workload(active_leads=3), config) == 0.0


@pytest.mark.unit
def test_overall_utilization_is_mean_and_monotonic():
    previous = -1.0
    for leads in range(0, 30):
        overall = calculate_overall_utilization(Workload(active_leads=leads, active_customers=12))
        assert overall >= previous
        previous = overall

    assert calculate_overall_utilization(Workload(active_leads=10, active_customers=30)) == 0.5


@pytest.mark.unit
@pytest.mark.parametrize("utilization,expected", [
    (0.0, WorkloadStatus.AVAILABLE),
    (0.79, WorkloadStatus.AVAILABLE),
    (0.8, WorkloadStatus.WARNING),
    (0.99, WorkloadStatus.WARNING),
    (1.0, WorkloadStatus.AT_CAPACITY),
    (1.05, WorkloadStatus.OVER_CAPACITY),
])
def test_workload_status_bands(utilization, expected):
    assert get_workload_status(utilization) == expected


@pytest.mark.unit
def test_staff_with_headroom_can_accept_lead():
    staff = make_staff(active_leads=5, max_leads=20)
    result = can_accept_new_lead(staff)
    assert result.can_accept is True
    assert result.status == WorkloadStatus.AVAILABLE
    assert result.utilization_rate == 0.25
    assert result.reason is None


@pytest.mark.unit
def test_full_staff_cannot_accept_lead():
    staff = make_staff(active_leads=20, max_leads=20)
    result = can_accept_new(staff, "leads")
    assert result.utilization_rate == 1.0
    assert result.status == WorkloadStatus.AT_CAPACITY
    assert result.can_accept is False
    assert result.reason == "Lead capacity reached (100%)"


@pytest.mark.unit
def test_customer_gate_uses_customer_dimension():
    staff = make_staff(active_leads=0, active_customers=60)
    assert can_accept_new_customer(staff).can_accept is False
    assert can_accept_new_lead(staff).can_accept is True


@pytest.mark.unit
def test_unknown_dimension_rejected():
    with pytest.raises(ValueError):
        can_accept_new(make_staff(), "policies")


@pytest.mark.unit
def test_breakdown_and_info():
    staff = make_staff(active_leads=15, active_customers=6, max_leads=20)

    breakdown = get_workload_breakdown(staff.workload)
    assert breakdown.leads == 15
    assert breakdown.lead_utilization == 0.75
    assert breakdown.customer_utilization == 0.1

    info = get_workload_info(staff)
    assert info.max_leads == 20
    assert info.max_customers == 60
    assert info.remaining_leads == 5
    assert info.remaining_customers == 54
    assert info.overall_utilization == 0.425
    assert info.status == WorkloadStatus.AVAILABLE
    assert info.can_accept_new_leads is True
    assert info.model_dump(by_alias=True)["canAcceptNewCustomers"] is True


@pytest.mark.unit
def test_info_remaining_never_negative():
    staff = make_staff(active_leads=25, max_leads=20)
    info = get_workload_info(staff)
    assert info.remaining_leads == 0
    assert info.can_accept_new_leads is False
