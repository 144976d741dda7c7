"""Workload counters and capacity arithmetic."""

from enum import Enum
from typing import Literal, Optional

from staff_service.models.staff import StaffMember, Workload, WireModel
from staff_service.utils.config import WorkloadConfig

WorkloadField = Literal["active_leads", "active_customers", "active_policies", "pending_approvals"]
Dimension = Literal["leads", "customers"]

WORKLOAD_FIELDS: tuple[str, ...] = (
    "active_leads",
    "active_customers",
    "active_policies",
    "pending_approvals",
)

_DEFAULT_CONFIG = WorkloadConfig()


class WorkloadStatus(str, Enum):
    AVAILABLE = "available"
    WARNING = "warning"
    AT_CAPACITY = "at_capacity"
    OVER_CAPACITY = "over_capacity"


class CapacityCheckResult(WireModel):
    can_accept: bool
    status: WorkloadStatus
    utilization_rate: float
    reason: Optional[str] = None


class WorkloadBreakdown(WireModel):
    leads: int
    customers: int
    policies: int
    approvals: int
    lead_utilization: float
    customer_utilization: float


class WorkloadInfo(WireModel):
    """Read view returned by the workload endpoint."""
    staff_id: str
    current: Workload
    max_leads: int
    max_customers: int
    lead_utilization: float
    customer_utilization: float
    overall_utilization: float
    status: WorkloadStatus
    remaining_leads: int
    remaining_customers: int
    can_accept_new_leads: bool
    can_accept_new_customers: bool


def _check_field(field: str) -> None:
    if field not in WORKLOAD_FIELDS:
        raise ValueError(f"Unknown workload field: {field}")


def increment_workload(workload: Workload, field: WorkloadField) -> Workload:
    """+1 with no ceiling; over-allocation is recorded, not rejected."""
    _check_field(field)
    return workload.model_copy(update={field: getattr(workload, field) + 1})


def decrement_workload(workload: Workload, field: WorkloadField) -> Workload:
    """-1 clamped at zero, so late or repeated events never go negative."""
    _check_field(field)
    return workload.model_copy(update={field: max(0, getattr(workload, field) - 1)})


def effective_max_leads(workload: Workload, config: Optional[WorkloadConfig] = None) -> int:
    config = config or _DEFAULT_CONFIG
    return workload.max_leads or config.default_max_leads


def effective_max_customers(workload: Workload, config: Optional[WorkloadConfig] = None) -> int:
    config = config or _DEFAULT_CONFIG
    return workload.max_customers or config.default_max_customers


def calculate_lead_utilization(workload: Workload, config: Optional[WorkloadConfig] = None) -> float:
    max_leads = effective_max_leads(workload, config)
    if max_leads == 0:
        return 0.0
    return workload.active_leads / max_leads


def calculate_customer_utilization(workload: Workload, config: Optional[WorkloadConfig] = None) -> float:
    max_customers = effective_max_customers(workload, config)
    if max_customers == 0:
        return 0.0
    return workload.active_customers / max_customers


def calculate_overall_utilization(workload: Workload, config: Optional[WorkloadConfig] = None) -> float:
    """Mean of lead and customer utilization. A scoring input only, not a gate."""
    return (
        calculate_lead_utilization(workload, config)
        + calculate_customer_utilization(workload, config)
    ) / 2


def get_workload_status(utilization: float, config: Optional[WorkloadConfig] = None) -> WorkloadStatus:
    config = config or _DEFAULT_CONFIG

    if utilization >= config.block_threshold:
        if utilization > config.block_threshold:
            return WorkloadStatus.OVER_CAPACITY
        return WorkloadStatus.AT_CAPACITY
    if utilization >= config.warning_threshold:
        return WorkloadStatus.WARNING
    return WorkloadStatus.AVAILABLE


def can_accept_new(
    staff: StaffMember,
    dimension: Dimension,
    config: Optional[WorkloadConfig] = None
) -> CapacityCheckResult:
    """utilization < block threshold is the only hard capacity gate."""
    config = config or _DEFAULT_CONFIG

    if dimension == "leads":
        utilization = calculate_lead_utilization(staff.workload, config)
        label = "Lead"
    elif dimension == "customers":
        utilization = calculate_customer_utilization(staff.workload, config)
        label = "Customer"
    else:
        raise ValueError(f"Unknown capacity dimension: {dimension}")

    status = get_workload_status(utilization, config)
    accepted = utilization < config.block_threshold

    return CapacityCheckResult(
        can_accept=accepted,
        status=status,
        utilization_rate=utilization,
        reason=None if accepted else f"{label} capacity reached ({round(utilization * 100)}%)"
    )


def can_accept_new_lead(staff: StaffMember, config: Optional[WorkloadConfig] = None) -> CapacityCheckResult:
    return can_accept_new(staff, "leads", config)


def can_accept_new_customer(staff: StaffMember, config: Optional[WorkloadConfig] = None) -> CapacityCheckResult:
    return can_accept_new(staff, "customers", config)


def get_workload_breakdown(workload: Workload, config: Optional[WorkloadConfig] = None) -> WorkloadBreakdown:
    return WorkloadBreakdown(
        leads=workload.active_leads,
        customers=workload.active_customers,
        policies=workload.active_policies,
        approvals=workload.pending_approvals,
        lead_utilization=round(calculate_lead_utilization(workload, config), 4),
        customer_utilization=round(calculate_customer_utilization(workload, config), 4),
    )


def get_workload_info(staff: StaffMember, config: Optional[WorkloadConfig] = None) -> WorkloadInfo:
    workload = staff.workload
    max_leads = effective_max_leads(workload, config)
    max_customers = effective_max_customers(workload, config)
    overall = calculate_overall_utilization(workload, config)

    return WorkloadInfo(
        staff_id=staff.staff_id,
        current=workload,
        max_leads=max_leads,
        max_customers=max_customers,
        lead_utilization=round(calculate_lead_utilization(workload, config), 4),
        customer_utilization=round(calculate_customer_utilization(workload, config), 4),
        overall_utilization=round(overall, 4),
        status=get_workload_status(overall, config),
        remaining_leads=max(0, max_leads - workload.active_leads),
        remaining_customers=max(0, max_customers - workload.active_customers),
        can_accept_new_leads=can_accept_new_lead(staff, config).can_accept,
        can_accept_new_customers=can_accept_new_customer(staff, config).can_accept,
    )
