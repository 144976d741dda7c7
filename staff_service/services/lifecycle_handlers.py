"""
Lifecycle event handlers - keep workload counters and performance in step
with lead, customer and policy events from the bus.

Bad payloads and unknown staff ids are logged and dropped so a permanently
broken event is never redelivered. Store failures propagate so the bus retries.
"""

from datetime import datetime, timezone
from typing import Any, Literal, NamedTuple, Optional
from pydantic import Field, ValidationError as PydanticValidationError

from staff_service.models.lifecycle_event import LifecycleEvent, assignee_ids
from staff_service.models.staff import PerformanceMetrics, StaffMember, Workload, WireModel
from staff_service.services.staff_repository import StaffRepository
from staff_service.services.workload_service import decrement_workload, increment_workload
from staff_service.utils.errors import NotFoundError
from staff_service.utils.logging import get_structured_logger

logger = get_structured_logger(__name__)

PerformanceKind = Literal["lead_received", "lead_converted", "policy_issued"]


class WorkloadRule(NamedTuple):
    """Counter changes for one event type."""
    increments: tuple[str, ...] = ()
    decrements: tuple[str, ...] = ()
    previous_decrements: tuple[str, ...] = ()
    performance: Optional[PerformanceKind] = None


_LEAD_ASSIGNED = WorkloadRule(
    increments=("active_leads",),
    previous_decrements=("active_leads",),
    performance="lead_received",
)
_CUSTOMER_ASSIGNED = WorkloadRule(
    increments=("active_customers",),
    previous_decrements=("active_customers",),
)

EVENT_RULES: dict[str, WorkloadRule] = {
    "lead.created": _LEAD_ASSIGNED,
    "lead.assigned": _LEAD_ASSIGNED,
    "lead.converted": WorkloadRule(
        increments=("active_customers",),
        decrements=("active_leads",),
        performance="lead_converted",
    ),
    "lead.closed": WorkloadRule(decrements=("active_leads",)),
    "customer.created": _CUSTOMER_ASSIGNED,
    "customer.assigned": _CUSTOMER_ASSIGNED,
    "policy.issued": WorkloadRule(increments=("active_policies",), performance="policy_issued"),
    "policy.assigned": WorkloadRule(
        increments=("active_policies",),
        previous_decrements=("active_policies",),
    ),
}


class WorkloadOutcome(WireModel):
    staff_id: str
    role: Literal["assignee", "previous_assignee"]
    applied: bool
    workload: Optional[Workload] = None
    reason: Optional[str] = None


class LifecycleResult(WireModel):
    event_id: Optional[str] = None
    event_type: Optional[str] = None
    outcomes: list[WorkloadOutcome] = Field(default_factory=list)
    skipped_reason: Optional[str] = None


def current_period(now: Optional[datetime] = None) -> str:
    """Performance period key, e.g. '2026-10'."""
    return (now or datetime.now(timezone.utc)).strftime("%Y-%m")


def roll_performance(
    performance: Optional[PerformanceMetrics],
    kind: PerformanceKind,
    premium: Optional[float] = None,
    period: Optional[str] = None
) -> Optional[PerformanceMetrics]:
    """
    Add one event to the current performance period.

    A missing record starts the current period. A record for a different
    period is left alone and None is returned.
    """
    period = period or current_period()
    if performance is None:
        performance = PerformanceMetrics(period=period)
    elif performance.period != period:
        return None

    if kind == "lead_received":
        return performance.model_copy(update={"leads_received": (performance.leads_received or 0) + 1})
    if kind == "lead_converted":
        return performance.model_copy(update={"leads_converted": performance.leads_converted + 1})
    return performance.model_copy(update={
        "policies_issued": performance.policies_issued + 1,
        "premium_generated": performance.premium_generated + (premium or 0.0),
    })


class LifecycleEventHandler:
    """Applies lifecycle events to staff records, one conditional write per staff member."""

    def __init__(self, staff_repository: StaffRepository):
        self.staff = staff_repository

    async def handle(self, raw_event: Any) -> LifecycleResult:
        try:
            event = LifecycleEvent.model_validate(raw_event)
        except PydanticValidationError as e:
            logger.warning("Dropping malformed lifecycle event", error_count=e.error_count(), errors=str(e))
            return LifecycleResult(skipped_reason="malformed_event")

        result = LifecycleResult(event_id=event.id, event_type=event.event_type)

        rule = EVENT_RULES.get(event.event_type)
        if rule is None:
            logger.info("Ignoring unhandled lifecycle event", event_type=event.event_type, event_id=event.id)
            result.skipped_reason = "unhandled_event_type"
            return result

        assigned = assignee_ids(event.data.assigned_to)
        if not assigned:
            logger.info("No assignee in lifecycle event, skipping", event_type=event.event_type, event_id=event.id)
            result.skipped_reason = "missing_assignee"
            return result

        period = current_period()
        for staff_id in assigned:
            result.outcomes.append(await self._apply(
                staff_id,
                "assignee",
                rule.increments,
                rule.decrements,
                rule.performance,
                event.data.premium,
                period,
            ))

        if rule.previous_decrements:
            for staff_id in assignee_ids(event.data.previous_assignee):
                if staff_id in assigned:
                    continue
                result.outcomes.append(await self._apply(
                    staff_id,
                    "previous_assignee",
                    (),
                    rule.previous_decrements,
                    None,
                    None,
                    period,
                ))

        logger.info(
            "Lifecycle event applied",
            event_type=event.event_type,
            event_id=event.id,
            applied=sum(1 for o in result.outcomes if o.applied),
            skipped=sum(1 for o in result.outcomes if not o.applied)
        )
        return result

    async def handle_batch(self, raw_events: list) -> list[LifecycleResult]:
        return [await self.handle(raw) for raw in raw_events]

    async def _apply(
        self,
        staff_id: str,
        role: Literal["assignee", "previous_assignee"],
        increments: tuple[str, ...],
        decrements: tuple[str, ...],
        performance_kind: Optional[PerformanceKind],
        premium: Optional[float],
        period: str
    ) -> WorkloadOutcome:
        def mutate(staff: StaffMember) -> Optional[dict]:
            workload = staff.workload
            for field in decrements:
                workload = decrement_workload(workload, field)
            for field in increments:
                workload = increment_workload(workload, field)

            changes = {}
            if workload != staff.workload:
                changes["workload"] = workload.model_dump(mode="json")

            if performance_kind:
                performance = roll_performance(staff.performance, performance_kind, premium, period)
                if performance is None:
                    logger.warning(
                        "Performance period mismatch, metrics left unchanged",
                        staff_id=staff_id,
                        stored_period=staff.performance.period if staff.performance else None,
                        current_period=period
                    )
                else:
                    changes["performance"] = performance.model_dump(mode="json")

            return changes or None

        try:
            updated = await self.staff.update(staff_id, mutate)
        except NotFoundError:
            logger.warning("Staff member not found for lifecycle event", staff_id=staff_id, role=role)
            return WorkloadOutcome(staff_id=staff_id, role=role, applied=False, reason="staff_not_found")

        if updated is None:
            return WorkloadOutcome(staff_id=staff_id, role=role, applied=False, reason="unchanged")

        return WorkloadOutcome(staff_id=staff_id, role=role, applied=True, workload=updated.workload)
