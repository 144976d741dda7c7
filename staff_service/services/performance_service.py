"""Performance read view for a staff member."""

from typing import Optional

from staff_service.models.staff import PerformanceMetrics, StaffMember, WireModel
from staff_service.services.assignment_engine import calculate_performance_score
from staff_service.services.lifecycle_handlers import current_period


class PerformanceView(WireModel):
    leads_received: int
    leads_converted: int
    conversion_rate: float
    policies_issued: int
    premium_generated: float
    average_transaction_value: float
    customer_satisfaction: Optional[float] = None
    average_response_time: Optional[float] = None
    performance_score: float


class StaffPerformance(WireModel):
    staff_id: str
    period: str
    is_current_period: bool
    metrics: PerformanceView


def get_staff_performance(staff: StaffMember, period: Optional[str] = None) -> StaffPerformance:
    """Metrics for the stored period; an empty current period when none is stored."""
    current = period or current_period()
    performance = staff.performance or PerformanceMetrics(period=current, leads_received=0)

    received = performance.leads_received or 0
    metrics = PerformanceView(
        leads_received=received,
        leads_converted=performance.leads_converted,
        conversion_rate=round(performance.leads_converted / received, 4) if received else 0.0,
        policies_issued=performance.policies_issued,
        premium_generated=performance.premium_generated,
        average_transaction_value=(
            round(performance.premium_generated / performance.policies_issued, 2)
            if performance.policies_issued else 0.0
        ),
        customer_satisfaction=performance.customer_satisfaction,
        average_response_time=performance.average_response_time,
        performance_score=round(calculate_performance_score(staff), 4),
    )

    return StaffPerformance(
        staff_id=staff.staff_id,
        period=performance.period,
        is_current_period=performance.period == current,
        metrics=metrics,
    )
