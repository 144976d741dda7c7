"""
Assignment engine - eligibility filtering and weighted scoring.

Recommends staff for a new lead, customer or policy from a point-in-time
roster snapshot. Nothing here reserves capacity; the downstream workload
increment is what actually consumes it.
"""

from typing import Iterable, Optional

from staff_service.models.assignment import (
    AssignmentCriteria,
    AssignmentResult,
    AssignmentType,
    FallbackStaff,
    ScoringFactors,
    StaffRecommendation,
)
from staff_service.models.staff import StaffMember, StaffType
from staff_service.models.team import Team
from staff_service.services.status_service import can_accept_assignments
from staff_service.services.workload_service import (
    calculate_lead_utilization,
    can_accept_new_customer,
    can_accept_new_lead,
)
from staff_service.utils.config import WorkloadConfig
from staff_service.utils.logging import get_structured_logger

logger = get_structured_logger(__name__)

ASSIGNMENT_WEIGHTS: dict[str, float] = {
    "territory_match": 0.30,
    "specialization_match": 0.20,
    "workload_capacity": 0.25,
    "performance_score": 0.15,
    "availability": 0.10,
}

FALLBACK_REASON = "fallback_to_manager"

LEAD_HANDLERS: frozenset[StaffType] = frozenset({
    StaffType.BROKER,
    StaffType.SENIOR_BROKER,
    StaffType.BROKER_MANAGER,
})


def can_handle_leads(staff_type: StaffType) -> bool:
    return StaffType(staff_type) in LEAD_HANDLERS


def has_territory_match(staff: StaffMember, territory: str) -> bool:
    return territory in staff.territories


def has_specialization_match(
    staff: StaffMember,
    specialization: Optional[str],
    teams: Iterable[Team]
) -> bool:
    """
    No specialization requested always matches. Otherwise a team the staff
    member belongs to must list it, or one of their license types must
    contain it (case-insensitive).
    """
    if not specialization:
        return True

    for team in teams:
        if team.team_id in staff.team_ids and specialization in team.specializations:
            return True

    needle = specialization.lower()
    return any(needle in license.license_type.lower() for license in staff.licenses)


def calculate_workload_capacity(staff: StaffMember, config: Optional[WorkloadConfig] = None) -> float:
    """1.0 for an empty lead book, 0.0 at or beyond capacity."""
    return max(0.0, 1 - calculate_lead_utilization(staff.workload, config))


def calculate_performance_score(staff: StaffMember) -> float:
    """Conversion rate clamped to 1.0; 0.5 when there is no history."""
    performance = staff.performance
    if performance is None or not performance.leads_received:
        return 0.5
    return min(1.0, performance.leads_converted / performance.leads_received)


def is_available_for_assignment(
    staff: StaffMember,
    assignment_type: AssignmentType,
    config: Optional[WorkloadConfig] = None
) -> bool:
    if not can_accept_assignments(staff.status):
        return False
    if not staff.availability.is_available:
        return False

    assignment_type = AssignmentType(assignment_type)
    if assignment_type == AssignmentType.LEAD:
        return can_accept_new_lead(staff, config).can_accept
    if assignment_type == AssignmentType.CUSTOMER:
        return can_accept_new_customer(staff, config).can_accept
    # no capacity gate for policies
    return True


def calculate_assignment_score(
    staff: StaffMember,
    criteria: AssignmentCriteria,
    teams: Iterable[Team],
    config: Optional[WorkloadConfig] = None
) -> tuple[float, ScoringFactors]:
    """Weighted sum of the five factors, rounded to 2 decimals."""
    territory_match = has_territory_match(staff, criteria.territory)
    specialization_match = has_specialization_match(staff, criteria.specialization, teams)
    workload_capacity = calculate_workload_capacity(staff, config)
    performance_score = calculate_performance_score(staff)
    availability = is_available_for_assignment(staff, criteria.assignment_type, config)

    score = 0.0
    if territory_match:
        score += ASSIGNMENT_WEIGHTS["territory_match"]
    if specialization_match:
        score += ASSIGNMENT_WEIGHTS["specialization_match"]
    score += workload_capacity * ASSIGNMENT_WEIGHTS["workload_capacity"]
    score += performance_score * ASSIGNMENT_WEIGHTS["performance_score"]
    if availability:
        score += ASSIGNMENT_WEIGHTS["availability"]

    factors = ScoringFactors(
        territory_match=territory_match,
        specialization_match=specialization_match,
        workload_capacity=round(workload_capacity, 2),
        performance_score=round(performance_score, 2),
        availability=availability,
    )
    return round(score, 2), factors


def filter_eligible_staff(
    staff_list: Iterable[StaffMember],
    criteria: AssignmentCriteria,
    config: Optional[WorkloadConfig] = None
) -> list[StaffMember]:
    """Hard exclusions only; roster order is preserved."""
    eligible = []
    for staff in staff_list:
        if criteria.current_owner_id and staff.staff_id == criteria.current_owner_id:
            continue
        if not is_available_for_assignment(staff, criteria.assignment_type, config):
            continue
        if not has_territory_match(staff, criteria.territory):
            continue
        if criteria.preferred_team_id and criteria.preferred_team_id not in staff.team_ids:
            continue
        eligible.append(staff)
    return eligible


def find_fallback_manager(staff_list: Iterable[StaffMember], territory: str) -> Optional[FallbackStaff]:
    """First active broker manager covering the territory, capacity ignored."""
    for staff in staff_list:
        if (
            staff.staff_type == StaffType.BROKER_MANAGER
            and has_territory_match(staff, territory)
            and can_accept_assignments(staff.status)
        ):
            return FallbackStaff(
                staff_id=staff.staff_id,
                display_name=staff.display_name,
                reason=FALLBACK_REASON,
            )
    return None


def find_best_staff_for_assignment(
    staff_list: list[StaffMember],
    teams: list[Team],
    criteria: AssignmentCriteria,
    limit: int = 5,
    config: Optional[WorkloadConfig] = None
) -> AssignmentResult:
    """
    Rank eligible staff for an assignment.

    Args:
        staff_list: Roster snapshot; its order breaks score ties
        teams: Team snapshot used for specialization matching
        criteria: What the assignee is needed for
        limit: Maximum number of recommendations
        config: Capacity thresholds (defaults when omitted)

    Returns:
        AssignmentResult. When nothing is eligible and no manager covers the
        territory, both recommended_staff and fallback_staff are empty.
    """
    eligible = filter_eligible_staff(staff_list, criteria, config)

    scored = []
    for staff in eligible:
        score, factors = calculate_assignment_score(staff, criteria, teams, config)
        scored.append(StaffRecommendation(
            staff_id=staff.staff_id,
            display_name=staff.display_name,
            email=staff.email,
            score=score,
            factors=factors,
        ))

    # sorted() is stable, so equal scores keep roster order
    recommended = sorted(scored, key=lambda r: r.score, reverse=True)[:limit]

    fallback = None
    if not recommended:
        fallback = find_fallback_manager(staff_list, criteria.territory)

    logger.info(
        "Assignment candidates ranked",
        assignment_type=criteria.assignment_type.value,
        territory=criteria.territory,
        roster_size=len(staff_list),
        eligible=len(eligible),
        recommended=len(recommended),
        fallback=fallback.staff_id if fallback else None
    )

    return AssignmentResult(recommended_staff=recommended, fallback_staff=fallback)
