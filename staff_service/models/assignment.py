"""Assignment request/response models for the auto-assign endpoint."""

from enum import Enum
from typing import Optional
from pydantic import Field

from staff_service.models.staff import WireModel


class AssignmentType(str, Enum):
    LEAD = "lead"
    CUSTOMER = "customer"
    POLICY = "policy"


class AssignmentUrgency(str, Enum):
    NORMAL = "normal"
    HIGH = "high"
    CRITICAL = "critical"


class AssignmentCriteria(WireModel):
    """What the caller needs an assignee for."""
    assignment_type: AssignmentType
    territory: str = Field(..., min_length=1)
    specialization: Optional[str] = None
    current_owner_id: Optional[str] = None
    preferred_team_id: Optional[str] = None
    urgency: AssignmentUrgency = AssignmentUrgency.NORMAL


class ScoringFactors(WireModel):
    """Raw factor values behind a score."""
    territory_match: bool
    specialization_match: bool
    workload_capacity: float
    performance_score: float
    availability: bool


class StaffRecommendation(WireModel):
    staff_id: str
    display_name: str
    email: str
    score: float
    factors: ScoringFactors


class FallbackStaff(WireModel):
    staff_id: str
    display_name: str
    reason: str


class AssignmentResult(WireModel):
    """Empty recommended_staff with no fallback_staff means no assignee is available."""
    recommended_staff: list[StaffRecommendation] = Field(default_factory=list)
    fallback_staff: Optional[FallbackStaff] = None

    @property
    def has_assignee(self) -> bool:
        return bool(self.recommended_staff) or self.fallback_staff is not None
