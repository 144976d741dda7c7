"""Team model - the teams table."""

from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field

from staff_service.models.staff import WireModel


class TeamType(str, Enum):
    SALES = "sales"
    UNDERWRITING = "underwriting"
    SUPPORT = "support"
    COMPLIANCE = "compliance"
    MIXED = "mixed"


class Team(BaseModel):
    """Team row. The leader is always a member."""
    team_id: str = Field(..., description="Team ID (ULID)")
    name: str
    description: Optional[str] = None
    type: TeamType
    leader_id: str
    leader_email: str
    member_ids: list[str] = Field(default_factory=list)
    member_count: int = Field(default=0, ge=0)
    territories: list[str] = Field(default_factory=list)
    specializations: list[str] = Field(
        default_factory=list,
        description="e.g. motor_insurance, health_insurance, life_insurance"
    )
    organization_id: str = "default"
    parent_team_id: Optional[str] = None
    is_active: bool = True
    row_version: int = Field(default=1, ge=0)
    created_at: Optional[str] = None
    created_by: Optional[str] = None
    updated_at: Optional[str] = None
    updated_by: Optional[str] = None


class CreateTeamRequest(WireModel):
    name: str = Field(..., min_length=1)
    description: Optional[str] = None
    type: TeamType
    leader_id: str
    territories: list[str] = Field(default_factory=list)
    specializations: list[str] = Field(default_factory=list)
    organization_id: Optional[str] = None
    parent_team_id: Optional[str] = None


class UpdateTeamRequest(WireModel):
    name: Optional[str] = None
    description: Optional[str] = None
    type: Optional[TeamType] = None
    leader_id: Optional[str] = None
    territories: Optional[list[str]] = None
    specializations: Optional[list[str]] = None
    parent_team_id: Optional[str] = None
    is_active: Optional[bool] = None


class TeamMembershipChange(WireModel):
    """Response body for add/remove member."""
    team_id: str
    staff_id: str
    member_count: int
    changed_at: str
