"""Territory model - the territories table and the territory assignment payloads."""

from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field

from staff_service.models.staff import WireModel


class Territory(BaseModel):
    """Territory row. assigned_staff_ids is the reverse index of StaffMember.territories."""
    id: str = Field(..., description="Territory ID, e.g. 'dubai'")
    name: str
    region: str
    parent_territory: Optional[str] = None
    child_territories: list[str] = Field(default_factory=list)
    assigned_team_ids: list[str] = Field(default_factory=list)
    assigned_staff_ids: list[str] = Field(default_factory=list)
    is_active: bool = True
    row_version: int = Field(default=1, ge=0)
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class TerritoryOperation(str, Enum):
    ADD = "add"
    REMOVE = "remove"
    REPLACE = "replace"


class AssignTerritoryRequest(WireModel):
    territories: list[str]
    operation: TerritoryOperation


class AssignTerritoryResult(WireModel):
    staff_id: str
    previous_territories: list[str]
    current_territories: list[str]
    updated_at: str


class ReconciliationReport(WireModel):
    territories_checked: int = 0
    territories_repaired: list[str] = Field(default_factory=list)


DEFAULT_TERRITORIES: list[dict] = [
    {"id": "dubai", "name": "Dubai", "region": "UAE"},
    {"id": "abu-dhabi", "name": "Abu Dhabi", "region": "UAE"},
    {"id": "sharjah", "name": "Sharjah", "region": "UAE"},
    {"id": "ajman", "name": "Ajman", "region": "UAE"},
    {"id": "ras-al-khaimah", "name": "Ras Al Khaimah", "region": "UAE"},
    {"id": "fujairah", "name": "Fujairah", "region": "UAE"},
    {"id": "umm-al-quwain", "name": "Umm Al Quwain", "region": "UAE"},
]
