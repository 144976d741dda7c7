"""Lifecycle events consumed from the event bus (lead/customer/policy domains)."""

from typing import Annotated, Any, Literal, Optional, Union
from pydantic import BaseModel, Field, field_validator

from staff_service.models.staff import WireModel


class SingleAssignee(BaseModel):
    kind: Literal["single"] = "single"
    staff_id: str = Field(..., min_length=1)


class ManyAssignees(BaseModel):
    kind: Literal["many"] = "many"
    staff_ids: list[str] = Field(..., min_length=1)


Assignee = Annotated[Union[SingleAssignee, ManyAssignees], Field(discriminator="kind")]


def resolve_assignee(raw: Any) -> Optional[Union[SingleAssignee, ManyAssignees]]:
    """
    Resolve the raw assignedTo/previousAssignee value into a tagged assignee.

    Upstream services send either one staff id or a list of ids. Blank values
    resolve to None. Anything else is rejected.
    """
    if raw is None:
        return None
    if isinstance(raw, (SingleAssignee, ManyAssignees)):
        return raw
    if isinstance(raw, dict) and "kind" in raw:
        if raw["kind"] == "single":
            return SingleAssignee.model_validate(raw)
        return ManyAssignees.model_validate(raw)
    if isinstance(raw, str):
        raw = raw.strip()
        return SingleAssignee(staff_id=raw) if raw else None
    if isinstance(raw, (list, tuple)):
        ids = []
        for item in raw:
            if not isinstance(item, str):
                raise ValueError(f"Assignee ids must be strings, got {type(item).__name__}")
            item = item.strip()
            if item and item not in ids:
                ids.append(item)
        if not ids:
            return None
        if len(ids) == 1:
            return SingleAssignee(staff_id=ids[0])
        return ManyAssignees(staff_ids=ids)
    raise ValueError(f"Unsupported assignee shape: {type(raw).__name__}")


def assignee_ids(assignee: Optional[Union[SingleAssignee, ManyAssignees]]) -> list[str]:
    if assignee is None:
        return []
    if isinstance(assignee, SingleAssignee):
        return [assignee.staff_id]
    return list(assignee.staff_ids)


class LifecycleEventData(WireModel):
    lead_id: Optional[str] = None
    customer_id: Optional[str] = None
    policy_id: Optional[str] = None
    assigned_to: Optional[Assignee] = None
    previous_assignee: Optional[Assignee] = None
    converted_to_customer_id: Optional[str] = None
    premium: Optional[float] = Field(None, ge=0)

    @field_validator("assigned_to", "previous_assignee", mode="before")
    @classmethod
    def _resolve(cls, value: Any) -> Any:
        resolved = resolve_assignee(value)
        return resolved.model_dump() if resolved is not None else None


class LifecycleEvent(WireModel):
    """Event Grid style envelope."""
    id: Optional[str] = None
    event_type: str = Field(..., min_length=1)
    subject: Optional[str] = None
    event_time: Optional[str] = None
    data: LifecycleEventData = Field(default_factory=LifecycleEventData)

    @property
    def domain(self) -> str:
        """'lead' for 'lead.created'."""
        return self.event_type.split(".", 1)[0]
