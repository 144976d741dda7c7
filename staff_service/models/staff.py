"""Staff member model - the staff_members table (one row per hire, never hard-deleted)."""

from enum import Enum
from typing import Any, Optional
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class StaffType(str, Enum):
    BROKER = "broker"
    SENIOR_BROKER = "senior_broker"
    BROKER_MANAGER = "broker_manager"
    UNDERWRITER = "underwriter"
    SENIOR_UNDERWRITER = "senior_underwriter"
    CUSTOMER_SUPPORT = "customer_support"
    COMPLIANCE_OFFICER = "compliance_officer"
    ADMIN = "admin"


class StaffStatus(str, Enum):
    """Staff status - moves only along STATUS_TRANSITIONS."""
    ACTIVE = "active"
    INACTIVE = "inactive"
    SUSPENDED = "suspended"
    ON_LEAVE = "on_leave"
    TERMINATED = "terminated"


class LicenseStatus(str, Enum):
    ACTIVE = "active"
    EXPIRED = "expired"
    SUSPENDED = "suspended"
    PENDING_RENEWAL = "pending_renewal"


STATUS_TRANSITIONS: dict[StaffStatus, frozenset[StaffStatus]] = {
    StaffStatus.ACTIVE: frozenset({
        StaffStatus.INACTIVE,
        StaffStatus.SUSPENDED,
        StaffStatus.ON_LEAVE,
        StaffStatus.TERMINATED,
    }),
    StaffStatus.INACTIVE: frozenset({StaffStatus.ACTIVE, StaffStatus.TERMINATED}),
    StaffStatus.SUSPENDED: frozenset({StaffStatus.ACTIVE, StaffStatus.TERMINATED}),
    StaffStatus.ON_LEAVE: frozenset({StaffStatus.ACTIVE}),
    StaffStatus.TERMINATED: frozenset(),  # terminal
}


class WireModel(BaseModel):
    """Base for payloads exchanged with other services (camelCase on the wire)."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class License(WireModel):
    """Insurance license held by a staff member."""
    license_type: str = Field(..., description="e.g. motor_insurance_broker")
    license_number: str
    issuing_authority: str
    issue_date: str = Field(..., description="ISO 8601 date")
    expiry_date: str = Field(..., description="ISO 8601 date")
    status: LicenseStatus = LicenseStatus.ACTIVE


class Workload(WireModel):
    """Workload counters - mutated by lifecycle events, never negative."""
    active_leads: int = Field(default=0, ge=0)
    active_customers: int = Field(default=0, ge=0)
    active_policies: int = Field(default=0, ge=0)
    pending_approvals: int = Field(default=0, ge=0)
    max_leads: Optional[int] = Field(None, ge=0)
    max_customers: Optional[int] = Field(None, ge=0)


class PerformanceMetrics(WireModel):
    """Performance for one period (YYYY-MM)."""
    period: str
    leads_received: Optional[int] = None
    leads_converted: int = 0
    policies_issued: int = 0
    premium_generated: float = 0.0
    customer_satisfaction: Optional[float] = None
    average_response_time: Optional[float] = None


class Availability(WireModel):
    """Derived from status on every status change, never patched on its own."""
    is_available: bool = True
    away_until: Optional[str] = None
    away_reason: Optional[str] = None


class NotificationChannels(WireModel):
    approvals: bool = True
    assignments: bool = True
    alerts: bool = True
    marketing: bool = False


class NotificationPreferences(WireModel):
    email: bool = True
    sms: bool = False
    push: bool = True
    channels: NotificationChannels = Field(default_factory=NotificationChannels)


class StaffMember(BaseModel):
    """Staff member row."""
    staff_id: str = Field(..., description="Staff ID (ULID)")
    azure_ad_id: str = Field(..., description="Directory object ID")
    email: str
    first_name: str
    last_name: str
    display_name: str
    phone: str
    photo: Optional[str] = None
    employee_id: str
    job_title: str
    department: str
    staff_type: StaffType
    hire_date: str
    status: StaffStatus = StaffStatus.ACTIVE
    status_changed_at: Optional[str] = None
    status_reason: Optional[str] = None
    team_ids: list[str] = Field(default_factory=list)
    manager_id: Optional[str] = None
    organization_id: str = "default"
    territories: list[str] = Field(default_factory=list)
    licenses: list[License] = Field(default_factory=list)
    workload: Workload = Field(default_factory=Workload)
    performance: Optional[PerformanceMetrics] = None
    availability: Availability = Field(default_factory=Availability)
    notification_preferences: NotificationPreferences = Field(default_factory=NotificationPreferences)
    metadata: dict[str, Any] = Field(default_factory=dict)
    row_version: int = Field(default=1, ge=0, description="Optimistic concurrency token")
    created_at: Optional[str] = None
    created_by: Optional[str] = None
    updated_at: Optional[str] = None
    updated_by: Optional[str] = None


class CreateStaffRequest(WireModel):
    azure_ad_id: str
    email: str
    first_name: str
    last_name: str
    phone: str
    photo: Optional[str] = None
    employee_id: str
    job_title: str
    department: str
    staff_type: StaffType
    hire_date: str
    team_ids: list[str] = Field(..., min_length=1)
    manager_id: Optional[str] = None
    organization_id: Optional[str] = None
    territories: list[str] = Field(default_factory=list)
    licenses: list[License] = Field(default_factory=list)
    max_leads: Optional[int] = Field(None, ge=0)
    max_customers: Optional[int] = Field(None, ge=0)
    notification_preferences: Optional[NotificationPreferences] = None
    metadata: dict[str, Any] = Field(default_factory=dict)


class WorkloadReset(WireModel):
    """Explicit administrative override of workload counters."""
    active_leads: Optional[int] = Field(None, ge=0)
    active_customers: Optional[int] = Field(None, ge=0)
    active_policies: Optional[int] = Field(None, ge=0)
    pending_approvals: Optional[int] = Field(None, ge=0)


class UpdateStaffRequest(WireModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone: Optional[str] = None
    photo: Optional[str] = None
    job_title: Optional[str] = None
    department: Optional[str] = None
    staff_type: Optional[StaffType] = None
    manager_id: Optional[str] = None
    licenses: Optional[list[License]] = None
    max_leads: Optional[int] = Field(None, ge=0)
    max_customers: Optional[int] = Field(None, ge=0)
    workload_reset: Optional[WorkloadReset] = None
    notification_preferences: Optional[NotificationPreferences] = None
    metadata: Optional[dict[str, Any]] = None


class UpdateStaffStatusRequest(WireModel):
    status: StaffStatus
    reason: Optional[str] = None
    away_until: Optional[str] = None
