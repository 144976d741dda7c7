"""Service configuration, built once and passed to each component."""

import os
from typing import Mapping, Optional
from pydantic import BaseModel, Field, model_validator

from staff_service.utils.errors import ConfigurationError


class StoreConfig(BaseModel):
    """Supabase connection and table settings."""
    url: Optional[str] = Field(None, description="Supabase project URL")
    service_role_key: Optional[str] = Field(None, description="Supabase service role key")
    staff_table: str = "staff_members"
    teams_table: str = "teams"
    territories_table: str = "territories"
    events_table: str = "staff_events"
    alerts_table: str = "license_alerts"
    max_update_attempts: int = Field(default=5, ge=1, description="Conditional write attempts before giving up")
    conflict_backoff_seconds: float = Field(default=0.05, ge=0.0)

    def require_credentials(self) -> tuple[str, str]:
        if not self.url or not self.service_role_key:
            raise ConfigurationError("SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY must be set")
        return self.url, self.service_role_key


class WorkloadConfig(BaseModel):
    """Default capacity limits and utilization thresholds."""
    default_max_leads: int = Field(default=20, ge=0)
    default_max_customers: int = Field(default=60, ge=0)
    warning_threshold: float = Field(default=0.8, gt=0.0)
    block_threshold: float = Field(default=1.0, gt=0.0)

    @model_validator(mode="after")
    def _check_thresholds(self) -> "WorkloadConfig":
        if self.warning_threshold > self.block_threshold:
            raise ValueError("warning_threshold must not exceed block_threshold")
        return self


class LicenseConfig(BaseModel):
    """License renewal alert schedule (days before expiry)."""
    alert_days: list[int] = Field(default_factory=lambda: [30, 14, 7, 3, 1])

    @property
    def max_alert_days(self) -> int:
        return max(self.alert_days) if self.alert_days else 0


class AssignmentConfig(BaseModel):
    result_limit: int = Field(default=5, ge=1)


class StaffServiceConfig(BaseModel):
    """Top-level configuration object."""
    store: StoreConfig = Field(default_factory=StoreConfig)
    workload: WorkloadConfig = Field(default_factory=WorkloadConfig)
    license: LicenseConfig = Field(default_factory=LicenseConfig)
    assignment: AssignmentConfig = Field(default_factory=AssignmentConfig)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "StaffServiceConfig":
        """Build configuration from environment variables."""
        env = os.environ if environ is None else environ

        alert_days_str = env.get("LICENSE_ALERT_DAYS", "30,14,7,3,1")
        try:
            alert_days = [int(d.strip()) for d in alert_days_str.split(",") if d.strip()]
            return cls(
                store=StoreConfig(
                    url=env.get("SUPABASE_URL"),
                    service_role_key=env.get("SUPABASE_SERVICE_ROLE_KEY"),
                    max_update_attempts=int(env.get("STORE_MAX_UPDATE_ATTEMPTS", "5")),
                    conflict_backoff_seconds=float(env.get("STORE_CONFLICT_BACKOFF_SECONDS", "0.05")),
                ),
                workload=WorkloadConfig(
                    default_max_leads=int(env.get("WORKLOAD_DEFAULT_MAX_LEADS", "20")),
                    default_max_customers=int(env.get("WORKLOAD_DEFAULT_MAX_CUSTOMERS", "60")),
                    warning_threshold=float(env.get("WORKLOAD_WARNING_THRESHOLD", "0.8")),
                    block_threshold=float(env.get("WORKLOAD_BLOCK_THRESHOLD", "1.0")),
                ),
                license=LicenseConfig(alert_days=alert_days),
                assignment=AssignmentConfig(
                    result_limit=int(env.get("ASSIGNMENT_RESULT_LIMIT", "5")),
                ),
            )
        except ValueError as e:
            # pydantic's ValidationError is a ValueError subclass
            raise ConfigurationError(f"Invalid configuration: {e}") from e
