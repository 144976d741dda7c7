"""License expiry sweep - daily renewal alerts, de-duplicated per threshold."""

from datetime import date, datetime, timezone
from typing import Optional
from pydantic import Field
from supabase import Client

from staff_service.models.staff import License, StaffMember, WireModel
from staff_service.services.event_publisher import EventPublisher
from staff_service.services.staff_repository import StaffRepository
from staff_service.services.supabase_client import SupabaseClient
from staff_service.services.validators import get_days_until_expiry, needs_renewal_alert
from staff_service.utils.config import LicenseConfig, StoreConfig
from staff_service.utils.errors import SupabaseError
from staff_service.utils.logging import get_structured_logger, mask_email, timed

logger = get_structured_logger(__name__)


class LicenseAlert(WireModel):
    staff_id: str
    license_type: str
    license_number: str
    expiry_date: str
    days_until_expiry: int
    threshold: int
    manager_id: Optional[str] = None
    manager_email: Optional[str] = None


class LicenseSweepReport(WireModel):
    staff_checked: int = 0
    alerts: list[LicenseAlert] = Field(default_factory=list)
    duplicates_skipped: int = 0


def alert_key(staff_id: str, license_number: str, threshold: int) -> str:
    return f"{staff_id}:{license_number}:{threshold}"


class LicenseAlertLedger:
    """Alerts already sent, keyed by staff, license number and threshold."""

    def __init__(self, client: Client, store: StoreConfig):
        self.client = client
        self.table = store.alerts_table

    async def exists(self, key: str) -> bool:
        async with SupabaseClient(self.client) as db:
            try:
                result = db.table(self.table).select("alert_key").eq("alert_key", key).execute()
            except Exception as e:
                raise SupabaseError(f"Failed to check license alert: {e}") from e
        return len(result.data) > 0

    async def record(self, key: str, alert: LicenseAlert) -> None:
        async with SupabaseClient(self.client) as db:
            try:
                db.table(self.table).insert({
                    "alert_key": key,
                    "staff_id": alert.staff_id,
                    "license_number": alert.license_number,
                    "threshold": alert.threshold,
                    "sent_at": datetime.now(timezone.utc).isoformat(),
                }).execute()
            except Exception as e:
                # overlapping sweep already recorded it
                if "duplicate key" not in str(e).lower():
                    raise SupabaseError(f"Failed to record license alert: {e}") from e


class LicenseMonitor:

    def __init__(
        self,
        staff_repository: StaffRepository,
        ledger: LicenseAlertLedger,
        publisher: EventPublisher,
        config: LicenseConfig
    ):
        self.staff = staff_repository
        self.ledger = ledger
        self.publisher = publisher
        self.config = config

    @timed("license_expiry_sweep")
    async def run_sweep(self, today: Optional[date] = None) -> LicenseSweepReport:
        """
        Publish staff.license_expiring for every license inside an alert window.

        Read-only with respect to staff records. Re-running on the same day
        publishes nothing new.
        """
        today = today or datetime.now(timezone.utc).date()
        report = LicenseSweepReport()

        roster = await self.staff.get_staff_with_expiring_licenses(self.config.max_alert_days, today=today)
        report.staff_checked = len(roster)
        managers: dict[str, Optional[StaffMember]] = {}

        for staff in roster:
            for license in staff.licenses:
                alert = await self._check_license(staff, license, today, managers)
                if alert is None:
                    continue

                key = alert_key(staff.staff_id, license.license_number, alert.threshold)
                if await self.ledger.exists(key):
                    report.duplicates_skipped += 1
                    continue

                await self.publisher.publish_license_expiring(
                    staff_id=staff.staff_id,
                    email=staff.email,
                    display_name=staff.display_name,
                    license={
                        "licenseType": license.license_type,
                        "licenseNumber": license.license_number,
                        "expiryDate": license.expiry_date,
                    },
                    days_until_expiry=alert.days_until_expiry,
                    threshold=alert.threshold,
                    manager_id=alert.manager_id,
                    manager_email=alert.manager_email,
                )
                await self.ledger.record(key, alert)
                report.alerts.append(alert)

                logger.info(
                    "License expiry alert published",
                    staff_id=staff.staff_id,
                    email=mask_email(staff.email),
                    license_type=license.license_type,
                    days_until_expiry=alert.days_until_expiry,
                    threshold=alert.threshold
                )

        logger.info(
            "License sweep finished",
            staff_checked=report.staff_checked,
            alerts_published=len(report.alerts),
            duplicates_skipped=report.duplicates_skipped
        )
        return report

    async def _check_license(
        self,
        staff: StaffMember,
        license: License,
        today: date,
        managers: dict[str, Optional[StaffMember]]
    ) -> Optional[LicenseAlert]:
        try:
            days_left = get_days_until_expiry(license, today=today)
        except ValueError:
            logger.warning(
                "Skipping license with unreadable expiry date",
                staff_id=staff.staff_id,
                license_number=license.license_number
            )
            return None

        threshold = needs_renewal_alert(license, self.config.alert_days, today=today)
        if threshold is None:
            return None

        manager = None
        if staff.manager_id:
            if staff.manager_id not in managers:
                managers[staff.manager_id] = await self.staff.find_by_id(staff.manager_id)
            manager = managers[staff.manager_id]

        return LicenseAlert(
            staff_id=staff.staff_id,
            license_type=license.license_type,
            license_number=license.license_number,
            expiry_date=license.expiry_date,
            days_until_expiry=days_left,
            threshold=threshold,
            manager_id=staff.manager_id,
            manager_email=manager.email if manager else None,
        )
