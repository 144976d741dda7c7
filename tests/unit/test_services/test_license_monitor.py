"""Tests for the license expiry sweep."""

from datetime import date
import pytest

from staff_service.services.license_monitor import LicenseAlertLedger, LicenseMonitor, alert_key
from staff_service.utils.config import LicenseConfig
from tests.utils.factories import create_license_data, create_staff_data

TODAY = date(2026, 10, 19)


@pytest.fixture
def ledger(fake_db, store_config):
    return LicenseAlertLedger(fake_db, store_config)


@pytest.fixture
def monitor(staff_repository, ledger, publisher):
    return LicenseMonitor(staff_repository, ledger, publisher, LicenseConfig())


def expiring_events(db) -> list[dict]:
    return [e for e in db.rows("staff_events") if e["event_type"] == "staff.license_expiring"]


def licensed_staff(staff_id: str, *days: int, **kwargs) -> dict:
    return create_staff_data(
        staff_id=staff_id,
        licenses=[create_license_data(expires_in_days=d, today=TODAY) for d in days],
        **kwargs
    )


@pytest.mark.unit
@pytest.mark.asyncio
async def test_sweep_publishes_one_alert_per_license_in_window(fake_db, monitor):
    fake_db.seed(
        "staff_members",
        licensed_staff("s1", 12, 200),
        licensed_staff("s2", 3),
        licensed_staff("s3", 90),
    )

    report = await monitor.run_sweep(today=TODAY)

    assert report.staff_checked == 2
    assert sorted((a.staff_id, a.threshold) for a in report.alerts) == [("s1", 14), ("s2", 3)]

    events = expiring_events(fake_db)
    assert len(events) == 2
    s1_event = next(e for e in events if e["data"]["staffId"] == "s1")
    assert s1_event["subject"] == "/staff/s1/license"
    assert s1_event["data"]["daysUntilExpiry"] == 12
    assert s1_event["data"]["alertThreshold"] == 14


@pytest.mark.unit
@pytest.mark.asyncio
async def test_rerun_same_day_publishes_nothing_new(fake_db, monitor):
    fake_db.seed("staff_members", licensed_staff("s1", 7))

    first = await monitor.run_sweep(today=TODAY)
    second = await monitor.run_sweep(today=TODAY)

    assert len(first.alerts) == 1
    assert second.alerts == []
    assert second.duplicates_skipped == 1
    assert len(expiring_events(fake_db)) == 1


@pytest.mark.unit
@pytest.mark.asyncio
async def test_next_threshold_alerts_again(fake_db, monitor):
    row = licensed_staff("s1", 10)
    fake_db.seed("staff_members", row)
    expiry = date.fromisoformat(row["licenses"][0]["expiry_date"])

    await monitor.run_sweep(today=TODAY)
    await monitor.run_sweep(today=date.fromordinal(TODAY.toordinal() + 1))
    later = await monitor.run_sweep(today=date.fromordinal(expiry.toordinal() - 7))

    thresholds = [e["data"]["alertThreshold"] for e in expiring_events(fake_db)]
    assert thresholds == [14, 7]
    assert later.alerts[0].days_until_expiry == 7


@pytest.mark.unit
@pytest.mark.asyncio
async def test_expired_and_inactive_staff_skipped(fake_db, monitor):
    fake_db.seed(
        "staff_members",
        licensed_staff("expired", -1),
        licensed_staff("today", 0),
        licensed_staff("inactive", 5, status="inactive"),
    )

    report = await monitor.run_sweep(today=TODAY)

    assert report.alerts == []
    assert expiring_events(fake_db) == []


@pytest.mark.unit
@pytest.mark.asyncio
async def test_manager_looked_up_for_alert(fake_db, monitor):
    fake_db.seed(
        "staff_members",
        create_staff_data(staff_id="mgr", staff_type="broker_manager", email="manager@example.com"),
        licensed_staff("s1", 2, 25, manager_id="mgr"),
    )

    report = await monitor.run_sweep(today=TODAY)

    assert {a.manager_email for a in report.alerts} == {"manager@example.com"}
    manager_reads = [c for c in fake_db.calls if c == ("staff_members", "select")]
    # one roster listing plus a single cached manager lookup
    assert len(manager_reads) == 2


@pytest.mark.unit
@pytest.mark.asyncio
async def test_sweep_does_not_modify_staff(fake_db, monitor):
    fake_db.seed("staff_members", licensed_staff("s1", 1))
    before = fake_db.get("staff_members", "staff_id", "s1")

    await monitor.run_sweep(today=TODAY)

    assert fake_db.get("staff_members", "staff_id", "s1") == before


@pytest.mark.unit
@pytest.mark.asyncio
async def test_ledger_record_tolerates_duplicate(fake_db, ledger, monitor):
    fake_db.seed("staff_members", licensed_staff("s1", 5))
    report = await monitor.run_sweep(today=TODAY)
    alert = report.alerts[0]
    key = alert_key(alert.staff_id, alert.license_number, alert.threshold)

    await ledger.record(key, alert)

    assert await ledger.exists(key) is True
    assert len(fake_db.rows("license_alerts")) == 1
