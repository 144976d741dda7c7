"""Tests for hiring, profile updates and status changes."""

import pytest

from staff_service.models.staff import StaffStatus
from staff_service.utils.errors import ConflictError, InvalidTransitionError, NotFoundError, ValidationError
from tests.utils.factories import create_license_data, create_staff_data, create_staff_request, create_team_data


@pytest.fixture
def admin(service_context):
    return service_context.staff_admin


@pytest.fixture
def team_one(seeded_db):
    seeded_db.seed("teams", create_team_data(team_id="team-1", leader_id="lead", member_ids=["lead"]))
    return "team-1"


def events(db, event_type: str) -> list[dict]:
    return [e for e in db.rows("staff_events") if e["event_type"] == event_type]


@pytest.mark.unit
@pytest.mark.asyncio
async def test_create_staff_starts_active_with_empty_workload(seeded_db, admin, team_one):
    request = create_staff_request(maxLeads=12, territories=["dubai", "sharjah", "dubai"])

    staff = await admin.create_staff(request, created_by="hr-admin")

    assert staff.status == StaffStatus.ACTIVE
    assert staff.availability.is_available is True
    assert staff.email == request["email"].lower()
    assert staff.display_name == f"{request['firstName']} {request['lastName']}"
    assert staff.territories == ["dubai", "sharjah"]
    assert staff.workload.active_leads == 0
    assert staff.workload.max_leads == 12
    assert staff.created_by == "hr-admin"

    team = seeded_db.get("teams", "team_id", team_one)
    assert staff.staff_id in team["member_ids"]
    assert team["member_count"] == 2
    assert seeded_db.get("territories", "id", "sharjah")["assigned_staff_ids"] == [staff.staff_id]

    created = events(seeded_db, "staff.created")
    assert len(created) == 1
    assert created[0]["data"]["staffId"] == staff.staff_id


@pytest.mark.unit
@pytest.mark.asyncio
async def test_create_staff_duplicate_email(seeded_db, admin, team_one):
    seeded_db.seed("staff_members", create_staff_data(email="taken@example.com"))

    with pytest.raises(ConflictError, match="taken@example.com"):
        await admin.create_staff(create_staff_request(email="Taken@Example.com"))


@pytest.mark.unit
@pytest.mark.asyncio
async def test_create_staff_duplicate_employee_id(seeded_db, admin, team_one):
    seeded_db.seed("staff_members", create_staff_data(employee_id="EMP-777"))

    with pytest.raises(ConflictError, match="EMP-777"):
        await admin.create_staff(create_staff_request(employeeId="EMP-777"))


@pytest.mark.unit
@pytest.mark.asyncio
async def test_create_staff_unknown_team_or_territory(seeded_db, admin, team_one):
    with pytest.raises(NotFoundError, match="team-404"):
        await admin.create_staff(create_staff_request(team_ids=["team-1", "team-404"]))

    with pytest.raises(NotFoundError, match="atlantis"):
        await admin.create_staff(create_staff_request(territories=["atlantis"]))

    assert seeded_db.rows("staff_members") == []


@pytest.mark.unit
@pytest.mark.asyncio
async def test_create_staff_validation_details(admin):
    with pytest.raises(ValidationError) as exc_info:
        await admin.create_staff({"email": "nope"})

    assert "Invalid email format" in exc_info.value.details
    assert "At least one team is required" in exc_info.value.details


@pytest.mark.unit
@pytest.mark.asyncio
async def test_update_staff_profile_and_capacity(seeded_db, admin):
    seeded_db.seed("staff_members", create_staff_data(staff_id="s1", first_name="Omar", last_name="Haddad"))

    updated = await admin.update_staff("s1", {"lastName": "Saleh", "maxLeads": 8, "jobTitle": "Senior Broker"})

    assert updated.display_name == "Omar Saleh"
    assert updated.workload.max_leads == 8
    assert updated.job_title == "Senior Broker"

    event = events(seeded_db, "staff.updated")[-1]
    assert event["data"]["updatedFields"] == ["display_name", "job_title", "last_name", "workload"]


@pytest.mark.unit
@pytest.mark.asyncio
async def test_update_staff_workload_reset(seeded_db, admin):
    seeded_db.seed("staff_members", create_staff_data(staff_id="s1", active_leads=9, active_customers=4))

    updated = await admin.update_staff("s1", {"workloadReset": {"activeLeads": 0}})

    assert updated.workload.active_leads == 0
    assert updated.workload.active_customers == 4


@pytest.mark.unit
@pytest.mark.asyncio
async def test_update_staff_rejects_bad_phone_and_license(seeded_db, admin):
    seeded_db.seed("staff_members", create_staff_data(staff_id="s1"))
    bad_license = create_license_data()
    bad_license["expiry_date"] = bad_license["issue_date"]

    with pytest.raises(ValidationError) as exc_info:
        await admin.update_staff("s1", {"phone": "12", "licenses": [bad_license]})

    assert "Invalid phone number format" in exc_info.value.details
    assert any(d.startswith("License 1:") for d in exc_info.value.details)


@pytest.mark.unit
@pytest.mark.asyncio
async def test_update_staff_without_changes(seeded_db, admin):
    seeded_db.seed("staff_members", create_staff_data(staff_id="s1", job_title="Broker"))

    staff = await admin.update_staff("s1", {"jobTitle": "Broker"})

    assert staff.row_version == 1
    assert events(seeded_db, "staff.updated") == []


@pytest.mark.unit
@pytest.mark.asyncio
async def test_update_unknown_staff(admin):
    with pytest.raises(NotFoundError):
        await admin.update_staff("ghost", {"jobTitle": "Broker"})


@pytest.mark.unit
@pytest.mark.asyncio
async def test_change_status_publishes_deactivated(seeded_db, admin):
    seeded_db.seed("staff_members", create_staff_data(staff_id="s1", active_leads=3))

    result = await admin.change_status("s1", {"status": "suspended", "reason": "Audit"})

    assert result.requires_workload_reassignment is True
    event = events(seeded_db, "staff.deactivated")[-1]
    assert event["data"]["previousStatus"] == "active"
    assert event["data"]["currentStatus"] == "suspended"
    assert event["data"]["requiresWorkloadReassignment"] is True


@pytest.mark.unit
@pytest.mark.asyncio
async def test_change_status_back_to_active_publishes_activated(seeded_db, admin):
    seeded_db.seed("staff_members", create_staff_data(staff_id="s1", status="on_leave"))

    result = await admin.change_status("s1", {"status": "active"})

    assert result.availability.is_available is True
    assert len(events(seeded_db, "staff.activated")) == 1


@pytest.mark.unit
@pytest.mark.asyncio
async def test_change_status_errors(seeded_db, admin):
    seeded_db.seed("staff_members", create_staff_data(staff_id="s1", status="terminated"))

    with pytest.raises(ValidationError, match="Status is required"):
        await admin.change_status("s1", {})
    with pytest.raises(ValidationError):
        await admin.change_status("s1", {"status": "retired"})
    with pytest.raises(InvalidTransitionError):
        await admin.change_status("s1", {"status": "active"})
    with pytest.raises(NotFoundError):
        await admin.change_status("ghost", {"status": "inactive"})

    assert seeded_db.rows("staff_events") == []
