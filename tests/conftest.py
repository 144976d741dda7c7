"""Shared pytest fixtures and configuration."""

import os
import pytest
from freezegun import freeze_time

# Set test environment variables
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("SUPABASE_URL", "https://test.supabase.co")
os.environ.setdefault("SUPABASE_SERVICE_ROLE_KEY", "test-key")
os.environ.setdefault("LOG_LEVEL", "DEBUG")

from staff_service.services.context import ServiceContext
from staff_service.services.event_publisher import EventPublisher
from staff_service.services.staff_repository import StaffRepository
from staff_service.services.team_repository import TeamRepository
from staff_service.services.territory_repository import TerritoryRepository
from staff_service.models.territory import DEFAULT_TERRITORIES
from staff_service.utils.config import StaffServiceConfig, StoreConfig
from tests.utils.fake_supabase import FakeSupabase


@pytest.fixture
def store_config():
    """Store config with no backoff so conflict retries run instantly."""
    return StoreConfig(
        url="https://test.supabase.co",
        service_role_key="test-key",
        max_update_attempts=3,
        conflict_backoff_seconds=0.0,
    )


@pytest.fixture
def service_config(store_config):
    return StaffServiceConfig(store=store_config)


@pytest.fixture
def fake_db():
    """In-memory Supabase double with the alert ledger's unique key."""
    return FakeSupabase(unique={"license_alerts": "alert_key", "staff_events": "event_id"})


@pytest.fixture
def seeded_db(fake_db):
    """Fake store with the default territories present."""
    fake_db.seed("territories", *[
        {**t, "assigned_staff_ids": [], "assigned_team_ids": [], "is_active": True, "row_version": 1}
        for t in DEFAULT_TERRITORIES
    ])
    return fake_db


@pytest.fixture
def staff_repository(fake_db, store_config):
    return StaffRepository(fake_db, store_config)


@pytest.fixture
def team_repository(fake_db, store_config):
    return TeamRepository(fake_db, store_config)


@pytest.fixture
def territory_repository(fake_db, store_config):
    return TerritoryRepository(fake_db, store_config)


@pytest.fixture
def publisher(fake_db, store_config):
    return EventPublisher(fake_db, store_config)


@pytest.fixture
def service_context(seeded_db, service_config):
    """Fully wired context over the fake store."""
    return ServiceContext(service_config, seeded_db)


@pytest.fixture
def freeze_time_fixture():
    """Fixture for freezing time in tests."""
    with freeze_time("2026-10-19 12:00:00") as frozen_time:
        yield frozen_time


@pytest.fixture(scope="function")
def reset_environment(monkeypatch):
    """Reset environment variables for each test."""
    original_env = os.environ.copy()
    yield
    os.environ.clear()
    os.environ.update(original_env)
