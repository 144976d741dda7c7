"""Wires the configuration, store client, repositories and services together."""

from typing import Optional
from supabase import Client

from staff_service.services.event_publisher import EventPublisher
from staff_service.services.license_monitor import LicenseAlertLedger, LicenseMonitor
from staff_service.services.lifecycle_handlers import LifecycleEventHandler
from staff_service.services.staff_admin import StaffAdminService
from staff_service.services.staff_repository import StaffRepository
from staff_service.services.supabase_client import build_supabase_client
from staff_service.services.team_repository import TeamRepository
from staff_service.services.team_service import TeamService
from staff_service.services.territory_repository import TerritoryRepository
from staff_service.services.territory_service import TerritoryService
from staff_service.utils.config import StaffServiceConfig


class ServiceContext:
    """Everything a function entry point needs, built from one config object."""

    def __init__(self, config: StaffServiceConfig, client: Client):
        self.config = config
        self.client = client

        store = config.store
        self.staff_repository = StaffRepository(client, store)
        self.team_repository = TeamRepository(client, store)
        self.territory_repository = TerritoryRepository(client, store)
        self.publisher = EventPublisher(client, store)

        self.staff_admin = StaffAdminService(
            self.staff_repository,
            self.team_repository,
            self.territory_repository,
            self.publisher,
        )
        self.team_service = TeamService(self.team_repository, self.staff_repository, self.publisher)
        self.territory_service = TerritoryService(
            self.staff_repository,
            self.territory_repository,
            self.publisher,
        )
        self.lifecycle_handler = LifecycleEventHandler(self.staff_repository)
        self.license_monitor = LicenseMonitor(
            self.staff_repository,
            LicenseAlertLedger(client, store),
            self.publisher,
            config.license,
        )


def build_service_context(
    config: Optional[StaffServiceConfig] = None,
    client: Optional[Client] = None
) -> ServiceContext:
    """Build a context; the config defaults to the environment and the client to Supabase."""
    config = config or StaffServiceConfig.from_env()
    if client is None:
        client = build_supabase_client(config.store)
    return ServiceContext(config, client)
