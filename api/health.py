"""Health check endpoint."""

from staff_service.utils.config import StaffServiceConfig
from staff_service.utils.errors import ConfigurationError
from staff_service.utils.http import run_handler


def handler(request, context=None):
    """Report liveness and whether store credentials are configured. Does not touch the store."""
    async def operation():
        config = context.config if context is not None else StaffServiceConfig.from_env()
        try:
            config.store.require_credentials()
            store_configured = True
        except ConfigurationError:
            store_configured = False

        return 200, {
            "status": "ok",
            "service": "staff-management-service",
            "storeConfigured": store_configured,
        }

    return run_handler(request, operation, "health", methods=("GET", "POST"))
