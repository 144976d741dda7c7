"""Daily license expiry sweep (Vercel cron)."""

from staff_service.services.context import build_service_context
from staff_service.utils.http import run_handler


def handler(request, context=None):
    async def operation():
        ctx = context or build_service_context()
        report = await ctx.license_monitor.run_sweep()
        return 200, {"ok": True, **report.model_dump(mode="json", by_alias=True)}

    return run_handler(request, operation, "license_expiry_sweep", methods=("GET", "POST"))
