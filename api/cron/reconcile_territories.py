"""Rebuild territory assigned_staff_ids from staff records (Vercel cron)."""

from staff_service.services.context import build_service_context
from staff_service.utils.http import run_handler


def handler(request, context=None):
    async def operation():
        ctx = context or build_service_context()
        query = (request or {}).get("query") or {}
        seeded = []
        if str(query.get("seed", "")).lower() == "true":
            seeded = await ctx.territory_service.seed_territories()
        report = await ctx.territory_service.reconcile_territory_assignments()
        return 200, {"ok": True, "seeded": seeded, **report.model_dump(mode="json", by_alias=True)}

    return run_handler(request, operation, "reconcile_territories", methods=("GET", "POST"))
