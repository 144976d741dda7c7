"""Lifecycle event webhook - lead, customer and policy events from the bus."""

from staff_service.services.context import build_service_context
from staff_service.utils.http import parse_json_body, run_handler


def handler(request, context=None):
    """
    Accepts one event or an array of events.

    Always 200 for payload problems so the bus does not redeliver bad events;
    store failures surface as 500 and are redelivered.
    """
    async def operation():
        ctx = context or build_service_context()
        body = parse_json_body(request)
        events = body if isinstance(body, list) else [body]

        results = await ctx.lifecycle_handler.handle_batch(events)
        return 200, {"processed": len(results), "results": results}

    return run_handler(request, operation, "lifecycle_events", methods=("POST",))
