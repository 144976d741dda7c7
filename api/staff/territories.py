"""POST /api/staff/{staffId}/territories - add, remove or replace territories."""

from staff_service.services.context import build_service_context
from staff_service.utils.http import get_path_param, get_user_id, parse_json_object, run_handler


def handler(request, context=None):
    async def operation():
        ctx = context or build_service_context()
        staff_id = get_path_param(request, "staffId", "Staff ID")
        body = parse_json_object(request)
        result = await ctx.territory_service.assign_territories(staff_id, body, updated_by=get_user_id(request))
        return 200, result

    return run_handler(request, operation, "assign_territories", methods=("POST", "PUT"))
