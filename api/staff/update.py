"""PATCH /api/staff/{staffId} - update profile, limits, licenses or reset workload."""

from staff_service.services.context import build_service_context
from staff_service.utils.http import get_path_param, get_user_id, parse_json_object, run_handler


def handler(request, context=None):
    async def operation():
        ctx = context or build_service_context()
        staff_id = get_path_param(request, "staffId", "Staff ID")
        body = parse_json_object(request)
        staff = await ctx.staff_admin.update_staff(staff_id, body, updated_by=get_user_id(request))
        return 200, {
            "staffId": staff.staff_id,
            "displayName": staff.display_name,
            "workload": staff.workload,
            "updatedAt": staff.updated_at,
        }

    return run_handler(request, operation, "update_staff", methods=("PATCH", "PUT"))
