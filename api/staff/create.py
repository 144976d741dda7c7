"""POST /api/staff - hire a staff member."""

from staff_service.services.context import build_service_context
from staff_service.utils.http import get_user_id, parse_json_object, run_handler


def handler(request, context=None):
    async def operation():
        ctx = context or build_service_context()
        body = parse_json_object(request)
        staff = await ctx.staff_admin.create_staff(body, created_by=get_user_id(request))
        return 201, {
            "staffId": staff.staff_id,
            "email": staff.email,
            "displayName": staff.display_name,
            "status": staff.status.value,
            "teamIds": staff.team_ids,
            "territories": staff.territories,
            "createdAt": staff.created_at,
        }

    return run_handler(request, operation, "create_staff", methods=("POST",))
