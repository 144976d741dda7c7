"""
POST   /api/teams/{teamId}/members            body: {"staffId": ...}
DELETE /api/teams/{teamId}/members/{staffId}
"""

from staff_service.services.context import build_service_context
from staff_service.utils.errors import ValidationError
from staff_service.utils.http import get_path_param, get_user_id, parse_json_object, run_handler


def handler(request, context=None):
    async def operation():
        ctx = context or build_service_context()
        team_id = get_path_param(request, "teamId", "Team ID")
        user_id = get_user_id(request)

        if (request.get("method") or "").upper() == "DELETE":
            staff_id = get_path_param(request, "staffId", "Staff ID")
            change = await ctx.team_service.remove_team_member(team_id, staff_id, updated_by=user_id)
            return 200, change

        body = parse_json_object(request)
        staff_id = body.get("staffId") or body.get("staff_id")
        if not staff_id:
            raise ValidationError("Staff ID is required")
        change = await ctx.team_service.add_team_member(team_id, staff_id, updated_by=user_id)
        return 201, change

    return run_handler(request, operation, "team_members", methods=("POST", "DELETE"))
