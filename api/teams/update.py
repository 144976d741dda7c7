"""PATCH /api/teams/{teamId} - rename, retype, change leader or deactivate a team."""

from staff_service.services.context import build_service_context
from staff_service.utils.http import get_path_param, get_user_id, parse_json_object, run_handler


def handler(request, context=None):
    async def operation():
        ctx = context or build_service_context()
        team_id = get_path_param(request, "teamId", "Team ID")
        body = parse_json_object(request)
        team = await ctx.team_service.update_team(team_id, body, updated_by=get_user_id(request))
        return 200, {
            "teamId": team.team_id,
            "name": team.name,
            "type": team.type.value,
            "leaderId": team.leader_id,
            "memberIds": team.member_ids,
            "memberCount": team.member_count,
            "isActive": team.is_active,
            "updatedAt": team.updated_at,
        }

    return run_handler(request, operation, "update_team", methods=("PATCH", "PUT"))
