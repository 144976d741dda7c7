"""POST /api/teams - create a team led by an existing staff member."""

from staff_service.services.context import build_service_context
from staff_service.utils.http import get_user_id, parse_json_object, run_handler


def handler(request, context=None):
    async def operation():
        ctx = context or build_service_context()
        body = parse_json_object(request)
        team = await ctx.team_service.create_team(body, created_by=get_user_id(request))
        return 201, {
            "teamId": team.team_id,
            "name": team.name,
            "type": team.type.value,
            "leaderId": team.leader_id,
            "memberCount": team.member_count,
            "createdAt": team.created_at,
        }

    return run_handler(request, operation, "create_team", methods=("POST",))
