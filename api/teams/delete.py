"""DELETE /api/teams/{teamId} - remove a team that only its leader still belongs to."""

from datetime import datetime, timezone

from staff_service.services.context import build_service_context
from staff_service.utils.http import get_path_param, get_user_id, run_handler


def handler(request, context=None):
    async def operation():
        ctx = context or build_service_context()
        team_id = get_path_param(request, "teamId", "Team ID")
        await ctx.team_service.delete_team(team_id, deleted_by=get_user_id(request))
        return 200, {"teamId": team_id, "deleted": True, "deletedAt": datetime.now(timezone.utc).isoformat()}

    return run_handler(request, operation, "delete_team", methods=("DELETE",))
