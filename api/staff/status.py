"""PATCH /api/staff/{staffId}/status - move a staff member to a new status."""

from staff_service.services.context import build_service_context
from staff_service.utils.http import get_path_param, get_user_id, parse_json_object, run_handler


def handler(request, context=None):
    async def operation():
        ctx = context or build_service_context()
        staff_id = get_path_param(request, "staffId", "Staff ID")
        body = parse_json_object(request)
        result = await ctx.staff_admin.change_status(staff_id, body, updated_by=get_user_id(request))
        return 200, {
            "staffId": staff_id,
            "previousStatus": result.previous_status.value,
            "currentStatus": result.current_status.value,
            "reason": result.reason,
            "awayUntil": result.availability.away_until,
            "availability": result.availability,
            "statusChangedAt": result.status_changed_at,
            "requiresWorkloadReassignment": result.requires_workload_reassignment,
        }

    return run_handler(request, operation, "update_staff_status", methods=("PATCH", "POST"))
