"""GET /api/staff/{staffId}/workload - counters, utilization and remaining capacity."""

from staff_service.services.context import build_service_context
from staff_service.services.workload_service import get_workload_info
from staff_service.utils.http import get_path_param, run_handler


def handler(request, context=None):
    async def operation():
        ctx = context or build_service_context()
        staff_id = get_path_param(request, "staffId", "Staff ID")
        staff = await ctx.staff_repository.get(staff_id)
        return 200, get_workload_info(staff, ctx.config.workload)

    return run_handler(request, operation, "get_staff_workload", methods=("GET",))
