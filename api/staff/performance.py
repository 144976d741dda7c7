"""GET /api/staff/{staffId}/performance - metrics for the stored performance period."""

from staff_service.services.context import build_service_context
from staff_service.services.performance_service import get_staff_performance
from staff_service.utils.http import get_path_param, run_handler


def handler(request, context=None):
    async def operation():
        ctx = context or build_service_context()
        staff_id = get_path_param(request, "staffId", "Staff ID")
        staff = await ctx.staff_repository.get(staff_id)
        return 200, get_staff_performance(staff)

    return run_handler(request, operation, "get_staff_performance", methods=("GET",))
