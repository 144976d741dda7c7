"""POST /api/staff/auto-assign - recommend staff for a lead, customer or policy."""

from pydantic import ValidationError as PydanticValidationError

from staff_service.models.assignment import AssignmentCriteria
from staff_service.services.assignment_engine import find_best_staff_for_assignment
from staff_service.services.context import build_service_context
from staff_service.services.validators import validate_assignment_request
from staff_service.utils.errors import ValidationError
from staff_service.utils.http import parse_json_object, run_handler


def handler(request, context=None):
    """
    An empty recommendedStaff with no fallbackStaff is still a 200; the caller
    treats it as "no assignee available".
    """
    async def operation():
        ctx = context or build_service_context()
        body = parse_json_object(request)

        validation = validate_assignment_request(body)
        if not validation.valid:
            raise ValidationError("Invalid assignment request", details=validation.errors)
        try:
            criteria = AssignmentCriteria.model_validate(body)
        except PydanticValidationError as e:
            raise ValidationError.from_pydantic(e, "Invalid assignment request") from e

        # one snapshot of roster and teams per request
        roster = await ctx.staff_repository.list_staff(territory=criteria.territory, status=None)
        teams = await ctx.team_repository.list_teams()

        result = find_best_staff_for_assignment(
            roster,
            teams,
            criteria,
            limit=ctx.config.assignment.result_limit,
            config=ctx.config.workload,
        )
        return 200, result

    return run_handler(request, operation, "auto_assign", methods=("POST",))
