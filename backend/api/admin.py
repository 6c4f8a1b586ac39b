"""Admin endpoints: definition exports and validation of draft definitions.

Nothing here persists anything. In web mode (REQUIRE_AUTH) callers need the
admin role; in desktop mode the endpoints are open.
"""

import csv
import io
import logging

from fastapi import APIRouter, Body, HTTPException, Query, Request
from fastapi.responses import Response
from pydantic import ValidationError

from algorithms import registry as algorithm_registry
from algorithms.validation import validate_algorithm
from api import auth
from api.algorithm_models import AlgorithmDefinition, ValidationReport
from api.calculator_models import RangeCheckRequest
from calculators import registry as calculator_registry
from calculators.registry import check_interpretation_ranges

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])

CSV_COLUMNS = ["id", "name", "type", "unit", "tooltip", "storable"]


def _require_admin(request: Request) -> None:
    """Raises 401/403 in web mode unless the caller has the admin role."""
    if not auth.REQUIRE_AUTH:
        return
    if not auth.get_user_id(request):
        raise HTTPException(status_code=401, detail="Authentication required.")
    if not auth.is_admin(request):
        raise HTTPException(status_code=403, detail="Admin access required.")


@router.get("/calculators/{calculator_id}/export")
async def export_calculator(
    request: Request,
    calculator_id: str,
    fmt: str = Query(default="json", alias="format", pattern="^(json|csv)$"),
):
    """Calculator definition as JSON, or its parameter table as CSV."""
    _require_admin(request)
    calculator = calculator_registry.get(calculator_id)
    if calculator is None:
        raise HTTPException(status_code=404, detail="Calculator not found.")

    if fmt == "csv":
        buf = io.StringIO()
        writer = csv.writer(buf)
        writer.writerow(CSV_COLUMNS)
        for param in calculator.parameters:
            writer.writerow([
                param.id,
                param.name,
                param.type.value,
                param.unit or "",
                param.tooltip,
                "true" if param.storable else "false",
            ])
        return Response(
            content=buf.getvalue(),
            media_type="text/csv",
            headers={"Content-Disposition": f'attachment; filename="{calculator_id}-parameters.csv"'},
        )
    return calculator.get_definition().model_dump(mode="json")


@router.get("/algorithms/{algorithm_id}/export")
async def export_algorithm_definition(request: Request, algorithm_id: str):
    _require_admin(request)
    algorithm = algorithm_registry.get(algorithm_id)
    if algorithm is None:
        raise HTTPException(status_code=404, detail="Algorithm not found.")
    return algorithm.model_dump(mode="json")


@router.post("/algorithms/validate", response_model=ValidationReport)
async def validate_algorithm_definition(request: Request, definition: dict = Body(...)):
    """Check a draft algorithm: schema first, then graph structure."""
    _require_admin(request)
    try:
        algorithm = AlgorithmDefinition.model_validate(definition)
    except ValidationError as e:
        errors = [
            f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}"
            for err in e.errors()
        ]
        return ValidationReport(valid=False, errors=errors)
    report = validate_algorithm(algorithm)
    logger.info(
        f"Validated draft algorithm '{algorithm.id}': "
        f"{len(report.errors)} error(s), {len(report.warnings)} warning(s)"
    )
    return report


@router.post("/calculators/validate", response_model=ValidationReport)
async def validate_interpretation_ranges(request: Request, body: RangeCheckRequest):
    """Report gaps and overlaps in interpretation ranges. Advisory only."""
    _require_admin(request)
    return ValidationReport(
        valid=True,
        warnings=check_interpretation_ranges(body.interpretation_ranges),
    )
