import logging
from typing import Any, Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Query, Request
from fastapi.responses import PlainTextResponse

from algorithms import AlgorithmNavigator, registry as algorithm_registry
from algorithms.errors import (
    MissingParametersError,
    NavigationHistoryError,
    NoMatchingBranchError,
    TraversalError,
)
from algorithms.layout import DEFAULT_HEIGHT, DEFAULT_WIDTH, layout_algorithm
from algorithms.navigator import traverse
from api.algorithm_models import (
    AlgorithmDefinition,
    AlgorithmExportRequest,
    AlgorithmLayout,
    AlgorithmSummary,
    NavigatorState,
    NavigatorStepRequest,
    PreparationParameter,
    PreparationResponse,
    TraversalResult,
    TraverseRequest,
    TraverseResponse,
)
from api.auth import get_user_id
from api.calculator_models import (
    CalculateRequest,
    CalculateResponse,
    CalculationResult,
    CalculatorDefinitionResponse,
    CalculatorExportRequest,
    CalculatorSummary,
    ExportFormat,
    ParameterDefinition,
    ParameterType,
    ScreeningRequest,
    ScreeningResponse,
)
from api.parameter_models import StoredParameter, StoredParameterList, StoredParameterUpdate
from api.rate_limit import CALCULATE_RATE_LIMIT, limiter
from calculators import BaseCalculator, registry as calculator_registry
from calculators.errors import CalculatorError
from calculators.validation import as_number, check_domain, is_blank
from reports import text_formatter
from storage import SessionState, get_session_store
from storage.sessions import DEFAULT_SESSION_KEY

_logger = logging.getLogger(__name__)

router = APIRouter()


def get_session(
    request: Request,
    x_session_id: Optional[str] = Header(default=None),
) -> SessionState:
    """Session for this caller: the authenticated user, else X-Session-ID, else the local session."""
    key = get_user_id(request) or x_session_id or DEFAULT_SESSION_KEY
    return get_session_store().get(key)


def _unprocessable(exc: Exception) -> HTTPException:
    to_detail = getattr(exc, "to_detail", None)
    detail = to_detail() if to_detail else {"message": str(exc), "missing": []}
    return HTTPException(status_code=422, detail=detail)


def _get_calculator(calculator_id: str) -> BaseCalculator:
    calculator = calculator_registry.get(calculator_id)
    if calculator is None:
        raise HTTPException(status_code=404, detail="Calculator not found.")
    return calculator


def _get_algorithm(algorithm_id: str) -> AlgorithmDefinition:
    algorithm = algorithm_registry.get(algorithm_id)
    if algorithm is None:
        raise HTTPException(status_code=404, detail="Algorithm not found.")
    return algorithm


def _algorithm_parameter(algorithm: AlgorithmDefinition, param_id: str) -> ParameterDefinition | None:
    for node in algorithm.nodes.values():
        for param in node.parameters:
            if param.id == param_id:
                return param
    return None


def _known_parameter(param_id: str) -> ParameterDefinition | None:
    """First definition of a parameter id across calculators, then algorithms."""
    for calculator_id in calculator_registry.ids():
        for param in calculator_registry.get(calculator_id).parameters:
            if param.id == param_id:
                return param
    for algorithm_id in algorithm_registry.ids():
        param = _algorithm_parameter(algorithm_registry.get(algorithm_id), param_id)
        if param is not None:
            return param
    return None


def _with_stored(
    parameters: list[ParameterDefinition], inputs: dict[str, Any], session: SessionState,
) -> tuple[dict[str, Any], list[str]]:
    """Fill blank inputs from the session store; entered values win."""
    merged = dict(inputs)
    prefilled = []
    for param_id, value in session.parameters.prefill(parameters).items():
        if is_blank(merged.get(param_id)):
            merged[param_id] = value
            prefilled.append(param_id)
    return merged, prefilled


def _store_values(
    session: SessionState,
    parameters: list[ParameterDefinition],
    inputs: dict[str, Any],
    param_ids: list[str],
) -> list[str]:
    by_id = {p.id: p for p in parameters}
    saved = []
    for param_id in param_ids:
        param = by_id.get(param_id)
        value = inputs.get(param_id)
        if param is None or is_blank(value):
            continue
        if param.type == ParameterType.NUMBER:
            value = as_number(param, value)
        session.parameters.add_from_definition(param, value)
        saved.append(param_id)
    return saved


def _evaluate(calculator: BaseCalculator, inputs: dict[str, Any]) -> CalculationResult:
    try:
        return calculator.evaluate(inputs)
    except CalculatorError as e:
        raise _unprocessable(e)


def _declared_inputs(parameters: list[ParameterDefinition], inputs: dict[str, Any]) -> dict[str, Any]:
    return {p.id: inputs[p.id] for p in parameters if not is_blank(inputs.get(p.id))}


@router.get("/health")
async def health_check():
    return {
        "status": "ok",
        "calculators": len(calculator_registry),
        "algorithms": len(algorithm_registry),
    }


# --- Calculators ---


@router.get("/calculators", response_model=list[CalculatorSummary])
async def list_calculators(category: Optional[str] = Query(default=None)):
    return calculator_registry.list_calculators(category)


@router.get("/calculators/{calculator_id}", response_model=CalculatorDefinitionResponse)
async def get_calculator(calculator_id: str):
    return _get_calculator(calculator_id).get_definition()


@router.post("/calculators/{calculator_id}/screening", response_model=ScreeningResponse)
async def screen_calculator(calculator_id: str, body: ScreeningRequest):
    return _get_calculator(calculator_id).screen(body.answers)


@router.post("/calculators/{calculator_id}/calculate", response_model=CalculateResponse)
@limiter.limit(CALCULATE_RATE_LIMIT)
async def calculate(
    request: Request,
    calculator_id: str,
    body: CalculateRequest,
    session: SessionState = Depends(get_session),
):
    calculator = _get_calculator(calculator_id)
    inputs, prefilled = dict(body.inputs), []
    if body.use_stored:
        inputs, prefilled = _with_stored(calculator.parameters, inputs, session)

    result = _evaluate(calculator, inputs)
    saved = _store_values(session, calculator.parameters, inputs, body.save)
    _logger.debug(f"Calculated {calculator_id} (prefilled={len(prefilled)}, saved={len(saved)})")
    return CalculateResponse(
        calculator_id=calculator.calculator_id,
        calculator_name=calculator.display_name,
        inputs=inputs,
        result=result,
        summary=text_formatter.format_web_result(result),
        prefilled=prefilled,
        saved=saved,
    )


@router.post("/calculators/{calculator_id}/export", response_class=PlainTextResponse)
async def export_calculation(
    calculator_id: str,
    body: CalculatorExportRequest,
    session: SessionState = Depends(get_session),
):
    calculator = _get_calculator(calculator_id)
    inputs = dict(body.inputs)
    if body.use_stored:
        inputs, _ = _with_stored(calculator.parameters, inputs, session)

    result = _evaluate(calculator, inputs)
    shown = _declared_inputs(calculator.parameters, inputs)
    labels = calculator.parameter_labels()
    if body.format == ExportFormat.PRINT:
        text = text_formatter.format_printer_friendly(calculator.display_name, result, shown, labels)
    else:
        text = text_formatter.format_clinical_text(calculator.display_name, result, shown, labels)
    return PlainTextResponse(text)


# --- Algorithms ---


@router.get("/algorithms", response_model=list[AlgorithmSummary])
async def list_algorithms(category: Optional[str] = Query(default=None)):
    return algorithm_registry.list_algorithms(category)


@router.get("/algorithms/{algorithm_id}", response_model=AlgorithmDefinition)
async def get_algorithm(algorithm_id: str):
    return _get_algorithm(algorithm_id)


@router.get("/algorithms/{algorithm_id}/preparation", response_model=PreparationResponse)
async def get_preparation(algorithm_id: str, session: SessionState = Depends(get_session)):
    """Parameters worth gathering before starting, with any stored values."""
    algorithm = _get_algorithm(algorithm_id)

    def entry(param_id: str) -> PreparationParameter:
        param = _algorithm_parameter(algorithm, param_id)
        stored = session.parameters.get_value(param_id)
        return PreparationParameter(
            id=param_id,
            name=param.name if param else param_id,
            unit=param.unit if param else None,
            stored_value=stored,
            available=stored is not None,
        )

    prep = algorithm.preparation
    return PreparationResponse(
        algorithm_id=algorithm.id,
        required=[entry(p) for p in prep.required_parameters],
        potential=[entry(p) for p in prep.potential_parameters],
    )


@router.get("/algorithms/{algorithm_id}/layout", response_model=AlgorithmLayout)
async def get_algorithm_layout(
    algorithm_id: str,
    width: float = Query(default=DEFAULT_WIDTH, gt=0),
    height: float = Query(default=DEFAULT_HEIGHT, gt=0),
    session: SessionState = Depends(get_session),
):
    algorithm = _get_algorithm(algorithm_id)
    navigator = session.navigators.get(algorithm_id)
    path = navigator.path if navigator is not None else []
    return layout_algorithm(algorithm, path=path, width=width, height=height)


@router.post("/algorithms/{algorithm_id}/traverse", response_model=TraverseResponse)
@limiter.limit(CALCULATE_RATE_LIMIT)
async def traverse_algorithm(
    request: Request,
    algorithm_id: str,
    body: TraverseRequest,
    session: SessionState = Depends(get_session),
):
    """Replay the algorithm over one input map without touching navigator state.

    Stopping on missing input or an unmatched node is reported in the
    response rather than as an error, so clients can show how far it got.
    """
    algorithm = _get_algorithm(algorithm_id)
    inputs = {k: v for k, v in body.inputs.items() if not is_blank(v)}
    if body.use_stored:
        stored = {p.id: p.value for p in session.parameters.list()}
        inputs = {**stored, **inputs}

    try:
        path, cumulative = traverse(algorithm, inputs)
    except (MissingParametersError, NoMatchingBranchError) as e:
        path = getattr(e, "path", None) or [algorithm.start_node_id]
        detail = e.to_detail()
        return TraverseResponse(
            algorithm_id=algorithm.id,
            completed=False,
            path=path,
            current_node_id=path[-1],
            message=detail["message"],
            missing=detail["missing"],
        )
    except (TraversalError, CalculatorError) as e:
        raise _unprocessable(e)

    return TraverseResponse(
        algorithm_id=algorithm.id,
        completed=True,
        path=path,
        current_node_id=path[-1],
        result=TraversalResult(
            algorithm_id=algorithm.id,
            path=path,
            inputs=cumulative,
            final_node=algorithm.nodes[path[-1]],
        ),
    )


def _get_navigator(session: SessionState, algorithm: AlgorithmDefinition, reset: bool = False) -> AlgorithmNavigator:
    navigator = session.navigators.get(algorithm.id)
    if navigator is None or reset:
        navigator = AlgorithmNavigator(algorithm, store=session.parameters)
        session.navigators[algorithm.id] = navigator
    return navigator


@router.get("/algorithms/{algorithm_id}/navigator", response_model=NavigatorState)
async def get_navigator(algorithm_id: str, session: SessionState = Depends(get_session)):
    algorithm = _get_algorithm(algorithm_id)
    return _get_navigator(session, algorithm).state()


@router.post("/algorithms/{algorithm_id}/navigator", response_model=NavigatorState)
async def start_navigator(algorithm_id: str, session: SessionState = Depends(get_session)):
    """Start (or restart) the algorithm from its first node."""
    algorithm = _get_algorithm(algorithm_id)
    return _get_navigator(session, algorithm, reset=True).state()


@router.post("/algorithms/{algorithm_id}/navigator/next", response_model=NavigatorState)
@limiter.limit(CALCULATE_RATE_LIMIT)
async def navigator_next(
    request: Request,
    algorithm_id: str,
    body: NavigatorStepRequest,
    session: SessionState = Depends(get_session),
):
    algorithm = _get_algorithm(algorithm_id)
    navigator = _get_navigator(session, algorithm)
    node = navigator.current_node
    try:
        navigator.submit(body.inputs)
    except (TraversalError, CalculatorError) as e:
        raise _unprocessable(e)
    _store_values(session, node.parameters, navigator.inputs, body.save)
    return navigator.state()


@router.post("/algorithms/{algorithm_id}/navigator/back", response_model=NavigatorState)
async def navigator_back(algorithm_id: str, session: SessionState = Depends(get_session)):
    algorithm = _get_algorithm(algorithm_id)
    navigator = _get_navigator(session, algorithm)
    try:
        navigator.back()
    except NavigationHistoryError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return navigator.state()


@router.post("/algorithms/{algorithm_id}/export", response_class=PlainTextResponse)
async def export_algorithm(
    algorithm_id: str,
    body: AlgorithmExportRequest,
    session: SessionState = Depends(get_session),
):
    """Text summary of a completed walk.

    With no inputs in the body, the session's completed navigator is used.
    """
    algorithm = _get_algorithm(algorithm_id)
    navigator = session.navigators.get(algorithm_id)
    if not body.inputs and navigator is not None and navigator.completed:
        path, inputs = list(navigator.path), dict(navigator.inputs)
    else:
        try:
            path, inputs = traverse(algorithm, body.inputs)
        except (TraversalError, CalculatorError) as e:
            raise _unprocessable(e)

    final_node = algorithm.nodes[path[-1]]
    if body.format == ExportFormat.PRINT:
        text = text_formatter.format_algorithm_printer_friendly(algorithm, final_node, path, inputs)
    else:
        text = text_formatter.format_algorithm_clinical_text(algorithm, final_node, path)
    return PlainTextResponse(text)


# --- Stored parameters ---


@router.get("/parameters", response_model=StoredParameterList)
async def list_parameters(session: SessionState = Depends(get_session)):
    return StoredParameterList(parameters=session.parameters.list())


@router.put("/parameters/{param_id}", response_model=StoredParameter)
async def store_parameter(
    param_id: str,
    body: StoredParameterUpdate,
    session: SessionState = Depends(get_session),
):
    if is_blank(body.value):
        raise HTTPException(status_code=422, detail="A value is required.")
    known = _known_parameter(param_id)
    value = body.value
    if known is not None:
        try:
            check_domain(known, value)
            if known.type == ParameterType.NUMBER:
                value = as_number(known, value)
        except CalculatorError as e:
            raise _unprocessable(e)
    name = body.name or (known.name if known else param_id)
    unit = body.unit if body.unit is not None else (known.unit if known else None)
    return session.parameters.add(param_id, name, value, unit)


@router.delete("/parameters/{param_id}")
async def delete_parameter(param_id: str, session: SessionState = Depends(get_session)):
    # Removing an id that is not stored is a no-op; "removed" says which case it was
    return {"removed": session.parameters.remove(param_id)}


@router.delete("/parameters")
async def clear_parameters(session: SessionState = Depends(get_session)):
    count = len(session.parameters)
    session.parameters.clear()
    return {"cleared": count}
