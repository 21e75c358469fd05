"""
Journey endpoints.

Stateless wrappers around the validation engine, the compiler and the
sequences API: the UI posts its whole wizard state on every call.
"""

from typing import Any, Dict, List

from fastapi import APIRouter, Depends, HTTPException, Request, status

from journey_builder.api.middleware.error_handlers import JourneyValidationError
from journey_builder.core.logging import get_logger
from journey_builder.models.journey import WizardState
from journey_builder.models.requests import (
    ErrorResponse,
    JourneyRequest,
    PreviewResponse,
    RecipeSummary,
    ValidationResponse,
)
from journey_builder.services.compiler.sequence_compiler import SequenceCompiler
from journey_builder.services.flow.flow_preview import describe_flow, summarize_flow
from journey_builder.services.messages.template_library import get_template_library
from journey_builder.services.validation.page_validator import (
    first_error_page,
    validate_all,
    validate_by_page,
)
from journey_builder.services.wizard.recipes import build_state_from_recipe, list_recipes

logger = get_logger(__name__)

router = APIRouter()


async def get_compiler() -> SequenceCompiler:
    """Dependency to get a per-request sequence compiler."""
    return SequenceCompiler(library=get_template_library())


def _ensure_valid(state: WizardState) -> None:
    errors = validate_all(state)
    if errors:
        raise JourneyValidationError(
            "Journey is incomplete",
            errors=errors,
            pages={page: page_errors for page, page_errors in validate_by_page(state).items() if page_errors},
        )


@router.post(
    "/journeys/validate",
    response_model=ValidationResponse,
    summary="Validate Journey",
    description="Run every wizard page gate against the posted state",
)
async def validate_journey(request: JourneyRequest) -> ValidationResponse:
    page = first_error_page(request)
    errors = validate_all(request)
    return ValidationResponse(
        is_valid=not errors,
        errors=errors,
        pages=validate_by_page(request),
        first_error_page=page.value if page else None,
    )


@router.post(
    "/journeys/compile",
    summary="Compile Journey",
    description="Compile a valid journey into the sequence-create request body",
    responses={
        200: {"description": "Journey compiled"},
        422: {"model": ErrorResponse, "description": "Journey failed validation"},
    },
)
async def compile_journey(
    request: JourneyRequest,
    compiler: SequenceCompiler = Depends(get_compiler),
) -> Dict[str, Any]:
    _ensure_valid(request)
    return compiler.compile(request).to_request_body()


@router.post(
    "/journeys/preview",
    response_model=PreviewResponse,
    summary="Preview Journey Flow",
)
async def preview_journey(request: JourneyRequest) -> PreviewResponse:
    return PreviewResponse(
        labels=describe_flow(request.steps, request.timing_overrides),
        summary=summarize_flow(request.steps, request.timing_overrides),
    )


@router.post(
    "/journeys/submit",
    status_code=status.HTTP_201_CREATED,
    summary="Submit Journey",
    description="Validate, compile and persist a journey through the sequences API",
    responses={
        201: {"description": "Sequence created"},
        409: {"model": ErrorResponse, "description": "A submission is already in progress"},
        422: {"model": ErrorResponse, "description": "Journey failed validation"},
        502: {"model": ErrorResponse, "description": "Sequences API failed"},
    },
)
async def submit_journey(
    request: JourneyRequest,
    http_request: Request,
    compiler: SequenceCompiler = Depends(get_compiler),
) -> Dict[str, Any]:
    """
    Submit a journey.

    Args:
        request: Wizard state
        http_request: HTTP request object for tracking
        compiler: Sequence compiler service

    Returns:
        The sequences API response, unchanged
    """
    _ensure_valid(request)
    correlation_id = getattr(http_request.state, "correlation_id", None)
    return await compiler.submit(request, request_id=correlation_id)


@router.get("/journeys/templates", summary="Message Templates")
async def get_templates() -> Dict[str, Dict]:
    return get_template_library().to_dict()


@router.get("/journeys/recipes", response_model=List[RecipeSummary], summary="Journey Recipes")
async def get_recipes() -> List[Dict[str, Any]]:
    return list_recipes()


@router.get(
    "/journeys/recipes/{key}",
    response_model=WizardState,
    summary="Journey Recipe State",
    responses={404: {"model": ErrorResponse, "description": "Unknown recipe"}},
)
async def get_recipe(key: str) -> WizardState:
    """Fresh wizard state pre-filled from a recipe."""
    try:
        return build_state_from_recipe(key)
    except KeyError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Unknown journey recipe: {key}",
        )
