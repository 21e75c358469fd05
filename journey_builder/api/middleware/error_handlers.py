"""
Error handlers for the journey builder API.

Every handler answers with the same JSON envelope:
``{error, message, correlation_id, status, type}`` plus optional details.
"""

import traceback
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from journey_builder.core.logging import get_logger
from journey_builder.services.compiler.sequence_compiler import SubmissionInProgressError
from journey_builder.services.flow.flow_model import FlowModelError
from journey_builder.services.persistence.sequence_client import SequencePersistenceError
from journey_builder.services.trigger.trigger_selector import TriggerSelectionError
from journey_builder.utils.constants import ERROR_RESPONSES

logger = get_logger(__name__)


class JourneyValidationError(Exception):
    """Raised by endpoints when the wizard state does not pass its page gates."""

    def __init__(self, message: str, errors: Dict[str, str], pages: Optional[Dict[str, Dict[str, str]]] = None):
        self.message = message
        self.errors = errors
        self.pages = pages or {}
        super().__init__(self.message)


def _error_content(
    request: Request,
    error: str,
    message: str,
    error_type: str,
    **details: Any,
) -> Dict[str, Any]:
    content = {
        "error": error,
        "message": message,
        "correlation_id": getattr(request.state, "correlation_id", "unknown"),
        "status": "error",
        "type": error_type,
    }
    content.update(details)
    return content


def _request_context(request: Request) -> Dict[str, Any]:
    return {
        "correlation_id": getattr(request.state, "correlation_id", "unknown"),
        "path": str(request.url.path),
        "method": request.method,
    }


def _format_pydantic_errors(errors) -> list:
    return [
        {
            "field": ".".join(str(x) for x in error["loc"]),
            "message": error["msg"],
            "type": error["type"],
        }
        for error in errors
    ]


async def journey_validation_exception_handler(
    request: Request, exc: JourneyValidationError
) -> JSONResponse:
    """Handle wizard state that fails validation."""
    logger.warning(
        f"Journey validation failed: {exc.message}",
        extra={"fields": list(exc.errors), **_request_context(request)}
    )

    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=_error_content(
            request,
            "JOURNEY_VALIDATION_ERROR",
            exc.message,
            "journey_validation_error",
            errors=exc.errors,
            pages=exc.pages,
        )
    )


async def sequence_persistence_exception_handler(
    request: Request, exc: SequencePersistenceError
) -> JSONResponse:
    """Handle failures of the sequences API."""
    logger.error(
        f"Sequence persistence error: {exc.message}",
        extra={"upstream_status": exc.status_code, **_request_context(request)}
    )

    return JSONResponse(
        status_code=status.HTTP_502_BAD_GATEWAY,
        content=_error_content(
            request,
            "SEQUENCE_PERSISTENCE_ERROR",
            exc.message,
            "persistence_error",
            upstream_status=exc.status_code,
        )
    )


async def journey_input_exception_handler(request: Request, exc: ValueError) -> JSONResponse:
    """Handle invalid flow or trigger operations."""
    logger.warning(
        f"Invalid journey input: {exc}",
        extra={"exception_type": type(exc).__name__, **_request_context(request)}
    )

    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=_error_content(request, "INVALID_JOURNEY", str(exc), "journey_input_error")
    )


async def submission_in_progress_exception_handler(
    request: Request, exc: SubmissionInProgressError
) -> JSONResponse:
    """Handle a submit while another one is still running."""
    logger.warning("Submission already in progress", extra=_request_context(request))

    return JSONResponse(
        status_code=status.HTTP_409_CONFLICT,
        content=_error_content(request, ERROR_RESPONSES[409], str(exc), "submission_conflict")
    )


async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    """Handle HTTP exceptions."""
    logger.warning(
        f"HTTP exception: {exc.status_code} - {exc.detail}",
        extra={"status_code": exc.status_code, **_request_context(request)}
    )

    return JSONResponse(
        status_code=exc.status_code,
        content=_error_content(
            request,
            ERROR_RESPONSES.get(exc.status_code, "HTTP_ERROR"),
            str(exc.detail),
            "http_error",
        )
    )


async def request_validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Handle request validation errors."""
    logger.warning("Request validation error", extra=_request_context(request))

    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=_error_content(
            request,
            "REQUEST_VALIDATION_ERROR",
            "Invalid request data",
            "validation_error",
            details=_format_pydantic_errors(exc.errors()),
        )
    )


async def pydantic_validation_exception_handler(
    request: Request, exc: ValidationError
) -> JSONResponse:
    """Handle Pydantic validation errors raised inside endpoints."""
    logger.warning(f"Pydantic validation error: {exc}", extra=_request_context(request))

    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=_error_content(
            request,
            "SCHEMA_VALIDATION_ERROR",
            "Invalid data format",
            "schema_validation_error",
            details=_format_pydantic_errors(exc.errors()),
        )
    )


async def general_exception_handler(
    request: Request, exc: Exception
) -> JSONResponse:
    """Handle general exceptions, including compile invariant violations."""
    logger.error(
        f"Unhandled exception: {type(exc).__name__} - {str(exc)}",
        extra={
            "exception_type": type(exc).__name__,
            "traceback": traceback.format_exc(),
            **_request_context(request),
        },
        exc_info=True
    )

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_error_content(
            request,
            "INTERNAL_SERVER_ERROR",
            "An unexpected error occurred",
            "internal_error",
        )
    )


def setup_exception_handlers(app: FastAPI) -> None:
    """Setup all exception handlers for the application."""
    # Journey exceptions
    app.add_exception_handler(JourneyValidationError, journey_validation_exception_handler)
    app.add_exception_handler(SequencePersistenceError, sequence_persistence_exception_handler)
    app.add_exception_handler(SubmissionInProgressError, submission_in_progress_exception_handler)
    app.add_exception_handler(FlowModelError, journey_input_exception_handler)
    app.add_exception_handler(TriggerSelectionError, journey_input_exception_handler)

    # Pydantic validation errors
    app.add_exception_handler(ValidationError, pydantic_validation_exception_handler)

    # Framework exceptions
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_exception_handler)

    # Catch-all for unexpected exceptions
    app.add_exception_handler(Exception, general_exception_handler)
