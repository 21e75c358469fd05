"""
Request and response models for the API.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from journey_builder.models.journey import WizardState


class JourneyRequest(WizardState):
    """Wizard state posted by the journey builder UI."""


class ValidationResponse(BaseModel):
    """Result of running every page gate."""

    is_valid: bool = Field(..., description="True when no page has errors")
    errors: Dict[str, str] = Field(
        default_factory=dict,
        description="Merged field -> message map"
    )
    pages: Dict[str, Dict[str, str]] = Field(
        default_factory=dict,
        description="Errors per wizard page"
    )
    first_error_page: Optional[str] = Field(
        default=None,
        description="First page whose gate fails"
    )


class FlowSummary(BaseModel):
    """Step counts of a flow."""

    total_steps: int
    email_steps: int
    sms_steps: int
    wait_steps: int
    total_wait_ms: int


class PreviewResponse(BaseModel):
    """Flow preview for the review page."""

    labels: List[str] = Field(..., description="Ordered step labels, trigger first")
    summary: FlowSummary


class RecipeSummary(BaseModel):
    """Recipe card."""

    key: str
    name: str
    description: str
    trigger: str
    steps: List[str]


class ErrorResponse(BaseModel):
    """Standard error response model."""

    error: str = Field(..., description="Error code")
    message: str = Field(..., description="Human readable error message")
    correlation_id: Optional[str] = Field(default=None, description="Request correlation ID")
    status: str = Field(default="error")
    type: str = Field(..., description="Error category")
    details: Optional[Any] = Field(default=None, description="Additional error details")
