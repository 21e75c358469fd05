"""
Journey wizard models.

Pydantic models for the in-session wizard state: the ordered step list,
per-step timing and message content, trigger selections and behavior
settings. Everything here is built and mutated inside a single wizard
session and is compiled exactly once on submission.
"""

import re
from enum import Enum
from typing import Any, Dict, List, Optional
from uuid import uuid4

from pydantic import BaseModel, Field, field_validator

from journey_builder.utils.constants import (
    DEFAULT_MESSAGE_PURPOSE,
    DEFAULT_QUIET_HOURS_END,
    DEFAULT_QUIET_HOURS_START,
    DEFAULT_RATE_LIMIT,
    DEFAULT_TIMING_UNIT,
    DEFAULT_TIMING_VALUE,
    STEP_CHANNELS,
)

_HH_MM = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


class StepType(str, Enum):
    """Step type enumeration."""
    TRIGGER = "trigger"
    WAIT = "wait"
    SEND_EMAIL = "send_email"
    SEND_SMS = "send_sms"


class TimingUnit(str, Enum):
    """Timing unit enumeration."""
    MINUTES = "minutes"
    HOURS = "hours"
    DAYS = "days"


class StepTiming(BaseModel):
    """Declared delay for a step.

    Values are stored as entered; the timing resolver sanitizes negative or
    non-finite values and unknown units at compile time.
    """
    value: float = DEFAULT_TIMING_VALUE
    unit: str = DEFAULT_TIMING_UNIT


class StepMessage(BaseModel):
    """Message content attached to a communication step."""
    purpose: str = DEFAULT_MESSAGE_PURPOSE
    subject: Optional[str] = None
    body: Optional[str] = None


class Step(BaseModel):
    """One node of the journey before compilation."""
    id: str = Field(default_factory=lambda: uuid4().hex)
    type: StepType
    timing: Optional[StepTiming] = None
    message: Optional[StepMessage] = None
    config: Dict[str, Any] = Field(default_factory=dict)

    @property
    def is_trigger(self) -> bool:
        return self.type == StepType.TRIGGER

    @property
    def is_communication(self) -> bool:
        return self.type in (StepType.SEND_EMAIL, StepType.SEND_SMS)

    @property
    def channel(self) -> Optional[str]:
        """Message channel ("email" or "sms") for communication steps."""
        return STEP_CHANNELS.get(self.type.value)


class TriggerSelection(BaseModel):
    """In-session trigger state: CRM choice, its events and manual enrollment."""
    crm: Optional[str] = None
    events: List[str] = Field(default_factory=list)  # selection order
    manual_enabled: bool = False


class JourneySettings(BaseModel):
    """Behavior settings carried into the compiled sequence."""
    quiet_hours_start: str = DEFAULT_QUIET_HOURS_START
    quiet_hours_end: str = DEFAULT_QUIET_HOURS_END
    stop_if_review: bool = True
    rate_limit: int = DEFAULT_RATE_LIMIT

    @field_validator('quiet_hours_start', 'quiet_hours_end')
    @classmethod
    def validate_quiet_hours(cls, v):
        """Quiet hours must be HH:MM (24h)."""
        if not isinstance(v, str) or not _HH_MM.match(v):
            raise ValueError(f'Quiet hours must be in HH:MM format, got {v!r}')
        return v

    @field_validator('rate_limit', mode='before')
    @classmethod
    def validate_rate_limit(cls, v):
        """Daily message cap; blank, zero or unparseable input falls back to the default."""
        if isinstance(v, bool):
            return DEFAULT_RATE_LIMIT
        try:
            limit = int(v)
        except (TypeError, ValueError, OverflowError):
            return DEFAULT_RATE_LIMIT
        return limit if limit > 0 else DEFAULT_RATE_LIMIT


class WizardState(BaseModel):
    """Single aggregate holding everything the wizard collects."""
    name: str = ""
    description: str = ""
    steps: List[Step] = Field(default_factory=list)
    timing_overrides: Dict[str, StepTiming] = Field(default_factory=dict)
    trigger: TriggerSelection = Field(default_factory=TriggerSelection)
    settings: JourneySettings = Field(default_factory=JourneySettings)
