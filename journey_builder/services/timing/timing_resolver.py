"""
Timing Resolver - converts declared step timing into absolute delays.
"""
import math
from typing import Any, Dict, Optional

from journey_builder.models.journey import Step, StepTiming
from journey_builder.utils.constants import (
    DEFAULT_TIMING_UNIT,
    DEFAULT_TIMING_VALUE,
    UNIT_MS,
)

DEFAULT_TIMING = StepTiming(value=DEFAULT_TIMING_VALUE, unit=DEFAULT_TIMING_UNIT)


def normalize_unit(unit: Any) -> str:
    """Return a known unit name; anything unrecognized becomes the default unit."""
    if isinstance(unit, str):
        candidate = unit.strip().lower()
        if candidate in UNIT_MS:
            return candidate
    value = getattr(unit, "value", None)
    if value in UNIT_MS:
        return value
    return DEFAULT_TIMING_UNIT


def normalize_value(value: Any) -> float:
    """Non-numeric, non-finite and negative values all become 0."""
    if isinstance(value, bool):
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(number) or number < 0:
        return 0.0
    return number


def to_ms(value: Any, unit: Any) -> int:
    """
    Convert a (value, unit) pair into milliseconds.

    Args:
        value: Non-negative number of units
        unit: "minutes", "hours" or "days"

    Returns:
        Delay in whole milliseconds, never negative
    """
    ms = normalize_value(value) * UNIT_MS[normalize_unit(unit)]
    if not math.isfinite(ms):
        return 0
    return int(round(ms))


def resolve_step_timing(
    step: Step,
    overrides: Optional[Dict[str, StepTiming]] = None,
) -> StepTiming:
    """
    Pick the timing that applies to a step.

    The override map wins over the step's own timing; with neither, the
    default of 0 hours applies.
    """
    if overrides and step.id in overrides:
        return overrides[step.id]
    if step.timing is not None:
        return step.timing
    return DEFAULT_TIMING


def resolve_wait_ms(step: Step, overrides: Optional[Dict[str, StepTiming]] = None) -> int:
    timing = resolve_step_timing(step, overrides)
    return to_ms(timing.value, timing.unit)


def format_timing(timing: StepTiming) -> str:
    """Human readable label, e.g. "5 hours" or "1 day"."""
    value = normalize_value(timing.value)
    unit = normalize_unit(timing.unit)
    if value == int(value):
        value = int(value)
    if value == 1:
        unit = unit[:-1]
    return f"{value} {unit}"
