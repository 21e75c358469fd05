"""
Flow preview labels and summary counts for the review page.
"""
from typing import Dict, List, Optional

from journey_builder.models.journey import Step, StepTiming, StepType
from journey_builder.services.flow.flow_model import normalize
from journey_builder.services.messages.message_resolver import message_purpose
from journey_builder.services.timing.timing_resolver import (
    format_timing,
    resolve_step_timing,
    resolve_wait_ms,
)

STEP_LABELS = {
    StepType.TRIGGER: "Trigger",
    StepType.SEND_EMAIL: "Email",
    StepType.SEND_SMS: "SMS",
    StepType.WAIT: "Wait",
}


def describe_step(step: Step, timing_overrides: Optional[Dict[str, StepTiming]] = None) -> str:
    label = STEP_LABELS[step.type]
    if step.type == StepType.WAIT:
        return f"{label} {format_timing(resolve_step_timing(step, timing_overrides))}"
    if step.is_communication:
        return f"{label} ({message_purpose(step)})"
    return label


def describe_flow(
    steps: List[Step],
    timing_overrides: Optional[Dict[str, StepTiming]] = None,
) -> List[str]:
    """
    Short labels for every step of the normalized flow, in order.

    Example: ["Trigger", "Email (review_request)", "Wait 5 hours", "SMS (custom)"]
    """
    return [describe_step(step, timing_overrides) for step in normalize(steps)]


def summarize_flow(
    steps: List[Step],
    timing_overrides: Optional[Dict[str, StepTiming]] = None,
) -> Dict[str, int]:
    """Step counts by kind plus the summed delay of every non-trigger step."""
    flow = normalize(steps)[1:]
    return {
        "total_steps": len(flow),
        "email_steps": sum(1 for step in flow if step.type == StepType.SEND_EMAIL),
        "sms_steps": sum(1 for step in flow if step.type == StepType.SEND_SMS),
        "wait_steps": sum(1 for step in flow if step.type == StepType.WAIT),
        "total_wait_ms": sum(resolve_wait_ms(step, timing_overrides) for step in flow),
    }
