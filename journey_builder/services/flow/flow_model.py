"""
Flow Model - ordered journey step list and its invariants.

Every operation is pure: it returns a new list and never mutates the steps
it was given. The trigger step is always position 0 after ``normalize`` and
can be neither removed nor moved.
"""
import logging
from typing import Any, List, Optional

from journey_builder.models.journey import Step, StepMessage, StepTiming, StepType
from journey_builder.utils.constants import TRIGGER_STEP_ID

logger = logging.getLogger(__name__)

DIRECTIONS = ("up", "down")


class FlowModelError(ValueError):
    """Raised when a flow operation is given an invalid argument."""
    pass


def new_trigger_step() -> Step:
    """Create the trigger step that heads every flow."""
    return Step(id=TRIGGER_STEP_ID, type=StepType.TRIGGER)


def new_step(
    step_type: StepType,
    timing: Optional[StepTiming] = None,
    message: Optional[StepMessage] = None,
    step_id: Optional[str] = None,
    **config: Any,
) -> Step:
    """
    Build a non-trigger step.

    Communication steps get a ``custom`` message when none is given.
    """
    step_type = StepType(step_type)
    if step_type == StepType.TRIGGER:
        raise FlowModelError("Trigger steps are created by normalize(), not new_step()")

    if message is None and step_type in (StepType.SEND_EMAIL, StepType.SEND_SMS):
        message = StepMessage()

    data = {"type": step_type, "timing": timing, "message": message, "config": config}
    if step_id is not None:
        data["id"] = step_id
    return Step(**data)


def normalize(steps: List[Step]) -> List[Step]:
    """
    Guarantee exactly one trigger step at position 0.

    If the list is empty or does not start with a trigger, a fresh trigger is
    prepended and every other trigger is stripped. Idempotent.
    """
    if steps and steps[0].is_trigger:
        head = steps[0]
    else:
        head = new_trigger_step()
        if any(step.is_trigger for step in steps):
            logger.debug("Stripping misplaced trigger step(s) from flow")

    rest = [step for step in steps if not step.is_trigger]
    return [head] + rest


def append(steps: List[Step], step: Step) -> List[Step]:
    """Append a non-trigger step to the end of the flow."""
    _ensure_not_trigger(step)
    return normalize(list(steps) + [step])


def insert(steps: List[Step], step: Step, index: int) -> List[Step]:
    """
    Insert a non-trigger step at ``index``.

    Index 0 is accepted; normalize() then puts the trigger back in front.
    Out-of-range indexes are clamped to the list bounds.
    """
    _ensure_not_trigger(step)
    index = max(0, min(index, len(steps)))
    new_steps = list(steps)
    new_steps.insert(index, step)
    return normalize(new_steps)


def remove(steps: List[Step], step_id: str) -> List[Step]:
    """Remove the step with ``step_id``. The trigger is never removed."""
    target = find_step(steps, step_id)
    if target is None or target.is_trigger:
        return list(steps)
    return [step for step in steps if step.id != step_id]


def move(steps: List[Step], step_id: str, direction: str) -> List[Step]:
    """
    Swap a step with its neighbor in ``direction`` ("up" or "down").

    No-op at the list boundaries. The trigger counts as a boundary: it
    never moves and nothing moves above it.
    """
    if direction not in DIRECTIONS:
        raise FlowModelError(f"Unknown direction: {direction!r} (expected one of {DIRECTIONS})")

    new_steps = list(steps)
    index = _index_of(new_steps, step_id)
    if index is None or new_steps[index].is_trigger:
        return new_steps

    target = index - 1 if direction == "up" else index + 1
    if target < 0 or target >= len(new_steps) or new_steps[target].is_trigger:
        return new_steps

    new_steps[index], new_steps[target] = new_steps[target], new_steps[index]
    return new_steps


def update_step(steps: List[Step], step_id: str, **changes: Any) -> List[Step]:
    """Return a list where ``step_id`` is replaced by a copy carrying ``changes``."""
    if "type" in changes or "id" in changes:
        raise FlowModelError("A step's id and type cannot be changed")

    index = _index_of(steps, step_id)
    if index is None:
        raise FlowModelError(f"Step '{step_id}' not found in flow")

    new_steps = list(steps)
    new_steps[index] = steps[index].model_copy(update=changes, deep=True)
    return new_steps


def find_step(steps: List[Step], step_id: str) -> Optional[Step]:
    """Get a step by its id."""
    for step in steps:
        if step.id == step_id:
            return step
    return None


def non_trigger_steps(steps: List[Step]) -> List[Step]:
    return [step for step in steps if not step.is_trigger]


def communication_steps(steps: List[Step]) -> List[Step]:
    return [step for step in steps if step.is_communication]


def _index_of(steps: List[Step], step_id: str) -> Optional[int]:
    for index, step in enumerate(steps):
        if step.id == step_id:
            return index
    return None


def _ensure_not_trigger(step: Step) -> None:
    if step.is_trigger:
        raise FlowModelError("Only one trigger step is allowed and it is managed by the flow")
