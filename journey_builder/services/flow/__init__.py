"""
Journey flow services.
"""
from .flow_model import (
    FlowModelError,
    append,
    communication_steps,
    find_step,
    insert,
    move,
    new_step,
    non_trigger_steps,
    normalize,
    remove,
    update_step,
)
from .flow_preview import describe_flow, summarize_flow

__all__ = [
    "FlowModelError",
    "append",
    "communication_steps",
    "find_step",
    "insert",
    "move",
    "new_step",
    "non_trigger_steps",
    "normalize",
    "remove",
    "update_step",
    "describe_flow",
    "summarize_flow",
]
