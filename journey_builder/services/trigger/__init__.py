"""
Trigger selection services.
"""
from .trigger_selector import (
    TriggerSelectionError,
    available_events,
    compile_trigger,
    select_crm,
    set_manual_enrollment,
    toggle_event,
)

__all__ = [
    "TriggerSelectionError",
    "available_events",
    "compile_trigger",
    "select_crm",
    "set_manual_enrollment",
    "toggle_event",
]
