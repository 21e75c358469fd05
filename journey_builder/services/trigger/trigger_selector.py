"""
Trigger Selector - CRM selection, trigger events and manual enrollment.

Pure functions over TriggerSelection. The manual-enrollment toggle is
independent of the CRM choice; a journey can have both.
"""
import logging
from typing import List

from journey_builder.models.journey import TriggerSelection
from journey_builder.models.sequence import TriggerDescriptor
from journey_builder.utils.constants import (
    CRM_OPTIONS,
    CRM_TRIGGER_EVENTS,
    MANUAL_TRIGGER_SOURCE,
)

logger = logging.getLogger(__name__)


class TriggerSelectionError(ValueError):
    """Raised for unknown CRMs or events that do not belong to the selected CRM."""
    pass


def available_events(crm_id: str) -> List[str]:
    """Trigger events offered by a CRM."""
    if crm_id not in CRM_OPTIONS:
        raise TriggerSelectionError(f"Unknown CRM: {crm_id!r}")
    return list(CRM_TRIGGER_EVENTS.get(crm_id, []))


def select_crm(selection: TriggerSelection, crm_id: str) -> TriggerSelection:
    """
    Select a CRM as the trigger source.

    Choosing a different CRM clears the events picked for the old one.
    Re-selecting the current CRM deselects it and clears its events.
    """
    if crm_id not in CRM_OPTIONS:
        raise TriggerSelectionError(f"Unknown CRM: {crm_id!r}")

    if selection.crm == crm_id:
        logger.debug(f"CRM '{crm_id}' deselected")
        return selection.model_copy(update={"crm": None, "events": []})

    return selection.model_copy(update={"crm": crm_id, "events": []})


def toggle_event(selection: TriggerSelection, event_key: str) -> TriggerSelection:
    """Add or remove a trigger event for the selected CRM, keeping selection order."""
    if selection.crm is None:
        raise TriggerSelectionError("Select a CRM before choosing trigger events")

    if event_key not in CRM_TRIGGER_EVENTS.get(selection.crm, []):
        raise TriggerSelectionError(
            f"Event {event_key!r} is not available for {CRM_OPTIONS[selection.crm]}"
        )

    if event_key in selection.events:
        events = [event for event in selection.events if event != event_key]
    else:
        events = selection.events + [event_key]
    return selection.model_copy(update={"events": events})


def set_manual_enrollment(selection: TriggerSelection, enabled: bool) -> TriggerSelection:
    return selection.model_copy(update={"manual_enabled": bool(enabled)})


def compile_trigger(selection: TriggerSelection) -> TriggerDescriptor:
    """
    Resolve the trigger descriptor.

    Source is the CRM id, "manual" when only manual enrollment is on, or
    None. Every selected event is kept on the descriptor, but only the
    first one (canonical_event) is written to the compiled sequence.
    """
    if selection.crm:
        source = selection.crm
    elif selection.manual_enabled:
        source = MANUAL_TRIGGER_SOURCE
    else:
        source = None

    events = list(selection.events) if selection.crm else []
    return TriggerDescriptor(
        source=source,
        event_ids=events,
        canonical_event=events[0] if events else None,
    )
