"""
Validation Engine - per-page gates of the journey wizard.

Each gate is a pure function of the wizard state returning a field -> message
map. An empty map means the page may be left with "Next". UI reactions such
as scrolling to the first error are left to subscribers of the session.
"""
import logging
from enum import Enum
from typing import Callable, Dict, List, Optional

from journey_builder.models.journey import WizardState
from journey_builder.services.flow.flow_model import communication_steps, non_trigger_steps
from journey_builder.utils.constants import CRM_OPTIONS, CRM_TRIGGER_EVENTS

logger = logging.getLogger(__name__)

ErrorMap = Dict[str, str]


class WizardPage(str, Enum):
    """Wizard pages in navigation order."""
    BASICS = "basics"
    FLOW = "flow"
    MESSAGES = "messages"
    TIMING = "timing"
    SETTINGS = "settings"
    REVIEW = "review"


PAGE_ORDER: List[WizardPage] = list(WizardPage)


def _validate_basics(state: WizardState) -> ErrorMap:
    errors: ErrorMap = {}

    if not state.name or not state.name.strip():
        errors["name"] = "Journey name is required"

    trigger = state.trigger
    if not trigger.crm and not trigger.manual_enabled:
        errors["trigger"] = "Select a CRM trigger or enable manual enrollment"
    elif trigger.crm and trigger.crm not in CRM_OPTIONS:
        errors["trigger"] = f"Unknown CRM: {trigger.crm}"
    elif trigger.crm and not trigger.events:
        errors["trigger_events"] = "Select at least one trigger event for the chosen CRM"
    elif trigger.crm:
        unknown = [event for event in trigger.events if event not in CRM_TRIGGER_EVENTS.get(trigger.crm, [])]
        if unknown:
            errors["trigger_events"] = (
                f"Events not available for {CRM_OPTIONS[trigger.crm]}: {', '.join(unknown)}"
            )

    return errors


def _validate_flow(state: WizardState) -> ErrorMap:
    if not non_trigger_steps(state.steps):
        return {"steps": "Add at least one step after the trigger"}
    if not communication_steps(state.steps):
        return {"steps": "Add at least one email or SMS step"}
    return {}


def _no_rules(state: WizardState) -> ErrorMap:
    # empty templates and default timings are valid so the operator can finish later
    return {}


PAGE_RULES: Dict[WizardPage, Callable[[WizardState], ErrorMap]] = {
    WizardPage.BASICS: _validate_basics,
    WizardPage.FLOW: _validate_flow,
    WizardPage.MESSAGES: _no_rules,
    WizardPage.TIMING: _no_rules,
    WizardPage.SETTINGS: _no_rules,
    WizardPage.REVIEW: _no_rules,
}


def validate_page(page: WizardPage, state: WizardState) -> ErrorMap:
    """
    Run the gate for one wizard page.

    Args:
        page: Page being left
        state: Current wizard state

    Returns:
        Field -> message map; empty when the page is valid
    """
    errors = PAGE_RULES[WizardPage(page)](state)
    if errors:
        logger.debug(
            "Page validation failed",
            extra={"page": WizardPage(page).value, "fields": list(errors)}
        )
    return errors


def validate_all(state: WizardState) -> ErrorMap:
    """Merged error map of every page, checked before submission."""
    errors: ErrorMap = {}
    for page in PAGE_ORDER:
        errors.update(validate_page(page, state))
    return errors


def validate_by_page(state: WizardState) -> Dict[str, ErrorMap]:
    return {page.value: validate_page(page, state) for page in PAGE_ORDER}


def first_error_page(state: WizardState) -> Optional[WizardPage]:
    """First page whose gate fails, or None when everything passes."""
    for page in PAGE_ORDER:
        if validate_page(page, state):
            return page
    return None


def first_error_field(errors: ErrorMap) -> Optional[str]:
    return next(iter(errors), None)
