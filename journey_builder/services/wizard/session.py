"""
Wizard Session - in-memory state machine behind the journey builder.

The session owns a single WizardState and replaces it through the pure flow,
trigger and message functions. Page transitions are gated by the validation
engine; UI reactions are delivered to subscribers as plain event dicts.
"""
import logging
from typing import Any, Callable, Dict, List, Optional

from journey_builder.core.config import get_settings
from journey_builder.models.journey import (
    JourneySettings,
    Step,
    StepMessage,
    StepTiming,
    StepType,
    WizardState,
)
from journey_builder.observability.metrics import TIMING_FALLBACKS, increment_metric
from journey_builder.services.compiler.sequence_compiler import SequenceCompiler
from journey_builder.services.flow import flow_model
from journey_builder.services.flow.flow_model import FlowModelError
from journey_builder.services.messages.message_resolver import load_template, select_purpose
from journey_builder.services.timing.timing_advisor import TimingAdvisor, TimingSuggestion
from journey_builder.services.trigger import trigger_selector
from journey_builder.services.validation.page_validator import (
    PAGE_ORDER,
    WizardPage,
    first_error_field,
    validate_all,
    validate_page,
)
from journey_builder.utils.constants import EVENT_SCROLL_TO_FIRST_ERROR

logger = logging.getLogger(__name__)

Subscriber = Callable[[Dict[str, Any]], None]


class WizardSessionError(Exception):
    """Raised for actions the session does not allow in its current page."""
    pass


class WizardSession:
    """Single active journey-building session."""

    def __init__(
        self,
        state: Optional[WizardState] = None,
        compiler: Optional[SequenceCompiler] = None,
        advisor: Optional[TimingAdvisor] = None,
    ):
        self.state = self._fresh_state(state)
        self.page = WizardPage.BASICS
        self.errors: Dict[str, str] = {}
        self.ai_timing_enabled = True
        self.timing_suggestions: Dict[str, TimingSuggestion] = {}
        self.compiler = compiler or SequenceCompiler()
        self.advisor = advisor
        self._subscribers: List[Subscriber] = []

    @staticmethod
    def _fresh_state(state: Optional[WizardState] = None) -> WizardState:
        if state is None:
            settings = get_settings()
            state = WizardState(settings=JourneySettings(
                quiet_hours_start=settings.DEFAULT_QUIET_HOURS_START,
                quiet_hours_end=settings.DEFAULT_QUIET_HOURS_END,
            ))
        return state.model_copy(update={"steps": flow_model.normalize(state.steps)})

    # Subscribers

    def subscribe(self, callback: Subscriber) -> None:
        self._subscribers.append(callback)

    def unsubscribe(self, callback: Subscriber) -> None:
        if callback in self._subscribers:
            self._subscribers.remove(callback)

    def _publish(self, event: Dict[str, Any]) -> None:
        for callback in list(self._subscribers):
            callback(event)

    # Flow

    def _set_steps(self, steps: List[Step]) -> None:
        self.state = self.state.model_copy(update={"steps": steps})

    def add_step(self, step_type: StepType, **kwargs: Any) -> Step:
        """Append a new step and return it."""
        step = flow_model.new_step(step_type, **kwargs)
        self._set_steps(flow_model.append(self.state.steps, step))
        return step

    def insert_step(self, step_type: StepType, index: int, **kwargs: Any) -> Step:
        step = flow_model.new_step(step_type, **kwargs)
        self._set_steps(flow_model.insert(self.state.steps, step, index))
        return step

    def remove_step(self, step_id: str) -> None:
        """Remove a step together with its timing override and suggestion."""
        self._set_steps(flow_model.remove(self.state.steps, step_id))
        if flow_model.find_step(self.state.steps, step_id) is None:
            overrides = {
                key: timing for key, timing in self.state.timing_overrides.items() if key != step_id
            }
            self.state = self.state.model_copy(update={"timing_overrides": overrides})
            self.timing_suggestions.pop(step_id, None)

    def move_step(self, step_id: str, direction: str) -> None:
        self._set_steps(flow_model.move(self.state.steps, step_id, direction))

    def set_step_timing(self, step_id: str, value: float, unit: str = "hours") -> None:
        """Record a timing override for a non-trigger step."""
        step = self._get_step(step_id)
        if step.is_trigger:
            raise FlowModelError("The trigger step has no timing")

        overrides = dict(self.state.timing_overrides)
        overrides[step_id] = StepTiming(value=value, unit=unit)
        self.state = self.state.model_copy(update={"timing_overrides": overrides})

    # Messages

    def set_message_purpose(self, step_id: str, purpose: str) -> None:
        step = self._get_communication_step(step_id)
        self._replace_step(select_purpose(step, purpose))

    def edit_message(
        self,
        step_id: str,
        subject: Optional[str] = None,
        body: Optional[str] = None,
    ) -> None:
        """Set the subject and/or body the operator typed; None leaves a field as is."""
        step = self._get_communication_step(step_id)
        changes = {}
        if subject is not None:
            changes["subject"] = subject
        if body is not None:
            changes["body"] = body
        message = (step.message or StepMessage()).model_copy(update=changes)
        self._replace_step(step.model_copy(update={"message": message}))

    def load_message_template(self, step_id: str) -> None:
        step = self._get_communication_step(step_id)
        self._replace_step(load_template(step, self.compiler.library))

    def _get_step(self, step_id: str) -> Step:
        step = flow_model.find_step(self.state.steps, step_id)
        if step is None:
            raise FlowModelError(f"Step '{step_id}' not found in flow")
        return step

    def _get_communication_step(self, step_id: str) -> Step:
        step = self._get_step(step_id)
        if not step.is_communication:
            raise FlowModelError(f"Step '{step_id}' is not an email or SMS step")
        return step

    def _replace_step(self, step: Step) -> None:
        self._set_steps(
            flow_model.update_step(
                self.state.steps, step.id, message=step.message, timing=step.timing, config=step.config
            )
        )

    # Trigger and settings

    def select_crm(self, crm_id: str) -> None:
        trigger = trigger_selector.select_crm(self.state.trigger, crm_id)
        self.state = self.state.model_copy(update={"trigger": trigger})

    def toggle_trigger_event(self, event_key: str) -> None:
        trigger = trigger_selector.toggle_event(self.state.trigger, event_key)
        self.state = self.state.model_copy(update={"trigger": trigger})

    def set_manual_enrollment(self, enabled: bool) -> None:
        trigger = trigger_selector.set_manual_enrollment(self.state.trigger, enabled)
        self.state = self.state.model_copy(update={"trigger": trigger})

    def update_settings(self, **changes: Any) -> None:
        """Update behavior settings; values are validated (quiet hours must be HH:MM)."""
        settings = JourneySettings.model_validate({**self.state.settings.model_dump(), **changes})
        self.state = self.state.model_copy(update={"settings": settings})

    def set_details(self, name: Optional[str] = None, description: Optional[str] = None) -> None:
        changes = {}
        if name is not None:
            changes["name"] = name
        if description is not None:
            changes["description"] = description
        self.state = self.state.model_copy(update=changes)

    # Navigation

    def next_page(self) -> bool:
        """
        Advance one page if the current page's gate passes.

        Returns:
            True when the page changed
        """
        if self.page == WizardPage.REVIEW:
            return False

        errors = validate_page(self.page, self.state)
        self.errors = errors
        if errors:
            if self.page == WizardPage.BASICS:
                self._publish({
                    "event": EVENT_SCROLL_TO_FIRST_ERROR,
                    "page": self.page.value,
                    "field": first_error_field(errors),
                })
            return False

        self.page = PAGE_ORDER[PAGE_ORDER.index(self.page) + 1]
        return True

    def previous_page(self) -> bool:
        self.errors = {}
        if self.page == WizardPage.BASICS:
            return False
        self.page = PAGE_ORDER[PAGE_ORDER.index(self.page) - 1]
        return True

    def go_to(self, page: WizardPage) -> bool:
        """Jump back to an earlier page. Forward jumps are ignored."""
        page = WizardPage(page)
        if PAGE_ORDER.index(page) >= PAGE_ORDER.index(self.page):
            return False
        self.errors = {}
        self.page = page
        return True

    # Submission

    @property
    def is_submitting(self) -> bool:
        return self.compiler.is_submitting

    async def submit(self, request_id: Optional[str] = None) -> Optional[Dict[str, Any]]:
        """
        Validate every page, then compile and persist the journey.

        Returns:
            The sequences API response, or None when validation blocked the
            submission (the error map is left on ``errors``)

        Raises:
            WizardSessionError: If called from any page other than Review
            SequencePersistenceError: If the sequences API call fails
        """
        if self.page != WizardPage.REVIEW:
            raise WizardSessionError("Journeys can only be submitted from the review page")

        errors = validate_all(self.state)
        self.errors = errors
        if errors:
            logger.info("Submission blocked by validation", extra={"fields": list(errors)})
            return None

        response = await self.compiler.submit(self.state, request_id=request_id)
        self.close()
        return response

    def close(self) -> None:
        """Discard everything and start over on the Basics page."""
        self.state = self._fresh_state()
        self.page = WizardPage.BASICS
        self.errors = {}
        self.timing_suggestions = {}

    # AI timing

    def set_ai_timing(self, enabled: bool) -> None:
        self.ai_timing_enabled = bool(enabled)

    async def request_timing_suggestion(
        self,
        step_id: str,
        business_id: str,
        customer_id: Optional[str] = None,
        customer_timezone: Optional[str] = None,
    ) -> Optional[TimingSuggestion]:
        """
        Fetch a send-time hint for a communication step.

        The hint is stored on ``timing_suggestions`` only; it never changes
        the step's timing. Returns None when AI timing is switched off.
        """
        step = self._get_communication_step(step_id)
        if not self.ai_timing_enabled:
            return None

        advisor = self.advisor or TimingAdvisor()
        suggestion = await advisor.suggest(
            business_id=business_id,
            channel=step.channel,
            customer_id=customer_id,
            customer_timezone=customer_timezone,
        )
        if suggestion.is_fallback:
            increment_metric(TIMING_FALLBACKS, tags={"channel": step.channel})

        self.timing_suggestions[step_id] = suggestion
        return suggestion
