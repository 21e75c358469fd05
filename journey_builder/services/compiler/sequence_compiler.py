"""
Sequence Compiler - turns the wizard state into one Sequence payload.
"""
import logging
import time
from typing import Any, Dict, List, Optional

from journey_builder.core.logging import JourneyLogger
from journey_builder.models.journey import Step, WizardState
from journey_builder.models.sequence import CompiledStep, SequencePayload
from journey_builder.observability.metrics import (
    JOURNEY_COMPILE_TIME,
    JOURNEY_SUBMIT_FAILURES,
    JOURNEYS_COMPILED,
    JOURNEYS_SUBMITTED,
    increment_metric,
    timer_metric,
)
from journey_builder.services.flow.flow_model import normalize
from journey_builder.services.messages.message_resolver import message_purpose, resolve_message
from journey_builder.services.messages.template_library import TemplateLibrary, get_template_library
from journey_builder.services.persistence.sequence_client import (
    SequencePersistenceError,
    SequencesAPIClient,
)
from journey_builder.services.timing.timing_resolver import resolve_wait_ms
from journey_builder.services.trigger.trigger_selector import compile_trigger
from journey_builder.utils.constants import DEFAULT_SEQUENCE_STATUS

logger = logging.getLogger(__name__)


class CompileInvariantError(AssertionError):
    """Raised when the normalized flow breaks a structural invariant."""
    pass


class SubmissionInProgressError(RuntimeError):
    """Raised when submit() is called while a submission is still running."""
    pass


class SequenceCompiler:
    """
    Compiles wizard state into a Sequence payload and submits it.

    Compilation is pure and deterministic: the same state always yields the
    same payload. It does not re-validate; callers gate on the validation
    engine before compiling.
    """

    def __init__(
        self,
        library: Optional[TemplateLibrary] = None,
        client: Optional[SequencesAPIClient] = None,
    ):
        self.library = library or get_template_library()
        self.client = client
        self.journey_logger = JourneyLogger("journey.compiler")
        self._submitting = False

    @property
    def is_submitting(self) -> bool:
        return self._submitting

    def compile(self, state: WizardState) -> SequencePayload:
        """
        Compile the wizard state.

        Args:
            state: Wizard state collected by the session

        Returns:
            Immutable SequencePayload ready for the persistence API

        Raises:
            CompileInvariantError: If the normalized flow does not hold
                exactly one trigger at position 0
        """
        start_time = time.perf_counter()

        flow = normalize(state.steps)
        self._check_flow(flow)

        steps = self._compile_steps(flow, state)
        trigger = compile_trigger(state.trigger)
        settings = state.settings

        payload = SequencePayload(
            name=state.name.strip(),
            description=state.description,
            trigger_type=trigger.source,
            trigger_event_type=trigger.canonical_event,
            allow_manual_enroll=state.trigger.manual_enabled,
            quiet_hours_start=settings.quiet_hours_start,
            quiet_hours_end=settings.quiet_hours_end,
            stop_if_review=settings.stop_if_review,
            rate_limit=settings.rate_limit,
            status=DEFAULT_SEQUENCE_STATUS,
            steps=steps,
        )

        compile_time_ms = (time.perf_counter() - start_time) * 1000
        increment_metric(JOURNEYS_COMPILED)
        timer_metric(JOURNEY_COMPILE_TIME, compile_time_ms)
        self.journey_logger.log_compile(
            sequence_name=payload.name,
            step_count=len(steps),
            compile_time_ms=compile_time_ms,
            trigger_type=payload.trigger_type,
        )
        return payload

    def _check_flow(self, flow: List[Step]) -> None:
        if not flow or not flow[0].is_trigger:
            raise CompileInvariantError("Flow must start with the trigger step")
        if sum(1 for step in flow if step.is_trigger) != 1:
            raise CompileInvariantError("Flow must contain exactly one trigger step")

    def _compile_steps(self, flow: List[Step], state: WizardState) -> List[CompiledStep]:
        compiled: List[CompiledStep] = []

        for step_index, step in enumerate(flow[1:], start=1):
            data: Dict[str, Any] = {
                "kind": step.type.value,
                "step_index": step_index,
                "wait_ms": resolve_wait_ms(step, state.timing_overrides),
                "config": dict(step.config),
            }
            if step.is_communication:
                data["message_purpose"] = message_purpose(step)
                data["message_config"] = resolve_message(step, self.library)
            compiled.append(CompiledStep(**data))

        return compiled

    async def submit(self, state: WizardState, request_id: Optional[str] = None) -> Dict[str, Any]:
        """
        Compile and persist the journey.

        Args:
            state: Wizard state to compile
            request_id: Correlation id for logging

        Returns:
            The sequences API response, unchanged

        Raises:
            SubmissionInProgressError: If a submission is already running
            SequencePersistenceError: If the sequences API call fails
        """
        if self._submitting:
            raise SubmissionInProgressError("A submission is already in progress")

        self._submitting = True
        try:
            payload = self.compile(state)
            client = self.client or SequencesAPIClient()

            try:
                response = await client.create_sequence(payload.to_request_body())
            except SequencePersistenceError as e:
                increment_metric(JOURNEY_SUBMIT_FAILURES)
                self.journey_logger.log_submission_error(
                    sequence_name=payload.name,
                    error=e.message,
                    status_code=e.status_code,
                    request_id=request_id,
                )
                raise

            increment_metric(JOURNEYS_SUBMITTED)
            sequence_id = response.get("id") if isinstance(response, dict) else None
            self.journey_logger.log_submission_success(
                sequence_name=payload.name,
                sequence_id=str(sequence_id) if sequence_id is not None else None,
                request_id=request_id,
            )
            return response
        finally:
            self._submitting = False

