"""
Shared fixtures for journey builder tests.
"""

import pytest

from journey_builder.models.journey import (
    StepMessage,
    StepTiming,
    StepType,
    TriggerSelection,
    WizardState,
)
from journey_builder.observability.metrics import get_metrics_service
from journey_builder.services.flow.flow_model import new_step, normalize


@pytest.fixture(autouse=True)
def reset_metrics():
    """Start every test with empty counters."""
    get_metrics_service().reset()
    yield
    get_metrics_service().reset()


@pytest.fixture
def email_step():
    return new_step(StepType.SEND_EMAIL, message=StepMessage(purpose="review_request"), step_id="email-1")


@pytest.fixture
def wait_step():
    return new_step(StepType.WAIT, timing=StepTiming(value=5, unit="hours"), step_id="wait-1")


@pytest.fixture
def sms_step():
    return new_step(StepType.SEND_SMS, message=StepMessage(body="Custom text"), step_id="sms-1")


@pytest.fixture
def sample_steps(email_step, wait_step, sms_step):
    """Trigger, review email, 5 hour wait and a custom SMS."""
    return normalize([email_step, wait_step, sms_step])


@pytest.fixture
def valid_state(sample_steps):
    """A journey that passes every page gate."""
    return WizardState(
        name="Review Follow-up",
        description="Ask for a review after the job",
        steps=sample_steps,
        trigger=TriggerSelection(crm="jobber", events=["job_completed"]),
    )


@pytest.fixture
def sample_request_body(valid_state):
    """The valid journey as the UI would post it."""
    return valid_state.model_dump(mode="json")
