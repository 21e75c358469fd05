"""
Unit tests for the wizard session and journey recipes.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest
from pydantic import ValidationError

from journey_builder.models.journey import StepType, WizardState
from journey_builder.services.compiler.sequence_compiler import SequenceCompiler
from journey_builder.services.flow.flow_model import FlowModelError, find_step
from journey_builder.services.messages.template_library import MESSAGE_TEMPLATES
from journey_builder.services.persistence.sequence_client import SequencePersistenceError
from journey_builder.services.timing.timing_advisor import TimingAdvisor, TimingSuggestion, fallback_suggestion
from journey_builder.services.trigger.trigger_selector import TriggerSelectionError
from journey_builder.services.validation.page_validator import WizardPage
from journey_builder.services.wizard.recipes import JOURNEY_RECIPES, build_state_from_recipe, list_recipes
from journey_builder.services.wizard.session import WizardSession, WizardSessionError


@pytest.fixture
def persistence_client():
    client = MagicMock()
    client.create_sequence = AsyncMock(return_value={"id": "seq-1"})
    return client


@pytest.fixture
def session(persistence_client):
    return WizardSession(compiler=SequenceCompiler(client=persistence_client))


def fill_valid(session):
    session.set_details(name="Thank you journey")
    session.select_crm("jobber")
    session.toggle_trigger_event("job_completed")
    email = session.add_step(StepType.SEND_EMAIL)
    return email


class TestSessionEditing:
    """Test mutators delegating to the pure operations."""

    def test_new_session_has_trigger(self, session):
        assert len(session.state.steps) == 1
        assert session.state.steps[0].is_trigger
        assert session.page == WizardPage.BASICS

    def test_add_insert_move_remove(self, session):
        email = session.add_step(StepType.SEND_EMAIL)
        sms = session.add_step(StepType.SEND_SMS)
        wait = session.insert_step(StepType.WAIT, 1)

        assert [s.id for s in session.state.steps[1:]] == [wait.id, email.id, sms.id]

        session.move_step(sms.id, "up")
        assert [s.id for s in session.state.steps[1:]] == [wait.id, sms.id, email.id]

        session.remove_step(wait.id)
        assert [s.id for s in session.state.steps[1:]] == [sms.id, email.id]

    def test_remove_drops_timing_override(self, session):
        wait = session.add_step(StepType.WAIT)
        session.set_step_timing(wait.id, 3, "days")
        assert wait.id in session.state.timing_overrides

        session.remove_step(wait.id)

        assert wait.id not in session.state.timing_overrides

    def test_remove_trigger_keeps_overrides_and_trigger(self, session):
        session.remove_step("trigger")

        assert session.state.steps[0].is_trigger

    def test_timing_on_trigger_rejected(self, session):
        with pytest.raises(FlowModelError):
            session.set_step_timing("trigger", 1)

    def test_message_editing(self, session):
        email = session.add_step(StepType.SEND_EMAIL)

        session.set_message_purpose(email.id, "review_request")
        session.edit_message(email.id, subject="Quick favor?")
        step = find_step(session.state.steps, email.id)

        assert step.message.purpose == "review_request"
        assert step.message.subject == "Quick favor?"
        assert step.message.body is None

        session.load_message_template(email.id)
        step = find_step(session.state.steps, email.id)

        assert step.message.subject == MESSAGE_TEMPLATES["review_request"]["email"]["subject"]

    def test_message_on_wait_rejected(self, session):
        wait = session.add_step(StepType.WAIT)

        with pytest.raises(FlowModelError):
            session.edit_message(wait.id, body="hi")

    def test_trigger_selection(self, session):
        session.select_crm("qbo")
        session.toggle_trigger_event("invoice_paid")
        session.set_manual_enrollment(True)

        assert session.state.trigger.crm == "qbo"
        assert session.state.trigger.events == ["invoice_paid"]
        assert session.state.trigger.manual_enabled is True

        with pytest.raises(TriggerSelectionError):
            session.toggle_trigger_event("job_completed")

    def test_update_settings_validates(self, session):
        session.update_settings(quiet_hours_start="21:30", stop_if_review=False)

        assert session.state.settings.quiet_hours_start == "21:30"
        assert session.state.settings.quiet_hours_end == "08:00"
        assert session.state.settings.stop_if_review is False

        with pytest.raises(ValidationError):
            session.update_settings(quiet_hours_end="8pm")

    @pytest.mark.parametrize("entered,stored", [("250", 250), (40, 40), ("", 100), (0, 100), ("abc", 100)])
    def test_rate_limit_falls_back_to_default(self, session, entered, stored):
        session.update_settings(rate_limit=entered)

        assert session.state.settings.rate_limit == stored


class TestSessionNavigation:
    """Test page gating and events."""

    def test_basics_blocks_and_publishes_scroll_event(self, session):
        events = []
        session.subscribe(events.append)

        assert session.next_page() is False

        assert session.page == WizardPage.BASICS
        assert set(session.errors) == {"name", "trigger"}
        assert events == [{"event": "scroll_to_first_error", "page": "basics", "field": "name"}]

    def test_flow_gate_blocks_without_publishing(self, session):
        events = []
        session.subscribe(events.append)
        session.set_details(name="Journey")
        session.set_manual_enrollment(True)
        session.add_step(StepType.WAIT)

        assert session.next_page() is True
        assert session.next_page() is False

        assert session.page == WizardPage.FLOW
        assert "steps" in session.errors
        assert events == []

    def test_walk_to_review_and_back(self, session):
        fill_valid(session)

        for _ in range(5):
            assert session.next_page() is True
        assert session.page == WizardPage.REVIEW
        assert session.next_page() is False

        assert session.previous_page() is True
        assert session.page == WizardPage.SETTINGS

    def test_go_to_only_backwards(self, session):
        fill_valid(session)
        session.next_page()
        session.next_page()

        assert session.go_to(WizardPage.REVIEW) is False
        assert session.go_to(WizardPage.BASICS) is True
        assert session.page == WizardPage.BASICS

    def test_previous_on_basics_is_noop(self, session):
        assert session.previous_page() is False

    def test_unsubscribe(self, session):
        events = []
        session.subscribe(events.append)
        session.unsubscribe(events.append)

        session.next_page()

        assert events == []


class TestSessionSubmit:
    """Test submission from the review page."""

    @pytest.mark.asyncio
    async def test_submit_only_from_review(self, session):
        with pytest.raises(WizardSessionError):
            await session.submit()

    @pytest.mark.asyncio
    async def test_submit_success_resets_session(self, session, persistence_client):
        fill_valid(session)
        while session.next_page():
            pass

        response = await session.submit()

        assert response == {"id": "seq-1"}
        body = persistence_client.create_sequence.await_args.args[0]
        assert body["name"] == "Thank you journey"
        assert body["trigger_type"] == "jobber"
        assert session.page == WizardPage.BASICS
        assert session.state.name == ""

    @pytest.mark.asyncio
    async def test_submit_blocked_by_validation(self, session, persistence_client):
        email = fill_valid(session)
        while session.next_page():
            pass
        session.remove_step(email.id)

        assert await session.submit() is None

        assert "steps" in session.errors
        persistence_client.create_sequence.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_persistence_failure_keeps_state(self, session, persistence_client):
        persistence_client.create_sequence.side_effect = SequencePersistenceError("down", 503)
        fill_valid(session)
        while session.next_page():
            pass

        with pytest.raises(SequencePersistenceError):
            await session.submit()

        assert session.page == WizardPage.REVIEW
        assert session.state.name == "Thank you journey"
        assert session.is_submitting is False

    def test_close_discards_everything(self, session):
        fill_valid(session)
        session.next_page()

        session.close()

        assert session.state == WizardState(steps=session.state.steps)
        assert len(session.state.steps) == 1
        assert session.page == WizardPage.BASICS


class TestTimingSuggestions:
    """Test AI timing hints."""

    @pytest.mark.asyncio
    async def test_suggestion_stored_not_applied(self, session):
        advisor = MagicMock(spec=TimingAdvisor)
        advisor.suggest = AsyncMock(return_value=TimingSuggestion(4, "hours", 90, "Evenings work"))
        session.advisor = advisor
        sms = session.add_step(StepType.SEND_SMS)

        suggestion = await session.request_timing_suggestion(sms.id, "biz-1")

        assert suggestion.delay == 4
        assert session.timing_suggestions[sms.id] == suggestion
        assert sms.id not in session.state.timing_overrides
        assert advisor.suggest.await_args.kwargs["channel"] == "sms"

    @pytest.mark.asyncio
    async def test_disabled_toggle_skips_advisor(self, session):
        advisor = MagicMock(spec=TimingAdvisor)
        advisor.suggest = AsyncMock(return_value=fallback_suggestion("email"))
        session.advisor = advisor
        session.set_ai_timing(False)
        email = session.add_step(StepType.SEND_EMAIL)

        assert await session.request_timing_suggestion(email.id, "biz-1") is None
        advisor.suggest.assert_not_awaited()


class TestRecipes:
    """Test starter journeys."""

    def test_list_recipes(self):
        keys = [recipe["key"] for recipe in list_recipes()]

        assert keys == list(JOURNEY_RECIPES)

    def test_job_completed_review(self):
        state = build_state_from_recipe("job_completed_review")

        assert [step.type for step in state.steps] == [
            StepType.TRIGGER, StepType.SEND_EMAIL, StepType.WAIT, StepType.SEND_SMS,
        ]
        assert state.steps[2].timing.value == 5
        assert state.trigger.crm == "jobber"
        assert state.trigger.events == ["job_completed"]

    def test_service_reminder_is_manual(self):
        state = build_state_from_recipe("service_reminder")

        assert state.trigger.manual_enabled is True
        assert state.trigger.crm is None
        assert state.steps[-1].message.purpose == "follow_up"

    def test_recipes_compile(self):
        compiler = SequenceCompiler()
        for key in JOURNEY_RECIPES:
            payload = compiler.compile(build_state_from_recipe(key))
            assert payload.steps

    def test_fresh_ids_each_time(self):
        first = build_state_from_recipe("invoice_paid_review")
        second = build_state_from_recipe("invoice_paid_review")

        assert first.steps[1].id != second.steps[1].id

    def test_unknown_recipe(self):
        with pytest.raises(KeyError):
            build_state_from_recipe("birthday")
