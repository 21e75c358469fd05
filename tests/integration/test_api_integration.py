"""
Integration tests for API endpoints.

Requests go through the full application: tracking middleware, exception
handlers, routers and the real services. Only the sequences API is mocked.
"""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest
from fastapi.testclient import TestClient

from journey_builder.api.endpoints.journeys import get_compiler
from journey_builder.api.main import create_application
from journey_builder.core.config import get_settings
from journey_builder.services.compiler.sequence_compiler import SequenceCompiler
from journey_builder.services.persistence.sequence_client import (
    SequencePersistenceError,
    SequencesAPIClient,
)

API = get_settings().API_V1_STR


@pytest.mark.integration
class TestJourneyAPI:
    """Test journey endpoints."""

    @pytest.fixture
    def persistence_client(self):
        client = MagicMock()
        client.create_sequence = AsyncMock(return_value={"id": "seq-42", "status": "active"})
        return client

    @pytest.fixture
    def app(self, persistence_client):
        """Create FastAPI application with a mocked sequences API."""
        app = create_application()
        compiler = SequenceCompiler(client=persistence_client)
        app.dependency_overrides[get_compiler] = lambda: compiler
        return app

    @pytest.fixture
    def client(self, app):
        """Create test client."""
        return TestClient(app)

    def test_validate_valid_journey(self, client, sample_request_body):
        response = client.post(f"{API}/journeys/validate", json=sample_request_body)

        assert response.status_code == 200
        data = response.json()
        assert data["is_valid"] is True
        assert data["errors"] == {}
        assert set(data["pages"]) == {"basics", "flow", "messages", "timing", "settings", "review"}
        assert data["first_error_page"] is None

    def test_validate_empty_journey(self, client):
        response = client.post(f"{API}/journeys/validate", json={})

        data = response.json()
        assert data["is_valid"] is False
        assert set(data["errors"]) == {"name", "trigger", "steps"}
        assert data["first_error_page"] == "basics"

    def test_compile(self, client, sample_request_body):
        response = client.post(f"{API}/journeys/compile", json=sample_request_body)

        assert response.status_code == 200
        data = response.json()
        assert data["trigger_type"] == "jobber"
        assert data["trigger_event_type"] == "job_completed"
        assert [step["step_index"] for step in data["steps"]] == [1, 2, 3]
        assert data["steps"][1]["wait_ms"] == 18_000_000
        assert "message_config" not in data["steps"][1]
        assert data["steps"][2]["message_config"] == {"body": "Custom text"}

    def test_compile_invalid_journey(self, client, sample_request_body):
        sample_request_body["name"] = ""

        response = client.post(f"{API}/journeys/compile", json=sample_request_body)

        assert response.status_code == 422
        data = response.json()
        assert data["error"] == "JOURNEY_VALIDATION_ERROR"
        assert data["status"] == "error"
        assert "name" in data["errors"]
        assert data["correlation_id"]

    def test_preview(self, client, sample_request_body):
        response = client.post(f"{API}/journeys/preview", json=sample_request_body)

        assert response.status_code == 200
        data = response.json()
        assert data["labels"] == ["Trigger", "Email (review_request)", "Wait 5 hours", "SMS (custom)"]
        assert data["summary"]["total_steps"] == 3

    def test_submit(self, client, persistence_client, sample_request_body):
        response = client.post(
            f"{API}/journeys/submit",
            json=sample_request_body,
            headers={"X-Correlation-ID": "corr-1"},
        )

        assert response.status_code == 201
        assert response.json() == {"id": "seq-42", "status": "active"}
        assert response.headers["X-Correlation-ID"] == "corr-1"
        body = persistence_client.create_sequence.await_args.args[0]
        assert body["name"] == "Review Follow-up"

    def test_submit_persistence_failure(self, client, persistence_client, sample_request_body):
        persistence_client.create_sequence.side_effect = SequencePersistenceError("Sequences API down", 503)

        response = client.post(f"{API}/journeys/submit", json=sample_request_body)

        assert response.status_code == 502
        data = response.json()
        assert data["error"] == "SEQUENCE_PERSISTENCE_ERROR"
        assert data["type"] == "persistence_error"
        assert data["upstream_status"] == 503

    def test_submit_invalid_journey_not_persisted(self, client, persistence_client):
        response = client.post(f"{API}/journeys/submit", json={"name": "Only a name"})

        assert response.status_code == 422
        persistence_client.create_sequence.assert_not_awaited()

    def test_malformed_body(self, client):
        response = client.post(f"{API}/journeys/validate", json={"steps": [{"type": "fax"}]})

        assert response.status_code == 422
        assert response.json()["error"] == "REQUEST_VALIDATION_ERROR"

    def test_templates(self, client):
        response = client.get(f"{API}/journeys/templates")

        assert response.status_code == 200
        assert "review_request" in response.json()

    def test_recipes(self, client):
        response = client.get(f"{API}/journeys/recipes")

        assert response.status_code == 200
        assert {recipe["key"] for recipe in response.json()} == {
            "job_completed_review", "invoice_paid_review", "service_reminder",
        }

    def test_recipe_state_round_trips_to_compile(self, client):
        state = client.get(f"{API}/journeys/recipes/job_completed_review").json()

        response = client.post(f"{API}/journeys/compile", json=state)

        assert response.status_code == 200
        assert len(response.json()["steps"]) == 3

    def test_unknown_recipe(self, client):
        response = client.get(f"{API}/journeys/recipes/birthday")

        assert response.status_code == 404
        assert response.json()["error"] == "NOT_FOUND"

    def test_compile_huge_override_is_clamped(self, client, sample_request_body):
        sample_request_body["timing_overrides"] = {"wait-1": {"value": 1e302, "unit": "days"}}

        response = client.post(f"{API}/journeys/compile", json=sample_request_body)

        assert response.status_code == 200
        assert response.json()["steps"][1]["wait_ms"] == 0

    def test_compile_rejects_trigger_outside_catalog(self, client, sample_request_body):
        sample_request_body["trigger"] = {"crm": "zapier", "events": ["anything"], "manual_enabled": False}

        response = client.post(f"{API}/journeys/compile", json=sample_request_body)

        assert response.status_code == 422
        data = response.json()
        assert data["errors"]["trigger"] == "Unknown CRM: zapier"
        assert "basics" in data["pages"]

    def test_error_responses_documented(self, app):
        schema = app.openapi()

        responses = schema["paths"][f"{API}/journeys/submit"]["post"]["responses"]
        for code in ("409", "422", "502"):
            ref = responses[code]["content"]["application/json"]["schema"]["$ref"]
            assert ref.endswith("/ErrorResponse")


@pytest.mark.integration
class TestConcurrentSubmissions:
    """Test submissions from different operators running at the same time."""

    @pytest.mark.asyncio
    async def test_each_request_gets_its_own_compiler(self):
        first = await get_compiler()
        second = await get_compiler()

        assert first is not second

    @pytest.mark.asyncio
    async def test_overlapping_submits_both_succeed(self, monkeypatch, sample_request_body):
        received = []
        both_in_flight = asyncio.Event()

        async def slow_create_sequence(self, body):
            received.append(body["name"])
            if len(received) == 2:
                both_in_flight.set()
            await asyncio.wait_for(both_in_flight.wait(), timeout=5)
            return {"id": f"seq-{body['name']}"}

        monkeypatch.setattr(SequencesAPIClient, "create_sequence", slow_create_sequence)
        other_journey = dict(sample_request_body, name="Invoice Reminder")

        transport = httpx.ASGITransport(app=create_application())
        async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as client:
            first, second = await asyncio.gather(
                client.post(f"{API}/journeys/submit", json=sample_request_body),
                client.post(f"{API}/journeys/submit", json=other_journey),
            )

        assert (first.status_code, second.status_code) == (201, 201)
        assert sorted(received) == ["Invoice Reminder", "Review Follow-up"]
        assert first.json() == {"id": "seq-Review Follow-up"}

@pytest.mark.integration
class TestHealthAPI:
    """Test health and metrics endpoints."""

    @pytest.fixture
    def client(self):
        return TestClient(create_application())

    def test_root_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_api_health(self, client):
        response = client.get(f"{API}/health")

        assert response.status_code == 200
        assert "ai_timing" in response.json()["components"]

    def test_metrics_record_requests(self, client):
        client.get("/health")

        data = client.get(f"{API}/metrics").json()

        if data["enabled"]:
            assert any(key.startswith("http.requests") for key in data["counters"])
