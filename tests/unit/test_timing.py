"""
Unit tests for timing resolution and the AI timing advisor.
"""

import json
import math

import httpx
import pytest

from journey_builder.models.journey import StepTiming, StepType
from journey_builder.services.flow.flow_model import new_step
from journey_builder.services.timing.timing_advisor import TimingAdvisor, fallback_suggestion
from journey_builder.services.timing.timing_resolver import (
    format_timing,
    resolve_step_timing,
    resolve_wait_ms,
    to_ms,
)

TIMING_URL = "http://timing.test/analyze"


class TestToMs:
    """Test unit conversion."""

    @pytest.mark.parametrize("value,unit,expected", [
        (5, "hours", 18_000_000),
        (1, "days", 86_400_000),
        (10, "minutes", 600_000),
        (0.5, "hours", 1_800_000),
        (0, "days", 0),
    ])
    def test_known_units(self, value, unit, expected):
        assert to_ms(value, unit) == expected

    def test_negative_value_is_zero(self):
        assert to_ms(-3, "hours") == 0

    @pytest.mark.parametrize("value", [math.nan, math.inf, "abc", None, True])
    def test_invalid_values_are_zero(self, value):
        assert to_ms(value, "hours") == 0

    def test_unknown_unit_falls_back_to_hours(self):
        assert to_ms(2, "fortnights") == 7_200_000

    def test_result_is_int(self):
        assert isinstance(to_ms(1.5, "minutes"), int)

    def test_huge_finite_value_does_not_overflow(self):
        assert to_ms(1e302, "days") == 0
        assert to_ms(1e12, "minutes") == 60_000_000_000_000_000


class TestResolveTiming:
    """Test timing precedence."""

    def test_override_wins(self):
        step = new_step(StepType.WAIT, timing=StepTiming(value=5, unit="hours"), step_id="w")
        overrides = {"w": StepTiming(value=1, unit="days")}

        assert resolve_step_timing(step, overrides).unit == "days"
        assert resolve_wait_ms(step, overrides) == 86_400_000

    def test_step_timing_used_without_override(self):
        step = new_step(StepType.WAIT, timing=StepTiming(value=5, unit="hours"), step_id="w")

        assert resolve_wait_ms(step, {"other": StepTiming(value=1)}) == 18_000_000

    def test_default_is_zero(self):
        step = new_step(StepType.SEND_SMS)

        assert resolve_wait_ms(step) == 0

    def test_format_timing(self):
        assert format_timing(StepTiming(value=5, unit="hours")) == "5 hours"
        assert format_timing(StepTiming(value=1, unit="days")) == "1 day"
        assert format_timing(StepTiming(value=1.5, unit="hours")) == "1.5 hours"


def advisor_with(handler, **kwargs):
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return TimingAdvisor(url=TIMING_URL, enabled=True, http_client=client, **kwargs)


class TestTimingAdvisor:
    """Test AI timing suggestions and their fallback."""

    def test_fallback_values(self):
        email = fallback_suggestion("email")
        sms = fallback_suggestion("sms")

        assert (email.delay, email.unit, email.confidence) == (3, "hours", 75)
        assert sms.delay == 2
        assert email.is_fallback and sms.is_fallback

    @pytest.mark.asyncio
    async def test_successful_suggestion(self):
        captured = {}

        def handler(request: httpx.Request) -> httpx.Response:
            captured["body"] = json.loads(request.content)
            return httpx.Response(200, json={
                "success": True,
                "optimalTiming": {"delay": 4, "unit": "hours", "confidence": 88},
                "reasoning": "Customers open email in the evening",
            })

        suggestion = await advisor_with(handler).suggest("biz-1", "email", customer_id="c-1")

        assert suggestion.delay == 4
        assert suggestion.confidence == 88
        assert suggestion.is_fallback is False
        assert captured["body"] == {
            "businessId": "biz-1",
            "channel": "email",
            "customerId": "c-1",
            "triggerType": "review_request",
            "customerTimezone": None,
        }

    @pytest.mark.asyncio
    async def test_error_status_falls_back(self):
        def handler(request):
            return httpx.Response(500, json={"error": "boom"})

        suggestion = await advisor_with(handler).suggest("biz-1", "sms")

        assert suggestion == fallback_suggestion("sms")

    @pytest.mark.asyncio
    async def test_unsuccessful_body_falls_back(self):
        def handler(request):
            return httpx.Response(200, json={"success": False, "error": "no data"})

        suggestion = await advisor_with(handler).suggest("biz-1", "email")

        assert suggestion.is_fallback

    @pytest.mark.asyncio
    async def test_malformed_body_falls_back(self):
        def handler(request):
            return httpx.Response(200, content=b"not json")

        suggestion = await advisor_with(handler).suggest("biz-1", "email")

        assert suggestion.is_fallback

    @pytest.mark.asyncio
    async def test_transport_error_falls_back(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        suggestion = await advisor_with(handler).suggest("biz-1", "email")

        assert suggestion.is_fallback

    @pytest.mark.asyncio
    async def test_disabled_makes_no_request(self):
        def handler(request):
            raise AssertionError("no request expected")

        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        advisor = TimingAdvisor(url=TIMING_URL, enabled=False, http_client=client)

        suggestion = await advisor.suggest("biz-1", "email")

        assert suggestion.is_fallback

    @pytest.mark.asyncio
    async def test_invalid_url_falls_back(self):
        def handler(request):
            raise httpx.InvalidURL("Invalid port: 'abc'")

        suggestion = await advisor_with(handler).suggest("biz-1", "sms")

        assert suggestion == fallback_suggestion("sms")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("delay", ["NaN", "Infinity", "-1"])
    async def test_unusable_delay_falls_back(self, delay):
        body = (
            '{"success": true, "optimalTiming": {"delay": %s, "unit": "hours", "confidence": 90}}'
            % delay
        ).encode()

        def handler(request):
            return httpx.Response(200, content=body, headers={"content-type": "application/json"})

        suggestion = await advisor_with(handler).suggest("biz-1", "email")

        assert suggestion.is_fallback
