"""
AI Timing Advisor - best-effort send-time suggestions.

Suggestions are UI hints only. Any failure of the timing service is
recovered with a deterministic fallback and never surfaces as an error.
"""
import logging
import math
from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx

from journey_builder.core.config import get_settings
from journey_builder.utils.constants import (
    AI_TIMING_FALLBACK_CONFIDENCE,
    AI_TIMING_FALLBACK_DELAY,
    AI_TIMING_FALLBACK_UNIT,
    AI_TIMING_TRIGGER_TYPE,
    UNIT_MS,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TimingSuggestion:
    """Suggested delay for a communication step."""
    delay: float
    unit: str
    confidence: float
    reasoning: str
    is_fallback: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "delay": self.delay,
            "unit": self.unit,
            "confidence": self.confidence,
            "reasoning": self.reasoning,
            "is_fallback": self.is_fallback,
        }


def fallback_suggestion(channel: str) -> TimingSuggestion:
    """Deterministic suggestion used whenever the timing service cannot answer."""
    delay = AI_TIMING_FALLBACK_DELAY.get(channel, AI_TIMING_FALLBACK_DELAY["email"])
    return TimingSuggestion(
        delay=delay,
        unit=AI_TIMING_FALLBACK_UNIT,
        confidence=AI_TIMING_FALLBACK_CONFIDENCE,
        reasoning=(
            f"Using fallback timing: {delay} hours after trigger "
            f"for optimal {channel} engagement."
        ),
        is_fallback=True,
    )


class TimingAdvisor:
    """
    Client for the AI timing analysis service.

    One request per call, no retry: on a transport error, an error status or
    an unusable body the fallback suggestion is returned instead.
    """

    def __init__(
        self,
        url: Optional[str] = None,
        enabled: Optional[bool] = None,
        timeout: Optional[float] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        config = get_settings().ai_timing_config
        self.url = url if url is not None else config["url"]
        self.enabled = config["enabled"] if enabled is None else enabled
        self.timeout = timeout or config["timeout"]
        self._http_client = http_client

    async def suggest(
        self,
        business_id: str,
        channel: str,
        customer_id: Optional[str] = None,
        customer_timezone: Optional[str] = None,
    ) -> TimingSuggestion:
        """
        Ask the timing service for the best delay on ``channel``.

        Args:
            business_id: Business the journey belongs to
            channel: "email" or "sms"
            customer_id: Optional customer to personalize for
            customer_timezone: Optional IANA timezone of the customer

        Returns:
            The service's suggestion, or the fallback on any failure
        """
        if not self.enabled or not self.url:
            logger.debug("AI timing disabled or not configured - using fallback")
            return fallback_suggestion(channel)

        request_body = {
            "businessId": business_id,
            "channel": channel,
            "customerId": customer_id,
            "triggerType": AI_TIMING_TRIGGER_TYPE,
            "customerTimezone": customer_timezone,
        }

        try:
            response = await self._post(request_body)
            response.raise_for_status()
            return self._parse(response.json())
        except (httpx.HTTPError, httpx.InvalidURL, ValueError, KeyError, TypeError, AttributeError) as e:
            logger.warning(
                "AI timing analysis failed - using fallback",
                extra={"channel": channel, "business_id": business_id, "error": str(e)}
            )
            return fallback_suggestion(channel)

    async def _post(self, body: Dict[str, Any]) -> httpx.Response:
        if self._http_client is not None:
            return await self._http_client.post(self.url, json=body, timeout=self.timeout)
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            return await client.post(self.url, json=body)

    def _parse(self, data: Dict[str, Any]) -> TimingSuggestion:
        if not data.get("success"):
            raise ValueError(data.get("error") or "Analysis failed")

        optimal = data["optimalTiming"]
        unit = optimal.get("unit", AI_TIMING_FALLBACK_UNIT)
        if unit not in UNIT_MS:
            raise ValueError(f"Unsupported timing unit: {unit!r}")

        delay = float(optimal["delay"])
        if not math.isfinite(delay) or delay < 0:
            raise ValueError(f"Unusable delay suggested: {delay!r}")

        return TimingSuggestion(
            delay=delay,
            unit=unit,
            confidence=float(optimal.get("confidence", data.get("confidence", 0))),
            reasoning=data.get("reasoning") or "",
        )
