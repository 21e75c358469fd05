"""
Sequences API client - persists compiled journeys.
"""
import logging
from typing import Any, Dict, Optional

import httpx

from journey_builder.core.config import get_settings

logger = logging.getLogger(__name__)


class SequencePersistenceError(Exception):
    """Raised when the sequences API cannot store a journey."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class SequencesAPIClient:
    """
    HTTP client for the sequence-create endpoint.

    A single request per call with no retry. The response JSON is returned
    unchanged; its shape belongs to the sequences service.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        timeout: Optional[float] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Initialize the client.

        Args:
            base_url: Sequences API root (if None, uses settings)
            api_key: Bearer token (if None, uses settings)
            timeout: Request timeout in seconds (if None, uses settings)
            http_client: Pre-built client, mainly for tests
        """
        config = get_settings().sequences_api_config
        self.base_url = (base_url or config["base_url"]).rstrip("/")
        self.api_key = api_key if api_key is not None else config["api_key"]
        self.timeout = timeout or config["timeout"]
        self._http_client = http_client

    @property
    def sequences_url(self) -> str:
        return f"{self.base_url}/sequences"

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    async def create_sequence(self, body: Dict[str, Any]) -> Dict[str, Any]:
        """
        Create a sequence from a compiled request body.

        Args:
            body: Sequence-create request body

        Returns:
            The API's JSON response

        Raises:
            SequencePersistenceError: On transport errors, non-2xx status or
                a body that is not JSON
        """
        try:
            response = await self._post(body)
        except httpx.HTTPError as e:
            logger.error(
                "Sequences API unreachable",
                extra={"url": self.sequences_url, "error": str(e)}
            )
            raise SequencePersistenceError(f"Failed to reach sequences API: {e}") from e

        if response.is_error:
            message = self._error_message(response)
            logger.error(
                "Sequences API rejected the sequence",
                extra={"status_code": response.status_code, "error": message}
            )
            raise SequencePersistenceError(message, status_code=response.status_code)

        try:
            return response.json()
        except ValueError as e:
            raise SequencePersistenceError(
                "Sequences API returned a non-JSON response",
                status_code=response.status_code,
            ) from e

    async def _post(self, body: Dict[str, Any]) -> httpx.Response:
        if self._http_client is not None:
            return await self._http_client.post(
                self.sequences_url, json=body, headers=self._headers(), timeout=self.timeout
            )
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            return await client.post(self.sequences_url, json=body, headers=self._headers())

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        default = f"Failed to create sequence (HTTP {response.status_code})"
        if not response.headers.get("content-type", "").startswith("application/json"):
            return default
        try:
            data = response.json()
        except ValueError:
            return default
        if isinstance(data, dict):
            error = data.get("error") or data.get("message")
            if isinstance(error, dict):
                error = error.get("message")
            if error:
                return str(error)
        return default
