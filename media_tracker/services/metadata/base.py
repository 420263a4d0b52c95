"""Shared HTTP plumbing for metadata provider clients."""

import logging
from typing import Any

import httpx

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10.0


class ProviderClient:
    """
    Base for JSON-over-HTTP metadata providers.

    Every request opens a short-lived AsyncClient. Failures are logged
    and reported as None so callers can fall back to another provider.
    """

    name = "provider"
    base_url = ""

    def __init__(
        self,
        api_key: str,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.api_key = api_key
        self.timeout = timeout
        self.transport = transport

    async def _get_json(self, path: str, params: dict[str, Any]) -> Any:
        """
        GET ``base_url + path`` and decode the JSON body.

        Returns:
            Decoded JSON, or None on timeout, HTTP error, non-2xx status
            or an undecodable body.
        """
        url = f"{self.base_url}{path}"
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self.transport
            ) as client:
                response = await client.get(url, params=params)
        except httpx.TimeoutException:
            logger.warning(f"{self.name} request to {path} timed out after {self.timeout}s")
            return None
        except httpx.HTTPError as e:
            logger.warning(f"{self.name} request to {path} failed: {e}")
            return None

        if not response.is_success:
            logger.warning(f"{self.name} request to {path} returned {response.status_code}")
            return None

        try:
            return response.json()
        except ValueError as e:
            logger.warning(f"{self.name} returned invalid JSON for {path}: {e}")
            return None
