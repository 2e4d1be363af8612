"""Shared HTTP plumbing for verification provider clients."""

import asyncio
from typing import Any, Dict, Optional

import httpx
import structlog

from helios_waterfall.domain.exceptions import (
    ProviderException,
    ProviderTimeoutException,
)

logger = structlog.get_logger(__name__)


class HttpProviderClient:
    """
    Base for provider adapters that speak JSON over HTTP.

    Retries timeouts and 5xx responses with exponential backoff; 4xx
    responses fail immediately. Timeouts are enforced here, not by the
    engine.
    """

    provider_name = "provider"

    def __init__(
        self,
        base_url: str,
        timeout: float,
        max_retries: int = 2,
        headers: Optional[Dict[str, str]] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._max_retries = max(1, max_retries)
        self._headers = headers or {}
        self._transport = transport

    async def _request(
        self,
        method: str,
        path: str,
        json: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """
        Send a request and return the decoded JSON body.

        Raises:
            ProviderException: On 4xx, exhausted 5xx retries or bad payloads
            ProviderTimeoutException: When every attempt timed out
        """
        url = f"{self._base_url}{path}"
        last_exception: ProviderException | None = None

        for attempt in range(self._max_retries):
            try:
                async with httpx.AsyncClient(
                    timeout=self._timeout,
                    headers=self._headers,
                    transport=self._transport,
                ) as client:
                    response = await client.request(method, url, json=json, params=params)

                if response.status_code >= 500:
                    last_exception = ProviderException(
                        provider=self.provider_name,
                        message=f"{self.provider_name} error: HTTP {response.status_code}",
                        status_code=response.status_code,
                    )
                    logger.warning(
                        "provider_server_error",
                        provider=self.provider_name,
                        status_code=response.status_code,
                        attempt=attempt + 1,
                        max_retries=self._max_retries,
                    )
                elif response.status_code >= 400:
                    raise ProviderException(
                        provider=self.provider_name,
                        message=f"{self.provider_name} rejected request: {response.text}",
                        status_code=response.status_code,
                    )
                else:
                    try:
                        return response.json()
                    except ValueError:
                        raise ProviderException(
                            provider=self.provider_name,
                            message=f"{self.provider_name} returned invalid JSON",
                            status_code=response.status_code,
                        )

            except httpx.TimeoutException:
                last_exception = ProviderTimeoutException(self.provider_name)
                logger.warning(
                    "provider_timeout",
                    provider=self.provider_name,
                    attempt=attempt + 1,
                    max_retries=self._max_retries,
                )
            except httpx.HTTPError as e:
                last_exception = ProviderException(
                    provider=self.provider_name,
                    message=f"{self.provider_name} unreachable: {e}",
                )
                logger.warning(
                    "provider_unreachable",
                    provider=self.provider_name,
                    attempt=attempt + 1,
                    error=str(e),
                )

            # Exponential backoff
            if attempt < self._max_retries - 1:
                await asyncio.sleep(2**attempt * 0.1)

        raise last_exception or ProviderException(
            provider=self.provider_name,
            message=f"{self.provider_name} request failed",
        )
