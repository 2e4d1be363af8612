"""HTTP implementation of RegistrationCheckClient (Secretary of State lookup)."""

from typing import Any, Dict

import httpx

from helios_waterfall.core.config import settings
from helios_waterfall.domain.entities import RegistrationCheckRequest, RegistrationRecord
from helios_waterfall.domain.exceptions import (
    ProviderConfigurationException,
    ProviderException,
)
from helios_waterfall.domain.interfaces import RegistrationCheckClient

from .base import HttpProviderClient


def validate_registration_request(request: RegistrationCheckRequest) -> None:
    """
    Raises:
        ProviderConfigurationException: If the business name is missing
    """
    if not request.business_name:
        raise ProviderConfigurationException("sos", "business_name is required")


class HttpSosClient(HttpProviderClient, RegistrationCheckClient):
    """
    HTTP client for the Secretary of State search service.

    The search service returns the best-matching entity; a 404 means no
    registration was found, which is reported as status NOT_FOUND rather
    than as an error.
    """

    provider_name = "sos"

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        max_retries: int | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        super().__init__(
            base_url=base_url or settings.sos_api_url,
            timeout=timeout or settings.sos_timeout,
            max_retries=max_retries if max_retries is not None else settings.provider_max_retries,
            transport=transport,
        )

    async def verify_registration(
        self, request: RegistrationCheckRequest
    ) -> RegistrationRecord:
        validate_registration_request(request)

        params: Dict[str, Any] = {"name": request.business_name}
        if request.state:
            params["state"] = request.state

        try:
            data = await self._request("GET", "/sos/search", params=params)
        except ProviderException as e:
            if e.status_code == 404:
                return RegistrationRecord(status="NOT_FOUND", state=request.state)
            raise

        return RegistrationRecord(
            status=data.get("status"),
            entity_name=data.get("entity_name") or data.get("name"),
            state=data.get("state") or request.state,
            formation_date=data.get("formation_date"),
        )
