"""HTTP implementation of BusinessVerificationClient (Middesk)."""

from typing import Any, Dict

import httpx

from helios_waterfall.core.config import settings
from helios_waterfall.domain.entities import (
    BusinessVerification,
    BusinessVerificationRequest,
)
from helios_waterfall.domain.exceptions import ProviderConfigurationException
from helios_waterfall.domain.interfaces import BusinessVerificationClient

from .base import HttpProviderClient

VERIFIED_STATUSES = {"approved", "verified"}
REJECTED_STATUSES = {"rejected", "failed", "not_verified"}


def validate_business_request(request: BusinessVerificationRequest) -> None:
    """
    Raises:
        ProviderConfigurationException: If name or tax id is missing
    """
    if not request.business_name:
        raise ProviderConfigurationException("middesk", "business_name is required")
    if not request.tax_id:
        raise ProviderConfigurationException("middesk", "tax_id is required")


class HttpMiddeskClient(HttpProviderClient, BusinessVerificationClient):
    """
    HTTP client for Middesk business verification.

    The provider's review status maps onto `verified`: approved -> True,
    rejected -> False, anything still in review -> None.
    """

    provider_name = "middesk"

    def __init__(
        self,
        base_url: str | None = None,
        api_key: str | None = None,
        timeout: float | None = None,
        max_retries: int | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        key = api_key if api_key is not None else settings.middesk_api_key
        super().__init__(
            base_url=base_url or settings.middesk_api_url,
            timeout=timeout or settings.middesk_timeout,
            max_retries=max_retries if max_retries is not None else settings.provider_max_retries,
            headers={"Authorization": f"Bearer {key}"},
            transport=transport,
        )

    async def verify_business(
        self, request: BusinessVerificationRequest
    ) -> BusinessVerification:
        validate_business_request(request)

        payload: Dict[str, Any] = {
            "name": request.business_name,
            "tin": {"tin": request.tax_id},
        }
        if request.address:
            payload["addresses"] = [{"full_address": request.address}]
        if request.state:
            payload["formation_state"] = request.state

        data = await self._request("POST", "/v1/businesses", json=payload)
        return self._parse(data)

    def _parse(self, data: Dict[str, Any]) -> BusinessVerification:
        status = str(data.get("status") or "").lower()
        if status in VERIFIED_STATUSES:
            verified = True
        elif status in REJECTED_STATUSES:
            verified = False
        else:
            verified = None

        return BusinessVerification(
            verified=verified,
            business_name=data.get("name"),
            verification_score=data.get("score"),
            status=status or None,
            reference_id=data.get("id"),
        )
