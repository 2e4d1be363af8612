"""HTTP implementation of CreditCheckClient (iSoftpull)."""

from typing import Any, Dict

import httpx

from helios_waterfall.core.config import settings
from helios_waterfall.domain.entities import CreditCheckRequest, CreditReport
from helios_waterfall.domain.exceptions import (
    ProviderConfigurationException,
    ProviderException,
)
from helios_waterfall.domain.interfaces import CreditCheckClient

from .base import HttpProviderClient


def validate_credit_request(request: CreditCheckRequest) -> None:
    """
    Raises:
        ProviderConfigurationException: If the SSN is missing
    """
    if not request.ssn:
        raise ProviderConfigurationException("isoftpull", "ssn is required")


class HttpISoftpullClient(HttpProviderClient, CreditCheckClient):
    """HTTP client for iSoftpull soft credit pulls."""

    provider_name = "isoftpull"

    def __init__(
        self,
        base_url: str | None = None,
        api_key: str | None = None,
        api_secret: str | None = None,
        timeout: float | None = None,
        max_retries: int | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        super().__init__(
            base_url=base_url or settings.isoftpull_api_url,
            timeout=timeout or settings.isoftpull_timeout,
            max_retries=max_retries if max_retries is not None else settings.provider_max_retries,
            headers={
                "api-key": api_key if api_key is not None else settings.isoftpull_api_key,
                "api-secret": api_secret if api_secret is not None else settings.isoftpull_api_secret,
            },
            transport=transport,
        )

    async def check_credit(self, request: CreditCheckRequest) -> CreditReport:
        validate_credit_request(request)

        payload: Dict[str, Any] = {"ssn": request.ssn}
        if request.owner_name:
            first, _, last = request.owner_name.partition(" ")
            payload["first_name"] = first
            payload["last_name"] = last
        if request.address:
            payload["address"] = request.address

        data = await self._request("POST", "/api/v2/reports", json=payload)
        return self._parse(data)

    def _parse(self, data: Dict[str, Any]) -> CreditReport:
        raw_score = data.get("credit_score", data.get("score"))
        try:
            credit_score = int(raw_score) if raw_score is not None else None
        except (TypeError, ValueError):
            raise ProviderException(
                provider=self.provider_name,
                message=f"isoftpull returned a non-numeric credit score: {raw_score!r}",
            )

        return CreditReport(
            credit_score=credit_score,
            risk_grade=data.get("risk_grade"),
            tradelines=data.get("tradelines"),
            inquiries=data.get("inquiries"),
            risk_factors=tuple(data.get("risk_factors") or ()),
        )
