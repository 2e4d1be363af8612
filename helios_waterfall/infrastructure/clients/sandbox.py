"""
Deterministic sandbox implementations of the provider clients.

Used when provider_mode is "sandbox" (local development, demos, tests).
Results are derived from the request alone, so the same request always
yields the same result, and request validation matches the live clients.
"""

import hashlib

from helios_waterfall.domain.entities import (
    BusinessVerification,
    BusinessVerificationRequest,
    CreditCheckRequest,
    CreditReport,
    RegistrationCheckRequest,
    RegistrationRecord,
)
from helios_waterfall.domain.interfaces import (
    BusinessVerificationClient,
    CreditCheckClient,
    RegistrationCheckClient,
    VerificationProviders,
)

from .isoftpull_client import validate_credit_request
from .middesk_client import validate_business_request
from .sos_client import validate_registration_request

INACTIVE_MARKERS = ("INACTIVE", "DISSOLVED", "REVOKED")


def _digest(value: str) -> int:
    return int(hashlib.sha256(value.encode("utf-8")).hexdigest()[:8], 16)


class SandboxBusinessVerificationClient(BusinessVerificationClient):
    """Verifies any business whose tax id has nine digits."""

    async def verify_business(
        self, request: BusinessVerificationRequest
    ) -> BusinessVerification:
        validate_business_request(request)
        digits = "".join(ch for ch in request.tax_id if ch.isdigit())
        verified = len(digits) == 9
        return BusinessVerification(
            verified=verified,
            business_name=request.business_name,
            verification_score=0.95 if verified else 0.2,
            status="approved" if verified else "rejected",
            reference_id=f"sandbox-{_digest(request.tax_id):08x}",
        )


class SandboxCreditCheckClient(CreditCheckClient):
    """Credit score in [550, 849] derived from the SSN."""

    async def check_credit(self, request: CreditCheckRequest) -> CreditReport:
        validate_credit_request(request)
        credit_score = 550 + _digest(request.ssn) % 300
        return CreditReport(
            credit_score=credit_score,
            risk_grade="A" if credit_score >= 750 else "B" if credit_score >= 650 else "C",
            tradelines=3 + _digest(request.ssn) % 10,
            inquiries=_digest(request.ssn[::-1]) % 4,
        )


class SandboxRegistrationCheckClient(RegistrationCheckClient):
    """ACTIVE unless the business name marks it inactive or dissolved."""

    async def verify_registration(
        self, request: RegistrationCheckRequest
    ) -> RegistrationRecord:
        validate_registration_request(request)
        name = request.business_name.upper()
        status = "INACTIVE" if any(m in name for m in INACTIVE_MARKERS) else "ACTIVE"
        return RegistrationRecord(
            status=status,
            entity_name=request.business_name,
            state=request.state,
            formation_date="2019-01-15",
        )


def sandbox_providers() -> VerificationProviders:
    """All three sandbox clients."""
    return VerificationProviders(
        middesk=SandboxBusinessVerificationClient(),
        isoftpull=SandboxCreditCheckClient(),
        sos=SandboxRegistrationCheckClient(),
    )
