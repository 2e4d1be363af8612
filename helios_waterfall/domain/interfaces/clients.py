"""External verification client interfaces."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

from helios_waterfall.domain.entities import (
    BusinessVerification,
    BusinessVerificationRequest,
    CreditCheckRequest,
    CreditReport,
    RegistrationCheckRequest,
    RegistrationRecord,
)


class BusinessVerificationClient(ABC):
    """
    Abstract client for business identity verification (Middesk).
    """

    @abstractmethod
    async def verify_business(
        self, request: BusinessVerificationRequest
    ) -> BusinessVerification:
        """
        Verify that a business exists and matches the supplied identity.

        Args:
            request: Business name, tax id and address to verify

        Returns:
            The verification outcome

        Raises:
            ProviderException: If the provider returns an error
            ProviderTimeoutException: If the request times out
        """
        ...


class CreditCheckClient(ABC):
    """
    Abstract client for soft credit pulls (iSoftpull).
    """

    @abstractmethod
    async def check_credit(self, request: CreditCheckRequest) -> CreditReport:
        """
        Run a soft credit pull for the business owner.

        Args:
            request: Owner identity used for the pull

        Returns:
            The credit report

        Raises:
            ProviderException: If the provider returns an error
            ProviderTimeoutException: If the request times out
        """
        ...


class RegistrationCheckClient(ABC):
    """
    Abstract client for Secretary of State registration lookups.
    """

    @abstractmethod
    async def verify_registration(
        self, request: RegistrationCheckRequest
    ) -> RegistrationRecord:
        """
        Look up the business registration with the state.

        Args:
            request: Business name and state of registration

        Returns:
            The registration record

        Raises:
            ProviderException: If the provider returns an error
            ProviderTimeoutException: If the request times out
        """
        ...


@dataclass(frozen=True)
class VerificationProviders:
    """The set of provider clients available to the executor.

    A missing client means the provider is not configured; the executor
    reports it as skipped.
    """

    middesk: Optional[BusinessVerificationClient] = None
    isoftpull: Optional[CreditCheckClient] = None
    sos: Optional[RegistrationCheckClient] = None
