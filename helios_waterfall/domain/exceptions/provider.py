"""External verification provider exceptions."""

from .base import DomainException


class ProviderException(DomainException):
    """Raised when a verification provider returns an error."""

    http_status = 502

    def __init__(self, provider: str, message: str, status_code: int | None = None):
        super().__init__(
            message=message,
            code="PROVIDER_ERROR",
        )
        self.provider = provider
        self.status_code = status_code


class ProviderTimeoutException(ProviderException):
    """Raised when a verification provider times out."""

    def __init__(self, provider: str):
        super().__init__(
            provider=provider,
            message=f"{provider} request timed out",
        )
        self.code = "PROVIDER_TIMEOUT"


class ProviderConfigurationException(ProviderException):
    """Raised when a provider call cannot be made with the data at hand."""

    def __init__(self, provider: str, message: str):
        super().__init__(provider=provider, message=message)
        self.code = "PROVIDER_NOT_CONFIGURED"
