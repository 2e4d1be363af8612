"""External API clients."""

from .middesk_client import HttpMiddeskClient
from .isoftpull_client import HttpISoftpullClient
from .sos_client import HttpSosClient
from .sandbox import (
    SandboxBusinessVerificationClient,
    SandboxCreditCheckClient,
    SandboxRegistrationCheckClient,
    sandbox_providers,
)

__all__ = [
    "HttpMiddeskClient",
    "HttpISoftpullClient",
    "HttpSosClient",
    "SandboxBusinessVerificationClient",
    "SandboxCreditCheckClient",
    "SandboxRegistrationCheckClient",
    "sandbox_providers",
]
