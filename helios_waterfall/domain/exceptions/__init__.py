"""Domain Exceptions - Business rule violations and domain errors."""

from .base import DomainException
from .analysis import (
    InvalidStatementDataException,
    InvalidTransactionDataException,
)
from .provider import (
    ProviderConfigurationException,
    ProviderException,
    ProviderTimeoutException,
)

__all__ = [
    "DomainException",
    "InvalidStatementDataException",
    "InvalidTransactionDataException",
    "ProviderConfigurationException",
    "ProviderException",
    "ProviderTimeoutException",
]
