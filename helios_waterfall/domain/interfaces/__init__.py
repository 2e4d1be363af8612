"""
Domain Interfaces (Ports)
"""

from .accounting import BudgetAccountant
from .clients import (
    BusinessVerificationClient,
    CreditCheckClient,
    RegistrationCheckClient,
    VerificationProviders,
)

__all__ = [
    "BudgetAccountant",
    "BusinessVerificationClient",
    "CreditCheckClient",
    "RegistrationCheckClient",
    "VerificationProviders",
]
