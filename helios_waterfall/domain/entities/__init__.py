"""Domain Entities - Core business objects."""

from .context import StatementContext, UserContext
from .transaction import Transaction
from .verification import (
    BusinessVerification,
    BusinessVerificationRequest,
    CreditCheckRequest,
    CreditReport,
    RegistrationCheckRequest,
    RegistrationRecord,
)

__all__ = [
    "BusinessVerification",
    "BusinessVerificationRequest",
    "CreditCheckRequest",
    "CreditReport",
    "RegistrationCheckRequest",
    "RegistrationRecord",
    "StatementContext",
    "Transaction",
    "UserContext",
]
