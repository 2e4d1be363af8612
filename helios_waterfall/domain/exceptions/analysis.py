"""Analysis input domain exceptions."""

from .base import DomainException


class InvalidTransactionDataException(DomainException):
    """Raised when the transaction list is malformed and cannot be analyzed."""

    def __init__(self, message: str, index: int | None = None):
        if index is not None:
            message = f"Transaction {index}: {message}"
        super().__init__(
            message=message,
            code="INVALID_TRANSACTION_DATA",
        )
        self.index = index


class InvalidStatementDataException(DomainException):
    """Raised when statement metadata (e.g. opening balance) is invalid."""

    def __init__(self, message: str):
        super().__init__(
            message=message,
            code="INVALID_STATEMENT_DATA",
        )
