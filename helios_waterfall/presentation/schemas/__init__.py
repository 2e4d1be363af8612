"""Pydantic schemas for API request/response validation."""

from .analysis import (
    AnalysisRequestSchema,
    AnalysisResponseSchema,
    TransactionSchema,
)
from .error import ErrorResponseSchema

__all__ = [
    "AnalysisRequestSchema",
    "AnalysisResponseSchema",
    "TransactionSchema",
    "ErrorResponseSchema",
]
