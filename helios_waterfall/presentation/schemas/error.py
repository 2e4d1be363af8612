"""Error body returned by the exception handlers."""

from pydantic import BaseModel, Field


class ErrorResponseSchema(BaseModel):
    """`error` is a stable code, `message` is for humans."""

    error: str = Field(
        ...,
        description="Error code",
        examples=["INVALID_TRANSACTION_DATA"],
    )
    message: str = Field(
        ...,
        description="Human-readable error message",
        examples=["Transaction 3: date is missing or invalid"],
    )
    request_id: str | None = Field(
        None,
        description="Request ID for tracing",
    )
