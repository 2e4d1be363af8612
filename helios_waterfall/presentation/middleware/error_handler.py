"""Exception handlers mapping the error taxonomy onto HTTP responses."""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
import structlog

from helios_waterfall.domain.exceptions import (
    DomainException,
    InvalidStatementDataException,
    InvalidTransactionDataException,
)
from .request_context import get_request_id

logger = structlog.get_logger(__name__)


def _error_response(status_code: int, body: dict) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={**body, "request_id": get_request_id()},
    )


def error_handler_middleware(app: FastAPI) -> None:
    """
    Register exception handlers with the FastAPI app.

    Input errors answer 400. Provider errors are normally absorbed by the
    executor; one that escapes answers with its own `http_status`.
    Anything else is a 500 with a generic message.
    """

    @app.exception_handler(InvalidTransactionDataException)
    @app.exception_handler(InvalidStatementDataException)
    async def invalid_input_handler(
        request: Request,
        exc: DomainException,
    ) -> JSONResponse:
        logger.info(
            "invalid_analysis_input",
            code=exc.code,
            message=exc.message,
            index=getattr(exc, "index", None),
        )
        return _error_response(exc.http_status, exc.to_dict())

    @app.exception_handler(DomainException)
    async def domain_exception_handler(
        request: Request,
        exc: DomainException,
    ) -> JSONResponse:
        logger.warning("domain_exception", code=exc.code, message=exc.message)
        return _error_response(exc.http_status, exc.to_dict())

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(
        request: Request,
        exc: Exception,
    ) -> JSONResponse:
        logger.exception(
            "unhandled_exception",
            error=str(exc),
            error_type=type(exc).__name__,
        )
        return _error_response(
            500,
            {"error": "INTERNAL_ERROR", "message": "An unexpected error occurred."},
        )
