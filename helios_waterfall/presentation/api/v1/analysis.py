"""Waterfall analysis API endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends

from helios_waterfall.application.dto import AnalysisRequest
from helios_waterfall.application.services import WaterfallAnalysisService
from helios_waterfall.core.dependencies import get_waterfall_service
from helios_waterfall.domain.entities import StatementContext, Transaction, UserContext
from helios_waterfall.presentation.schemas import (
    AnalysisRequestSchema,
    AnalysisResponseSchema,
    ErrorResponseSchema,
)

analysis_router = APIRouter(
    prefix="/analysis",
    responses={
        400: {"model": ErrorResponseSchema, "description": "Invalid statement data"},
    },
)


def _to_dto(request: AnalysisRequestSchema) -> AnalysisRequest:
    return AnalysisRequest(
        user_context=UserContext(
            user_id=request.user_id,
            statement_id=request.statement_id,
            owner_name=request.owner_name,
        ),
        transactions=tuple(
            Transaction(
                date=t.date,
                description=t.description,
                amount=t.amount,
                balance=t.balance,
                category=t.category,
            )
            for t in request.transactions
        ),
        statement_context=StatementContext(
            opening_balance=request.opening_balance,
            period_start=request.period_start,
            period_end=request.period_end,
            account_id=request.account_id,
            business_name=request.business_name,
            tax_id=request.tax_id,
            ssn=request.ssn,
            address=request.address,
            state=request.state,
        ),
    )


@analysis_router.post(
    "",
    response_model=AnalysisResponseSchema,
    status_code=200,
    summary="Run Waterfall Analysis",
    description="""Score a bank statement internally and, when warranted and affordable,
    enrich the score with external verification providers""",
    responses={
        200: {"description": "Analysis completed"},
    },
)
async def create_analysis(
    request: AnalysisRequestSchema,
    waterfall_service: Annotated[WaterfallAnalysisService, Depends(get_waterfall_service)],
) -> AnalysisResponseSchema:
    """
    Run the Helios Engine and the waterfall for one statement.

    Provider failures never fail the request; they are reported in
    external_verification.errors.
    """
    analysis = await waterfall_service.analyze(_to_dto(request))
    return AnalysisResponseSchema(**analysis.to_dict())
