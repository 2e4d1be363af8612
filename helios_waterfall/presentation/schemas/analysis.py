"""Analysis-related Pydantic schemas."""

import datetime as dt
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class TransactionSchema(BaseModel):
    """One extracted bank-statement line."""

    date: dt.date = Field(..., description="Posting date", examples=["2024-01-05"])
    description: str = Field(
        "",
        max_length=500,
        description="Statement description",
        examples=["ACME PAYROLL DIRECT DEP"],
    )
    amount: Optional[Decimal] = Field(
        None,
        description="Signed amount in dollars; non-numeric values are treated as missing",
        examples=[2500.00],
    )
    balance: Optional[Decimal] = Field(None, description="Running balance, if printed")
    category: Optional[str] = Field(None, max_length=100)

    @field_validator("amount", "balance", mode="before")
    @classmethod
    def coerce_money(cls, v: Any) -> Optional[Decimal]:
        """Unparseable amounts become None rather than failing the request."""
        if v is None or isinstance(v, bool):
            return None
        try:
            value = Decimal(str(v).replace(",", "").replace("$", "").strip())
        except InvalidOperation:
            return None
        return value if value.is_finite() else None


class AnalysisRequestSchema(BaseModel):
    """Schema for POST /v1/analysis request body."""

    model_config = ConfigDict(
        json_schema_extra={
            "examples": [
                {
                    "user_id": "biz_123",
                    "statement_id": "stmt_2024_01",
                    "owner_name": "Jane Doe",
                    "business_name": "Acme LLC",
                    "tax_id": "12-3456789",
                    "ssn": "123-45-6789",
                    "state": "CA",
                    "opening_balance": 1500.00,
                    "period_start": "2024-01-01",
                    "period_end": "2024-01-31",
                    "transactions": [
                        {"date": "2024-01-05", "description": "ACME PAYROLL", "amount": 2500.00},
                        {"date": "2024-01-09", "description": "RENT", "amount": -1200.00},
                    ],
                }
            ]
        }
    )

    user_id: str = Field(
        ...,
        min_length=1,
        max_length=255,
        description="Requesting user or business",
        examples=["biz_123"],
    )
    statement_id: Optional[str] = Field(None, max_length=255)
    owner_name: Optional[str] = Field(None, max_length=255)
    transactions: List[TransactionSchema] = Field(
        ...,
        description="Transactions extracted from the statement",
    )

    opening_balance: Optional[float | str] = Field(
        None,
        description="Balance at the start of the statement period (defaults to 0)",
    )
    period_start: Optional[dt.date] = None
    period_end: Optional[dt.date] = None
    account_id: Optional[str] = Field(None, max_length=255)
    business_name: Optional[str] = Field(None, max_length=255)
    tax_id: Optional[str] = Field(None, max_length=32)
    ssn: Optional[str] = Field(None, max_length=32)
    address: Optional[str] = Field(None, max_length=500)
    state: Optional[str] = Field(None, max_length=32)

    @field_validator("user_id")
    @classmethod
    def validate_user_id(cls, v: str) -> str:
        """Ensure user_id is not just whitespace."""
        if not v.strip():
            raise ValueError("user_id cannot be empty or whitespace")
        return v.strip()


class AnalysisResponseSchema(BaseModel):
    """Schema for POST /v1/analysis response body."""

    executive_summary: Dict[str, Any] = Field(
        ...,
        description="Final score, grade, risk level, recommendation and confidence",
    )
    helios_engine: Dict[str, Any] = Field(
        ...,
        description="Internal analysis: Veritas score, risk, income stability, financial summary",
    )
    external_verification: Dict[str, Any] = Field(
        ...,
        description="Provider results, errors, cost and execution order",
    )
    enhanced_risk_assessment: Dict[str, Any] = Field(
        ...,
        description="Base score, adjustments and final labels",
    )
    waterfall_analysis: Dict[str, Any] = Field(
        ...,
        description="Criteria gate decision, costs and stage timings",
    )
