"""
Shared test data and provider doubles.

Statements:
- healthy_statement: 12 transactions over a 31-day period, bi-weekly
  payroll, no NSF. Veritas 850 (A+), criteria score 100, all providers.
- thin_statement: 5 transactions, average balance $648.28. Veritas 764,
  criteria score 65, the gate does not proceed.
"""

import asyncio
from datetime import date, timedelta
from decimal import Decimal
from typing import List, Optional, Tuple

from helios_waterfall.domain.entities import (
    BusinessVerification,
    BusinessVerificationRequest,
    CreditCheckRequest,
    CreditReport,
    RegistrationCheckRequest,
    RegistrationRecord,
    StatementContext,
    Transaction,
    UserContext,
)
from helios_waterfall.domain.exceptions import ProviderException
from helios_waterfall.domain.interfaces import (
    BudgetAccountant,
    BusinessVerificationClient,
    CreditCheckClient,
    RegistrationCheckClient,
    VerificationProviders,
)

START = date(2024, 1, 1)

PAYROLL = "ACME CORP PAYROLL DIRECT DEP"


def make_transaction(
    day: int,
    amount,
    description: str = "",
    category: Optional[str] = None,
) -> Transaction:
    """Transaction on day `day` of January 2024 (day 1 = Jan 1)."""
    return Transaction(
        date=START + timedelta(days=day - 1),
        description=description,
        amount=Decimal(str(amount)) if amount is not None else None,
        category=category,
    )


def business_context(**overrides) -> StatementContext:
    values = dict(
        opening_balance=Decimal("5000"),
        period_start=date(2024, 1, 1),
        period_end=date(2024, 1, 31),
        business_name="Acme LLC",
        tax_id="12-3456789",
        ssn="123-45-6789",
        address="1 Main St, Springfield",
        state="CA",
    )
    values.update(overrides)
    return StatementContext(**values)


def healthy_statement() -> Tuple[List[Transaction], StatementContext]:
    transactions = [
        make_transaction(1, 3000, PAYROLL),
        make_transaction(2, -200, "OFFICE RENT"),
        make_transaction(4, -200, "UTILITIES"),
        make_transaction(6, -200, "INTERNET SERVICE"),
        make_transaction(8, -200, "OFFICE SUPPLIES"),
        make_transaction(10, -200, "FUEL"),
        make_transaction(12, -200, "INSURANCE PREMIUM"),
        make_transaction(15, 3000, PAYROLL),
        make_transaction(18, -200, "TELEPHONE"),
        make_transaction(22, -200, "SOFTWARE SUBSCRIPTION"),
        make_transaction(26, -200, "CLEANING SERVICE"),
        make_transaction(29, 3000, PAYROLL),
    ]
    return transactions, business_context()


def thin_statement() -> Tuple[List[Transaction], StatementContext]:
    transactions = [
        make_transaction(1, 500, PAYROLL),
        make_transaction(3, -100, "OFFICE RENT"),
        make_transaction(15, 500, PAYROLL),
        make_transaction(20, -100, "UTILITIES"),
        make_transaction(29, 500, PAYROLL),
    ]
    return transactions, business_context(opening_balance=Decimal("0"))


def user_context(user_id: str = "biz_123") -> UserContext:
    return UserContext(user_id=user_id, statement_id="stmt_2024_01", owner_name="Jane Doe")


# =============================================================================
# Provider doubles
# =============================================================================

class FakeBusinessVerificationClient(BusinessVerificationClient):
    def __init__(
        self,
        verified: Optional[bool] = True,
        error: Optional[Exception] = None,
        delay: float = 0,
    ):
        self.verified = verified
        self.error = error
        self.delay = delay
        self.requests: List[BusinessVerificationRequest] = []

    async def verify_business(
        self, request: BusinessVerificationRequest
    ) -> BusinessVerification:
        self.requests.append(request)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return BusinessVerification(
            verified=self.verified,
            business_name=request.business_name,
            status="approved" if self.verified else "rejected",
        )


class FakeCreditCheckClient(CreditCheckClient):
    def __init__(
        self,
        credit_score=760,
        error: Optional[Exception] = None,
        delay: float = 0,
    ):
        self.credit_score = credit_score
        self.error = error
        self.delay = delay
        self.requests: List[CreditCheckRequest] = []

    async def check_credit(self, request: CreditCheckRequest) -> CreditReport:
        self.requests.append(request)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return CreditReport(credit_score=self.credit_score, risk_grade="A")


class FakeRegistrationCheckClient(RegistrationCheckClient):
    def __init__(
        self,
        status: str = "ACTIVE",
        error: Optional[Exception] = None,
        delay: float = 0,
    ):
        self.status = status
        self.error = error
        self.delay = delay
        self.requests: List[RegistrationCheckRequest] = []

    async def verify_registration(
        self, request: RegistrationCheckRequest
    ) -> RegistrationRecord:
        self.requests.append(request)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return RegistrationRecord(
            status=self.status,
            entity_name=request.business_name,
            state=request.state,
        )


def fake_providers(
    middesk: Optional[BusinessVerificationClient] = None,
    isoftpull: Optional[CreditCheckClient] = None,
    sos: Optional[RegistrationCheckClient] = None,
) -> VerificationProviders:
    """All three providers succeeding unless replaced."""
    return VerificationProviders(
        middesk=middesk or FakeBusinessVerificationClient(),
        isoftpull=isoftpull or FakeCreditCheckClient(),
        sos=sos or FakeRegistrationCheckClient(),
    )


def unreachable(provider: str) -> ProviderException:
    return ProviderException(provider=provider, message=f"{provider} unreachable")


class BrokenBudgetAccountant(BudgetAccountant):
    """Ledger whose storage is down."""

    async def get_daily_usage(self) -> Decimal:
        raise ConnectionError("ledger unavailable")

    async def check_and_reserve(self, amount: Decimal, daily_cap: Decimal) -> Optional[date]:
        raise ConnectionError("ledger unavailable")

    async def release(self, amount: Decimal, day: Optional[date] = None) -> None:
        raise ConnectionError("ledger unavailable")


def statement_body(transactions, context, **overrides) -> dict:
    """JSON request body for POST /v1/analysis."""
    body = {
        "user_id": "biz_123",
        "statement_id": "stmt_2024_01",
        "owner_name": "Jane Doe",
        "opening_balance": float(context.opening_balance),
        "period_start": context.period_start.isoformat(),
        "period_end": context.period_end.isoformat(),
        "business_name": context.business_name,
        "tax_id": context.tax_id,
        "ssn": context.ssn,
        "address": context.address,
        "state": context.state,
        "transactions": [
            {
                "date": t.date.isoformat(),
                "description": t.description,
                "amount": float(t.amount),
            }
            for t in transactions
        ],
    }
    body.update(overrides)
    return body
