"""
Data models for the Helios Engine.

These models represent the results produced by the internal (free) analysis
stage, from raw transaction totals up to the composite Veritas score. Every
result is immutable and serializes to a JSON-ready dict with monetary values
rounded to 2 places and dates in ISO-8601.
"""

from dataclasses import dataclass, field
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Optional, Tuple

from helios_waterfall.domain.entities import Transaction

CENTS = Decimal("0.01")


def money(value) -> Decimal:
    """Round a monetary value to 2 places (half-up)."""
    return Decimal(value).quantize(CENTS, rounding=ROUND_HALF_UP)


def money_out(value: Optional[Decimal]) -> Optional[float]:
    """Serialize a monetary value for JSON output."""
    if value is None:
        return None
    return float(money(value))


class RiskLevel(str, Enum):
    """Internal risk level, ordered from safest to riskiest."""

    VERY_LOW = "VERY_LOW"
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"

    @property
    def ordinal(self) -> int:
        return list(RiskLevel).index(self)


class StabilityLevel(str, Enum):
    """Categorical income stability."""

    VERY_STABLE = "VERY_STABLE"
    STABLE = "STABLE"
    MODERATE = "MODERATE"
    UNSTABLE = "UNSTABLE"
    VERY_UNSTABLE = "VERY_UNSTABLE"
    INSUFFICIENT_DATA = "INSUFFICIENT_DATA"


@dataclass(frozen=True)
class TransactionTotals:
    """Deposit and withdrawal totals (both non-negative)."""

    total_deposits: Decimal
    total_withdrawals: Decimal
    deposit_count: int
    withdrawal_count: int

    @property
    def net(self) -> Decimal:
        return self.total_deposits - self.total_withdrawals

    def to_dict(self) -> dict:
        return {
            "total_deposits": money_out(self.total_deposits),
            "total_withdrawals": money_out(self.total_withdrawals),
            "net_cash_flow": money_out(self.net),
            "deposit_count": self.deposit_count,
            "withdrawal_count": self.withdrawal_count,
        }


@dataclass(frozen=True)
class NsfMetrics:
    """NSF events detected by description keywords."""

    nsf_count: int
    nsf_total: Decimal
    nsf_transactions: Tuple[Transaction, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict:
        return {
            "nsf_count": self.nsf_count,
            "nsf_total": money_out(self.nsf_total),
            "nsf_transactions": [
                {
                    "date": t.date.isoformat(),
                    "description": t.description,
                    "amount": money_out(t.amount),
                }
                for t in self.nsf_transactions
            ],
        }


@dataclass(frozen=True)
class BalanceMetrics:
    """
    Day-by-day balance statistics.

    Attributes:
        average_daily_balance: Mean end-of-day running balance
        lowest_balance: Lowest end-of-day balance (opening balance included)
        highest_balance: Highest end-of-day balance (opening balance included)
        period_days: Calendar days from first to last transaction, inclusive
    """

    average_daily_balance: Decimal
    lowest_balance: Decimal
    highest_balance: Decimal
    period_days: int

    def to_dict(self) -> dict:
        return {
            "average_daily_balance": money_out(self.average_daily_balance),
            "lowest_balance": money_out(self.lowest_balance),
            "highest_balance": money_out(self.highest_balance),
            "period_days": self.period_days,
        }


@dataclass(frozen=True)
class BusinessMetrics:
    """Payment-processor activity found in the statement."""

    total_business_deposits: Decimal
    total_business_expenses: Decimal
    business_transaction_count: int

    @property
    def has_business_activity(self) -> bool:
        return self.business_transaction_count > 0

    @property
    def profit_ratio(self) -> Optional[Decimal]:
        if self.total_business_deposits == 0:
            return None
        return (
            self.total_business_deposits - self.total_business_expenses
        ) / self.total_business_deposits

    def to_dict(self) -> dict:
        return {
            "total_business_deposits": money_out(self.total_business_deposits),
            "total_business_expenses": money_out(self.total_business_expenses),
            "business_transaction_count": self.business_transaction_count,
            "has_business_activity": self.has_business_activity,
        }


@dataclass(frozen=True)
class RiskResult:
    """
    Bounded internal risk assessment.

    Attributes:
        risk_score: 0-100, higher = riskier
        risk_level: Step function of risk_score
        withdrawal_ratio: total_withdrawals / total_deposits (1 with no deposits)
    """

    risk_score: int
    risk_level: RiskLevel
    nsf_count: int
    average_daily_balance: Decimal
    lowest_balance: Decimal
    highest_balance: Decimal
    period_days: int
    withdrawal_ratio: Decimal
    total_deposits: Decimal
    total_withdrawals: Decimal

    def to_dict(self) -> dict:
        return {
            "risk_score": self.risk_score,
            "risk_level": self.risk_level.value,
            "nsf_count": self.nsf_count,
            "average_daily_balance": money_out(self.average_daily_balance),
            "lowest_balance": money_out(self.lowest_balance),
            "highest_balance": money_out(self.highest_balance),
            "period_days": self.period_days,
            "withdrawal_ratio": float(self.withdrawal_ratio.quantize(Decimal("0.0001"))),
            "total_deposits": money_out(self.total_deposits),
            "total_withdrawals": money_out(self.total_withdrawals),
        }


@dataclass(frozen=True)
class IntervalStatistics:
    """Statistics over day gaps between consecutive income deposits."""

    mean: float = 0.0
    standard_deviation: float = 0.0
    median: float = 0.0
    variance: float = 0.0
    minimum: int = 0
    maximum: int = 0
    count: int = 0

    def to_dict(self) -> dict:
        return {
            "mean": self.mean,
            "standard_deviation": self.standard_deviation,
            "median": self.median,
            "variance": self.variance,
            "min": self.minimum,
            "max": self.maximum,
            "count": self.count,
        }


@dataclass(frozen=True)
class IncomeStabilityResult:
    """Regularity of income-like deposits."""

    stability_score: int
    stability_level: StabilityLevel
    income_transaction_count: int = 0
    total_income: Decimal = Decimal("0")
    average_income: Decimal = Decimal("0")
    first_income_date: Optional[date] = None
    last_income_date: Optional[date] = None
    intervals: Tuple[int, ...] = field(default_factory=tuple)
    statistics: IntervalStatistics = field(default_factory=IntervalStatistics)
    description: str = ""
    recommendations: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def stability_ratio(self) -> float:
        return self.stability_score / 100

    def to_dict(self) -> dict:
        return {
            "stability_score": self.stability_score,
            "stability_level": self.stability_level.value,
            "stability_ratio": self.stability_ratio,
            "income_transaction_count": self.income_transaction_count,
            "total_income": money_out(self.total_income),
            "average_income": money_out(self.average_income),
            "first_income_date": (
                self.first_income_date.isoformat() if self.first_income_date else None
            ),
            "last_income_date": (
                self.last_income_date.isoformat() if self.last_income_date else None
            ),
            "intervals": list(self.intervals),
            "statistics": self.statistics.to_dict(),
            "description": self.description,
            "recommendations": list(self.recommendations),
        }


@dataclass(frozen=True)
class VeritasFactors:
    """Signed point contributions to the Veritas score."""

    nsf_impact: int
    balance_impact: int
    stability_impact: int
    transaction_impact: int
    business_impact: int

    def to_dict(self) -> dict:
        return {
            "nsf_impact": self.nsf_impact,
            "balance_impact": self.balance_impact,
            "stability_impact": self.stability_impact,
            "transaction_impact": self.transaction_impact,
            "business_impact": self.business_impact,
        }


@dataclass(frozen=True)
class VeritasScore:
    """Composite creditworthiness score on the familiar 300-850 scale."""

    score: int
    grade: str
    factors: Optional[VeritasFactors] = None

    @property
    def normalized(self) -> float:
        """Score on the 0-10 scale used by the provider plan."""
        return self.score / 100

    def to_dict(self) -> dict:
        return {
            "score": self.score,
            "grade": self.grade,
            "factors": self.factors.to_dict() if self.factors else None,
        }


@dataclass(frozen=True)
class HeliosAnalysis:
    """
    Snapshot of everything the Helios Engine computed for one statement.

    This is the input to the criteria gate, the provider executor and the
    consolidator; none of them mutate it.
    """

    totals: TransactionTotals
    nsf: NsfMetrics
    balance: BalanceMetrics
    risk: RiskResult
    income_stability: IncomeStabilityResult
    business: BusinessMetrics
    veritas: VeritasScore
    transaction_count: int
    statement_days: int
    opening_balance: Decimal
    period_start: Optional[date] = None
    period_end: Optional[date] = None

    def financial_summary(self) -> dict:
        return {
            **self.totals.to_dict(),
            "opening_balance": money_out(self.opening_balance),
            "transaction_count": self.transaction_count,
            "statement_days": self.statement_days,
            "period_start": self.period_start.isoformat() if self.period_start else None,
            "period_end": self.period_end.isoformat() if self.period_end else None,
            "balance": self.balance.to_dict(),
            "nsf": self.nsf.to_dict(),
            "business": self.business.to_dict(),
        }

    def to_dict(self) -> dict:
        return {
            "veritas_score": self.veritas.to_dict(),
            "risk_analysis": self.risk.to_dict(),
            "income_stability_analysis": self.income_stability.to_dict(),
            "financial_summary": self.financial_summary(),
        }
