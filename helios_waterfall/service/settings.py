"""
Engine Settings for the Helios Waterfall decision engine.

This module contains every threshold, weight, cost and cap used by the
Helios Engine, the criteria gate, the provider plan and the consolidator.
They can be adjusted via environment variables for tuning, or passed
explicitly to any operation for deterministic alternate configurations.

Environment variables use the WATERFALL_ prefix:
    WATERFALL_CRITERIA_PROCEED_THRESHOLD=70
    WATERFALL_DAILY_BUDGET_CAP=200
    WATERFALL_MIDDESK_COST=25

Usage:
    from helios_waterfall.service.settings import engine_settings

    # Use default settings (loaded from env)
    cap = engine_settings.daily_budget_cap

    # Or create custom settings for testing
    custom = EngineSettings(daily_budget_cap=Decimal("40"))
"""

import json
from decimal import Decimal
from functools import lru_cache
from typing import List, Tuple

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

PROVIDER_ORDER = ("middesk", "isoftpull", "sos")


def _validate_tiers(v: str, width: int, label: str) -> str:
    try:
        tiers = json.loads(v)
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON: {e}")
    if not isinstance(tiers, list) or not tiers:
        raise ValueError("Tiers must be a non-empty list")
    previous = None
    for tier in tiers:
        if not isinstance(tier, list) or len(tier) != width:
            raise ValueError(f"Each tier must be {label}")
        if not all(isinstance(x, (int, float, str)) for x in tier):
            raise ValueError(f"Invalid tier values: {tier}")
        threshold = tier[0]
        if not isinstance(threshold, (int, float)):
            raise ValueError(f"Tier threshold must be numeric: {threshold}")
        if previous is not None and threshold >= previous:
            raise ValueError("Tiers must be ordered by descending threshold")
        previous = threshold
    return v


class EngineSettings(BaseSettings):
    """
    Configurable parameters for the waterfall risk decision engine.

    All settings can be overridden via environment variables with the
    WATERFALL_ prefix. Monetary values are in dollars.
    """

    model_config = SettingsConfigDict(
        env_prefix="WATERFALL_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # === NSF Detection ===
    nsf_keywords: Tuple[str, ...] = Field(
        default=(
            "nsf",
            "insufficient funds",
            "overdraft",
            "returned check",
            "returned item",
            "bounce",
            "non-sufficient",
            "overdraw",
            "insufficient",
            "returned deposit",
            "reject",
            "decline",
            "unavailable funds",
            "return fee",
            "chargeback",
            "reversal",
            "dishonored",
            "unpaid",
            "refer to maker",
        ),
        description="Description substrings (case-insensitive) that mark an NSF event",
    )

    # === Risk Analysis ===
    risk_nsf_points: int = Field(
        default=30,
        ge=0,
        description="Risk points added per NSF event",
    )
    risk_low_balance_threshold: Decimal = Field(
        default=Decimal("1000"),
        description="Average daily balance below this adds low-balance risk",
    )
    risk_low_balance_points: int = Field(default=20, ge=0)
    risk_withdrawal_ratio_threshold: Decimal = Field(
        default=Decimal("0.8"),
        gt=0,
        description="Withdrawal/deposit ratio above this adds overspending risk",
    )
    risk_withdrawal_ratio_points: int = Field(default=25, ge=0)
    risk_negative_balance_points: int = Field(
        default=40,
        ge=0,
        description="Risk points added when the average daily balance is negative",
    )
    risk_level_high: int = Field(default=80, ge=0, le=100)
    risk_level_medium: int = Field(default=40, ge=0, le=100)
    risk_level_low: int = Field(default=20, ge=0, le=100)

    # === Income Stability ===
    income_min_amount: Decimal = Field(
        default=Decimal("50"),
        ge=0,
        description="Deposits below this are not considered income",
    )
    income_max_interval_days: int = Field(
        default=45,
        gt=0,
        description="Gaps longer than this between income deposits are ignored",
    )
    income_keywords: Tuple[str, ...] = Field(
        default=(
            "payroll",
            "salary",
            "wage",
            "pay",
            "deposit",
            "direct dep",
            "dd",
            "paycheck",
            "income",
            "earnings",
            "compensation",
            "stipend",
            "pension",
            "retirement",
            "social security",
            "unemployment",
            "benefits",
            "freelance",
            "contractor",
            "commission",
            "bonus",
            "overtime",
            "transfer from",
            "ach credit",
            "wire transfer",
            "electronic deposit",
            "recurring deposit",
            "automatic deposit",
            "govt payment",
            "refund",
        ),
    )
    income_ideal_intervals: Tuple[int, ...] = Field(default=(7, 14, 15, 30, 31))

    # === Business Activity ===
    business_keywords: Tuple[str, ...] = Field(
        default=("PAYPAL", "SQUARE", "STRIPE", "SHOPIFY", "VENDOR", "INVENTORY"),
    )

    # === Veritas Score ===
    veritas_base_score: int = Field(default=700)
    veritas_min_score: int = Field(default=300)
    veritas_max_score: int = Field(default=850)
    veritas_nsf_penalty: int = Field(default=50, ge=0)
    veritas_nsf_penalty_cap: int = Field(default=150, ge=0)
    veritas_balance_reference: Decimal = Field(
        default=Decimal("5000"),
        gt=0,
        description="Average daily balance that earns the full +100 balance impact",
    )
    veritas_min_transactions: int = Field(
        default=5,
        ge=0,
        description="Fewer transactions than this earn no volume impact",
    )
    veritas_transaction_impact_cap: int = Field(default=50, ge=0)
    veritas_business_impact_cap: int = Field(default=50, ge=0)

    grade_tiers_json: str = Field(
        default='[[800,"A+"],[750,"A"],[700,"B+"],[650,"B"],[600,"C+"],[550,"C"],[500,"D+"]]',
        description="Grade tiers as JSON array: [[min_score, grade], ...]; below all tiers is D",
    )
    lowest_grade: str = Field(default="D")

    # === Criteria Gate ===
    criteria_min_veritas_score: int = Field(default=600)
    criteria_min_transactions: int = Field(default=10, ge=0)
    criteria_min_statement_days: int = Field(default=30, ge=0)
    criteria_min_average_balance: Decimal = Field(default=Decimal("1000"))
    criteria_max_risk_level: str = Field(default="HIGH")
    criteria_max_nsf_count: int = Field(default=3, ge=0)

    weight_veritas_score: float = Field(default=0.30, ge=0.0, le=1.0)
    weight_transaction_count: float = Field(default=0.15, ge=0.0, le=1.0)
    weight_statement_duration: float = Field(default=0.10, ge=0.0, le=1.0)
    weight_average_balance: float = Field(default=0.20, ge=0.0, le=1.0)
    weight_risk_level: float = Field(default=0.15, ge=0.0, le=1.0)
    weight_nsf_count: float = Field(default=0.10, ge=0.0, le=1.0)

    criteria_proceed_threshold: int = Field(
        default=70,
        ge=0,
        le=100,
        description="Minimum criteria score (0-100) required to call external providers",
    )

    # === Provider Plan (normalized Veritas score, 0-10 scale) ===
    score_normalization_divisor: int = Field(default=100, gt=0)
    middesk_min_normalized_score: float = Field(default=6.5)
    isoftpull_min_normalized_score: float = Field(default=7.5)
    sos_min_normalized_score: float = Field(default=6.0)

    # === Provider Costs and Budget ===
    middesk_cost: Decimal = Field(default=Decimal("25"), ge=0)
    isoftpull_cost: Decimal = Field(default=Decimal("15"), ge=0)
    sos_cost: Decimal = Field(default=Decimal("5"), ge=0)
    daily_budget_cap: Decimal = Field(default=Decimal("200"), ge=0)
    per_analysis_budget_cap: Decimal = Field(default=Decimal("50"), ge=0)

    # === Executor ===
    parallel_provider_calls: bool = Field(
        default=False,
        description="Run enabled providers concurrently instead of middesk -> isoftpull -> sos",
    )

    # === Consolidation Adjustments ===
    middesk_verified_adjustment: int = Field(default=25)
    middesk_unverified_adjustment: int = Field(default=-50)
    credit_adjustment_tiers_json: str = Field(
        default="[[750,40],[700,20],[650,10]]",
        description="Credit score adjustment tiers as JSON array: [[min_credit_score, points], ...]",
    )
    credit_poor_threshold: int = Field(
        default=600,
        description="Credit scores below this receive credit_poor_adjustment",
    )
    credit_poor_adjustment: int = Field(default=-30)
    sos_active_adjustment: int = Field(default=15)

    # === Recommendation and Final Risk Level ===
    approve_threshold: int = Field(default=750)
    approve_with_conditions_threshold: int = Field(default=650)
    manual_review_threshold: int = Field(default=550)

    final_risk_tiers_json: str = Field(
        default='[[750,"LOW"],[650,"MODERATE"],[550,"MEDIUM"],[450,"HIGH"]]',
        description="Final risk level tiers as JSON array: [[min_score, level], ...]; below is VERY_HIGH",
    )

    @field_validator("grade_tiers_json", "final_risk_tiers_json")
    @classmethod
    def validate_label_tiers_json(cls, v: str) -> str:
        """Validate that label tiers JSON is parseable and ordered."""
        return _validate_tiers(v, 2, "[min_score, label]")

    @field_validator("credit_adjustment_tiers_json")
    @classmethod
    def validate_credit_tiers_json(cls, v: str) -> str:
        """Validate that credit adjustment tiers JSON is parseable and ordered."""
        _validate_tiers(v, 2, "[min_credit_score, points]")
        for _, points in json.loads(v):
            if not isinstance(points, int):
                raise ValueError(f"Adjustment points must be integers: {points}")
        return v

    @property
    def grade_tiers(self) -> List[Tuple[int, str]]:
        """Grade tiers mapping minimum Veritas score to a letter grade."""
        return [tuple(tier) for tier in json.loads(self.grade_tiers_json)]

    @property
    def final_risk_tiers(self) -> List[Tuple[int, str]]:
        return [tuple(tier) for tier in json.loads(self.final_risk_tiers_json)]

    @property
    def credit_adjustment_tiers(self) -> List[Tuple[int, int]]:
        return [tuple(tier) for tier in json.loads(self.credit_adjustment_tiers_json)]

    @property
    def provider_costs(self) -> dict[str, Decimal]:
        """Fixed per-call cost of each provider, in execution order."""
        return {
            "middesk": self.middesk_cost,
            "isoftpull": self.isoftpull_cost,
            "sos": self.sos_cost,
        }

    @property
    def provider_thresholds(self) -> dict[str, float]:
        return {
            "middesk": self.middesk_min_normalized_score,
            "isoftpull": self.isoftpull_min_normalized_score,
            "sos": self.sos_min_normalized_score,
        }

    @property
    def full_provider_cost(self) -> Decimal:
        """Cost of calling every provider once."""
        return sum(self.provider_costs.values(), Decimal("0"))


@lru_cache
def get_engine_settings() -> EngineSettings:
    """Get cached engine settings instance."""
    return EngineSettings()


engine_settings = get_engine_settings()
