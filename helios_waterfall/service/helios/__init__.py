"""
Helios Engine - internal risk, income stability and Veritas scoring
"""

from .models import (
    BalanceMetrics,
    BusinessMetrics,
    HeliosAnalysis,
    IncomeStabilityResult,
    NsfMetrics,
    RiskLevel,
    RiskResult,
    StabilityLevel,
    TransactionTotals,
    VeritasFactors,
    VeritasScore,
)
from .transaction_metrics import (
    calculate_average_daily_balance,
    calculate_business_metrics,
    calculate_nsf_metrics,
    calculate_totals,
    count_nsf,
)
from .risk_analysis import analyze_risk, risk_level_for_score
from .income_stability import analyze_income_stability
from .veritas import calculate_veritas_score, grade_for_score
from .engine import run_helios_engine, validate_transactions

__all__ = [
    # Models
    "BalanceMetrics",
    "BusinessMetrics",
    "HeliosAnalysis",
    "IncomeStabilityResult",
    "NsfMetrics",
    "RiskLevel",
    "RiskResult",
    "StabilityLevel",
    "TransactionTotals",
    "VeritasFactors",
    "VeritasScore",
    # Transaction Metrics
    "calculate_average_daily_balance",
    "calculate_business_metrics",
    "calculate_nsf_metrics",
    "calculate_totals",
    "count_nsf",
    # Risk
    "analyze_risk",
    "risk_level_for_score",
    # Income Stability
    "analyze_income_stability",
    # Veritas
    "calculate_veritas_score",
    "grade_for_score",
    # Engine
    "run_helios_engine",
    "validate_transactions",
]
