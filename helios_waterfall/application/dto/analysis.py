"""Data transfer objects for waterfall analysis operations."""

from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from helios_waterfall.domain.entities import StatementContext, Transaction, UserContext


@dataclass(frozen=True)
class AnalysisRequest:
    """Input data for a waterfall analysis."""

    user_context: UserContext
    transactions: Tuple[Transaction, ...]
    statement_context: StatementContext = field(default_factory=StatementContext)

    def validate(self) -> List[str]:
        errors = []

        if not self.user_context.user_id or not self.user_context.user_id.strip():
            errors.append("user_id is required")

        start = self.statement_context.period_start
        end = self.statement_context.period_end
        if start is not None and end is not None and end < start:
            errors.append("period_end must not be before period_start")

        return errors


@dataclass(frozen=True)
class AnalysisSummary:
    """Headline numbers of a completed analysis, for logs and responses."""

    user_id: str
    statement_id: Optional[str]
    final_score: int
    final_grade: str
    recommendation: str
    confidence: str
    external_cost: float

    @classmethod
    def from_analysis(cls, request: AnalysisRequest, analysis) -> "AnalysisSummary":
        return cls(
            user_id=request.user_context.user_id,
            statement_id=request.user_context.statement_id,
            final_score=analysis.final_score,
            final_grade=analysis.assessment.final_grade,
            recommendation=analysis.recommendation.value,
            confidence=analysis.confidence.value,
            external_cost=float(analysis.external_verification.total_cost),
        )
