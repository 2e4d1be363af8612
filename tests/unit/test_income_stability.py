"""
Unit Tests for the Helios income stability analysis.
"""

from decimal import Decimal

from helios_waterfall.service.helios.income_stability import (
    analyze_income_stability,
    calculate_interval_statistics,
    calculate_intervals,
    filter_income_transactions,
    score_stability,
    stability_level_for_score,
)
from helios_waterfall.service.helios.models import IntervalStatistics, StabilityLevel

from tests.fakes import PAYROLL, healthy_statement, make_transaction


class TestIncomeFilter:
    def test_requires_keyword_and_materiality(self):
        transactions = [
            make_transaction(1, 3000, PAYROLL),
            make_transaction(2, 20, "PAYROLL ADJUSTMENT"),
            make_transaction(3, 400, "ZELLE FROM FRIEND"),
            make_transaction(4, -3000, "PAYROLL REVERSAL"),
            make_transaction(5, 50, "ACH CREDIT"),
        ]

        income = filter_income_transactions(transactions)

        assert [t.date.day for t in income] == [1, 5]

    def test_missing_amounts_ignored(self):
        assert filter_income_transactions([make_transaction(1, None, PAYROLL)]) == []


class TestIntervals:
    def test_same_day_and_long_gaps_are_dropped(self):
        income = [
            make_transaction(1, 1000, PAYROLL),
            make_transaction(1, 1000, PAYROLL),
            make_transaction(15, 1000, PAYROLL),
            make_transaction(75, 1000, PAYROLL),
        ]

        assert calculate_intervals(income) == [14]

    def test_sorted_by_date(self):
        income = [
            make_transaction(29, 1000, PAYROLL),
            make_transaction(1, 1000, PAYROLL),
            make_transaction(15, 1000, PAYROLL),
        ]

        assert calculate_intervals(income) == [14, 14]

    def test_statistics(self):
        stats = calculate_interval_statistics([3, 21, 7])

        assert stats.mean == 10.33
        assert stats.standard_deviation == 9.45
        assert stats.median == 7.0
        assert stats.minimum == 3
        assert stats.maximum == 21
        assert stats.count == 3


class TestScoring:
    def test_perfect_biweekly_cadence(self):
        stats = IntervalStatistics(mean=14, standard_deviation=0, count=3)

        assert score_stability(stats) == 100

    def test_empty_statistics_score_zero(self):
        assert score_stability(IntervalStatistics()) == 0

    def test_levels(self):
        assert stability_level_for_score(80) == StabilityLevel.VERY_STABLE
        assert stability_level_for_score(79) == StabilityLevel.STABLE
        assert stability_level_for_score(60) == StabilityLevel.STABLE
        assert stability_level_for_score(40) == StabilityLevel.MODERATE
        assert stability_level_for_score(20) == StabilityLevel.UNSTABLE
        assert stability_level_for_score(19) == StabilityLevel.VERY_UNSTABLE


class TestAnalyzeIncomeStability:
    def test_regular_payroll(self):
        transactions, _ = healthy_statement()

        result = analyze_income_stability(transactions)

        assert result.stability_score == 100
        assert result.stability_level == StabilityLevel.VERY_STABLE
        assert result.income_transaction_count == 3
        assert result.total_income == Decimal("9000.00")
        assert result.average_income == Decimal("3000.00")
        assert result.intervals == (14, 14)
        assert result.first_income_date.day == 1
        assert result.last_income_date.day == 29

    def test_irregular_deposits(self):
        transactions = [
            make_transaction(1, 800, "DIRECT DEP"),
            make_transaction(4, 800, "DIRECT DEP"),
            make_transaction(25, 800, "DIRECT DEP"),
            make_transaction(32, 800, "DIRECT DEP"),
        ]

        result = analyze_income_stability(transactions)

        assert result.intervals == (3, 21, 7)
        assert result.stability_score == 18
        assert result.stability_level == StabilityLevel.VERY_UNSTABLE
        assert "Consider requesting additional income documentation" in result.recommendations

    def test_no_transactions(self):
        result = analyze_income_stability([])

        assert result.stability_score == 0
        assert result.stability_level == StabilityLevel.INSUFFICIENT_DATA

    def test_single_income_deposit(self):
        result = analyze_income_stability([make_transaction(1, 3000, PAYROLL)])

        assert result.stability_score == 0
        assert result.stability_level == StabilityLevel.INSUFFICIENT_DATA
        assert result.income_transaction_count == 1

    def test_single_interval_is_insufficient(self):
        transactions = [
            make_transaction(1, 3000, PAYROLL),
            make_transaction(15, 3000, PAYROLL),
        ]

        result = analyze_income_stability(transactions)

        assert result.stability_level == StabilityLevel.INSUFFICIENT_DATA
        assert result.description == "Insufficient intervals for stability calculation"

    def test_deterministic(self):
        transactions, _ = healthy_statement()

        assert analyze_income_stability(transactions) == analyze_income_stability(transactions)
