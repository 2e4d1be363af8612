"""
Unit Tests for the Helios transaction metrics.

Test Categories:
- TestTotals: deposit / withdrawal totals and counts
- TestNsf: keyword matching and counting
- TestAverageDailyBalance: day walk, opening balance, edge cases
- TestBusinessMetrics: payment-processor activity
- TestOpeningBalance: caller-supplied opening balance coercion
- TestTransaction: entity normalization and credit/debit flags
"""

from datetime import date, datetime
from decimal import Decimal

import pytest

from helios_waterfall.domain.entities import Transaction
from helios_waterfall.domain.exceptions import InvalidStatementDataException
from helios_waterfall.service.helios.transaction_metrics import (
    calculate_average_daily_balance,
    calculate_business_metrics,
    calculate_nsf_metrics,
    calculate_totals,
    coerce_opening_balance,
    count_nsf,
    is_nsf_transaction,
)
from helios_waterfall.service.settings import EngineSettings

from tests.fakes import healthy_statement, make_transaction


class TestTotals:
    def test_deposits_and_withdrawals(self):
        transactions = [
            make_transaction(1, 2000, "DEPOSIT"),
            make_transaction(2, -100, "GROCERIES"),
        ]

        totals = calculate_totals(transactions)

        assert totals.total_deposits == Decimal("2000.00")
        assert totals.total_withdrawals == Decimal("100.00")
        assert totals.deposit_count == 1
        assert totals.withdrawal_count == 1
        assert totals.net == Decimal("1900.00")

    def test_totals_are_non_negative_and_balance(self):
        transactions, _ = healthy_statement()

        totals = calculate_totals(transactions)

        assert totals.total_deposits == Decimal("9000.00")
        assert totals.total_withdrawals == Decimal("1800.00")
        assert totals.total_deposits - totals.total_withdrawals == sum(
            t.amount for t in transactions
        )

    def test_missing_amounts_are_skipped(self):
        transactions = [
            make_transaction(1, 500, "DEPOSIT"),
            make_transaction(2, None, "UNREADABLE LINE"),
        ]

        totals = calculate_totals(transactions)

        assert totals.total_deposits == Decimal("500.00")
        assert totals.total_withdrawals == Decimal("0.00")
        assert totals.deposit_count + totals.withdrawal_count == 1

    def test_empty(self):
        totals = calculate_totals([])

        assert totals.total_deposits == Decimal("0.00")
        assert totals.total_withdrawals == Decimal("0.00")

    def test_totals_round_half_up(self):
        totals = calculate_totals([make_transaction(1, "10.005", "DEPOSIT")])

        assert totals.total_deposits == Decimal("10.01")


class TestNsf:
    @pytest.mark.parametrize(
        "description",
        ["NSF FEE", "Overdraft charge", "RETURNED ITEM", "insufficient funds", "Chargeback"],
    )
    def test_keywords_match_case_insensitively(self, description):
        assert is_nsf_transaction(make_transaction(1, -35, description))

    def test_ordinary_description_does_not_match(self):
        assert not is_nsf_transaction(make_transaction(1, -35, "COFFEE SHOP"))

    def test_multiple_keywords_count_once(self):
        transactions = [make_transaction(1, -35, "NSF RETURNED ITEM OVERDRAFT")]

        assert count_nsf(transactions) == 1

    def test_nsf_metrics_total(self):
        transactions = [
            make_transaction(1, -35, "NSF FEE"),
            make_transaction(2, -35, "OVERDRAFT FEE"),
            make_transaction(3, -20, "LUNCH"),
        ]

        metrics = calculate_nsf_metrics(transactions)

        assert metrics.nsf_count == 2
        assert metrics.nsf_total == Decimal("70.00")
        assert len(metrics.nsf_transactions) == 2

    def test_custom_keywords(self):
        settings = EngineSettings(nsf_keywords=("bounced",))

        assert count_nsf([make_transaction(1, -35, "NSF FEE")], settings) == 0
        assert count_nsf([make_transaction(1, -35, "BOUNCED CHECK")], settings) == 1


class TestAverageDailyBalance:
    def test_two_day_walk(self):
        transactions = [
            make_transaction(1, 2000, "DEPOSIT"),
            make_transaction(2, -100, "GROCERIES"),
        ]

        balance = calculate_average_daily_balance(transactions, Decimal("0"))

        assert balance.average_daily_balance == Decimal("1950.00")
        assert balance.period_days == 2

    def test_gap_days_carry_balance_forward(self):
        transactions = [
            make_transaction(1, 100, "DEPOSIT"),
            make_transaction(4, 300, "DEPOSIT"),
        ]

        balance = calculate_average_daily_balance(transactions, Decimal("0"))

        # 100, 100, 100, 400
        assert balance.average_daily_balance == Decimal("175.00")
        assert balance.period_days == 4

    def test_order_does_not_matter(self):
        transactions, context = healthy_statement()

        forward = calculate_average_daily_balance(transactions, context.opening_balance)
        backward = calculate_average_daily_balance(
            list(reversed(transactions)), context.opening_balance
        )

        assert forward == backward
        assert forward.average_daily_balance == Decimal("8537.93")
        assert forward.period_days == 29

    def test_opening_balance_included_in_extremes(self):
        transactions, context = healthy_statement()

        balance = calculate_average_daily_balance(transactions, context.opening_balance)

        assert balance.lowest_balance == Decimal("5000.00")
        assert balance.highest_balance == Decimal("12200.00")

    def test_negative_running_balance(self):
        transactions = [
            make_transaction(1, -300, "RENT"),
            make_transaction(2, 100, "DEPOSIT"),
        ]

        balance = calculate_average_daily_balance(transactions, Decimal("100"))

        assert balance.lowest_balance == Decimal("-200.00")
        assert balance.average_daily_balance == Decimal("-150.00")

    def test_empty_returns_opening_balance(self):
        balance = calculate_average_daily_balance([], Decimal("750"))

        assert balance.average_daily_balance == Decimal("750.00")
        assert balance.period_days == 0

    def test_missing_opening_balance_defaults_to_zero(self):
        balance = calculate_average_daily_balance([make_transaction(1, 10, "DEPOSIT")])

        assert balance.average_daily_balance == Decimal("10.00")

    def test_single_day(self):
        transactions = [
            make_transaction(5, 100, "DEPOSIT"),
            make_transaction(5, -40, "FEE"),
        ]

        balance = calculate_average_daily_balance(transactions, Decimal("0"))

        assert balance.period_days == 1
        assert balance.average_daily_balance == Decimal("60.00")

    def test_timestamps_bucket_by_calendar_day(self):
        timestamped = [
            Transaction(date=stamp, description="DEPOSIT", amount=Decimal("100"))
            for stamp in (
                datetime(2024, 1, 1, 9, 30),
                datetime(2024, 1, 2, 17, 5),
                datetime(2024, 1, 3, 8, 0),
            )
        ]
        dated = [make_transaction(day, 100, "DEPOSIT") for day in (1, 2, 3)]

        balance = calculate_average_daily_balance(timestamped, Decimal("0"))

        assert balance == calculate_average_daily_balance(dated, Decimal("0"))
        assert balance.average_daily_balance == Decimal("200.00")
        assert balance.highest_balance == Decimal("300.00")
        assert balance.period_days == 3


class TestBusinessMetrics:
    def test_processor_activity(self):
        transactions = [
            make_transaction(1, 1000, "STRIPE TRANSFER"),
            make_transaction(2, 500, "Square Inc deposit"),
            make_transaction(3, -300, "INVENTORY PURCHASE"),
            make_transaction(4, -50, "LUNCH"),
        ]

        business = calculate_business_metrics(transactions)

        assert business.total_business_deposits == Decimal("1500.00")
        assert business.total_business_expenses == Decimal("300.00")
        assert business.business_transaction_count == 3
        assert business.has_business_activity
        assert business.profit_ratio == Decimal("0.8")

    def test_no_activity(self):
        transactions, _ = healthy_statement()

        business = calculate_business_metrics(transactions)

        assert not business.has_business_activity
        assert business.profit_ratio is None


class TestOpeningBalance:
    @pytest.mark.parametrize(
        "value, expected",
        [
            (None, Decimal("0")),
            (Decimal("12.50"), Decimal("12.50")),
            (100, Decimal("100")),
            (99.5, Decimal("99.5")),
            ("250.75", Decimal("250.75")),
        ],
    )
    def test_valid_values(self, value, expected):
        assert coerce_opening_balance(value) == expected

    @pytest.mark.parametrize("value", ["abc", True, "NaN", "Infinity", [100]])
    def test_invalid_values_raise(self, value):
        with pytest.raises(InvalidStatementDataException):
            coerce_opening_balance(value)


class TestTransaction:
    def test_datetime_is_truncated_to_day(self):
        txn = Transaction(date=datetime(2024, 1, 2, 23, 59), amount=Decimal("5"))

        assert txn.date == date(2024, 1, 2)
        assert type(txn.date) is date

    def test_credit_and_debit(self):
        assert make_transaction(1, 10).is_credit
        assert make_transaction(1, -10).is_debit
        missing = make_transaction(1, None)
        assert not missing.is_credit and not missing.is_debit
