"""
Tests for period summaries and grouped income/expense series
"""
import pytest
from datetime import datetime, timezone
from decimal import Decimal

from app.core.exceptions import LedgerValidationError
from app.modules.accounts.models import AccountType
from app.modules.categories.services import CategoryResolver
from app.modules.transactions.schemas import TransactionCreate
from app.modules.transactions.services import TransactionService
from app.modules.transactions.summary import SummaryService, month_range

USER_ID = 1


def on(day: int, month: int = 9) -> datetime:
    return datetime(2026, month, day, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
async def ledger(db_session, make_account, categories):
    """
    September 2026: salary 500, food 200, uncategorised 50, card purchase 80, card payment 30.
    August 2026: income 300, expense 100.
    """
    salary = await CategoryResolver.resolve(db_session, "Salary")
    food = await CategoryResolver.resolve(db_session, "Food & Dining")
    bank = await make_account("1000", name="Bank")
    card = await make_account("0", AccountType.CREDIT_CARD, limit="1000", name="Card")

    def entry(account, kind, amount, date, category=None):
        return TransactionCreate(
            account_id=account.id,
            transaction_type=kind,
            amount=Decimal(amount),
            date=date,
            category_id=category.id if category else None,
            description=f"{kind} {amount}"
        )

    await TransactionService.create_many(db_session, USER_ID, [
        entry(bank, "credit", "500", on(5), salary),
        entry(bank, "debit", "200", on(10), food),
        entry(bank, "debit", "50", on(12)),
        entry(card, "debit", "80", on(15)),
        entry(card, "credit", "30", on(20)),
        entry(bank, "credit", "300", on(15, month=8)),
        entry(bank, "debit", "100", on(20, month=8)),
        entry(bank, "debit", "999", on(1, month=10)),
    ])
    return bank, card


class TestSummary:
    """Tests for SummaryService.summary"""

    @pytest.mark.integration
    async def test_month_summary(self, db_session, ledger):
        summary = await SummaryService.summary(db_session, USER_ID, month=9, year=2026)

        assert summary.month == 9 and summary.year == 2026
        assert summary.start_date == datetime(2026, 9, 1, tzinfo=timezone.utc)
        assert summary.total_income == Decimal("530")
        assert summary.total_expense == Decimal("330")
        assert summary.net_amount == Decimal("200")
        assert summary.last_month_savings == Decimal("200")
        assert summary.credit_card_expenses == Decimal("80")
        assert summary.credit_card_payments == Decimal("30")
        assert summary.prev_month_credit_card_expenses == Decimal("0")
        assert summary.prev_month_credit_card_payments == Decimal("0")

    @pytest.mark.integration
    async def test_category_breakdown(self, db_session, ledger):
        summary = await SummaryService.summary(db_session, USER_ID, month=9, year=2026)

        expense = {c.category: c.amount for c in summary.category_wise_expense}
        income = {c.category: c.amount for c in summary.category_wise_income}

        assert expense == {"Food & Dining": Decimal("200"), "Other Expenses": Decimal("130")}
        assert income == {"Salary": Decimal("500"), "Other Expenses": Decimal("30")}
        assert summary.category_wise_expense[0].category == "Food & Dining"

    @pytest.mark.integration
    async def test_custom_range_uses_preceding_window(self, db_session, ledger):
        summary = await SummaryService.summary(
            db_session, USER_ID,
            start_date=datetime(2026, 9, 1), end_date=datetime(2026, 9, 30)
        )

        assert summary.end_date == datetime(2026, 9, 30, 23, 59, 59, 999999, tzinfo=timezone.utc)
        assert summary.total_income == Decimal("530")
        assert summary.last_month_savings == Decimal("200")

    @pytest.mark.integration
    async def test_empty_period(self, db_session, ledger):
        summary = await SummaryService.summary(db_session, USER_ID, month=1, year=2020)

        assert summary.total_income == Decimal("0")
        assert summary.net_amount == Decimal("0")
        assert summary.category_wise_expense == []

    @pytest.mark.integration
    async def test_defaults_to_current_month(self, db_session):
        summary = await SummaryService.summary(db_session, USER_ID)
        now = datetime.now(timezone.utc)

        assert (summary.month, summary.year) == (now.month, now.year)

    @pytest.mark.unit
    @pytest.mark.parametrize("kwargs", [
        {"month": 9},
        {"year": 2026},
        {"start_date": datetime(2026, 9, 1)},
        {"start_date": datetime(2026, 9, 30), "end_date": datetime(2026, 9, 1)},
    ])
    async def test_incomplete_period(self, db_session, kwargs):
        with pytest.raises(LedgerValidationError):
            await SummaryService.summary(db_session, USER_ID, **kwargs)

    @pytest.mark.unit
    def test_month_range(self):
        start, end = month_range(2024, 2)

        assert start == datetime(2024, 2, 1, tzinfo=timezone.utc)
        assert end == datetime(2024, 2, 29, 23, 59, 59, 999999, tzinfo=timezone.utc)
        with pytest.raises(LedgerValidationError):
            month_range(2024, 13)


class TestIncomeExpenseSummary:
    """Tests for SummaryService.income_expense_summary"""

    @pytest.mark.integration
    async def test_daily(self, db_session, ledger):
        buckets = await SummaryService.income_expense_summary(db_session, USER_ID, "daily", date="10/09/2026")

        assert len(buckets) == 1
        assert buckets[0].date == "2026-09-10"
        assert buckets[0].expense == Decimal("200")
        assert buckets[0].income == Decimal("0")
        assert buckets[0].transactions[0].category == "Food & Dining"
        assert buckets[0].transactions[0].account == "Bank"

    @pytest.mark.integration
    async def test_monthly(self, db_session, ledger):
        buckets = await SummaryService.income_expense_summary(db_session, USER_ID, "monthly", month=9, year=2026)

        assert [b.date for b in buckets] == ["2026-09"]
        bucket = buckets[0]
        assert bucket.income == Decimal("530")
        assert bucket.expense == Decimal("330")
        assert bucket.credit_card_expenses == Decimal("80")
        assert bucket.credit_card_payments == Decimal("30")
        assert len(bucket.transactions) == 5
        uncategorised = [t for t in bucket.transactions if t.amount == Decimal("50")]
        assert uncategorised[0].category == "Uncategorized"
        assert uncategorised[0].account_type == "bank"

    @pytest.mark.integration
    async def test_yearly(self, db_session, ledger):
        buckets = await SummaryService.income_expense_summary(db_session, USER_ID, "yearly", year=2026)

        assert [b.date for b in buckets] == ["2026"]
        assert buckets[0].income == Decimal("830")
        assert buckets[0].expense == Decimal("1429")

    @pytest.mark.integration
    async def test_no_transactions(self, db_session):
        buckets = await SummaryService.income_expense_summary(db_session, USER_ID, "yearly", year=2001)

        assert buckets == []

    @pytest.mark.unit
    @pytest.mark.parametrize("filter_type,kwargs", [
        ("weekly", {}),
        ("daily", {}),
        ("daily", {"date": "2026-09-10"}),
        ("monthly", {"month": 9}),
        ("yearly", {}),
    ])
    async def test_invalid_input(self, db_session, filter_type, kwargs):
        with pytest.raises(LedgerValidationError):
            await SummaryService.income_expense_summary(db_session, USER_ID, filter_type, **kwargs)
