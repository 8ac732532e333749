from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, and_
from datetime import datetime, timedelta, timezone
from dateutil.relativedelta import relativedelta
from decimal import Decimal
from typing import Dict, List, Optional, Tuple
import logging

from app.core.config import settings
from app.core.exceptions import LedgerValidationError
from app.modules.accounts.models import Account, AccountType
from app.modules.categories.models import Category
from app.modules.transactions.models import Transaction, TransactionType
from app.modules.transactions.services import as_utc, end_of_day
from app.modules.transactions import schemas

logger = logging.getLogger(__name__)

ZERO = Decimal("0")
ONE_MICROSECOND = timedelta(microseconds=1)


def month_range(year: int, month: int) -> Tuple[datetime, datetime]:
    """First and last instant of a calendar month (UTC)"""
    if not 1 <= month <= 12:
        raise LedgerValidationError("Month must be between 1 and 12")
    try:
        start = datetime(year, month, 1, tzinfo=timezone.utc)
    except ValueError:
        raise LedgerValidationError("Invalid year")
    return start, start + relativedelta(months=1) - ONE_MICROSECOND


class _Totals:
    """Income/expense and credit card rollup of one period"""

    def __init__(self):
        self.income = ZERO
        self.expense = ZERO
        self.credit_card_expenses = ZERO
        self.credit_card_payments = ZERO

    def add(self, transaction_type: TransactionType, amount: Decimal, account_type: AccountType):
        is_credit_card = account_type == AccountType.CREDIT_CARD
        if transaction_type == TransactionType.CREDIT:
            self.income += amount
            if is_credit_card:
                self.credit_card_payments += amount
        else:
            self.expense += amount
            if is_credit_card:
                self.credit_card_expenses += amount


class SummaryService:
    """Read-only period rollups over the user's transactions"""

    @staticmethod
    def _periods(
        month: Optional[int],
        year: Optional[int],
        start_date: Optional[datetime],
        end_date: Optional[datetime]
    ) -> Tuple[datetime, datetime, datetime, datetime]:
        """Requested period and the one immediately before it"""
        if (month is None) != (year is None):
            raise LedgerValidationError("Both month and year are required")
        if (start_date is None) != (end_date is None):
            raise LedgerValidationError("Both startDate and endDate are required")

        if month is not None:
            start, end = month_range(year, month)
        elif start_date is not None:
            start, end = as_utc(start_date), end_of_day(end_date)
            if start > end:
                raise LedgerValidationError("startDate must be before endDate")
            prev_end = start - ONE_MICROSECOND
            return start, end, prev_end - (end - start), prev_end
        else:
            now = datetime.now(timezone.utc)
            start, end = month_range(now.year, now.month)

        prev_start = start - relativedelta(months=1)
        return start, end, prev_start, start - ONE_MICROSECOND

    @staticmethod
    async def summary(
        db: AsyncSession,
        user_id: int,
        month: Optional[int] = None,
        year: Optional[int] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None
    ) -> schemas.TransactionSummaryResponse:
        """
        Totals for the requested period, defaulting to the current month.

        Previous-period figures cover the preceding calendar month for a
        month request, or the equal-length window just before a custom range.
        """
        start, end, prev_start, prev_end = SummaryService._periods(month, year, start_date, end_date)

        query = (
            select(
                Transaction.date,
                Transaction.transaction_type,
                Transaction.amount,
                Account.account_type,
                Category.name
            )
            .join(Account, Transaction.account_id == Account.id)
            .outerjoin(Category, Transaction.category_id == Category.id)
            .where(
                and_(
                    Transaction.user_id == user_id,
                    Transaction.date >= prev_start,
                    Transaction.date <= end
                )
            )
        )
        rows = (await db.execute(query)).all()

        current, previous = _Totals(), _Totals()
        expense_by_category: Dict[str, Decimal] = {}
        income_by_category: Dict[str, Decimal] = {}

        for txn_date, transaction_type, amount, account_type, category_name in rows:
            txn_date = as_utc(txn_date)
            if prev_start <= txn_date <= prev_end:
                previous.add(transaction_type, amount, account_type)
                continue
            if not start <= txn_date <= end:
                continue
            current.add(transaction_type, amount, account_type)

            name = category_name or settings.FALLBACK_CATEGORY_NAME
            bucket = income_by_category if transaction_type == TransactionType.CREDIT else expense_by_category
            bucket[name] = bucket.get(name, ZERO) + amount

        def breakdown(totals: Dict[str, Decimal]) -> List[schemas.CategoryAmount]:
            ordered = sorted(totals.items(), key=lambda item: item[1], reverse=True)
            return [schemas.CategoryAmount(category=name, amount=amount) for name, amount in ordered]

        return schemas.TransactionSummaryResponse(
            month=start.month,
            year=start.year,
            start_date=start,
            end_date=end,
            total_income=current.income,
            total_expense=current.expense,
            net_amount=current.income - current.expense,
            last_month_savings=previous.income - previous.expense,
            credit_card_expenses=current.credit_card_expenses,
            credit_card_payments=current.credit_card_payments,
            prev_month_credit_card_expenses=previous.credit_card_expenses,
            prev_month_credit_card_payments=previous.credit_card_payments,
            category_wise_expense=breakdown(expense_by_category),
            category_wise_income=breakdown(income_by_category)
        )

    @staticmethod
    async def income_expense_summary(
        db: AsyncSession,
        user_id: int,
        filter_type: str,
        date: Optional[str] = None,
        month: Optional[int] = None,
        year: Optional[int] = None
    ) -> List[schemas.IncomeExpenseBucket]:
        """Income and expense grouped by day, month or year, ascending"""
        try:
            filter_type = schemas.SummaryFilterEnum(filter_type)
        except ValueError:
            raise LedgerValidationError("Invalid filter type")

        if filter_type == schemas.SummaryFilterEnum.DAILY:
            if not date:
                raise LedgerValidationError("Date is required for daily filter")
            try:
                day = datetime.strptime(date, "%d/%m/%Y").replace(tzinfo=timezone.utc)
            except ValueError:
                raise LedgerValidationError("Invalid date format, expected DD/MM/YYYY")
            start, end, key_format = day, day + timedelta(days=1) - ONE_MICROSECOND, "%Y-%m-%d"
        elif filter_type == schemas.SummaryFilterEnum.MONTHLY:
            if not month or not year:
                raise LedgerValidationError("Month and year are required for monthly filter")
            start, end = month_range(year, month)
            key_format = "%Y-%m"
        else:
            if not year:
                raise LedgerValidationError("Year is required for yearly filter")
            start, _ = month_range(year, 1)
            _, end = month_range(year, 12)
            key_format = "%Y"

        query = (
            select(
                Transaction.id,
                Transaction.transaction_type,
                Transaction.amount,
                Transaction.date,
                Transaction.description,
                Account.account_name,
                Account.account_type,
                Category.name
            )
            .join(Account, Transaction.account_id == Account.id)
            .outerjoin(Category, Transaction.category_id == Category.id)
            .where(
                and_(
                    Transaction.user_id == user_id,
                    Transaction.date >= start,
                    Transaction.date <= end
                )
            )
            .order_by(Transaction.date.asc(), Transaction.id.asc())
        )
        rows = (await db.execute(query)).all()

        buckets: Dict[str, schemas.IncomeExpenseBucket] = {}
        for txn_id, transaction_type, amount, txn_date, description, account_name, account_type, category_name in rows:
            key = as_utc(txn_date).strftime(key_format)
            bucket = buckets.setdefault(key, schemas.IncomeExpenseBucket(date=key))

            if transaction_type == TransactionType.CREDIT:
                bucket.income += amount
                if account_type == AccountType.CREDIT_CARD:
                    bucket.credit_card_payments += amount
            else:
                bucket.expense += amount
                if account_type == AccountType.CREDIT_CARD:
                    bucket.credit_card_expenses += amount

            bucket.transactions.append(schemas.GroupedTransaction(
                id=txn_id,
                type=transaction_type.value,
                amount=amount,
                category=category_name or "Uncategorized",
                account=account_name,
                account_type=account_type.value,
                date=txn_date,
                description=description or ""
            ))

        logger.debug(f"{filter_type.value} summary for user {user_id}: {len(rows)} transactions in {len(buckets)} buckets")
        return [buckets[key] for key in sorted(buckets)]
