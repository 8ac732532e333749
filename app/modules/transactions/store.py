from sqlalchemy import select, and_
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from app.core.database import UnitOfWork
from app.core.exceptions import NotFoundError
from app.modules.transactions.models import Transaction, TransactionType


@dataclass
class TransactionFilters:
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    transaction_type: Optional[TransactionType] = None
    category_id: Optional[int] = None
    account_id: Optional[int] = None
    min_amount: Optional[Decimal] = None
    max_amount: Optional[Decimal] = None
    tags: List[str] = field(default_factory=list)


class TransactionStore:
    """Transaction persistence inside a unit of work"""

    @staticmethod
    def add(uow: UnitOfWork, txn: Transaction) -> Transaction:
        uow.add(txn)
        return txn

    @staticmethod
    async def get(uow: UnitOfWork, transaction_id: int, user_id: Optional[int] = None) -> Transaction:
        query = select(Transaction).where(Transaction.id == transaction_id)
        if user_id is not None:
            query = query.where(Transaction.user_id == user_id)
        txn = (await uow.session.execute(query)).scalar_one_or_none()
        if not txn:
            raise NotFoundError("Transaction with the given ID does not exist")
        return txn

    @staticmethod
    async def get_for_update(uow: UnitOfWork, transaction_id: int, user_id: Optional[int] = None) -> Transaction:
        query = select(Transaction).where(Transaction.id == transaction_id)
        if user_id is not None:
            query = query.where(Transaction.user_id == user_id)
        query = query.with_for_update().execution_options(populate_existing=True)
        txn = (await uow.session.execute(query)).scalar_one_or_none()
        if not txn:
            raise NotFoundError("Transaction with the given ID does not exist")
        return txn

    @staticmethod
    async def delete(uow: UnitOfWork, txn: Transaction) -> None:
        await uow.session.delete(txn)

    @staticmethod
    async def find(
        uow: UnitOfWork,
        user_id: int,
        filters: TransactionFilters,
        newest_first: bool = True
    ) -> List[Transaction]:
        conditions = [Transaction.user_id == user_id]
        if filters.start_date:
            conditions.append(Transaction.date >= filters.start_date)
        if filters.end_date:
            conditions.append(Transaction.date <= filters.end_date)
        if filters.transaction_type:
            conditions.append(Transaction.transaction_type == filters.transaction_type)
        if filters.category_id:
            conditions.append(Transaction.category_id == filters.category_id)
        if filters.account_id:
            conditions.append(Transaction.account_id == filters.account_id)
        if filters.min_amount is not None:
            conditions.append(Transaction.amount >= filters.min_amount)
        if filters.max_amount is not None:
            conditions.append(Transaction.amount <= filters.max_amount)

        order = (Transaction.date.desc(), Transaction.id.desc()) if newest_first \
            else (Transaction.date.asc(), Transaction.id.asc())
        query = (
            select(Transaction)
            .where(and_(*conditions))
            .order_by(*order)
            .execution_options(populate_existing=True)
        )
        transactions = list((await uow.session.execute(query)).scalars().all())

        # JSON tag lists are matched in Python so the filter works on every backend
        if filters.tags:
            wanted = set(filters.tags)
            transactions = [t for t in transactions if wanted.intersection(t.tags or [])]
        return transactions
