from sqlalchemy.ext.asyncio import AsyncSession
from datetime import datetime, time, timezone
from typing import List, Optional
import logging

from app.core.config import settings
from app.core.database import UnitOfWork
from app.core.exceptions import NotFoundError, LedgerValidationError, InvalidAmountError
from app.modules.accounts.schemas import AccountResponse
from app.modules.accounts.store import AccountStore
from app.modules.categories.schemas import CategoryResponse
from app.modules.categories.services import CategoryResolver
from app.modules.transactions.models import Transaction, TransactionType
from app.modules.transactions.policy import (
    BalanceMutation,
    evaluate_for_account,
    reverse_for_account,
    settle_for_account,
    signed_effect,
)
from app.modules.transactions.store import TransactionStore, TransactionFilters
from app.modules.transactions import schemas

logger = logging.getLogger(__name__)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Naive datetimes are taken to be UTC"""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def end_of_day(value: Optional[datetime]) -> Optional[datetime]:
    """A bare date as upper bound covers the whole day"""
    value = as_utc(value)
    if value is not None and value.time() == time(0, 0):
        value = value.replace(hour=23, minute=59, second=59, microsecond=999999)
    return value


def enforce(mutation: BalanceMutation, context: str):
    """Raise the policy rejection, logging the violated rule"""
    if not mutation.allowed:
        logger.warning(f"Rejected {context}: {mutation.error.message}")
    return mutation.raise_for_rejection()


class TransactionService:
    """
    Transaction processor.

    Every create, update and delete couples one transaction row with one or
    two account balance writes inside a single unit of work.
    """

    @staticmethod
    async def _category_id(uow: UnitOfWork, category_id: Optional[int], user_id: int) -> Optional[int]:
        if category_id is None:
            return None
        category = await CategoryResolver.resolve(uow.session, category_id, user_id)
        return category.id

    @staticmethod
    async def _create_single(uow: UnitOfWork, user_id: int, data: schemas.TransactionCreate) -> Transaction:
        account = await AccountStore.get_for_update(uow, data.account_id, user_id)
        category_id = await TransactionService._category_id(uow, data.category_id, user_id)
        transaction_type = TransactionType(data.transaction_type.value)

        mutation = evaluate_for_account(account, transaction_type, data.amount)
        enforce(mutation, f"{transaction_type.value} of {data.amount} on account {account.id}")
        AccountStore.set_balance(uow, account, mutation.new_balance)

        txn = TransactionStore.add(uow, Transaction(
            user_id=user_id,
            account_id=account.id,
            category_id=category_id,
            transaction_type=transaction_type,
            amount=data.amount,
            description=data.description,
            date=as_utc(data.date) or datetime.now(timezone.utc),
            tags=data.tags if data.tags else settings.default_tags_list,
            location=data.location,
            shared_with=data.shared_with
        ))
        # The next lock in this unit reloads the account, so the balance must reach the database first
        await uow.flush()
        return txn

    @staticmethod
    async def create_transaction(db: AsyncSession, user_id: int, data: schemas.TransactionCreate) -> Transaction:
        """Create one transaction and apply its balance effect"""
        async with UnitOfWork(db) as uow:
            txn = await TransactionService._create_single(uow, user_id, data)

        await db.refresh(txn)
        logger.info(
            f"Transaction {txn.id} created: {txn.transaction_type.value} {txn.amount} "
            f"on account {txn.account_id} for user {user_id}"
        )
        return txn

    @staticmethod
    async def create_many(
        db: AsyncSession,
        user_id: int,
        items: List[schemas.TransactionCreate]
    ) -> List[Transaction]:
        """Create a batch of transactions; any failure rolls back the whole batch"""
        if not items:
            raise LedgerValidationError("Transactions list is required")

        async with UnitOfWork(db) as uow:
            created = []
            for data in items:
                created.append(await TransactionService._create_single(uow, user_id, data))

        for txn in created:
            await db.refresh(txn)
        logger.info(f"Batch of {len(created)} transactions created for user {user_id}")
        return created

    @staticmethod
    async def update_transaction(
        db: AsyncSession,
        transaction_id: int,
        user_id: int,
        data: schemas.TransactionUpdate
    ) -> Transaction:
        """
        Update a transaction.

        Works like delete-then-create: the old effect is reversed without
        bounds, the patched entry's effect is applied, and only the final
        balance of each touched account is checked. Moving the entry to
        another account reverses on the old account and applies on the new
        one. Any rejection aborts the unit with no balance change.
        """
        patch = data.model_dump(exclude_unset=True)

        async with UnitOfWork(db) as uow:
            txn = await TransactionStore.get_for_update(uow, transaction_id, user_id)

            target_id = patch.get("account_id") or txn.account_id
            accounts = await AccountStore.lock_many(uow, {txn.account_id, target_id}, user_id)
            old_account = accounts[txn.account_id]
            new_account = accounts[target_id]
            starting = {account_id: account.balance for account_id, account in accounts.items()}

            transaction_type = TransactionType(patch["transaction_type"].value) \
                if patch.get("transaction_type") else txn.transaction_type
            amount = patch["amount"] if patch.get("amount") is not None else txn.amount
            if amount <= 0:
                raise InvalidAmountError()

            reversal = reverse_for_account(old_account, txn.transaction_type, txn.amount)
            AccountStore.set_balance(uow, old_account, reversal.new_balance)
            # Same account: new_account is old_account, already at the reversed balance
            AccountStore.set_balance(
                uow, new_account,
                new_account.balance + signed_effect(new_account.account_type, transaction_type, amount)
            )

            for account_id, account in accounts.items():
                outcome = settle_for_account(account, starting[account_id])
                enforce(outcome, f"update of transaction {txn.id} on account {account_id}")

            txn.account_id = new_account.id
            txn.transaction_type = transaction_type
            txn.amount = amount
            if "category_id" in patch:
                txn.category_id = await TransactionService._category_id(uow, patch["category_id"], user_id)
            if patch.get("description") is not None:
                txn.description = patch["description"]
            if patch.get("date") is not None:
                txn.date = as_utc(patch["date"])
            if patch.get("tags") is not None:
                txn.tags = patch["tags"]
            if "location" in patch:
                txn.location = patch["location"]
            if patch.get("shared_with") is not None:
                txn.shared_with = patch["shared_with"]

        await db.refresh(txn)
        logger.info(
            f"Transaction {txn.id} updated: {txn.transaction_type.value} {txn.amount} "
            f"on account {txn.account_id}"
        )
        return txn

    @staticmethod
    async def delete_transaction(db: AsyncSession, transaction_id: int, user_id: int) -> None:
        """Delete a transaction and reverse its balance effect unconditionally"""
        async with UnitOfWork(db) as uow:
            txn = await TransactionStore.get_for_update(uow, transaction_id, user_id)
            account = await AccountStore.get_for_update(uow, txn.account_id, user_id, require_active=False)

            reversal = reverse_for_account(account, txn.transaction_type, txn.amount)
            AccountStore.set_balance(uow, account, reversal.new_balance)
            await TransactionStore.delete(uow, txn)

        logger.info(f"Transaction {transaction_id} deleted, account {account.id} balance {account.balance}")

    @staticmethod
    async def to_details(db: AsyncSession, transactions: List[Transaction]) -> List[schemas.TransactionDetail]:
        """Resolve account and category; a missing category becomes the fallback"""
        fallback = None
        details = []
        for txn in transactions:
            category = txn.category
            if category is None:
                if fallback is None:
                    fallback = await CategoryResolver.fallback(db)
                category = fallback
            details.append(schemas.TransactionDetail(
                **schemas.TransactionResponse.model_validate(txn).model_dump(),
                account=AccountResponse.model_validate(txn.account),
                category=CategoryResponse.model_validate(category)
            ))
        return details

    @staticmethod
    async def get_transactions(
        db: AsyncSession,
        user_id: int,
        filters: TransactionFilters
    ) -> List[schemas.TransactionDetail]:
        """Filtered transactions, newest first"""
        filters.start_date = as_utc(filters.start_date)
        filters.end_date = end_of_day(filters.end_date)
        transactions = await TransactionStore.find(UnitOfWork(db), user_id, filters)
        return await TransactionService.to_details(db, transactions)

    @staticmethod
    async def get_by_type(
        db: AsyncSession,
        user_id: int,
        transaction_type: TransactionType,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
        category_id: Optional[int] = None
    ) -> List[schemas.TransactionDetail]:
        """Expenses (debits) or income (credits); 404 when there are none"""
        filters = TransactionFilters(
            start_date=start_date,
            end_date=end_date,
            transaction_type=transaction_type,
            category_id=category_id
        )
        details = await TransactionService.get_transactions(db, user_id, filters)
        if not details:
            label = "expenses" if transaction_type == TransactionType.DEBIT else "income"
            raise NotFoundError(f"No {label} found for the given filters")
        return details

    @staticmethod
    async def get_investments(
        db: AsyncSession,
        user_id: int,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None
    ) -> List[schemas.TransactionDetail]:
        """Transactions in the "investment" category or carrying custom tags"""
        filters = TransactionFilters(start_date=as_utc(start_date), end_date=end_of_day(end_date))
        transactions = await TransactionStore.find(UnitOfWork(db), user_id, filters)

        default_tags = set(settings.default_tags_list)
        investments = [
            txn for txn in transactions
            if (txn.category is not None and txn.category.name.lower() == "investment")
            or set(txn.tags or []) - default_tags
        ]
        if not investments:
            raise NotFoundError("No investment or tagged transactions found")
        return await TransactionService.to_details(db, investments)
