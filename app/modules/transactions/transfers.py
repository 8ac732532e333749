from sqlalchemy.ext.asyncio import AsyncSession
from datetime import datetime, timezone
from decimal import Decimal
from typing import Tuple
import logging
import uuid

from app.core.config import settings
from app.core.database import UnitOfWork
from app.core.exceptions import InvalidAmountError, SameAccountTransferError, CategoryResolutionError
from app.modules.accounts.models import Account
from app.modules.accounts.store import AccountStore
from app.modules.categories.models import Category
from app.modules.categories.services import CategoryResolver
from app.modules.transactions.models import Transaction, TransactionType
from app.modules.transactions.policy import evaluate_for_account
from app.modules.transactions.services import as_utc, enforce
from app.modules.transactions.store import TransactionStore
from app.modules.transactions.schemas import TransferRequest

logger = logging.getLogger(__name__)


class TransferService:
    """Moves money between two of the caller's accounts as two linked entries"""

    @staticmethod
    async def _resolve_category(db: AsyncSession, request: TransferRequest, user_id: int) -> Category:
        if request.category_id is not None:
            return await CategoryResolver.resolve(db, request.category_id, user_id)
        names = [settings.BILL_PAYMENT_CATEGORY_NAME] if request.is_bill_payment \
            else [settings.TRANSFER_CATEGORY_NAME]
        names.append(settings.FALLBACK_CATEGORY_NAME)
        try:
            return await CategoryResolver.resolve_first(db, names)
        except CategoryResolutionError:
            logger.warning(f"Transfer rejected for user {user_id}: none of {names} exist")
            raise

    @staticmethod
    async def transfer(
        db: AsyncSession,
        user_id: int,
        request: TransferRequest
    ) -> Tuple[Transaction, Transaction, Account, Account]:
        """
        Transfer `amount` from source to destination.

        The source is debited and the destination credited, each through the
        balance policy, so a credit card source draws on available credit and
        a credit card destination is a bill payment that may not exceed the
        outstanding debt. Both legs share one reference id and one date.
        Returns (debit leg, credit leg, source, destination).
        """
        amount = Decimal(request.amount)
        if amount <= 0:
            raise InvalidAmountError()
        if request.source_account_id == request.destination_account_id:
            raise SameAccountTransferError()

        async with UnitOfWork(db) as uow:
            accounts = await AccountStore.lock_many(
                uow, [request.source_account_id, request.destination_account_id], user_id
            )
            source = accounts[request.source_account_id]
            destination = accounts[request.destination_account_id]

            category = await TransferService._resolve_category(uow.session, request, user_id)

            outgoing = evaluate_for_account(source, TransactionType.DEBIT, amount)
            enforce(outgoing, f"transfer of {amount} out of account {source.id}")
            incoming = evaluate_for_account(destination, TransactionType.CREDIT, amount)
            enforce(incoming, f"transfer of {amount} into account {destination.id}")

            AccountStore.set_balance(uow, source, outgoing.new_balance)
            AccountStore.set_balance(uow, destination, incoming.new_balance)

            reference_id = uuid.uuid4().hex
            txn_date = as_utc(request.txn_date) or datetime.now(timezone.utc)
            tags = request.tags or [
                "transfer",
                "bill-payment" if request.is_bill_payment else "internal-transfer"
            ]

            debit_txn = TransactionStore.add(uow, Transaction(
                user_id=user_id,
                account_id=source.id,
                category_id=category.id,
                transaction_type=TransactionType.DEBIT,
                amount=amount,
                description=request.description or f"Transfer to {destination.account_name}",
                date=txn_date,
                reference_id=reference_id,
                tags=list(tags),
                shared_with=[]
            ))
            credit_txn = TransactionStore.add(uow, Transaction(
                user_id=user_id,
                account_id=destination.id,
                category_id=category.id,
                transaction_type=TransactionType.CREDIT,
                amount=amount,
                description=request.description or f"Transfer from {source.account_name}",
                date=txn_date,
                reference_id=reference_id,
                tags=list(tags),
                shared_with=[]
            ))
            await uow.flush()

        for instance in (debit_txn, credit_txn, source, destination):
            await db.refresh(instance)

        logger.info(
            f"Transfer {reference_id}: {amount} from account {source.id} to account {destination.id} "
            f"for user {user_id}"
        )
        return debit_txn, credit_txn, source, destination
