from sqlalchemy.ext.asyncio import AsyncSession
from typing import List
from decimal import Decimal
import logging

from app.core.config import settings
from app.core.database import UnitOfWork
from app.core.exceptions import LedgerValidationError
from app.modules.accounts.models import Account, AccountType, AccountStatusEnum
from app.modules.accounts.store import AccountStore
from app.modules.accounts import schemas
from app.modules.transactions.policy import validate_account_balance

logger = logging.getLogger(__name__)


class AccountService:
    """Service layer for account management operations"""

    @staticmethod
    async def create_account(
        db: AsyncSession,
        user_id: int,
        account_data: schemas.AccountCreateRequest
    ) -> Account:
        """Create a new account for user"""
        account_type = AccountType(account_data.account_type.value)

        if account_type == AccountType.CREDIT_CARD:
            if account_data.limit is None or account_data.limit <= 0:
                raise LedgerValidationError("Credit card limit is required and must be greater than 0")
            limit = account_data.limit
        else:
            limit = None

        validate_account_balance(account_type, account_data.balance, limit)

        foreign = account_data.foreign_details
        async with UnitOfWork(db) as uow:
            if account_data.is_default:
                await AccountStore.unset_defaults(uow, user_id)

            account = Account(
                user_id=user_id,
                account_type=account_type,
                account_name=account_data.account_name,
                account_number=account_data.account_number,
                iban=foreign.iban if foreign else None,
                swift_code=foreign.swift_code if foreign else None,
                currency=account_data.currency or settings.DEFAULT_CURRENCY,
                balance=account_data.balance,
                initial_balance=account_data.balance,
                limit=limit,
                is_default=account_data.is_default,
                status=AccountStatusEnum.ACTIVE
            )
            uow.add(account)
            await uow.flush()

        await db.refresh(account)
        logger.info(f"Account {account.id} ({account_type.value}) created for user {user_id}")
        return account

    @staticmethod
    async def get_user_accounts(db: AsyncSession, user_id: int, include_inactive: bool = False) -> List[Account]:
        """Get accounts for a user, default first then newest first"""
        return await AccountStore.list_for_user(UnitOfWork(db), user_id, include_inactive)

    @staticmethod
    async def get_account(db: AsyncSession, account_id: int, user_id: int) -> Account:
        """Get specific account"""
        return await AccountStore.get(UnitOfWork(db), account_id, user_id)

    @staticmethod
    async def update_account(
        db: AsyncSession,
        account_id: int,
        user_id: int,
        data: schemas.AccountUpdateRequest
    ) -> Account:
        """
        Edit account fields.

        A direct balance correction must satisfy the account invariant and
        moves the opening balance by the same amount, so the balance keeps
        matching opening balance plus committed entries.
        """
        update_data = data.model_dump(exclude_unset=True)

        async with UnitOfWork(db) as uow:
            account = await AccountStore.get_for_update(uow, account_id, user_id, require_active=False)

            account_type = AccountType(update_data["account_type"].value) if "account_type" in update_data \
                else account.account_type
            limit = update_data.get("limit", account.limit)
            if account_type != AccountType.CREDIT_CARD:
                limit = None
            elif limit is None or limit <= 0:
                raise LedgerValidationError("Credit card limit is required and must be greater than 0")

            balance = update_data.get("balance", account.balance)
            validate_account_balance(account_type, balance, limit)

            if update_data.get("is_default"):
                await AccountStore.unset_defaults(uow, user_id, exclude_id=account.id)

            if "balance" in update_data:
                correction = Decimal(balance) - account.balance
                account.initial_balance = account.initial_balance + correction
                AccountStore.set_balance(uow, account, balance)
                logger.info(f"Account {account.id} balance corrected by {correction}")

            account.account_type = account_type
            account.limit = limit
            if "account_name" in update_data:
                account.account_name = update_data["account_name"]
            if "is_default" in update_data:
                account.is_default = update_data["is_default"]
            if "status" in update_data:
                account.status = AccountStatusEnum(update_data["status"].value)

        await db.refresh(account)
        return account

    @staticmethod
    async def deactivate_account(db: AsyncSession, account_id: int, user_id: int) -> Account:
        """Soft delete: mark the account inactive, keep its history"""
        async with UnitOfWork(db) as uow:
            account = await AccountStore.get_for_update(uow, account_id, user_id, require_active=False)
            account.status = AccountStatusEnum.INACTIVE

        await db.refresh(account)
        logger.info(f"Account {account_id} marked inactive for user {user_id}")
        return account
