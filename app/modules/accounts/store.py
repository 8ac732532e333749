from sqlalchemy import select, and_, update
from typing import Dict, Iterable, List, Optional
from decimal import Decimal

from app.core.database import UnitOfWork
from app.core.exceptions import NotFoundError, InactiveAccountError
from app.modules.accounts.models import Account, AccountStatusEnum


class AccountStore:
    """
    Account persistence inside a unit of work.

    Reads that feed a balance write go through `get_for_update`/`lock_many`:
    the row is locked for the rest of the unit (SELECT ... FOR UPDATE) and
    the identity map is refreshed, so the balance check and the balance write
    see the same snapshot.
    """

    @staticmethod
    def _query(account_id: int, user_id: Optional[int]):
        query = select(Account).where(Account.id == account_id)
        if user_id is not None:
            query = query.where(Account.user_id == user_id)
        return query

    @staticmethod
    async def get(uow: UnitOfWork, account_id: int, user_id: Optional[int] = None) -> Account:
        result = await uow.session.execute(AccountStore._query(account_id, user_id))
        account = result.scalar_one_or_none()
        if not account:
            raise NotFoundError(f"Account not found with accountId:{account_id}")
        return account

    @staticmethod
    async def get_for_update(
        uow: UnitOfWork,
        account_id: int,
        user_id: Optional[int] = None,
        require_active: bool = True
    ) -> Account:
        query = (
            AccountStore._query(account_id, user_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        account = (await uow.session.execute(query)).scalar_one_or_none()
        if not account:
            raise NotFoundError(f"Account not found with accountId:{account_id}")
        if require_active and account.status != AccountStatusEnum.ACTIVE:
            raise InactiveAccountError(f"Account with accountId:{account_id} is inactive")
        return account

    @staticmethod
    async def lock_many(
        uow: UnitOfWork,
        account_ids: Iterable[int],
        user_id: Optional[int] = None,
        require_active: bool = True
    ) -> Dict[int, Account]:
        """Lock several accounts in ascending id order"""
        locked = {}
        for account_id in sorted(set(account_ids)):
            locked[account_id] = await AccountStore.get_for_update(uow, account_id, user_id, require_active)
        return locked

    @staticmethod
    def set_balance(uow: UnitOfWork, account: Account, new_balance: Decimal) -> Account:
        account.balance = new_balance
        uow.add(account)
        return account

    @staticmethod
    async def unset_defaults(uow: UnitOfWork, user_id: int, exclude_id: Optional[int] = None) -> None:
        query = update(Account).where(and_(Account.user_id == user_id, Account.is_default.is_(True)))
        if exclude_id is not None:
            query = query.where(Account.id != exclude_id)
        await uow.session.execute(query.values(is_default=False).execution_options(synchronize_session="fetch"))

    @staticmethod
    async def list_for_user(uow: UnitOfWork, user_id: int, include_inactive: bool = False) -> List[Account]:
        query = select(Account).where(Account.user_id == user_id)
        if not include_inactive:
            query = query.where(Account.status == AccountStatusEnum.ACTIVE)
        query = query.order_by(Account.is_default.desc(), Account.created_at.desc(), Account.id.desc())
        result = await uow.session.execute(query)
        return list(result.scalars().all())
