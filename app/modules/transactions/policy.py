"""
Balance mutation policy.

The single source of the ledger's sign convention. Given an account's type,
balance and limit, it decides what a credit or debit of `amount` does to the
balance and whether that is allowed:

    asset account    debit   balance - amount   (InsufficientFunds if amount > balance)
                     credit  balance + amount
    credit card      debit   balance + amount   (CreditLimitExceeded if over limit)
                     credit  balance - amount   (OverpaymentNotAllowed if amount > balance)

Create, update, delete and transfer all go through here.
"""
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from app.core.exceptions import (
    LedgerError,
    InvalidAmountError,
    InsufficientFundsError,
    CreditLimitExceededError,
    OverpaymentNotAllowedError,
    LedgerValidationError,
)
from app.modules.accounts.models import Account, AccountType
from app.modules.transactions.models import TransactionType


@dataclass(frozen=True)
class BalanceMutation:
    """Outcome of evaluating one entry against one balance"""
    previous_balance: Decimal
    new_balance: Decimal
    error: Optional[LedgerError] = None

    @property
    def allowed(self) -> bool:
        return self.error is None

    @property
    def delta(self) -> Decimal:
        return self.new_balance - self.previous_balance

    def raise_for_rejection(self) -> Decimal:
        if self.error is not None:
            raise self.error
        return self.new_balance


def _as_decimal(value) -> Decimal:
    if value is None:
        return Decimal("0")
    return value if isinstance(value, Decimal) else Decimal(str(value))


def signed_effect(account_type: AccountType, transaction_type: TransactionType, amount: Decimal) -> Decimal:
    """Balance delta of an entry, ignoring every bound"""
    amount = _as_decimal(amount)
    increases = (transaction_type == TransactionType.CREDIT) != (account_type == AccountType.CREDIT_CARD)
    return amount if increases else -amount


def evaluate(
    account_type: AccountType,
    transaction_type: TransactionType,
    amount,
    current_balance,
    limit=None,
) -> BalanceMutation:
    amount = _as_decimal(amount)
    current_balance = _as_decimal(current_balance)

    if amount <= 0:
        return BalanceMutation(current_balance, current_balance, InvalidAmountError())

    if account_type == AccountType.CREDIT_CARD:
        limit = _as_decimal(limit)
        if transaction_type == TransactionType.DEBIT:
            if current_balance + amount > limit:
                return BalanceMutation(current_balance, current_balance, CreditLimitExceededError())
            return BalanceMutation(current_balance, current_balance + amount)
        if amount > current_balance:
            return BalanceMutation(current_balance, current_balance, OverpaymentNotAllowedError())
        return BalanceMutation(current_balance, current_balance - amount)

    if transaction_type == TransactionType.DEBIT:
        if amount > current_balance:
            return BalanceMutation(current_balance, current_balance, InsufficientFundsError())
        return BalanceMutation(current_balance, current_balance - amount)
    return BalanceMutation(current_balance, current_balance + amount)


def reverse(
    account_type: AccountType,
    transaction_type: TransactionType,
    amount,
    current_balance,
) -> BalanceMutation:
    """Undo a committed entry by applying its inverse delta, ignoring every bound"""
    current_balance = _as_decimal(current_balance)
    delta = signed_effect(account_type, TransactionType(transaction_type), amount)
    return BalanceMutation(current_balance, current_balance - delta)


def settle(account_type: AccountType, previous_balance, new_balance, limit=None) -> BalanceMutation:
    """
    Check the net outcome of an update on one account.

    Only the final balance counts; the intermediate balance between undoing
    the old entry and applying the new one may sit outside the bounds. A
    balance may not move further past a bound it ends up outside of, so an
    edit that leaves the balance where it was always passes.
    """
    previous_balance = _as_decimal(previous_balance)
    new_balance = _as_decimal(new_balance)

    error = None
    if account_type == AccountType.CREDIT_CARD:
        if new_balance > previous_balance and new_balance > _as_decimal(limit):
            error = CreditLimitExceededError()
        elif new_balance < previous_balance and new_balance < 0:
            error = OverpaymentNotAllowedError()
    elif new_balance < previous_balance and new_balance < 0:
        error = InsufficientFundsError()

    if error is not None:
        return BalanceMutation(previous_balance, previous_balance, error)
    return BalanceMutation(previous_balance, new_balance)


def evaluate_for_account(account: Account, transaction_type: TransactionType, amount) -> BalanceMutation:
    return evaluate(account.account_type, transaction_type, amount, account.balance, account.limit)


def reverse_for_account(account: Account, transaction_type: TransactionType, amount) -> BalanceMutation:
    return reverse(account.account_type, transaction_type, amount, account.balance)


def settle_for_account(account: Account, previous_balance) -> BalanceMutation:
    return settle(account.account_type, previous_balance, account.balance, account.limit)


def validate_account_balance(account_type: AccountType, balance, limit=None) -> None:
    """Raise unless `balance` satisfies the account invariant"""
    balance = _as_decimal(balance)
    if account_type == AccountType.CREDIT_CARD:
        if limit is None or _as_decimal(limit) <= 0:
            raise LedgerValidationError("Credit card limit is required and must be greater than 0")
        if balance < 0:
            raise LedgerValidationError("Credit card balance cannot be negative")
        if balance > _as_decimal(limit):
            raise CreditLimitExceededError("Credit card balance cannot exceed its limit")
    elif balance < 0:
        raise InsufficientFundsError("Account balance cannot be negative")
