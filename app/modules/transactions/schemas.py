from pydantic import Field
from datetime import datetime
from decimal import Decimal
from typing import Optional, List
from enum import Enum

from app.core.responses import CamelModel
from app.modules.accounts.schemas import AccountResponse
from app.modules.categories.schemas import CategoryResponse


class TransactionTypeEnum(str, Enum):
    CREDIT = "credit"
    DEBIT = "debit"


class SummaryFilterEnum(str, Enum):
    DAILY = "daily"
    MONTHLY = "monthly"
    YEARLY = "yearly"


# ============ Transaction Schemas ============

class TransactionCreate(CamelModel):
    account_id: int
    transaction_type: TransactionTypeEnum
    amount: Decimal = Field(..., max_digits=15, decimal_places=2)
    category_id: Optional[int] = None
    description: str = ""
    date: Optional[datetime] = None
    tags: Optional[List[str]] = None
    location: Optional[List[str]] = None
    shared_with: List[int] = Field(default_factory=list)


class TransactionBatchCreate(CamelModel):
    transactions: List[TransactionCreate]


class TransactionUpdate(CamelModel):
    """Patch: unspecified fields keep their previous value"""
    account_id: Optional[int] = None
    transaction_type: Optional[TransactionTypeEnum] = None
    amount: Optional[Decimal] = Field(None, max_digits=15, decimal_places=2)
    category_id: Optional[int] = None
    description: Optional[str] = None
    date: Optional[datetime] = None
    tags: Optional[List[str]] = None
    location: Optional[List[str]] = None
    shared_with: Optional[List[int]] = None


class TransactionResponse(CamelModel):
    id: int
    user_id: int
    account_id: int
    category_id: Optional[int] = None
    transaction_type: TransactionTypeEnum
    amount: Decimal
    description: str = ""
    date: datetime
    reference_id: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    location: Optional[List[str]] = None
    shared_with: List[int] = Field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class TransactionDetail(TransactionResponse):
    """Transaction with its account and category resolved"""
    account: AccountResponse
    category: CategoryResponse


class TransactionListResponse(CamelModel):
    transactions: List[TransactionDetail]
    total_txn: int


class TransactionBatchResponse(CamelModel):
    transactions: List[TransactionResponse]


# ============ Transfer Schemas ============

class TransferRequest(CamelModel):
    source_account_id: int
    destination_account_id: int
    amount: Decimal = Field(..., max_digits=15, decimal_places=2)
    description: Optional[str] = None
    category_id: Optional[int] = None
    is_bill_payment: bool = False
    tags: Optional[List[str]] = None
    txn_date: Optional[datetime] = None


class TransferResponse(CamelModel):
    debit_transaction: TransactionResponse
    credit_transaction: TransactionResponse
    source_account: AccountResponse
    destination_account: AccountResponse


# ============ Summary Schemas ============

class CategoryAmount(CamelModel):
    category: str
    amount: Decimal


class TransactionSummaryResponse(CamelModel):
    month: int
    year: int
    start_date: datetime
    end_date: datetime
    total_income: Decimal
    total_expense: Decimal
    net_amount: Decimal
    last_month_savings: Decimal
    credit_card_expenses: Decimal
    credit_card_payments: Decimal
    prev_month_credit_card_expenses: Decimal
    prev_month_credit_card_payments: Decimal
    category_wise_expense: List[CategoryAmount]
    category_wise_income: List[CategoryAmount]


class GroupedTransaction(CamelModel):
    id: int
    type: TransactionTypeEnum
    amount: Decimal
    category: str
    account: str
    account_type: str
    date: datetime
    description: str = ""


class IncomeExpenseBucket(CamelModel):
    date: str
    income: Decimal = Decimal("0")
    expense: Decimal = Decimal("0")
    credit_card_expenses: Decimal = Decimal("0")
    credit_card_payments: Decimal = Decimal("0")
    transactions: List[GroupedTransaction] = Field(default_factory=list)

