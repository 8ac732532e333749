from pydantic import Field, model_validator
from typing import Optional, List
from datetime import datetime
from decimal import Decimal
from enum import Enum

from app.core.responses import CamelModel


# Enums
class AccountTypeEnum(str, Enum):
    BANK = "bank"
    CREDIT_CARD = "credit_card"
    WALLET = "wallet"
    CASH = "cash"
    DEMAT = "demat"
    OTHER = "other"


class AccountStatusEnum(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    CLOSED = "closed"


class ForeignDetails(CamelModel):
    iban: Optional[str] = Field(None, max_length=34)
    swift_code: Optional[str] = Field(None, max_length=11)


# Account Creation
class AccountCreateRequest(CamelModel):
    """Request to create a new account"""
    account_type: AccountTypeEnum
    account_name: str = Field(..., min_length=1, max_length=100)
    account_number: Optional[str] = Field(None, max_length=34)
    currency: Optional[str] = Field(None, max_length=10)
    balance: Decimal = Field(default=Decimal("0"), max_digits=15, decimal_places=2)
    limit: Optional[Decimal] = Field(None, max_digits=15, decimal_places=2)
    is_default: bool = False
    foreign_details: Optional[ForeignDetails] = None


class AccountUpdateRequest(CamelModel):
    """Edit account fields (all optional)"""
    account_name: Optional[str] = Field(None, min_length=1, max_length=100)
    account_type: Optional[AccountTypeEnum] = None
    balance: Optional[Decimal] = Field(None, max_digits=15, decimal_places=2)
    limit: Optional[Decimal] = Field(None, max_digits=15, decimal_places=2)
    is_default: Optional[bool] = None
    status: Optional[AccountStatusEnum] = None

    @model_validator(mode="after")
    def _reject_explicit_nulls(self):
        for field in ("account_name", "account_type", "balance", "is_default", "status"):
            if field in self.model_fields_set and getattr(self, field) is None:
                raise ValueError(f"{field} cannot be null")
        return self


class AccountResponse(CamelModel):
    """Complete account details"""
    id: int
    user_id: int
    account_type: AccountTypeEnum
    account_name: str
    account_number: Optional[str] = None
    iban: Optional[str] = None
    swift_code: Optional[str] = None
    currency: str
    balance: Decimal
    initial_balance: Decimal
    limit: Optional[Decimal] = None
    is_default: bool
    status: AccountStatusEnum
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class AccountListResponse(CamelModel):
    accounts: List[AccountResponse]
    total_accounts: int
