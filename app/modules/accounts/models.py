from sqlalchemy import Column, Integer, String, Numeric, DateTime, Boolean, Index, Enum as SQLEnum
from sqlalchemy.sql import func
from app.core.database import Base
import enum


class AccountType(str, enum.Enum):
    """Account type enumeration"""
    BANK = "bank"
    CREDIT_CARD = "credit_card"
    WALLET = "wallet"
    CASH = "cash"
    DEMAT = "demat"
    OTHER = "other"


class AccountStatusEnum(str, enum.Enum):
    """Account status"""
    ACTIVE = "active"
    INACTIVE = "inactive"
    CLOSED = "closed"


class Account(Base):
    """
    Ledger account.

    For asset accounts `balance` is owned funds and never negative. For
    credit cards `balance` is outstanding debt and stays within [0, limit].
    """
    __tablename__ = "accounts"
    __table_args__ = (
        Index("ix_accounts_user_default", "user_id", "is_default"),
    )
    __mapper_args__ = {"eager_defaults": True}

    # Primary Key
    id = Column(Integer, primary_key=True, index=True)

    # Owner (provided by the auth service)
    user_id = Column(Integer, nullable=False, index=True)

    # Account Identifiers
    account_name = Column(String(100), nullable=False)
    account_number = Column(String(34), nullable=True)
    iban = Column(String(34), nullable=True)  # For European accounts
    swift_code = Column(String(11), nullable=True)  # For international transfers

    # Account Configuration
    account_type = Column(
        SQLEnum(AccountType, values_callable=lambda e: [m.value for m in e]),
        nullable=False
    )
    currency = Column(String(10), nullable=False)

    # Balances (using Numeric for precision with money)
    balance = Column(Numeric(15, 2), default=0, nullable=False)
    initial_balance = Column(Numeric(15, 2), default=0, nullable=False)
    limit = Column(Numeric(15, 2), nullable=True)  # credit cards only

    # Status
    is_default = Column(Boolean, default=False, nullable=False)
    status = Column(
        SQLEnum(AccountStatusEnum, values_callable=lambda e: [m.value for m in e]),
        default=AccountStatusEnum.ACTIVE,
        nullable=False
    )

    # Timestamps
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    @property
    def is_credit_card(self) -> bool:
        return self.account_type == AccountType.CREDIT_CARD

    @property
    def is_active(self) -> bool:
        return self.status == AccountStatusEnum.ACTIVE

    def __repr__(self):
        return f"<Account(id={self.id}, name={self.account_name}, type={self.account_type})>"
