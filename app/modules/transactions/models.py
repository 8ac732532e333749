from sqlalchemy import Column, Integer, String, Numeric, ForeignKey, DateTime, Text, JSON, Index, Enum as SQLEnum
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from app.core.database import Base
import enum


class TransactionType(str, enum.Enum):
    """Direction of a ledger entry"""
    CREDIT = "credit"
    DEBIT = "debit"

    @property
    def inverse(self) -> "TransactionType":
        return TransactionType.DEBIT if self is TransactionType.CREDIT else TransactionType.CREDIT


class Transaction(Base):
    """
    A single ledger entry against one account.
    The two legs of a transfer share a `reference_id`.
    """
    __tablename__ = "transactions"
    __table_args__ = (
        Index("ix_transactions_user_date", "user_id", "date"),
    )
    __mapper_args__ = {"eager_defaults": True}

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, nullable=False, index=True)
    account_id = Column(Integer, ForeignKey("accounts.id"), nullable=False, index=True)
    category_id = Column(Integer, ForeignKey("categories.id", ondelete="SET NULL"), nullable=True, index=True)

    transaction_type = Column(
        SQLEnum(TransactionType, values_callable=lambda e: [m.value for m in e]),
        nullable=False
    )
    amount = Column(Numeric(15, 2), nullable=False)
    description = Column(Text, default="", nullable=False)
    date = Column(DateTime(timezone=True), nullable=False)

    reference_id = Column(String(64), nullable=True, index=True)
    tags = Column(JSON, nullable=False, default=list)
    location = Column(JSON, nullable=True)
    shared_with = Column(JSON, nullable=False, default=list)  # user ids

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    # Relationships
    account = relationship("Account", lazy="selectin")
    category = relationship("Category", lazy="selectin")

    def __repr__(self):
        return f"<Transaction(id={self.id}, type={self.transaction_type}, amount={self.amount})>"
