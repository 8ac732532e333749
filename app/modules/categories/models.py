from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, UniqueConstraint, Enum as SQLEnum
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from app.core.database import Base
import enum


class CategoryTransactionType(str, enum.Enum):
    """Direction a category is meant for"""
    CREDIT = "credit"
    DEBIT = "debit"


class Category(Base):
    """
    Transaction category.
    Predefined categories have no owner and are shared by every user;
    custom categories belong to one user.
    """
    __tablename__ = "categories"
    __table_args__ = (
        UniqueConstraint("name", "user_id", name="uq_categories_name_user"),
    )
    __mapper_args__ = {"eager_defaults": True}

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, nullable=True, index=True)  # NULL = predefined category

    name = Column(String(100), nullable=False)
    color = Column(String(7), default="#000000", nullable=False)
    icon = Column(String(50), nullable=True)
    is_default = Column(Boolean, default=True, nullable=False)
    transaction_type = Column(
        SQLEnum(CategoryTransactionType, values_callable=lambda e: [m.value for m in e]),
        default=CategoryTransactionType.DEBIT,
        nullable=False
    )
    parent_id = Column(Integer, ForeignKey("categories.id", ondelete="SET NULL"), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    # Relationships
    parent = relationship("Category", remote_side=[id], lazy="selectin")

    def __repr__(self):
        return f"<Category(id={self.id}, name={self.name}, default={self.is_default})>"
