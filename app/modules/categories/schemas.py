from pydantic import Field
from datetime import datetime
from typing import Optional, List
from enum import Enum

from app.core.responses import CamelModel


class CategoryTransactionTypeEnum(str, Enum):
    CREDIT = "credit"
    DEBIT = "debit"


class CategoryCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=100)
    color: str = Field(default="#000000", max_length=7)
    icon: Optional[str] = None
    parent_id: Optional[int] = None
    transaction_type: CategoryTransactionTypeEnum = CategoryTransactionTypeEnum.DEBIT


class CategoryUpdate(CamelModel):
    """Schema for updating category (all optional)"""
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    color: Optional[str] = Field(None, max_length=7)
    icon: Optional[str] = None
    parent_id: Optional[int] = None


class CategoryResponse(CamelModel):
    id: Optional[int] = None
    name: str
    color: str
    icon: Optional[str] = None
    is_default: bool = True
    transaction_type: CategoryTransactionTypeEnum = CategoryTransactionTypeEnum.DEBIT
    user_id: Optional[int] = None
    parent_id: Optional[int] = None
    created_at: Optional[datetime] = None


class CategoryListResponse(CamelModel):
    categories: List[CategoryResponse]
    total_records: int
