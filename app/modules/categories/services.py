from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, and_, or_, update
from typing import List, Optional, Sequence, Union
import logging

from app.core.config import settings
from app.core.exceptions import NotFoundError, CategoryResolutionError, LedgerValidationError
from app.modules.categories.models import Category, CategoryTransactionType
from app.modules.categories.schemas import CategoryCreate, CategoryUpdate
from app.modules.transactions.models import Transaction

logger = logging.getLogger(__name__)


DEFAULT_CATEGORIES = [
    {"name": "Food & Dining", "type": CategoryTransactionType.DEBIT, "icon": "restaurant", "color": "#FF6B6B"},
    {"name": "Groceries", "type": CategoryTransactionType.DEBIT, "icon": "cart", "color": "#98D8C8"},
    {"name": "Transportation", "type": CategoryTransactionType.DEBIT, "icon": "car", "color": "#4ECDC4"},
    {"name": "Shopping", "type": CategoryTransactionType.DEBIT, "icon": "shopping_bag", "color": "#45B7D1"},
    {"name": "Entertainment", "type": CategoryTransactionType.DEBIT, "icon": "movie", "color": "#96CEB4"},
    {"name": "Utilities & Bills", "type": CategoryTransactionType.DEBIT, "icon": "receipt", "color": "#FFEAA7"},
    {"name": "Healthcare", "type": CategoryTransactionType.DEBIT, "icon": "medical", "color": "#DDA0DD"},
    {"name": "Investment", "type": CategoryTransactionType.DEBIT, "icon": "trending_up", "color": "#2ECC71"},
    {"name": "Transfer", "type": CategoryTransactionType.DEBIT, "icon": "swap", "color": "#95A5A6"},
    {"name": "Other Expenses", "type": CategoryTransactionType.DEBIT, "icon": "more", "color": "#808080"},
    {"name": "Salary", "type": CategoryTransactionType.CREDIT, "icon": "work", "color": "#27AE60"},
    {"name": "Interest", "type": CategoryTransactionType.CREDIT, "icon": "percent", "color": "#16A085"},
    {"name": "Refunds", "type": CategoryTransactionType.CREDIT, "icon": "undo", "color": "#3498DB"},
    {"name": "Other Income", "type": CategoryTransactionType.CREDIT, "icon": "more", "color": "#B8B8B8"},
]


class CategoryResolver:
    """
    Explicit category resolution.

    A category reference is either an id or a well-known predefined name.
    Ids resolve to a predefined category or one of the caller's own; names
    resolve to the predefined category of that name. Anything else is an
    error. When a transaction has no category at read time the documented
    default is `fallback()`, the predefined "Other Expenses" category.
    """

    @staticmethod
    async def resolve(
        db: AsyncSession,
        ref: Union[int, str],
        user_id: Optional[int] = None
    ) -> Category:
        if isinstance(ref, int):
            query = select(Category).where(
                and_(
                    Category.id == ref,
                    or_(Category.user_id.is_(None), Category.user_id == user_id)
                )
            )
            category = (await db.execute(query)).scalar_one_or_none()
            if category is None:
                raise NotFoundError(f"Category not found with categoryId:{ref}")
            return category

        query = select(Category).where(
            and_(Category.name == ref, Category.is_default.is_(True))
        )
        category = (await db.execute(query)).scalars().first()
        if category is None:
            raise CategoryResolutionError(f"Predefined category '{ref}' does not exist")
        return category

    @staticmethod
    async def resolve_first(db: AsyncSession, names: Sequence[str]) -> Category:
        """Resolve the first well-known name that exists"""
        for name in names:
            try:
                return await CategoryResolver.resolve(db, name)
            except CategoryResolutionError:
                continue
        raise CategoryResolutionError()

    @staticmethod
    async def fallback(db: AsyncSession) -> Category:
        """Persisted fallback category, or a deterministic unsaved stand-in"""
        try:
            return await CategoryResolver.resolve(db, settings.FALLBACK_CATEGORY_NAME)
        except CategoryResolutionError:
            return Category(
                id=None,
                name=settings.FALLBACK_CATEGORY_NAME,
                color=settings.FALLBACK_CATEGORY_COLOR,
                is_default=True,
                transaction_type=CategoryTransactionType.DEBIT,
            )


class CategoryService:
    """Service for managing categories"""

    @staticmethod
    async def get_categories(
        db: AsyncSession,
        user_id: int,
        transaction_type: Optional[str] = None
    ) -> List[Category]:
        """Get predefined categories plus the user's custom ones"""
        query = select(Category).where(
            or_(Category.is_default.is_(True), Category.user_id == user_id)
        )
        if transaction_type:
            query = query.where(Category.transaction_type == CategoryTransactionType(transaction_type))
        query = query.order_by(Category.is_default.desc(), Category.name)
        result = await db.execute(query)
        return list(result.scalars().all())

    @staticmethod
    async def _get_owned(db: AsyncSession, category_id: int, user_id: int) -> Category:
        query = select(Category).where(
            and_(Category.id == category_id, Category.user_id == user_id, Category.is_default.is_(False))
        )
        category = (await db.execute(query)).scalar_one_or_none()
        if not category:
            raise NotFoundError("Category not found or cannot be modified")
        return category

    @staticmethod
    async def create_category(db: AsyncSession, user_id: int, data: CategoryCreate) -> Category:
        """Create user-defined category"""
        existing = await db.execute(
            select(Category).where(and_(Category.name == data.name, Category.user_id == user_id))
        )
        if existing.scalar_one_or_none():
            raise LedgerValidationError("Category with this name already exists for the user.")

        if data.parent_id is not None:
            await CategoryResolver.resolve(db, data.parent_id, user_id)

        category = Category(
            user_id=user_id,
            name=data.name,
            color=data.color,
            icon=data.icon,
            parent_id=data.parent_id,
            transaction_type=CategoryTransactionType(data.transaction_type.value),
            is_default=False
        )
        db.add(category)
        await db.commit()
        await db.refresh(category)
        logger.info(f"Category {category.id} '{category.name}' created for user {user_id}")
        return category

    @staticmethod
    async def update_category(db: AsyncSession, category_id: int, user_id: int, data: CategoryUpdate) -> Category:
        """Update user-defined category (cannot update predefined categories)"""
        category = await CategoryService._get_owned(db, category_id, user_id)

        update_data = data.model_dump(exclude_unset=True)
        parent_id = update_data.get("parent_id")
        if parent_id is not None:
            if parent_id == category.id:
                raise LedgerValidationError("Category cannot be its own parent.")
            try:
                await CategoryResolver.resolve(db, parent_id, user_id)
            except NotFoundError:
                raise LedgerValidationError("Parent category does not exist.")

        for field, value in update_data.items():
            setattr(category, field, value)

        await db.commit()
        await db.refresh(category)
        return category

    @staticmethod
    async def delete_category(db: AsyncSession, category_id: int, user_id: int) -> None:
        """Delete user-defined category; its transactions fall back at read time"""
        category = await CategoryService._get_owned(db, category_id, user_id)

        await db.execute(
            update(Transaction)
            .where(Transaction.category_id == category.id)
            .values(category_id=None)
        )
        await db.execute(
            update(Category)
            .where(Category.parent_id == category.id)
            .values(parent_id=None)
        )
        await db.delete(category)
        await db.commit()
        logger.info(f"Category {category_id} deleted for user {user_id}")

    @staticmethod
    async def init_default_categories(db: AsyncSession) -> None:
        """Initialize predefined categories"""
        for cat_data in DEFAULT_CATEGORIES:
            existing = await db.execute(
                select(Category).where(
                    and_(Category.is_default.is_(True), Category.name == cat_data["name"])
                )
            )
            if not existing.scalars().first():
                db.add(Category(
                    name=cat_data["name"],
                    transaction_type=cat_data["type"],
                    icon=cat_data["icon"],
                    color=cat_data["color"],
                    is_default=True,
                    user_id=None
                ))

        await db.commit()
