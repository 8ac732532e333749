"""
Tests for category resolution and custom categories
"""
import pytest
from decimal import Decimal

from app.core.exceptions import NotFoundError, CategoryResolutionError, LedgerValidationError
from app.modules.categories.schemas import CategoryCreate, CategoryUpdate
from app.modules.categories.services import CategoryResolver, CategoryService, DEFAULT_CATEGORIES
from app.modules.transactions.schemas import TransactionCreate
from app.modules.transactions.services import TransactionService
from app.modules.transactions.store import TransactionFilters

USER_ID = 1
OTHER_USER_ID = 2


class TestCategoryResolver:
    """Tests for CategoryResolver"""

    @pytest.mark.integration
    async def test_resolve_by_name(self, db_session, categories):
        category = await CategoryResolver.resolve(db_session, "Transfer")

        assert category.name == "Transfer"
        assert category.is_default is True

    @pytest.mark.integration
    async def test_resolve_unknown_name(self, db_session, categories):
        with pytest.raises(CategoryResolutionError):
            await CategoryResolver.resolve(db_session, "Lottery")

    @pytest.mark.integration
    async def test_resolve_by_id(self, db_session, categories):
        transfer = await CategoryResolver.resolve(db_session, "Transfer")

        category = await CategoryResolver.resolve(db_session, transfer.id, USER_ID)

        assert category.id == transfer.id

    @pytest.mark.integration
    async def test_resolve_foreign_or_missing_id(self, db_session):
        theirs = await CategoryService.create_category(db_session, OTHER_USER_ID, CategoryCreate(name="Theirs"))

        with pytest.raises(NotFoundError):
            await CategoryResolver.resolve(db_session, theirs.id, USER_ID)
        with pytest.raises(NotFoundError):
            await CategoryResolver.resolve(db_session, 9999, USER_ID)

    @pytest.mark.integration
    async def test_resolve_first(self, db_session, categories):
        category = await CategoryResolver.resolve_first(db_session, ["Missing", "Utilities & Bills", "Transfer"])

        assert category.name == "Utilities & Bills"

        with pytest.raises(CategoryResolutionError):
            await CategoryResolver.resolve_first(db_session, ["Missing", "Also Missing"])

    @pytest.mark.integration
    async def test_fallback(self, db_session):
        transient = await CategoryResolver.fallback(db_session)
        assert transient.id is None
        assert transient.name == "Other Expenses"

        await CategoryService.init_default_categories(db_session)
        persisted = await CategoryResolver.fallback(db_session)
        assert persisted.id is not None
        assert persisted.name == "Other Expenses"


class TestCategoryService:
    """Tests for CategoryService"""

    @pytest.mark.integration
    async def test_seeding_is_idempotent(self, db_session):
        await CategoryService.init_default_categories(db_session)
        await CategoryService.init_default_categories(db_session)

        categories = await CategoryService.get_categories(db_session, USER_ID)

        assert len(categories) == len(DEFAULT_CATEGORIES)

    @pytest.mark.integration
    async def test_custom_categories_are_private(self, db_session, categories):
        mine = await CategoryService.create_category(db_session, USER_ID, CategoryCreate(name="Pets"))
        await CategoryService.create_category(db_session, OTHER_USER_ID, CategoryCreate(name="Boats"))

        names = [c.name for c in await CategoryService.get_categories(db_session, USER_ID)]

        assert "Pets" in names
        assert "Boats" not in names
        assert mine.is_default is False

    @pytest.mark.integration
    async def test_filter_by_transaction_type(self, db_session, categories):
        income = await CategoryService.get_categories(db_session, USER_ID, "credit")

        assert income
        assert all(c.transaction_type.value == "credit" for c in income)

    @pytest.mark.integration
    async def test_duplicate_name(self, db_session):
        await CategoryService.create_category(db_session, USER_ID, CategoryCreate(name="Pets"))

        with pytest.raises(LedgerValidationError):
            await CategoryService.create_category(db_session, USER_ID, CategoryCreate(name="Pets"))

    @pytest.mark.integration
    async def test_update_parent_must_exist(self, db_session):
        pets = await CategoryService.create_category(db_session, USER_ID, CategoryCreate(name="Pets"))
        vet = await CategoryService.create_category(db_session, USER_ID, CategoryCreate(name="Vet"))

        updated = await CategoryService.update_category(
            db_session, vet.id, USER_ID, CategoryUpdate(parent_id=pets.id, color="#123456")
        )
        assert updated.parent_id == pets.id
        assert updated.color == "#123456"

        with pytest.raises(LedgerValidationError):
            await CategoryService.update_category(db_session, vet.id, USER_ID, CategoryUpdate(parent_id=9999))

    @pytest.mark.integration
    async def test_predefined_categories_are_read_only(self, db_session, categories):
        transfer = await CategoryResolver.resolve(db_session, "Transfer")

        with pytest.raises(NotFoundError):
            await CategoryService.update_category(db_session, transfer.id, USER_ID, CategoryUpdate(name="X"))
        with pytest.raises(NotFoundError):
            await CategoryService.delete_category(db_session, transfer.id, USER_ID)

    @pytest.mark.integration
    async def test_delete_falls_back_at_read_time(self, db_session, make_account, categories):
        """Transactions of a deleted category read as "Other Expenses" """
        pets = await CategoryService.create_category(db_session, USER_ID, CategoryCreate(name="Pets"))
        account = await make_account("100")
        txn = await TransactionService.create_transaction(
            db_session, USER_ID,
            TransactionCreate(account_id=account.id, transaction_type="debit", amount=Decimal("10"), category_id=pets.id)
        )

        await CategoryService.delete_category(db_session, pets.id, USER_ID)

        details = await TransactionService.get_transactions(db_session, USER_ID, TransactionFilters())
        assert details[0].id == txn.id
        assert details[0].category_id is None
        assert details[0].category.name == "Other Expenses"
