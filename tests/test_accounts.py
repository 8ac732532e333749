"""
Tests for account lifecycle
"""
import pytest
from pydantic import ValidationError
from decimal import Decimal

from app.core.exceptions import (
    NotFoundError,
    InsufficientFundsError,
    CreditLimitExceededError,
    LedgerValidationError,
)
from app.modules.accounts.models import AccountStatusEnum, AccountType
from app.modules.accounts.schemas import AccountCreateRequest, AccountUpdateRequest
from app.modules.accounts.services import AccountService
from app.modules.transactions.schemas import TransactionCreate
from app.modules.transactions.services import TransactionService

USER_ID = 1
OTHER_USER_ID = 2


class TestAccountService:
    """Tests for AccountService"""

    @pytest.mark.integration
    async def test_create_bank_account(self, db_session):
        account = await AccountService.create_account(
            db_session, USER_ID,
            AccountCreateRequest(account_type="bank", account_name="Main", balance=Decimal("250"))
        )

        assert account.id is not None
        assert account.currency == "₹"
        assert account.balance == Decimal("250")
        assert account.initial_balance == Decimal("250")
        assert account.limit is None
        assert account.status == AccountStatusEnum.ACTIVE

    @pytest.mark.integration
    async def test_credit_card_requires_limit(self, db_session):
        with pytest.raises(LedgerValidationError):
            await AccountService.create_account(
                db_session, USER_ID,
                AccountCreateRequest(account_type="credit_card", account_name="Card")
            )

    @pytest.mark.integration
    async def test_opening_balance_must_satisfy_invariant(self, db_session):
        with pytest.raises(InsufficientFundsError):
            await AccountService.create_account(
                db_session, USER_ID,
                AccountCreateRequest(account_type="cash", account_name="Cash", balance=Decimal("-1"))
            )
        with pytest.raises(CreditLimitExceededError):
            await AccountService.create_account(
                db_session, USER_ID,
                AccountCreateRequest(
                    account_type="credit_card", account_name="Card",
                    balance=Decimal("600"), limit=Decimal("500")
                )
            )

    @pytest.mark.integration
    async def test_single_default_account(self, db_session):
        first = await AccountService.create_account(
            db_session, USER_ID, AccountCreateRequest(account_type="bank", account_name="First", is_default=True)
        )
        second = await AccountService.create_account(
            db_session, USER_ID, AccountCreateRequest(account_type="wallet", account_name="Second", is_default=True)
        )

        await db_session.refresh(first)
        assert first.is_default is False
        assert second.is_default is True

        accounts = await AccountService.get_user_accounts(db_session, USER_ID)
        assert accounts[0].id == second.id

    @pytest.mark.integration
    async def test_list_excludes_inactive_and_foreign(self, db_session, make_account):
        active = await make_account("10", name="Active")
        closed = await make_account("10", name="Closed", status=AccountStatusEnum.INACTIVE)
        await make_account("10", name="Theirs", user_id=OTHER_USER_ID)

        visible = await AccountService.get_user_accounts(db_session, USER_ID)
        everything = await AccountService.get_user_accounts(db_session, USER_ID, include_inactive=True)

        assert [a.id for a in visible] == [active.id]
        assert {a.id for a in everything} == {active.id, closed.id}

    @pytest.mark.integration
    async def test_balance_correction_shifts_initial_balance(self, db_session, make_account):
        """A corrected balance keeps balance == initial + credits - debits"""
        account = await make_account("100")
        await TransactionService.create_transaction(
            db_session, USER_ID,
            TransactionCreate(account_id=account.id, transaction_type="credit", amount=Decimal("50"))
        )

        updated = await AccountService.update_account(
            db_session, account.id, USER_ID, AccountUpdateRequest(balance=Decimal("200"))
        )

        assert updated.balance == Decimal("200")
        assert updated.initial_balance == Decimal("150")

    @pytest.mark.integration
    async def test_switch_to_credit_card_needs_limit(self, db_session, make_account):
        account = await make_account("0")

        with pytest.raises(LedgerValidationError):
            await AccountService.update_account(
                db_session, account.id, USER_ID, AccountUpdateRequest(account_type="credit_card")
            )

        updated = await AccountService.update_account(
            db_session, account.id, USER_ID,
            AccountUpdateRequest(account_type="credit_card", limit=Decimal("800"), account_name="Card")
        )
        assert updated.account_type == AccountType.CREDIT_CARD
        assert updated.limit == Decimal("800")
        assert updated.account_name == "Card"

    @pytest.mark.integration
    async def test_deactivate_is_soft(self, db_session, make_account):
        account = await make_account("10")

        deactivated = await AccountService.deactivate_account(db_session, account.id, USER_ID)

        assert deactivated.status == AccountStatusEnum.INACTIVE
        fetched = await AccountService.get_account(db_session, account.id, USER_ID)
        assert fetched.id == account.id

    @pytest.mark.unit
    def test_money_fields_have_two_decimals(self):
        with pytest.raises(ValidationError):
            AccountCreateRequest(account_type="bank", account_name="Main", balance=Decimal("10.005"))
        with pytest.raises(ValidationError):
            AccountCreateRequest(
                account_type="credit_card", account_name="Card", limit=Decimal("500.001")
            )
        with pytest.raises(ValidationError):
            AccountUpdateRequest(balance=Decimal("0.001"))

        assert AccountUpdateRequest(limit=Decimal("750.50")).limit == Decimal("750.50")

    @pytest.mark.integration
    async def test_foreign_account(self, db_session, make_account):
        theirs = await make_account("10", user_id=OTHER_USER_ID)

        with pytest.raises(NotFoundError):
            await AccountService.get_account(db_session, theirs.id, USER_ID)
        with pytest.raises(NotFoundError):
            await AccountService.deactivate_account(db_session, theirs.id, USER_ID)


class TestAccountAPI:
    """Tests for the account endpoints"""

    @pytest.mark.integration
    async def test_create_and_list(self, auth_client):
        response = await auth_client.post("/api/v1/account/create", json={
            "accountType": "credit_card",
            "accountName": "Travel Card",
            "limit": "1000",
            "isDefault": True
        })

        assert response.status_code == 201
        body = response.json()
        assert body["statusCode"] == 201
        assert body["success"] is True
        assert body["data"]["accountType"] == "credit_card"
        assert Decimal(body["data"]["limit"]) == Decimal("1000")

        listing = await auth_client.get("/api/v1/account/get")
        data = listing.json()["data"]
        assert data["totalAccounts"] == 1
        assert data["accounts"][0]["accountName"] == "Travel Card"

    @pytest.mark.integration
    async def test_missing_limit_is_400(self, auth_client):
        response = await auth_client.post("/api/v1/account/create", json={
            "accountType": "credit_card",
            "accountName": "Card"
        })

        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert body["data"] is None
        assert "limit" in body["message"]

    @pytest.mark.integration
    async def test_edit_and_delete(self, auth_client, make_account):
        account = await make_account("10", name="Old")

        edited = await auth_client.put(f"/api/v1/account/{account.id}", json={"accountName": "New"})
        deleted = await auth_client.delete(f"/api/v1/account/{account.id}")

        assert edited.json()["data"]["accountName"] == "New"
        assert deleted.json()["data"]["status"] == "inactive"

        listing = await auth_client.get("/api/v1/account/get", params={"includeInactive": "true"})
        assert listing.json()["data"]["totalAccounts"] == 1

    @pytest.mark.integration
    async def test_null_field_rejected(self, auth_client, make_account):
        account = await make_account("10")

        response = await auth_client.put(f"/api/v1/account/{account.id}", json={"accountName": None})

        assert response.status_code == 422
        assert response.json()["success"] is False
