from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.dependencies import get_current_user_id
from app.core.responses import ApiResponse
from app.modules.accounts import schemas, services

router = APIRouter(prefix="/api/v1/account", tags=["accounts"])


@router.post(
    "/create",
    response_model=ApiResponse[schemas.AccountResponse],
    status_code=status.HTTP_201_CREATED
)
async def create_account(
    account_data: schemas.AccountCreateRequest,
    db: AsyncSession = Depends(get_db),
    user_id: int = Depends(get_current_user_id)
):
    """
    Create a new account (bank/credit_card/wallet/cash/demat/other).

    - Credit cards require a positive limit
    - Setting isDefault unsets the user's other default account
    - Currency falls back to the configured default symbol
    """
    account = await services.AccountService.create_account(db, user_id, account_data)
    return ApiResponse(
        status_code=201,
        data=schemas.AccountResponse.model_validate(account),
        message="Account created successfully"
    )


@router.get("/get", response_model=ApiResponse[schemas.AccountListResponse])
async def list_accounts(
    include_inactive: bool = Query(False, alias="includeInactive"),
    db: AsyncSession = Depends(get_db),
    user_id: int = Depends(get_current_user_id)
):
    """
    List user accounts.

    - Active accounts only unless includeInactive=true
    - Default account first, then newest first
    """
    accounts = await services.AccountService.get_user_accounts(db, user_id, include_inactive)
    return ApiResponse(
        data=schemas.AccountListResponse(
            accounts=[schemas.AccountResponse.model_validate(a) for a in accounts],
            total_accounts=len(accounts)
        ),
        message="Accounts fetched successfully"
    )


@router.put("/{account_id}", response_model=ApiResponse[schemas.AccountResponse])
async def update_account(
    account_id: int,
    data: schemas.AccountUpdateRequest,
    db: AsyncSession = Depends(get_db),
    user_id: int = Depends(get_current_user_id)
):
    """
    Edit account.

    - Name, type, default flag and status
    - Balance corrections are validated against the account invariant
    """
    account = await services.AccountService.update_account(db, account_id, user_id, data)
    return ApiResponse(
        data=schemas.AccountResponse.model_validate(account),
        message="Account updated successfully"
    )


@router.delete("/{account_id}", response_model=ApiResponse[schemas.AccountResponse])
async def delete_account(
    account_id: int,
    db: AsyncSession = Depends(get_db),
    user_id: int = Depends(get_current_user_id)
):
    """
    Soft-delete account.

    - Marks the account inactive; transactions are kept
    """
    account = await services.AccountService.deactivate_account(db, account_id, user_id)
    return ApiResponse(
        data=schemas.AccountResponse.model_validate(account),
        message="Account marked as deleted successfully"
    )
