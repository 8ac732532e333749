from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from app.core.database import get_db
from app.core.dependencies import get_current_user_id
from app.core.responses import ApiResponse
from app.modules.accounts.schemas import AccountResponse
from app.modules.transactions import schemas
from app.modules.transactions.models import TransactionType
from app.modules.transactions.services import TransactionService
from app.modules.transactions.store import TransactionFilters
from app.modules.transactions.summary import SummaryService
from app.modules.transactions.transfers import TransferService

router = APIRouter(prefix="/api/v1/account", tags=["transactions"])


# ============ Ledger mutations ============

@router.post(
    "/transaction",
    response_model=ApiResponse[schemas.TransactionResponse],
    status_code=status.HTTP_201_CREATED
)
async def create_transaction(
    data: schemas.TransactionCreate,
    db: AsyncSession = Depends(get_db),
    user_id: int = Depends(get_current_user_id)
):
    """
    Create a transaction.

    - The account must be active and owned by the caller
    - Asset accounts cannot go below zero
    - Credit cards cannot exceed their limit or be overpaid
    """
    txn = await TransactionService.create_transaction(db, user_id, data)
    return ApiResponse(
        status_code=201,
        data=schemas.TransactionResponse.model_validate(txn),
        message="Transaction created successfully"
    )


@router.post(
    "/transaction/multitxn",
    response_model=ApiResponse[schemas.TransactionBatchResponse],
    status_code=status.HTTP_201_CREATED
)
async def create_multiple_transactions(
    data: schemas.TransactionBatchCreate,
    db: AsyncSession = Depends(get_db),
    user_id: int = Depends(get_current_user_id)
):
    """Create several transactions at once; one failure rejects the whole batch"""
    created = await TransactionService.create_many(db, user_id, data.transactions)
    return ApiResponse(
        status_code=201,
        data=schemas.TransactionBatchResponse(
            transactions=[schemas.TransactionResponse.model_validate(t) for t in created]
        ),
        message="Transactions created successfully"
    )


@router.post(
    "/transfer",
    response_model=ApiResponse[schemas.TransferResponse],
    status_code=status.HTTP_201_CREATED
)
async def transfer_money(
    data: schemas.TransferRequest,
    db: AsyncSession = Depends(get_db),
    user_id: int = Depends(get_current_user_id)
):
    """
    Transfer money between two of the caller's accounts.

    - Debit leg on the source, credit leg on the destination
    - Both legs share a referenceId and date
    - isBillPayment files the transfer under "Utilities & Bills"
    """
    debit_txn, credit_txn, source, destination = await TransferService.transfer(db, user_id, data)
    return ApiResponse(
        status_code=201,
        data=schemas.TransferResponse(
            debit_transaction=schemas.TransactionResponse.model_validate(debit_txn),
            credit_transaction=schemas.TransactionResponse.model_validate(credit_txn),
            source_account=AccountResponse.model_validate(source),
            destination_account=AccountResponse.model_validate(destination)
        ),
        message="Transfer completed successfully"
    )


# ============ Reads ============

@router.get("/transaction", response_model=ApiResponse[schemas.TransactionListResponse])
async def get_transactions(
    start_date: Optional[datetime] = Query(None, alias="startDate"),
    end_date: Optional[datetime] = Query(None, alias="endDate"),
    transaction_type: Optional[schemas.TransactionTypeEnum] = Query(None, alias="transactionType"),
    category_id: Optional[int] = Query(None, alias="categoryId"),
    account_id: Optional[int] = Query(None, alias="accountId"),
    min_amount: Optional[Decimal] = Query(None, alias="minAmount"),
    max_amount: Optional[Decimal] = Query(None, alias="maxAmount"),
    tags: Optional[str] = Query(None, description="Comma-separated tags"),
    db: AsyncSession = Depends(get_db),
    user_id: int = Depends(get_current_user_id)
):
    """List transactions, newest first"""
    filters = TransactionFilters(
        start_date=start_date,
        end_date=end_date,
        transaction_type=TransactionType(transaction_type.value) if transaction_type else None,
        category_id=category_id,
        account_id=account_id,
        min_amount=min_amount,
        max_amount=max_amount,
        tags=[tag.strip() for tag in tags.split(",") if tag.strip()] if tags else []
    )
    details = await TransactionService.get_transactions(db, user_id, filters)
    return ApiResponse(
        data=schemas.TransactionListResponse(transactions=details, total_txn=len(details)),
        message="Transactions fetched successfully"
    )


@router.get("/transaction/summary", response_model=ApiResponse[schemas.TransactionSummaryResponse])
async def get_transaction_summary(
    month: Optional[int] = Query(None, ge=1, le=12),
    year: Optional[int] = Query(None, ge=1, le=9999),
    start_date: Optional[datetime] = Query(None, alias="startDate"),
    end_date: Optional[datetime] = Query(None, alias="endDate"),
    db: AsyncSession = Depends(get_db),
    user_id: int = Depends(get_current_user_id)
):
    """
    Income/expense summary.

    - month & year, or startDate & endDate; defaults to the current month
    - Includes previous-period savings and credit card rollups
    """
    summary = await SummaryService.summary(db, user_id, month, year, start_date, end_date)
    return ApiResponse(data=summary, message="Transaction summary fetched successfully")


@router.get("/transaction/incomeExpenseSummary", response_model=ApiResponse[List[schemas.IncomeExpenseBucket]])
async def get_income_expense_summary(
    filter_type: str = Query(..., alias="filterType"),
    date: Optional[str] = Query(None, description="DD/MM/YYYY, for the daily filter"),
    month: Optional[int] = Query(None, ge=1, le=12),
    year: Optional[int] = Query(None, ge=1, le=9999),
    db: AsyncSession = Depends(get_db),
    user_id: int = Depends(get_current_user_id)
):
    """Grouped income/expense time series (daily, monthly or yearly)"""
    buckets = await SummaryService.income_expense_summary(db, user_id, filter_type, date, month, year)
    return ApiResponse(data=buckets, message="Summary fetched successfully")


@router.get("/transaction/expense", response_model=ApiResponse[schemas.TransactionListResponse])
async def get_expenses(
    start_date: Optional[datetime] = Query(None, alias="startDate"),
    end_date: Optional[datetime] = Query(None, alias="endDate"),
    category_id: Optional[int] = Query(None, alias="categoryId"),
    db: AsyncSession = Depends(get_db),
    user_id: int = Depends(get_current_user_id)
):
    """Debit transactions"""
    details = await TransactionService.get_by_type(
        db, user_id, TransactionType.DEBIT, start_date, end_date, category_id
    )
    return ApiResponse(
        data=schemas.TransactionListResponse(transactions=details, total_txn=len(details)),
        message="Expenses fetched successfully"
    )


@router.get("/transaction/income", response_model=ApiResponse[schemas.TransactionListResponse])
async def get_income(
    start_date: Optional[datetime] = Query(None, alias="startDate"),
    end_date: Optional[datetime] = Query(None, alias="endDate"),
    category_id: Optional[int] = Query(None, alias="categoryId"),
    db: AsyncSession = Depends(get_db),
    user_id: int = Depends(get_current_user_id)
):
    """Credit transactions"""
    details = await TransactionService.get_by_type(
        db, user_id, TransactionType.CREDIT, start_date, end_date, category_id
    )
    return ApiResponse(
        data=schemas.TransactionListResponse(transactions=details, total_txn=len(details)),
        message="Income fetched successfully"
    )


@router.get("/transaction/investment", response_model=ApiResponse[schemas.TransactionListResponse])
async def get_investments(
    start_date: Optional[datetime] = Query(None, alias="startDate"),
    end_date: Optional[datetime] = Query(None, alias="endDate"),
    db: AsyncSession = Depends(get_db),
    user_id: int = Depends(get_current_user_id)
):
    """Investment-category or custom-tagged transactions"""
    details = await TransactionService.get_investments(db, user_id, start_date, end_date)
    return ApiResponse(
        data=schemas.TransactionListResponse(transactions=details, total_txn=len(details)),
        message="Investment or tagged transactions fetched successfully"
    )


# ============ Single transaction ============

@router.put("/transaction/{transaction_id}", response_model=ApiResponse[schemas.TransactionResponse])
async def update_transaction(
    transaction_id: int,
    data: schemas.TransactionUpdate,
    db: AsyncSession = Depends(get_db),
    user_id: int = Depends(get_current_user_id)
):
    """
    Update a transaction.

    - The old balance effect is reversed and the new one applied
    - accountId moves the entry to another active account
    """
    txn = await TransactionService.update_transaction(db, transaction_id, user_id, data)
    return ApiResponse(
        data=schemas.TransactionResponse.model_validate(txn),
        message="Transaction updated successfully"
    )


@router.delete("/transaction/{transaction_id}", response_model=ApiResponse)
async def delete_transaction(
    transaction_id: int,
    db: AsyncSession = Depends(get_db),
    user_id: int = Depends(get_current_user_id)
):
    """Delete a transaction and restore its account balance"""
    await TransactionService.delete_transaction(db, transaction_id, user_id)
    return ApiResponse(message="Transaction deleted successfully")
