from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional

from app.core.database import get_db
from app.core.dependencies import get_current_user_id
from app.core.responses import ApiResponse
from app.modules.categories import schemas
from app.modules.categories.services import CategoryService

router = APIRouter(prefix="/api/v1/category", tags=["categories"])


@router.post(
    "/create",
    response_model=ApiResponse[schemas.CategoryResponse],
    status_code=status.HTTP_201_CREATED
)
async def create_category(
    data: schemas.CategoryCreate,
    db: AsyncSession = Depends(get_db),
    user_id: int = Depends(get_current_user_id)
):
    """
    Create a custom category.

    - Name must be unique for the user
    - Parent category must exist
    """
    category = await CategoryService.create_category(db, user_id, data)
    return ApiResponse(
        status_code=201,
        data=schemas.CategoryResponse.model_validate(category),
        message="Category created successfully"
    )


@router.get("/getAll", response_model=ApiResponse[schemas.CategoryListResponse])
async def get_categories(
    transaction_type: Optional[schemas.CategoryTransactionTypeEnum] = Query(None, alias="transactionType"),
    db: AsyncSession = Depends(get_db),
    user_id: int = Depends(get_current_user_id)
):
    """Get predefined categories plus the user's custom categories"""
    categories = await CategoryService.get_categories(
        db, user_id, transaction_type.value if transaction_type else None
    )
    return ApiResponse(
        data=schemas.CategoryListResponse(
            categories=[schemas.CategoryResponse.model_validate(c) for c in categories],
            total_records=len(categories)
        ),
        message="Categories fetched successfully"
    )


@router.put("/{category_id}", response_model=ApiResponse[schemas.CategoryResponse])
async def update_category(
    category_id: int,
    data: schemas.CategoryUpdate,
    db: AsyncSession = Depends(get_db),
    user_id: int = Depends(get_current_user_id)
):
    """Update custom category (cannot update predefined categories)"""
    category = await CategoryService.update_category(db, category_id, user_id, data)
    return ApiResponse(
        data=schemas.CategoryResponse.model_validate(category),
        message="Category updated successfully"
    )


@router.delete("/{category_id}", response_model=ApiResponse)
async def delete_category(
    category_id: int,
    db: AsyncSession = Depends(get_db),
    user_id: int = Depends(get_current_user_id)
):
    """Delete custom category (cannot delete predefined categories)"""
    await CategoryService.delete_category(db, category_id, user_id)
    return ApiResponse(message="Category deleted successfully")
