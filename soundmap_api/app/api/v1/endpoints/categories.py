"""
Category endpoints for API v1.

Reading categories requires a bearer token; creating and deleting
them is restricted to administrators.
"""

from typing import List

from fastapi import APIRouter, Depends, Response, status

from soundmap_api.app.core.security import get_current_user, require_admin
from soundmap_api.app.schemas.category import CategoryCreate, CategoryRead
from soundmap_api.app.services.category_service import CategoryService


router = APIRouter()

ALLOWED_METHODS = "GET, POST, DELETE, OPTIONS"


@router.options("", status_code=status.HTTP_204_NO_CONTENT)
async def categories_options() -> Response:
    return Response(status_code=status.HTTP_204_NO_CONTENT, headers={"Allow": ALLOWED_METHODS})


@router.get("", response_model=List[CategoryRead])
async def list_categories(current_user: dict = Depends(get_current_user)) -> List[CategoryRead]:
    """List all categories sorted by name."""
    return await CategoryService.list_categories()


@router.get("/{name}", response_model=CategoryRead)
async def get_category(name: str, current_user: dict = Depends(get_current_user)) -> CategoryRead:
    return await CategoryService.get_category(name)


@router.post("", response_model=CategoryRead, status_code=status.HTTP_201_CREATED)
async def create_category(
    category: CategoryCreate,
    current_user: dict = Depends(require_admin),
) -> CategoryRead:
    return await CategoryService.create_category(category)


@router.delete("/{name}", response_model=CategoryRead)
async def delete_category(name: str, current_user: dict = Depends(require_admin)) -> CategoryRead:
    """Delete an unused category and return it."""
    return await CategoryService.delete_category(name)
