"""
User endpoints for API v1.

Registration is public; every other route requires a bearer token.
Updating and deleting an account is reserved to the account owner and
to administrators.
"""

from typing import List

from fastapi import APIRouter, Depends, Response, status
from fastapi.responses import PlainTextResponse

from soundmap_api.app.core.security import get_current_user
from soundmap_api.app.schemas.user import UserCreate, UserRead, UserUpdate
from soundmap_api.app.services.user_service import UserService


router = APIRouter()

ALLOWED_METHODS = "GET, POST, PATCH, DELETE, OPTIONS"


@router.options("", status_code=status.HTTP_204_NO_CONTENT)
async def users_options() -> Response:
    return Response(status_code=status.HTTP_204_NO_CONTENT, headers={"Allow": ALLOWED_METHODS})


@router.post("", response_model=UserRead, status_code=status.HTTP_201_CREATED)
async def register_user(user: UserCreate) -> UserRead:
    """Register a new (non‑admin) user."""
    return await UserService.create_user(user)


@router.get("", response_model=List[UserRead])
async def list_users(current_user: dict = Depends(get_current_user)) -> List[UserRead]:
    return await UserService.list_users()


@router.get("/{username}", response_model=UserRead)
async def get_user(username: str, current_user: dict = Depends(get_current_user)) -> UserRead:
    return await UserService.get_user(username)


@router.patch("/{username}", response_model=UserRead)
async def update_user(
    username: str,
    body: UserUpdate,
    current_user: dict = Depends(get_current_user),
) -> UserRead:
    """Update the email and/or password of a user.

    The username cannot be changed.  A new password must contain at
    least eight characters.
    """
    return await UserService.update_user(username, body, current_user)


@router.delete("/{username}", response_class=PlainTextResponse)
async def delete_user(username: str, current_user: dict = Depends(get_current_user)) -> str:
    """Delete a user together with their sounds and all related comments."""
    await UserService.delete_user(username, current_user)
    return "User successfully deleted"
