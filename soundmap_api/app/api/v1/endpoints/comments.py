"""
Comment endpoints for API v1.

Listing accepts ``sound`` (sound id), ``user`` (username or id),
``limit`` and ``offset``.  Editing and deleting are reserved to the
author of the comment and to administrators.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response, status
from fastapi.responses import PlainTextResponse

from soundmap_api.app.core.security import get_current_user
from soundmap_api.app.schemas.comment import CommentCreate, CommentRead, CommentUpdate
from soundmap_api.app.services.comment_service import CommentService


router = APIRouter()

ALLOWED_METHODS = "GET, POST, PATCH, DELETE, OPTIONS"


@router.options("", status_code=status.HTTP_204_NO_CONTENT)
async def comments_options() -> Response:
    return Response(status_code=status.HTTP_204_NO_CONTENT, headers={"Allow": ALLOWED_METHODS})


@router.get("", response_model=List[CommentRead])
async def list_comments(
    sound: Optional[str] = Query(None),
    user: Optional[str] = Query(None),
    limit: Optional[str] = Query(None),
    offset: Optional[str] = Query(None),
    current_user: dict = Depends(get_current_user),
) -> List[CommentRead]:
    return await CommentService.list_comments(sound=sound, user=user, limit=limit, offset=offset)


@router.get("/{comment_id}", response_model=CommentRead)
async def get_comment(comment_id: str, current_user: dict = Depends(get_current_user)) -> CommentRead:
    return await CommentService.get_comment(comment_id)


@router.post("", response_model=CommentRead, status_code=status.HTTP_201_CREATED)
async def create_comment(
    comment: CommentCreate,
    current_user: dict = Depends(get_current_user),
) -> CommentRead:
    """Comment on a sound; the owner of the sound gets a notification."""
    return await CommentService.create_comment(comment, current_user)


@router.patch("/{comment_id}", response_model=CommentRead)
async def update_comment(
    comment_id: str,
    body: CommentUpdate,
    current_user: dict = Depends(get_current_user),
) -> CommentRead:
    return await CommentService.update_comment(comment_id, body, current_user)


@router.delete("/{comment_id}", response_class=PlainTextResponse)
async def delete_comment(comment_id: str, current_user: dict = Depends(get_current_user)) -> str:
    await CommentService.delete_comment(comment_id, current_user)
    return "Comment successfully deleted"
