"""
Top‑level router for version 1 of the API.

This router aggregates the domain routers (users, auth, sounds,
comments, categories) and the notification WebSocket.
"""

from fastapi import APIRouter

from .endpoints import auth, categories, comments, notifications, sounds, users


router = APIRouter()

router.include_router(users.router, prefix="/users", tags=["users"])
router.include_router(auth.router, prefix="/auth", tags=["auth"])
router.include_router(sounds.router, prefix="/sounds", tags=["sounds"])
router.include_router(comments.router, prefix="/comments", tags=["comments"])
router.include_router(categories.router, prefix="/categories", tags=["categories"])
router.include_router(notifications.router, tags=["notifications"])
