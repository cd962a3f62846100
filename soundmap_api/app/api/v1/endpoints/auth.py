"""
Authentication endpoint for API v1.

``POST /auth/login`` exchanges an email and password for a bearer
token valid for seven days.  The token carries the user id and the
role (``admin`` or ``user``).
"""

from fastapi import APIRouter

from soundmap_api.app.core.errors import Unauthorized
from soundmap_api.app.core.security import ROLE_ADMIN, ROLE_USER, create_access_token
from soundmap_api.app.schemas.user import UserLogin
from soundmap_api.app.services.user_service import UserService


router = APIRouter()


@router.post("/login")
async def login(credentials: UserLogin) -> dict:
    user = await UserService.authenticate(credentials.email, credentials.password)
    if not user:
        raise Unauthorized("Unauthorized")
    role = ROLE_ADMIN if user.is_admin else ROLE_USER
    return {"token": create_access_token(user.id, role)}
