"""
Business logic for users.

Registration, authentication, self‑or‑admin updates and the cascading
delete of a user together with their sounds and every comment that
depends on them.  The cascade runs inside one SQLite transaction, so
either everything is removed or nothing is.
"""

import logging
import sqlite3
from typing import Dict, List, Optional

from ..core.db import get_connection, utcnow_iso
from ..core.errors import NotFound, Unauthorized
from ..core.security import hash_password, verify_password
from ..schemas.user import UserCreate, UserRead, UserUpdate
from .authorization import ensure_can_mutate
from .validation import validate_unique_user, validate_user_create, validate_user_update


logger = logging.getLogger(__name__)

_USER_COLUMNS = "id, username, email, is_admin"


def _user_from_row(row: sqlite3.Row) -> UserRead:
    return UserRead(
        id=row["id"],
        username=row["username"],
        email=row["email"],
        is_admin=bool(row["is_admin"]),
    )


def _load_by_username(cursor: sqlite3.Cursor, username: str) -> sqlite3.Row:
    row = cursor.execute(
        f"SELECT {_USER_COLUMNS} FROM users WHERE username = ?", (username,)
    ).fetchone()
    if not row:
        raise NotFound("User not found")
    return row


class UserService:
    """Service for user accounts."""

    @classmethod
    async def create_user(cls, data: UserCreate) -> UserRead:
        """Validate and store a new user with a hashed password.

        New accounts never have the admin flag; it can only be granted
        with the ``manage_users.py`` script.
        """
        validate_user_create(data.username, data.email, data.password).raise_for_errors("User")
        conn = get_connection()
        try:
            cursor = conn.cursor()
            validate_unique_user(cursor, username=data.username, email=data.email).raise_for_errors("User")
            cursor.execute(
                "INSERT INTO users (username, email, password, is_admin, created_at) VALUES (?, ?, ?, 0, ?)",
                (data.username, data.email, hash_password(data.password), utcnow_iso()),
            )
            user_id = cursor.lastrowid
            conn.commit()
            logger.info("Registered user %s (%s)", data.username, user_id)
            return UserRead(id=user_id, username=data.username, email=data.email, is_admin=False)
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    @classmethod
    async def authenticate(cls, email: str, password: str) -> Optional[UserRead]:
        """Return the user if the credentials match, otherwise ``None``."""
        conn = get_connection()
        try:
            row = conn.execute(
                f"SELECT {_USER_COLUMNS}, password FROM users WHERE email = ?", (email,)
            ).fetchone()
            if not row or not verify_password(password, row["password"]):
                return None
            return _user_from_row(row)
        finally:
            conn.close()

    @classmethod
    async def list_users(cls) -> List[UserRead]:
        conn = get_connection()
        try:
            rows = conn.execute(f"SELECT {_USER_COLUMNS} FROM users ORDER BY username").fetchall()
            return [_user_from_row(row) for row in rows]
        finally:
            conn.close()

    @classmethod
    async def get_user(cls, username: str) -> UserRead:
        conn = get_connection()
        try:
            return _user_from_row(_load_by_username(conn.cursor(), username))
        finally:
            conn.close()

    @classmethod
    async def get_user_by_id(cls, user_id: int) -> Optional[UserRead]:
        conn = get_connection()
        try:
            row = conn.execute(f"SELECT {_USER_COLUMNS} FROM users WHERE id = ?", (user_id,)).fetchone()
            return _user_from_row(row) if row else None
        finally:
            conn.close()

    @classmethod
    async def update_user(cls, username: str, data: UserUpdate, current_user: Dict[str, object]) -> UserRead:
        """Change the email and/or password of a user.

        The user must exist, then the caller must be that user or an
        admin.  The username itself is immutable.
        """
        conn = get_connection()
        try:
            cursor = conn.cursor()
            row = _load_by_username(cursor, username)
            ensure_can_mutate(current_user, row["id"], "You are not authorized to update this user")
            if "username" in data.model_fields_set:
                raise Unauthorized("Username cannot be modified")
            validate_user_update(data.email, data.password).raise_for_errors("User")
            validate_unique_user(cursor, email=data.email, exclude_id=row["id"]).raise_for_errors("User")

            updates = {}
            if data.email is not None:
                updates["email"] = data.email
            if data.password is not None:
                updates["password"] = hash_password(data.password)
            if updates:
                assignments = ", ".join(f"{key} = ?" for key in updates)
                cursor.execute(
                    f"UPDATE users SET {assignments} WHERE id = ?",
                    (*updates.values(), row["id"]),
                )
                conn.commit()
                logger.info("User %s updated fields %s", username, sorted(updates))
            updated = cursor.execute(
                f"SELECT {_USER_COLUMNS} FROM users WHERE id = ?", (row["id"],)
            ).fetchone()
            return _user_from_row(updated)
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    @classmethod
    async def delete_user(cls, username: str, current_user: Dict[str, object]) -> None:
        """Delete a user, their comments, their sounds and the comments on those sounds."""
        conn = get_connection()
        try:
            cursor = conn.cursor()
            row = _load_by_username(cursor, username)
            ensure_can_mutate(current_user, row["id"], "You are not authorized to delete this user")
            user_id = row["id"]
            own_comments = cursor.execute("DELETE FROM comments WHERE user_id = ?", (user_id,)).rowcount
            sound_comments = cursor.execute(
                "DELETE FROM comments WHERE sound_id IN (SELECT id FROM sounds WHERE user_id = ?)",
                (user_id,),
            ).rowcount
            sounds = cursor.execute("DELETE FROM sounds WHERE user_id = ?", (user_id,)).rowcount
            cursor.execute("DELETE FROM users WHERE id = ?", (user_id,))
            conn.commit()
            logger.info(
                "Deleted user %s with %d sounds and %d comments",
                username, sounds, own_comments + sound_comments,
            )
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()
