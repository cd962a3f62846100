"""
Business logic for comments.

Any authenticated user may comment on an existing sound; only the
author of a comment or an admin may edit or delete it.  Creating a
comment pushes a "New comment" notification to the owner of the sound.
"""

import logging
import sqlite3
from typing import Any, Dict, List, Optional

from fastapi import status

from ..core.db import get_connection, utcnow_iso
from ..core.errors import BadRequest, NotFound
from ..core.notifications import relay
from ..schemas.comment import CommentCreate, CommentRead, CommentUpdate
from ..schemas.user import UserSummary
from .authorization import ensure_can_mutate
from .query_builder import build_comment_query, parse_id, resolve_sound, resolve_user
from .validation import validate_comment_text


logger = logging.getLogger(__name__)

NEW_COMMENT_MESSAGE = "New comment"
NEW_COMMENT_CODE = status.HTTP_201_CREATED

_COMMENT_SELECT = """
    SELECT c.id, c.sound_id, c.user_id, u.username, c.text, c.created_at
    FROM comments c
    JOIN users u ON u.id = c.user_id
"""


def _comment_from_row(row: sqlite3.Row) -> CommentRead:
    return CommentRead(
        id=row["id"],
        sound=row["sound_id"],
        author=UserSummary(id=row["user_id"], username=row["username"]),
        text=row["text"],
        created_at=row["created_at"],
    )


def _load_comment(cursor: sqlite3.Cursor, comment_id: Any) -> sqlite3.Row:
    row = None
    if parse_id(comment_id) is not None:
        row = cursor.execute(_COMMENT_SELECT + " WHERE c.id = ?", (parse_id(comment_id),)).fetchone()
    if not row:
        raise NotFound("Comment not found")
    return row


class CommentService:
    """Service for comments on sounds."""

    @classmethod
    async def list_comments(
        cls,
        sound: Optional[str] = None,
        user: Optional[str] = None,
        limit: Optional[str] = None,
        offset: Optional[str] = None,
    ) -> List[CommentRead]:
        conn = get_connection()
        try:
            cursor = conn.cursor()
            query = build_comment_query(cursor, sound=sound, user=user, limit=limit, offset=offset)
            where, params = query.where("c")
            tail, paging = query.tail("c")
            rows = cursor.execute(_COMMENT_SELECT + where + tail, params + paging).fetchall()
            return [_comment_from_row(row) for row in rows]
        finally:
            conn.close()

    @classmethod
    async def get_comment(cls, comment_id: Any) -> CommentRead:
        conn = get_connection()
        try:
            return _comment_from_row(_load_comment(conn.cursor(), comment_id))
        finally:
            conn.close()

    @classmethod
    async def create_comment(cls, data: CommentCreate, current_user: Dict[str, object]) -> CommentRead:
        """Store a comment and notify the owner of the sound.

        The owner lookup happens before the transaction is committed: if
        the owner cannot be found the comment is not kept.
        """
        conn = get_connection()
        try:
            cursor = conn.cursor()
            sound = resolve_sound(cursor, data.sound)
            validate_comment_text(data.text).raise_for_errors("Comment")
            author = resolve_user(cursor, user_id=current_user.get("user_id"))
            cursor.execute(
                "INSERT INTO comments (sound_id, user_id, text, created_at) VALUES (?, ?, ?, ?)",
                (sound["id"], author["id"], data.text, utcnow_iso()),
            )
            comment_id = cursor.lastrowid
            owner = resolve_user(cursor, user_id=sound["user_id"])
            conn.commit()
            created = _comment_from_row(_load_comment(cursor, comment_id))
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()
        logger.info("User %s commented on sound %s", author["username"], sound["id"])
        await relay.send(owner["id"], NEW_COMMENT_MESSAGE, NEW_COMMENT_CODE)
        return created

    @classmethod
    async def update_comment(
        cls, comment_id: Any, data: CommentUpdate, current_user: Dict[str, object]
    ) -> CommentRead:
        conn = get_connection()
        try:
            cursor = conn.cursor()
            row = _load_comment(cursor, comment_id)
            resolve_user(cursor, user_id=row["user_id"])
            ensure_can_mutate(current_user, row["user_id"], "You are not authorized to edit this comment")
            if not validate_comment_text(data.text).ok:
                raise BadRequest("Comment cannot be empty")
            cursor.execute("UPDATE comments SET text = ? WHERE id = ?", (data.text, row["id"]))
            conn.commit()
            logger.info("Comment %s updated by user %s", row["id"], current_user.get("user_id"))
            return _comment_from_row(_load_comment(cursor, row["id"]))
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    @classmethod
    async def delete_comment(cls, comment_id: Any, current_user: Dict[str, object]) -> None:
        conn = get_connection()
        try:
            cursor = conn.cursor()
            row = _load_comment(cursor, comment_id)
            resolve_user(cursor, user_id=row["user_id"])
            ensure_can_mutate(current_user, row["user_id"], "You are not authorized to delete this comment")
            cursor.execute("DELETE FROM comments WHERE id = ?", (row["id"],))
            conn.commit()
            logger.info("Comment %s deleted by user %s", row["id"], current_user.get("user_id"))
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()
