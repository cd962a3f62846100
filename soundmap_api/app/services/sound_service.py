"""
Business logic for sounds.

Listing goes through ``query_builder.build_sound_query``; mutations
follow the same sequence everywhere: load the sound (404), load its
owner (404), apply the owner‑or‑admin rule (401), then write.
"""

import json
import logging
import sqlite3
from typing import Any, Dict, List, Optional, Tuple

from ..core.config import settings
from ..core.db import get_connection, utcnow_iso
from ..core.errors import BadRequest, NotFound
from ..schemas.category import CategoryRead
from ..schemas.sound import Location, SoundRead
from ..schemas.user import UserSummary
from .authorization import ensure_can_mutate
from .query_builder import build_sound_query, parse_id, resolve_category, resolve_user
from .validation import validate_coordinates


logger = logging.getLogger(__name__)

_SOUND_SELECT = """
    SELECT s.id, s.user_id, u.username, s.category_id, c.name AS category_name,
           c.color AS category_color, s.longitude, s.latitude, s.created_at
    FROM sounds s
    JOIN users u ON u.id = s.user_id
    JOIN categories c ON c.id = s.category_id
"""


def parse_sound_id(sound_id: Any) -> int:
    """Path ids that are not row ids can never match a sound."""
    value = parse_id(sound_id)
    if value is None:
        raise NotFound("Sound not found")
    return value


def _comment_ids(cursor: sqlite3.Cursor, sound_ids: List[int]) -> Dict[int, List[int]]:
    ids: Dict[int, List[int]] = {sound_id: [] for sound_id in sound_ids}
    if not sound_ids:
        return ids
    placeholders = ", ".join("?" for _ in sound_ids)
    rows = cursor.execute(
        f"SELECT id, sound_id FROM comments WHERE sound_id IN ({placeholders}) ORDER BY created_at, id",
        tuple(sound_ids),
    ).fetchall()
    for row in rows:
        ids[row["sound_id"]].append(row["id"])
    return ids


def _sounds_from_rows(cursor: sqlite3.Cursor, rows: List[sqlite3.Row]) -> List[SoundRead]:
    comments = _comment_ids(cursor, [row["id"] for row in rows])
    return [
        SoundRead(
            id=row["id"],
            user=UserSummary(id=row["user_id"], username=row["username"]),
            category=CategoryRead(
                id=row["category_id"], name=row["category_name"], color=row["category_color"]
            ),
            location=Location(lat=row["latitude"], lng=row["longitude"]),
            created_at=row["created_at"],
            comments=comments[row["id"]],
        )
        for row in rows
    ]


def _load_sound(cursor: sqlite3.Cursor, sound_id: int) -> sqlite3.Row:
    row = cursor.execute(_SOUND_SELECT + " WHERE s.id = ?", (sound_id,)).fetchone()
    if not row:
        raise NotFound("Sound not found")
    return row


def _parse_point(raw: Optional[str]) -> Tuple[float, float]:
    try:
        data = json.loads(raw)
        return float(data["lng"]), float(data["lat"])
    except (TypeError, ValueError, KeyError):
        raise BadRequest("Invalid location") from None


class SoundService:
    """Service for geotagged sounds."""

    @classmethod
    async def list_sounds(
        cls,
        location: Optional[str] = None,
        category: Optional[str] = None,
        username: Optional[str] = None,
        user_id: Optional[str] = None,
        date_from: Optional[str] = None,
        limit: Optional[str] = None,
        offset: Optional[str] = None,
    ) -> List[SoundRead]:
        conn = get_connection()
        try:
            cursor = conn.cursor()
            query = build_sound_query(
                cursor,
                location=location,
                category=category,
                username=username,
                user_id=user_id,
                date_from=date_from,
                limit=limit,
                offset=offset,
            )
            where, params = query.where("s")
            tail, paging = query.tail("s")
            rows = cursor.execute(_SOUND_SELECT + where + tail, params + paging).fetchall()
            return _sounds_from_rows(cursor, rows)
        finally:
            conn.close()

    @classmethod
    async def get_sound(cls, sound_id: Any) -> SoundRead:
        conn = get_connection()
        try:
            cursor = conn.cursor()
            row = _load_sound(cursor, parse_sound_id(sound_id))
            return _sounds_from_rows(cursor, [row])[0]
        finally:
            conn.close()

    @classmethod
    async def get_audio(cls, sound_id: Any) -> Tuple[bytes, str]:
        """Return the raw audio bytes and their content type."""
        conn = get_connection()
        try:
            row = conn.execute(
                "SELECT audio, content_type FROM sounds WHERE id = ?", (parse_sound_id(sound_id),)
            ).fetchone()
            if not row:
                raise NotFound("Sound not found")
            return bytes(row["audio"]), row["content_type"]
        finally:
            conn.close()

    @classmethod
    async def create_sound(
        cls,
        current_user: Dict[str, object],
        location: Optional[str],
        category: Optional[str],
        audio: Optional[bytes],
        content_type: Optional[str] = None,
    ) -> SoundRead:
        """Store an uploaded sound owned by the requesting identity."""
        conn = get_connection()
        try:
            cursor = conn.cursor()
            owner = resolve_user(cursor, user_id=current_user.get("user_id"))
            category_row = resolve_category(cursor, category)
            if not audio:
                raise BadRequest("Audio file is required")
            if len(audio) > settings.max_upload_bytes:
                raise BadRequest("Audio file is too large")
            lng, lat = _parse_point(location)
            validate_coordinates(lng, lat).raise_for_errors("Sound")
            cursor.execute(
                """
                INSERT INTO sounds (user_id, category_id, longitude, latitude, audio, content_type, created_at)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    owner["id"],
                    category_row["id"],
                    lng,
                    lat,
                    sqlite3.Binary(audio),
                    content_type or "application/octet-stream",
                    utcnow_iso(),
                ),
            )
            sound_id = cursor.lastrowid
            conn.commit()
            logger.info(
                "User %s uploaded sound %s (%d bytes) in category %s",
                owner["username"], sound_id, len(audio), category_row["name"],
            )
            return _sounds_from_rows(cursor, [_load_sound(cursor, sound_id)])[0]
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    @classmethod
    async def update_category(
        cls, sound_id: Any, category: Optional[str], current_user: Dict[str, object]
    ) -> SoundRead:
        conn = get_connection()
        try:
            cursor = conn.cursor()
            row = _load_sound(cursor, parse_sound_id(sound_id))
            resolve_user(cursor, user_id=row["user_id"])
            ensure_can_mutate(current_user, row["user_id"], "You are not authorized to update this sound")
            category_row = resolve_category(cursor, category)
            cursor.execute(
                "UPDATE sounds SET category_id = ? WHERE id = ?", (category_row["id"], row["id"])
            )
            conn.commit()
            logger.info("Sound %s moved to category %s", row["id"], category_row["name"])
            return _sounds_from_rows(cursor, [_load_sound(cursor, row["id"])])[0]
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    @classmethod
    async def delete_sound(cls, sound_id: Any, current_user: Dict[str, object]) -> None:
        """Delete a sound and every comment attached to it."""
        conn = get_connection()
        try:
            cursor = conn.cursor()
            row = _load_sound(cursor, parse_sound_id(sound_id))
            resolve_user(cursor, user_id=row["user_id"])
            ensure_can_mutate(current_user, row["user_id"], "You are not authorized to delete this sound")
            removed = cursor.execute("DELETE FROM comments WHERE sound_id = ?", (row["id"],)).rowcount
            cursor.execute("DELETE FROM sounds WHERE id = ?", (row["id"],))
            conn.commit()
            logger.info("Deleted sound %s and %d comments", row["id"], removed)
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()
