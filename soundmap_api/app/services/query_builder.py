"""
Typed filter builders for the sound and comment listings.

Untrusted query parameters are parsed, validated and resolved into an
immutable ``SoundQuery`` or ``CommentQuery`` value, which then renders
its own SQL ``WHERE``/``ORDER BY``/``LIMIT`` fragments.  All filters
are ANDed and results are always ordered newest first.

Resolution order decides which error wins when several parameters are
bad: users are resolved before categories (or sounds), and both before
location, date and paging are parsed.
"""

import json
import re
import sqlite3
from dataclasses import dataclass
from datetime import date
from typing import Any, List, Optional, Tuple

from ..core.errors import BadRequest, NotFound
from .validation import validate_coordinates


MIN_RADIUS = 500
MAX_RADIUS = 50_000
DEFAULT_LIMIT = 10
MIN_LIMIT = 1
MAX_LIMIT = 100

# Largest value SQLite can bind as an INTEGER.
MAX_SQL_INT = 2**63 - 1

DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def clamp_radius(radius: Optional[float]) -> float:
    """Effective search radius in metres; absent means the maximum."""
    if radius is None:
        return MAX_RADIUS
    return clamp(radius, MIN_RADIUS, MAX_RADIUS)


def _parse_int(raw: Any, name: str) -> Optional[int]:
    if raw is None or raw == "":
        return None
    try:
        return int(raw)
    except (TypeError, ValueError):
        raise BadRequest(f"Invalid {name}") from None


def clamp_limit(raw: Any) -> int:
    value = _parse_int(raw, "limit")
    if value is None:
        return DEFAULT_LIMIT
    return int(clamp(value, MIN_LIMIT, MAX_LIMIT))


def clamp_offset(raw: Any) -> int:
    value = _parse_int(raw, "offset")
    if value is None:
        return 0
    return int(clamp(value, 0, MAX_SQL_INT))


def parse_id(raw: Any) -> Optional[int]:
    """Return ``raw`` as a row id, or ``None`` if no row can have that id."""
    text = str(raw) if raw is not None else ""
    if not text.isascii() or not text.isdecimal():
        return None
    value = int(text)
    return value if value <= MAX_SQL_INT else None


def parse_date(raw: str) -> date:
    """Parse a strict ``YYYY-MM-DD`` string."""
    if not DATE_RE.match(raw):
        raise BadRequest("Invalid date")
    try:
        return date.fromisoformat(raw)
    except ValueError:
        raise BadRequest("Invalid date") from None


@dataclass(frozen=True)
class GeoFilter:
    lng: float
    lat: float
    radius: float = MAX_RADIUS

    def clause(self, alias: str) -> Tuple[str, Tuple[Any, ...]]:
        return (
            f"distance_m({alias}.longitude, {alias}.latitude, ?, ?) <= ?",
            (self.lng, self.lat, self.radius),
        )


def parse_location(raw: str) -> GeoFilter:
    """Parse the ``location`` JSON parameter ``{lat, lng, radius?}``."""
    try:
        data = json.loads(raw)
        lat = float(data["lat"])
        lng = float(data["lng"])
        radius = data.get("radius")
        radius = float(radius) if radius is not None else None
    except (TypeError, ValueError, KeyError, AttributeError):
        raise BadRequest("Invalid location") from None
    if not validate_coordinates(lng, lat).ok:
        raise BadRequest("Invalid location")
    return GeoFilter(lng=lng, lat=lat, radius=clamp_radius(radius))


def resolve_user(
    cursor: sqlite3.Cursor,
    username: Optional[str] = None,
    user_id: Optional[Any] = None,
) -> sqlite3.Row:
    """Find a user by username or by id."""
    row = None
    if username is not None:
        row = cursor.execute(
            "SELECT id, username FROM users WHERE username = ?", (username,)
        ).fetchone()
    elif parse_id(user_id) is not None:
        row = cursor.execute(
            "SELECT id, username FROM users WHERE id = ?", (parse_id(user_id),)
        ).fetchone()
    if not row:
        raise NotFound("User not found")
    return row


def resolve_user_ref(cursor: sqlite3.Cursor, ref: str) -> sqlite3.Row:
    """Find a user by a reference that may be a username or an id."""
    try:
        return resolve_user(cursor, username=ref)
    except NotFound:
        return resolve_user(cursor, user_id=ref)


def resolve_category(cursor: sqlite3.Cursor, ref: Any) -> sqlite3.Row:
    """Find a category by id or by name."""
    row = None
    category_id = parse_id(ref)
    if category_id is not None:
        row = cursor.execute(
            "SELECT id, name, color FROM categories WHERE id = ?", (category_id,)
        ).fetchone()
    if not row and ref:
        row = cursor.execute(
            "SELECT id, name, color FROM categories WHERE name = ?", (str(ref),)
        ).fetchone()
    if not row:
        raise NotFound("Category not found")
    return row


def resolve_sound(cursor: sqlite3.Cursor, ref: Any) -> sqlite3.Row:
    row = None
    sound_id = parse_id(ref)
    if sound_id is not None:
        row = cursor.execute(
            "SELECT id, user_id FROM sounds WHERE id = ?", (sound_id,)
        ).fetchone()
    if not row:
        raise NotFound("Sound not found")
    return row


class _Clauses:
    def __init__(self) -> None:
        self.sql: List[str] = []
        self.params: List[Any] = []

    def add(self, sql: str, *params: Any) -> None:
        self.sql.append(sql)
        self.params.extend(params)

    def render(self) -> Tuple[str, Tuple[Any, ...]]:
        where = " WHERE " + " AND ".join(self.sql) if self.sql else ""
        return where, tuple(self.params)


@dataclass(frozen=True)
class SoundQuery:
    near: Optional[GeoFilter] = None
    category_id: Optional[int] = None
    user_ids: Tuple[int, ...] = ()
    created_from: Optional[date] = None
    limit: int = DEFAULT_LIMIT
    offset: int = 0

    def where(self, alias: str = "s") -> Tuple[str, Tuple[Any, ...]]:
        clauses = _Clauses()
        if self.near is not None:
            sql, params = self.near.clause(alias)
            clauses.add(sql, *params)
        if self.category_id is not None:
            clauses.add(f"{alias}.category_id = ?", self.category_id)
        for user_id in self.user_ids:
            clauses.add(f"{alias}.user_id = ?", user_id)
        if self.created_from is not None:
            clauses.add(f"{alias}.created_at >= ?", self.created_from.isoformat())
        return clauses.render()

    def tail(self, alias: str = "s") -> Tuple[str, Tuple[int, int]]:
        return (
            f" ORDER BY {alias}.created_at DESC, {alias}.id DESC LIMIT ? OFFSET ?",
            (self.limit, self.offset),
        )


@dataclass(frozen=True)
class CommentQuery:
    sound_id: Optional[int] = None
    user_id: Optional[int] = None
    limit: int = DEFAULT_LIMIT
    offset: int = 0

    def where(self, alias: str = "c") -> Tuple[str, Tuple[Any, ...]]:
        clauses = _Clauses()
        if self.sound_id is not None:
            clauses.add(f"{alias}.sound_id = ?", self.sound_id)
        if self.user_id is not None:
            clauses.add(f"{alias}.user_id = ?", self.user_id)
        return clauses.render()

    def tail(self, alias: str = "c") -> Tuple[str, Tuple[int, int]]:
        return (
            f" ORDER BY {alias}.created_at DESC, {alias}.id DESC LIMIT ? OFFSET ?",
            (self.limit, self.offset),
        )


def build_sound_query(
    cursor: sqlite3.Cursor,
    location: Optional[str] = None,
    category: Optional[str] = None,
    username: Optional[str] = None,
    user_id: Optional[str] = None,
    date_from: Optional[str] = None,
    limit: Optional[str] = None,
    offset: Optional[str] = None,
) -> SoundQuery:
    """Turn the ``GET /sounds`` query parameters into a ``SoundQuery``."""
    user_ids: List[int] = []
    if username is not None:
        user_ids.append(resolve_user(cursor, username=username)["id"])
    if user_id is not None:
        resolved = resolve_user(cursor, user_id=user_id)["id"]
        if resolved not in user_ids:
            user_ids.append(resolved)
    category_id = resolve_category(cursor, category)["id"] if category is not None else None
    near = parse_location(location) if location else None
    created_from = parse_date(date_from) if date_from is not None else None
    return SoundQuery(
        near=near,
        category_id=category_id,
        user_ids=tuple(user_ids),
        created_from=created_from,
        limit=clamp_limit(limit),
        offset=clamp_offset(offset),
    )


def build_comment_query(
    cursor: sqlite3.Cursor,
    sound: Optional[str] = None,
    user: Optional[str] = None,
    limit: Optional[str] = None,
    offset: Optional[str] = None,
) -> CommentQuery:
    """Turn the ``GET /comments`` query parameters into a ``CommentQuery``."""
    user_id = resolve_user_ref(cursor, user)["id"] if user is not None else None
    sound_id = resolve_sound(cursor, sound)["id"] if sound is not None else None
    return CommentQuery(
        sound_id=sound_id,
        user_id=user_id,
        limit=clamp_limit(limit),
        offset=clamp_offset(offset),
    )
