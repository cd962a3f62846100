"""
Explicit validation of incoming payloads.

Every validator returns a ``Validation`` result instead of raising, so
callers decide when to stop: typically right before touching the
database with ``result.raise_for_errors("User")``, which raises
``ValidationFailed`` with a message such as::

    User validation failed: username: Username is too short

Uniqueness checks need a cursor and are therefore separate from the
pure format checks.
"""

import re
import sqlite3
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from ..core.errors import ValidationFailed


EMAIL_RE = re.compile(r".+@.+\..+")
USERNAME_MIN = 2
USERNAME_MAX = 20
PASSWORD_MIN = 8


@dataclass
class Validation:
    errors: List[Tuple[str, str]] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors

    def add(self, field_name: str, message: str) -> "Validation":
        self.errors.append((field_name, message))
        return self

    def merge(self, other: "Validation") -> "Validation":
        self.errors.extend(other.errors)
        return self

    def raise_for_errors(self, entity: str) -> None:
        if self.ok:
            return
        details = ", ".join(f"{name}: {message}" for name, message in self.errors)
        raise ValidationFailed(f"{entity} validation failed: {details}")


def validate_username(username: Optional[str]) -> Validation:
    result = Validation()
    if not username:
        return result.add("username", "Username is required")
    if len(username) < USERNAME_MIN:
        result.add("username", "Username is too short")
    elif len(username) > USERNAME_MAX:
        result.add("username", "Username is too long")
    return result


def validate_email(email: Optional[str]) -> Validation:
    result = Validation()
    if not email:
        return result.add("email", "Email is required")
    if not EMAIL_RE.fullmatch(email):
        result.add("email", "Email is invalid")
    return result


def validate_password(password: Optional[str]) -> Validation:
    result = Validation()
    if not password:
        return result.add("password", "Password is required")
    if len(password) < PASSWORD_MIN:
        result.add("password", "Password is too short")
    return result


def validate_user_create(username: str, email: str, password: str) -> Validation:
    return (
        validate_username(username)
        .merge(validate_email(email))
        .merge(validate_password(password))
    )


def validate_user_update(email: Optional[str], password: Optional[str]) -> Validation:
    """Only the supplied fields are checked."""
    result = Validation()
    if email is not None:
        result.merge(validate_email(email))
    if password is not None:
        result.merge(validate_password(password))
    return result


def validate_unique_user(
    cursor: sqlite3.Cursor,
    username: Optional[str] = None,
    email: Optional[str] = None,
    exclude_id: Optional[int] = None,
) -> Validation:
    result = Validation()
    if username is not None:
        row = cursor.execute(
            "SELECT id FROM users WHERE username = ? AND id IS NOT ?", (username, exclude_id)
        ).fetchone()
        if row:
            result.add("username", "Username is already taken")
    if email is not None:
        row = cursor.execute(
            "SELECT id FROM users WHERE email = ? AND id IS NOT ?", (email, exclude_id)
        ).fetchone()
        if row:
            result.add("email", "Email is already in use")
    return result


def validate_category(cursor: sqlite3.Cursor, name: str, color: str) -> Validation:
    result = Validation()
    if not name or not name.strip():
        result.add("name", "Name is required")
    elif cursor.execute("SELECT id FROM categories WHERE name = ?", (name,)).fetchone():
        result.add("name", "Category already exists")
    if not color or not color.strip():
        result.add("color", "Color is required")
    return result


def validate_comment_text(text: Optional[str]) -> Validation:
    result = Validation()
    if text is None or not text.strip():
        result.add("text", "Comment cannot be empty")
    return result


def validate_coordinates(lng: float, lat: float) -> Validation:
    result = Validation()
    if not -180 <= lng <= 180:
        result.add("location", "Longitude must be between -180 and 180")
    if not -90 <= lat <= 90:
        result.add("location", "Latitude must be between -90 and 90")
    return result
