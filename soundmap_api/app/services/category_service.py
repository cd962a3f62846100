"""
Business logic for sound categories.

Categories are managed by administrators only; the endpoint layer
enforces the role with the ``require_admin`` dependency.
"""

import logging
import sqlite3
from typing import List

from ..core.db import get_connection
from ..core.errors import BadRequest, NotFound
from ..schemas.category import CategoryCreate, CategoryRead
from .validation import validate_category


logger = logging.getLogger(__name__)


def _category_from_row(row: sqlite3.Row) -> CategoryRead:
    return CategoryRead(id=row["id"], name=row["name"], color=row["color"])


class CategoryService:
    """Service for the admin-managed sound categories."""

    @classmethod
    async def list_categories(cls) -> List[CategoryRead]:
        conn = get_connection()
        try:
            rows = conn.execute("SELECT id, name, color FROM categories ORDER BY name").fetchall()
            return [_category_from_row(row) for row in rows]
        finally:
            conn.close()

    @classmethod
    async def get_category(cls, name: str) -> CategoryRead:
        conn = get_connection()
        try:
            row = conn.execute(
                "SELECT id, name, color FROM categories WHERE name = ?", (name,)
            ).fetchone()
            if not row:
                raise NotFound("Category not found")
            return _category_from_row(row)
        finally:
            conn.close()

    @classmethod
    async def create_category(cls, data: CategoryCreate) -> CategoryRead:
        conn = get_connection()
        try:
            cursor = conn.cursor()
            validate_category(cursor, data.name, data.color).raise_for_errors("Category")
            cursor.execute(
                "INSERT INTO categories (name, color) VALUES (?, ?)", (data.name, data.color)
            )
            category_id = cursor.lastrowid
            conn.commit()
            logger.info("Created category %s (%s)", data.name, category_id)
            return CategoryRead(id=category_id, name=data.name, color=data.color)
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    @classmethod
    async def delete_category(cls, name: str) -> CategoryRead:
        """Delete a category and return it.

        A category that is still referenced by sounds cannot be removed.
        """
        conn = get_connection()
        try:
            cursor = conn.cursor()
            row = cursor.execute(
                "SELECT id, name, color FROM categories WHERE name = ?", (name,)
            ).fetchone()
            if not row:
                raise NotFound("Category not found")
            in_use = cursor.execute(
                "SELECT COUNT(*) AS count FROM sounds WHERE category_id = ?", (row["id"],)
            ).fetchone()["count"]
            if in_use:
                raise BadRequest("Category is still used by sounds")
            cursor.execute("DELETE FROM categories WHERE id = ?", (row["id"],))
            conn.commit()
            logger.info("Deleted category %s", name)
            return _category_from_row(row)
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()
