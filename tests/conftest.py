"""Shared fixtures: a fresh SQLite file per test and record factories."""

from typing import Dict, Optional

import pytest
from fastapi.testclient import TestClient

from soundmap_api.app.core.config import settings
from soundmap_api.app.core.db import get_connection, init_db, utcnow_iso
from soundmap_api.app.core.security import ROLE_ADMIN, ROLE_USER, create_access_token, hash_password
from soundmap_api.app.main import app


AUDIO = b"ID3\x04\x00\x00\x00\x00\x00\x00fake-mp3-frames"
YVERDON = (6.6412, 46.7785)
GENEVA = (6.1432, 46.2044)


class Factory:
    """Inserts records directly into the test database."""

    def _insert(self, sql: str, params: tuple) -> int:
        conn = get_connection()
        try:
            cursor = conn.execute(sql, params)
            conn.commit()
            return cursor.lastrowid
        finally:
            conn.close()

    def user(
        self,
        username: str,
        email: Optional[str] = None,
        password: str = "Test1234",
        admin: bool = False,
    ) -> Dict[str, object]:
        email = email or f"{username.lower()}@example.com"
        user_id = self._insert(
            "INSERT INTO users (username, email, password, is_admin, created_at) VALUES (?, ?, ?, ?, ?)",
            (username, email, hash_password(password), int(admin), utcnow_iso()),
        )
        role = ROLE_ADMIN if admin else ROLE_USER
        return {"id": user_id, "username": username, "email": email, "token": create_access_token(user_id, role)}

    def category(self, name: str, color: str = "#00ff00") -> int:
        return self._insert("INSERT INTO categories (name, color) VALUES (?, ?)", (name, color))

    def sound(
        self,
        user_id: int,
        category_id: int,
        point=YVERDON,
        created_at: Optional[str] = None,
    ) -> int:
        lng, lat = point
        return self._insert(
            "INSERT INTO sounds (user_id, category_id, longitude, latitude, audio, content_type, created_at) "
            "VALUES (?, ?, ?, ?, ?, ?, ?)",
            (user_id, category_id, lng, lat, AUDIO, "audio/mpeg", created_at or utcnow_iso()),
        )

    def comment(self, sound_id: int, user_id: int, text: str = "Nice", created_at: Optional[str] = None) -> int:
        return self._insert(
            "INSERT INTO comments (sound_id, user_id, text, created_at) VALUES (?, ?, ?, ?)",
            (sound_id, user_id, text, created_at or utcnow_iso()),
        )

    def count(self, table: str, where: str = "1 = 1", params: tuple = ()) -> int:
        conn = get_connection()
        try:
            return conn.execute(f"SELECT COUNT(*) FROM {table} WHERE {where}", params).fetchone()[0]
        finally:
            conn.close()


def auth(user: Dict[str, object]) -> Dict[str, str]:
    return {"Authorization": f"Bearer {user['token']}"}


@pytest.fixture(autouse=True)
def database(tmp_path, monkeypatch):
    monkeypatch.setattr(settings, "database_url", str(tmp_path / "soundmap-test.db"))
    init_db()
    yield


@pytest.fixture
def client():
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def factory() -> Factory:
    return Factory()


@pytest.fixture
def headers():
    return auth
