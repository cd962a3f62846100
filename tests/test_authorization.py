import pytest

from soundmap_api.app.core.errors import Unauthorized
from soundmap_api.app.services.authorization import can_mutate, ensure_can_mutate


@pytest.mark.parametrize(
    "actor_id, role, owner_id, allowed",
    [
        (1, "user", 1, True),
        (1, "user", 2, False),
        (1, "admin", 2, True),
        (2, "admin", 2, True),
        (None, "user", 2, False),
    ],
)
def test_owner_or_admin(actor_id, role, owner_id, allowed) -> None:
    assert can_mutate(actor_id, role, owner_id) is allowed


def test_ensure_can_mutate_raises_with_message() -> None:
    with pytest.raises(Unauthorized) as excinfo:
        ensure_can_mutate({"user_id": 1, "role": "user"}, 2, "You are not authorized to delete this sound")
    assert excinfo.value.detail == "You are not authorized to delete this sound"
    assert excinfo.value.status_code == 401


def test_ensure_can_mutate_lets_owner_through() -> None:
    ensure_can_mutate({"user_id": 2, "role": "user"}, 2, "nope")
