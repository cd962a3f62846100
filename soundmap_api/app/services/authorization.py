"""
Owner‑or‑admin authorization policy.

All mutating endpoints go through ``ensure_can_mutate`` after the
target record has been loaded, so a missing record is always reported
as ``NotFound`` before any authorization decision is made.
"""

import logging
from typing import Dict

from ..core.errors import Unauthorized
from ..core.security import ROLE_ADMIN


logger = logging.getLogger(__name__)


def can_mutate(actor_id: int, actor_role: str, owner_id: int) -> bool:
    """Return True if the actor is an admin or owns the resource."""
    return actor_role == ROLE_ADMIN or actor_id == owner_id


def ensure_can_mutate(current_user: Dict[str, object], owner_id: int, message: str) -> None:
    """Raise ``Unauthorized(message)`` unless ``current_user`` may mutate."""
    actor_id = current_user.get("user_id")
    role = current_user.get("role")
    if not can_mutate(actor_id, role, owner_id):
        logger.info("User %s (%s) refused: %s", actor_id, role, message)
        raise Unauthorized(message)

