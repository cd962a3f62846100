"""
Security helpers for password hashing and JWT authentication.

This module implements a lightweight JSON Web Token (JWT) mechanism
using HMAC‑SHA256 signatures and base64url encoding.  Tokens carry the
user id in ``sub``, the role in ``scope`` (``"admin"`` or ``"user"``)
and an expiration timestamp (``exp``).  Passwords are hashed with
PBKDF2‑HMAC‑SHA256 and a random salt.

The FastAPI dependencies ``get_current_user`` and ``require_admin``
turn the ``Authorization`` header into an identity dictionary of the
form ``{"sub": "12", "user_id": 12, "role": "user"}``.
"""

import base64
import hashlib
import hmac
import json
import os
import re
import time
from typing import Dict, Optional

from fastapi import Depends, Header

from .config import settings
from .errors import Unauthorized


ROLE_ADMIN = "admin"
ROLE_USER = "user"

_BEARER_RE = re.compile(r"^Bearer (.+)$")


def _b64_url_encode(data: bytes) -> str:
    """Base64‑url encode bytes without padding."""
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("utf-8")


def _b64_url_decode(data: str) -> bytes:
    """Decode base64‑url encoded string, adding padding if necessary."""
    padding = '=' * (-len(data) % 4)
    return base64.urlsafe_b64decode(data + padding)


def _sign(message: bytes, secret: str) -> bytes:
    """Compute HMAC‑SHA256 signature of a message using the given secret."""
    return hmac.new(secret.encode("utf-8"), message, hashlib.sha256).digest()


def create_access_token(user_id: int, role: str, expires_delta: Optional[int] = None) -> str:
    """Create a signed JWT for a user.

    Parameters
    ----------
    user_id : int
        Identifier stored as the ``sub`` claim.
    role : str
        ``"admin"`` or ``"user"``, stored as the ``scope`` claim.
    expires_delta : Optional[int]
        Lifetime of the token in seconds.  Defaults to
        ``settings.access_token_expire_minutes * 60`` (seven days).

    Returns
    -------
    str
        A token of the form ``header.payload.signature``.
    """
    exp_seconds = expires_delta or settings.access_token_expire_minutes * 60
    claims = {"sub": str(user_id), "scope": role, "exp": int(time.time()) + exp_seconds}
    header = {"alg": settings.algorithm, "typ": "JWT"}
    header_b64 = _b64_url_encode(json.dumps(header, separators=(',', ':')).encode("utf-8"))
    payload_b64 = _b64_url_encode(json.dumps(claims, separators=(',', ':')).encode("utf-8"))
    signing_input = f"{header_b64}.{payload_b64}".encode("utf-8")
    signature_b64 = _b64_url_encode(_sign(signing_input, settings.secret_key))
    return f"{header_b64}.{payload_b64}.{signature_b64}"


def decode_access_token(token: str) -> Optional[Dict[str, object]]:
    """Verify and decode a JWT token.

    Returns the payload dictionary when the signature matches and the
    token has not expired, otherwise ``None``.
    """
    parts = token.split('.')
    if len(parts) != 3:
        return None
    header_b64, payload_b64, signature_b64 = parts
    signing_input = f"{header_b64}.{payload_b64}".encode("utf-8")
    expected_sig = _sign(signing_input, settings.secret_key)
    try:
        actual_sig = _b64_url_decode(signature_b64)
        if not hmac.compare_digest(expected_sig, actual_sig):
            return None
        data = json.loads(_b64_url_decode(payload_b64).decode("utf-8"))
    except (ValueError, UnicodeDecodeError):
        return None
    if not isinstance(data, dict) or data.get("exp") is None:
        return None
    if int(data["exp"]) < int(time.time()):
        return None
    return data


def identity_from_token(token: str) -> Dict[str, object]:
    """Turn a raw token into an identity dictionary or raise ``Unauthorized``."""
    payload = decode_access_token(token)
    if not payload or not str(payload.get("sub", "")).isdecimal():
        raise Unauthorized("Your token is invalid or has expired")
    role = ROLE_ADMIN if payload.get("scope") == ROLE_ADMIN else ROLE_USER
    return {"sub": payload["sub"], "user_id": int(payload["sub"]), "role": role}


def extract_bearer_token(authorization: Optional[str]) -> str:
    """Return the token from an ``Authorization`` header value.

    Raises ``Unauthorized`` with a message describing what is wrong
    with the header.
    """
    if not authorization:
        raise Unauthorized("Authorization header is missing")
    match = _BEARER_RE.match(authorization)
    if not match:
        raise Unauthorized("Authorization header is not a bearer token")
    return match.group(1)


def get_current_user(authorization: Optional[str] = Header(None)) -> Dict[str, object]:
    """Dependency that retrieves the current authenticated identity.

    The token is trusted as issued: the subject id and role come from
    the claims.  Services check that the subject still exists where a
    live user record is required.
    """
    return identity_from_token(extract_bearer_token(authorization))


def require_admin(current_user: Dict[str, object] = Depends(get_current_user)) -> Dict[str, object]:
    """Dependency that only lets identities with the admin role through."""
    if current_user.get("role") != ROLE_ADMIN:
        raise Unauthorized("Unauthorized")
    return current_user


def hash_password(password: str) -> str:
    """Hash a password using PBKDF2‑HMAC with SHA‑256.

    A 16‑byte random salt is generated for each password.  The
    resulting string contains the salt and hash separated by a
    ``$`` (salt in hex, then hash in hex).
    """
    salt = os.urandom(16)
    iterations = 100_000
    dk = hashlib.pbkdf2_hmac('sha256', password.encode('utf-8'), salt, iterations)
    return f"{salt.hex()}${dk.hex()}"


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a plain password against a stored salt+hash string."""
    try:
        salt_hex, hash_hex = hashed_password.split('$', 1)
        salt = bytes.fromhex(salt_hex)
        stored_hash = bytes.fromhex(hash_hex)
    except (AttributeError, ValueError):
        return False
    iterations = 100_000
    dk = hashlib.pbkdf2_hmac('sha256', plain_password.encode('utf-8'), salt, iterations)
    return hmac.compare_digest(dk, stored_hash)
