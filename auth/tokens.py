"""
auth/tokens.py -- JWT session tokens and password hashing.

Security design decisions:
  JWT: python-jose with HS256. Tokens are signed with SECRET_KEY and carry
       admin_id, email (sub), name, and expiry. There is no server-side
       session table -- the signature is the session. Verification returns
       None on any failure; the route layer turns that into a 401/redirect.

  Passwords: bcrypt. The _DUMMY_HASH constant enables timing equalization in
       authenticate_admin() so response time does not reveal whether an
       email is registered.

  SECRET_KEY: sourced from core.config.get_settings(), which validates it at
       startup.

Layer rule: no imports from api/, web/, or content/. Import from core/ is allowed.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING

import bcrypt
from jose import JWTError, jwt

from core.config import get_settings

if TYPE_CHECKING:
    from auth.models import Admin
    from auth.store import AdminStore

logger = logging.getLogger("intelligencer.auth")

_settings = get_settings()

_ALGORITHM = "HS256"

COOKIE_NAME = "access_token"

# ---------------------------------------------------------------------------
# Password hashing (bcrypt, used directly)
# ---------------------------------------------------------------------------


def hash_password(plain: str) -> str:
    """Return a salted bcrypt hash of the given plaintext password.

    bcrypt truncates input past 72 bytes; the API caps passwords at 255
    characters, and hashes of longer secrets still verify deterministically.
    """
    return bcrypt.hashpw(plain.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    """Return True if the plaintext password matches the bcrypt hash."""
    try:
        return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        # Malformed stored hash
        return False


# Computed once at module load. Always verify against something, even when
# the email is unknown, so both failure paths cost one bcrypt round.
_DUMMY_HASH: str = hash_password("intelligencer_timing_dummy")


# ---------------------------------------------------------------------------
# JWT encode / decode
# ---------------------------------------------------------------------------


def create_access_token(admin_id: int, email: str, name: str, expire_seconds: int = 0) -> str:
    """Encode a signed JWT carrying the session identity {id, email, name}.

    Args:
        admin_id:       Numeric admin ID stored in the DB.
        email:          Stored as the JWT subject claim.
        name:           Display name, shown in the admin header.
        expire_seconds: Session duration. 0 (default) uses Settings.token_expire_seconds.
    """
    duration = expire_seconds if expire_seconds > 0 else _settings.token_expire_seconds
    expire = datetime.now(timezone.utc) + timedelta(seconds=duration)
    payload = {
        "sub": email,
        "admin_id": admin_id,
        "name": name,
        "exp": expire,
    }
    return jwt.encode(payload, _settings.secret_key, algorithm=_ALGORITHM)


def decode_access_token(token: str) -> dict | None:
    """Decode and verify a JWT. Returns the payload dict or None on any failure."""
    try:
        payload = jwt.decode(token, _settings.secret_key, algorithms=[_ALGORITHM])
    except JWTError:
        return None
    if "admin_id" not in payload:
        return None
    return payload


# ---------------------------------------------------------------------------
# Credential check (constant-time with respect to email existence)
# ---------------------------------------------------------------------------


def authenticate_admin(store: AdminStore, email: str, password: str) -> Admin | None:
    """Verify an email/password pair against the credential store.

    Returns the Admin on success, None on any failure. Callers must not
    distinguish "unknown email" from "wrong password" in what they report.
    """
    if not email or not password:
        return None
    admin = store.get_by_email(email)
    if admin is None:
        verify_password(password, _DUMMY_HASH)
        logger.warning("Sign-in failed for unknown email")
        return None
    if not verify_password(password, admin.hashed_password):
        logger.warning("Sign-in failed for admin %d", admin.id)
        return None
    store.update_last_login(admin.id)
    return admin


# ---------------------------------------------------------------------------
# Cookie helper
# ---------------------------------------------------------------------------


def set_auth_cookie(response, token: str, expire_seconds: int = 0) -> None:
    """Write the JWT as an httpOnly, SameSite=Lax cookie on the response.

    max_age matches the JWT expiry so both expire together.
    """
    duration = expire_seconds if expire_seconds > 0 else _settings.token_expire_seconds
    response.set_cookie(
        COOKIE_NAME,
        value=token,
        httponly=True,
        samesite="lax",
        secure=_settings.secure_cookies,
        max_age=duration,
    )
