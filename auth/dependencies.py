"""
auth/dependencies.py -- FastAPI Depends() helpers for authentication.

Two transports are checked in priority order:
  1. JWT cookie ("access_token") -- set by the admin UI login flow.
  2. Authorization: Bearer <token> header -- API clients.

try_get_current_admin() is the soft variant (returns None on failure).
get_current_admin() wraps it and raises HTTP 401 if unauthenticated.
"""

from __future__ import annotations

from fastapi import HTTPException, Request

from auth.models import Admin
from auth.tokens import COOKIE_NAME, decode_access_token


def try_get_current_admin(request: Request) -> Admin | None:
    """Resolve the signed-in admin from cookie or Bearer token. Never raises."""
    admin_store = request.app.state.admin_store

    token: str | None = request.cookies.get(COOKIE_NAME)
    if not token:
        auth_header = request.headers.get("Authorization", "")
        if auth_header.startswith("Bearer "):
            token = auth_header[7:]
    if not token:
        return None

    payload = decode_access_token(token)
    if payload is None:
        return None
    # The token is stateless, but an admin removed from the store loses access.
    return admin_store.get_by_id(payload["admin_id"])


def get_current_admin(request: Request) -> Admin:
    """Require authentication. Raises HTTP 401 if the request is not authenticated.

    Use as a FastAPI dependency:
        router = APIRouter(dependencies=[Depends(get_current_admin)])
    """
    admin = try_get_current_admin(request)
    if admin is None:
        raise HTTPException(
            status_code=401,
            detail={"code": "unauthorized", "message": "Authentication required."},
        )
    return admin
