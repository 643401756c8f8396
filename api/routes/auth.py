"""
api/routes/auth.py -- Session endpoints for API clients.

Routes (mounted under /api):
  POST /auth/login   -- email/password sign-in; sets JWT cookie and returns the token
  POST /auth/logout  -- clears the cookie
  GET  /auth/me      -- session identity {id, email, name} (requires auth)

Security:
  POST /login is rate-limited per client IP (Settings.login_rate_limit).
  authenticate_admin() equalizes timing between unknown email and wrong password;
  both return the same bad_credentials error.
  Cache-Control: no-store on every login response.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from api.limiter import limiter
from api.models import LoginRequest, LoginResponse, MeResponse
from auth.dependencies import get_current_admin
from auth.models import Admin
from auth.store import AdminStore
from auth.tokens import COOKIE_NAME, authenticate_admin, create_access_token, set_auth_cookie
from core.config import get_settings

_settings = get_settings()

# Auth policy:
# - POST /api/auth/login:  public
# - POST /api/auth/logout: public -- clearing a cookie needs no prior auth
# - GET  /api/auth/me:     requires auth
router = APIRouter()

INVALID_CREDENTIALS_MESSAGE = "Invalid email or password."


def _login_rate_limit() -> str:
    """Resolved on each request from the cached Settings."""
    return get_settings().login_rate_limit


@router.post("/auth/login", response_model=LoginResponse)
@limiter.limit(_login_rate_limit)  # must sit BELOW @router so FastAPI registers the limited wrapper
def login(request: Request, body: LoginRequest) -> JSONResponse:
    """Authenticate with email and password; set the JWT cookie."""
    admin_store: AdminStore = request.app.state.admin_store
    admin = authenticate_admin(admin_store, body.email, body.password)
    if admin is None:
        resp = JSONResponse(
            status_code=401,
            content={"error": {"code": "bad_credentials", "message": INVALID_CREDENTIALS_MESSAGE}},
        )
        resp.headers["Cache-Control"] = "no-store"
        return resp

    token = create_access_token(admin.id, admin.email, admin.name)
    resp = JSONResponse(
        status_code=200,
        content=LoginResponse(
            access_token=token,
            token_type="bearer",  # noqa: S106 # nosec B106 -- OAuth token type, not a password
            expires_in=_settings.token_expire_seconds,
            email=admin.email,
            name=admin.name,
        ).model_dump(),
    )
    set_auth_cookie(resp, token)
    resp.headers["Cache-Control"] = "no-store"
    return resp


@router.post("/auth/logout")
async def logout() -> JSONResponse:
    """Clear the JWT cookie. The token itself stays valid until it expires."""
    resp = JSONResponse(content={"message": "Logged out."})
    resp.delete_cookie(COOKIE_NAME)
    return resp


@router.get("/auth/me", response_model=MeResponse)
async def me(current_admin: Admin = Depends(get_current_admin)) -> MeResponse:
    return MeResponse(id=current_admin.id, email=current_admin.email, name=current_admin.name)
