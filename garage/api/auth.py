"""Auth API: login, logout, current identity."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from garage.config import get_settings
from garage.db.engine import get_db
from garage.dependencies import extract_token, require_auth
from garage.schemas import LoginRequest
from garage.services.auth import AuthContext, authenticate, create_session, remove_session

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("/login")
async def login(
    body: LoginRequest,
    request: Request,
    db: AsyncSession = Depends(get_db),
):
    user = await authenticate(body.email, body.password, db)
    ip = request.client.host if request.client else ""
    token = await create_session(user, db, ip_address=ip)

    cfg = get_settings().auth
    response = JSONResponse(content={"ok": True, "token": token, "user_id": user.id, "role": user.role})
    response.set_cookie(
        cfg.cookie_name, token,
        httponly=True, samesite="lax",
        max_age=86400 * cfg.session_max_age_days,
    )
    return response


@router.post("/logout")
async def logout(
    request: Request,
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    await remove_session(extract_token(request), db)
    response = JSONResponse(content={"ok": True})
    response.delete_cookie(get_settings().auth.cookie_name)
    return response


@router.get("/me")
async def get_me(auth: AuthContext = Depends(require_auth)):
    return {
        "user_id": auth.user_id,
        "branch_id": auth.branch_id,
        "email": auth.email,
        "display_name": auth.display_name,
        "role": auth.role,
        "permissions": sorted(auth.permissions),
    }
