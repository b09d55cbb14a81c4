"""FastAPI dependency providers for auth and permission enforcement."""

from __future__ import annotations

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from garage.config import get_settings
from garage.db.engine import get_db
from garage.services.auth import AuthContext, resolve_token


def extract_token(request: Request) -> str:
    """Identity token from ``Authorization: Bearer`` or the session cookie."""
    header = request.headers.get("authorization", "")
    scheme, _, value = header.partition(" ")
    if scheme.lower() == "bearer" and value:
        return value.strip()
    return request.cookies.get(get_settings().auth.cookie_name, "")


async def require_auth(
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> AuthContext:
    """Require a valid identity token. Returns AuthContext."""
    return await resolve_token(extract_token(request), db)


def require_permission(permission: str):
    """Factory: returns a dependency that enforces a single permission name."""
    async def _check(auth: AuthContext = Depends(require_auth)) -> AuthContext:
        auth.require(permission)
        return auth
    return _check
