"""Admin API: users and the permission catalog."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from garage.db import crud
from garage.db.engine import get_db
from garage.dependencies import require_auth, require_permission
from garage.permissions import PERMISSIONS, ROLE_TEMPLATES
from garage.schemas import UserCreate, UserRead, UserUpdate
from garage.services import users
from garage.services.auth import AuthContext

router = APIRouter(prefix="/api/admin", tags=["admin"])


@router.get("/permissions")
async def permission_catalog(auth: AuthContext = Depends(require_auth)):
    return {
        "permissions": PERMISSIONS,
        "roles": {
            name: {"description": tpl["desc"], "permissions": sorted(tpl["perms"])}
            for name, tpl in ROLE_TEMPLATES.items()
        },
    }


# ── Users ─────────────────────────────────────────────────

@router.get("/users", response_model=list[UserRead])
async def list_users(
    branch_id: str | None = None,
    auth: AuthContext = Depends(require_permission("users.manage")),
    db: AsyncSession = Depends(get_db),
):
    return await crud.list_users(db, branch_id=branch_id)


@router.post("/users", response_model=UserRead, status_code=201)
async def create_user(
    body: UserCreate,
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    return await users.create_user(db, auth, **body.model_dump())


@router.put("/users/{user_id}", response_model=UserRead)
async def update_user(
    user_id: str,
    body: UserUpdate,
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    return await users.update_user(db, auth, user_id, **body.model_dump())


@router.delete("/users/{user_id}", response_model=UserRead)
async def deactivate_user(
    user_id: str,
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    return await users.deactivate_user(db, auth, user_id)
