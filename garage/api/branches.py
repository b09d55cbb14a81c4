from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from garage.db import crud
from garage.db.engine import get_db
from garage.dependencies import require_auth, require_permission
from garage.errors import ConflictError, ValidationError
from garage.models import Branch
from garage.schemas import BranchCreate, BranchRead
from garage.services.auth import AuthContext

router = APIRouter(prefix="/api/branches", tags=["branches"])


@router.get("", response_model=list[BranchRead])
async def list_branches(
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    return await crud.list_branches(db)


@router.post("", response_model=BranchRead, status_code=201)
async def create_branch(
    body: BranchCreate,
    auth: AuthContext = Depends(require_permission("branches.manage")),
    db: AsyncSession = Depends(get_db),
):
    name, code = body.name.strip(), body.code.strip().upper()
    if not name or not code:
        raise ValidationError("Branch name and code are required")
    if any(b.code == code for b in await crud.list_branches(db)):
        raise ConflictError(f"Branch code {code} is already used")
    return await crud.create_branch(db, name=name, code=code)


@router.put("/{branch_id}", response_model=BranchRead)
async def rename_branch(
    branch_id: str,
    body: BranchCreate,
    auth: AuthContext = Depends(require_permission("branches.manage")),
    db: AsyncSession = Depends(get_db),
):
    branch = await crud.get_or_404(db, Branch, branch_id, "Branch")
    branch.name = body.name.strip() or branch.name
    await db.commit()
    return branch
