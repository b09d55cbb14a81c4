"""Technician management API."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from garage.db import crud
from garage.db.engine import get_db
from garage.dependencies import require_auth, require_permission
from garage.errors import ValidationError
from garage.models import Technician, User
from garage.schemas import TechnicianCreate, TechnicianRead, TechnicianUpdate
from garage.services.auth import AuthContext
from garage.services.invoicing import to_money

router = APIRouter(prefix="/api/technicians", tags=["technicians"])


def _rate(value):
    rate = to_money(value)
    if rate < 0:
        raise ValidationError("Hourly rate cannot be negative")
    return rate


@router.get("", response_model=list[TechnicianRead])
async def list_technicians(
    include_inactive: bool = False,
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    return await crud.list_technicians(db, active_only=not include_inactive)


@router.post("", response_model=TechnicianRead, status_code=201)
async def create_technician(
    body: TechnicianCreate,
    auth: AuthContext = Depends(require_permission("technicians.manage")),
    db: AsyncSession = Depends(get_db),
):
    name = body.name.strip()
    if not name:
        raise ValidationError("Technician name is required")
    if body.user_id:
        await crud.get_or_404(db, User, body.user_id, "User")
    return await crud.create_technician(
        db,
        name=name,
        email=body.email.strip(),
        phone=body.phone.strip(),
        hourly_rate=_rate(body.hourly_rate),
        user_id=body.user_id,
        branch_id=body.branch_id or auth.branch_id,
    )


@router.put("/{tech_id}", response_model=TechnicianRead)
async def update_technician(
    tech_id: str,
    body: TechnicianUpdate,
    auth: AuthContext = Depends(require_permission("technicians.manage")),
    db: AsyncSession = Depends(get_db),
):
    tech = await crud.get_or_404(db, Technician, tech_id, "Technician")
    updates = body.model_dump()
    if updates.get("hourly_rate") is not None:
        updates["hourly_rate"] = _rate(updates["hourly_rate"])
    return await crud.update_technician(db, tech, **updates)


@router.delete("/{tech_id}", response_model=TechnicianRead)
async def deactivate_technician(
    tech_id: str,
    auth: AuthContext = Depends(require_permission("technicians.manage")),
    db: AsyncSession = Depends(get_db),
):
    tech = await crud.get_or_404(db, Technician, tech_id, "Technician")
    return await crud.update_technician(db, tech, is_active=False)
