"""Service variation catalog API."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from garage.db import crud
from garage.db.engine import get_db
from garage.dependencies import require_auth, require_permission
from garage.models import Variation
from garage.schemas import VariationCreate, VariationRead, VariationUpdate
from garage.services import catalog
from garage.services.auth import AuthContext

router = APIRouter(prefix="/api/variations", tags=["variations"])


def _parts(body) -> list[dict] | None:
    return [p.model_dump() for p in body.parts] if body.parts is not None else None


@router.get("", response_model=list[VariationRead])
async def list_variations(
    include_inactive: bool = False,
    auth: AuthContext = Depends(require_permission("variations.view")),
    db: AsyncSession = Depends(get_db),
):
    return await crud.list_variations(db, active_only=not include_inactive)


@router.post("", response_model=VariationRead, status_code=201)
async def create_variation(
    body: VariationCreate,
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    return await catalog.create_variation(
        db, auth, body.name, price=body.price, parts=_parts(body), description=body.description,
    )


@router.get("/{variation_id}", response_model=VariationRead)
async def get_variation(
    variation_id: str,
    auth: AuthContext = Depends(require_permission("variations.view")),
    db: AsyncSession = Depends(get_db),
):
    return await crud.get_or_404(db, Variation, variation_id, "Variation")


@router.get("/{variation_id}/versions", response_model=list[VariationRead])
async def list_versions(
    variation_id: str,
    auth: AuthContext = Depends(require_permission("variations.view")),
    db: AsyncSession = Depends(get_db),
):
    variation = await crud.get_or_404(db, Variation, variation_id, "Variation")
    return await crud.list_variation_versions(db, variation.code)


@router.put("/{variation_id}", response_model=VariationRead)
async def update_variation(
    variation_id: str,
    body: VariationUpdate,
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    return await catalog.update_variation(
        db, auth, variation_id,
        name=body.name, price=body.price, parts=_parts(body), description=body.description,
    )


@router.delete("/{variation_id}", response_model=VariationRead)
async def retire_variation(
    variation_id: str,
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    return await catalog.retire_variation(db, auth, variation_id)
