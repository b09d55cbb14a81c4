from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from garage.db import crud
from garage.db.engine import get_db
from garage.dependencies import require_auth, require_permission
from garage.models import Quotation
from garage.schemas import QuotationCreate, QuotationRead, WorkOrderRead
from garage.services import registration
from garage.services.auth import AuthContext

router = APIRouter(prefix="/api/quotations", tags=["quotations"])


@router.get("", response_model=list[QuotationRead])
async def list_quotations(
    customer_id: str | None = None,
    auth: AuthContext = Depends(require_permission("quotations.view")),
    db: AsyncSession = Depends(get_db),
):
    return await crud.list_quotations(db, customer_id=customer_id)


@router.post("", response_model=QuotationRead, status_code=201)
async def create_quotation(
    body: QuotationCreate,
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    return await registration.create_quotation(db, auth, body.customer_id, body.vehicle_id, body.variation_ids)


@router.get("/{quotation_id}", response_model=QuotationRead)
async def get_quotation(
    quotation_id: str,
    auth: AuthContext = Depends(require_permission("quotations.view")),
    db: AsyncSession = Depends(get_db),
):
    return await crud.get_or_404(db, Quotation, quotation_id, "Quotation")


@router.post("/{quotation_id}/approve", response_model=WorkOrderRead, status_code=201)
async def approve_quotation(
    quotation_id: str,
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    return await registration.approve_quotation(db, auth, quotation_id)


@router.post("/{quotation_id}/reject", response_model=QuotationRead)
async def reject_quotation(
    quotation_id: str,
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    return await registration.reject_quotation(db, auth, quotation_id)
