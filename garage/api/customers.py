"""Customer and vehicle API. Customers are soft-disabled, never deleted."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from garage.db import crud
from garage.db.engine import get_db
from garage.dependencies import require_auth, require_permission
from garage.models import Customer
from garage.schemas import (
    CustomerRead, CustomerUpdate, RegistrationRequest, VehicleCreate, VehicleRead,
)
from garage.services import registration
from garage.services.auth import AuthContext

router = APIRouter(prefix="/api/customers", tags=["customers"])


async def _customer_out(db: AsyncSession, customer: Customer) -> CustomerRead:
    out = CustomerRead.model_validate(customer)
    out.vehicles = [VehicleRead.model_validate(v) for v in await crud.list_vehicles(db, customer.id)]
    return out


@router.get("", response_model=list[CustomerRead])
async def list_customers(
    search: str = "",
    include_inactive: bool = False,
    auth: AuthContext = Depends(require_permission("customers.view")),
    db: AsyncSession = Depends(get_db),
):
    return [await _customer_out(db, c) for c in await crud.list_customers(db, search, include_inactive)]


@router.post("", response_model=CustomerRead, status_code=201)
async def register_customer(
    body: RegistrationRequest,
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    customer, _ = await registration.register_customer(
        db, auth, body.customer.model_dump(), body.vehicle.model_dump(),
    )
    return await _customer_out(db, customer)


@router.get("/{customer_id}", response_model=CustomerRead)
async def get_customer(
    customer_id: str,
    auth: AuthContext = Depends(require_permission("customers.view")),
    db: AsyncSession = Depends(get_db),
):
    return await _customer_out(db, await crud.get_or_404(db, Customer, customer_id, "Customer"))


@router.put("/{customer_id}", response_model=CustomerRead)
async def update_customer(
    customer_id: str,
    body: CustomerUpdate,
    auth: AuthContext = Depends(require_permission("customers.manage")),
    db: AsyncSession = Depends(get_db),
):
    customer = await crud.get_or_404(db, Customer, customer_id, "Customer")
    customer = await crud.update_customer(db, customer, **body.model_dump())
    return await _customer_out(db, customer)


@router.post("/{customer_id}/vehicles", response_model=VehicleRead, status_code=201)
async def add_vehicle(
    customer_id: str,
    body: VehicleCreate,
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    return await registration.add_vehicle(db, auth, customer_id, body.model_dump())
