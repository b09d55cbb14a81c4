"""Two-step intake: customer + vehicle, then a quotation from chosen variations.

Approving a quotation instantiates the work order.
"""

from __future__ import annotations

import logging
from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from garage.db import crud
from garage.db.transaction import atomic
from garage.errors import ConflictError, InvalidTransition, NotFoundError, ValidationError
from garage.models import Customer, Quotation, Vehicle, Variation, WorkOrder
from garage.services import notifications
from garage.services.auth import AuthContext
from garage.services.lifecycle import instantiate_work_order
from garage.services.locks import entity_locks

logger = logging.getLogger(__name__)


def _clean_vin(vin: str) -> str:
    vin = (vin or "").strip().upper()
    if len(vin) != 17 or any(c in "IOQ" for c in vin) or not vin.isalnum():
        raise ValidationError("VIN must be 17 characters (letters I, O and Q are not allowed)")
    return vin


async def _add_vehicle(db: AsyncSession, customer_id: str, vehicle: dict) -> Vehicle:
    vin = _clean_vin(vehicle.get("vin", ""))
    if await crud.get_vehicle_by_vin(db, vin) is not None:
        raise ConflictError(f"A vehicle with VIN {vin} is already registered")
    if not (vehicle.get("make") or "").strip() or not (vehicle.get("model") or "").strip():
        raise ValidationError("Vehicle make and model are required")
    result = await db.execute(
        select(func.coalesce(func.max(Vehicle.position), 0)).where(Vehicle.customer_id == customer_id)
    )
    position = result.scalar_one() + 1
    record = Vehicle(
        customer_id=customer_id,
        position=position,
        make=vehicle["make"].strip(),
        model=vehicle["model"].strip(),
        year=vehicle.get("year"),
        vin=vin,
        plate=(vehicle.get("plate") or "").strip().upper(),
        color=vehicle.get("color") or "",
        mileage=vehicle.get("mileage"),
    )
    db.add(record)
    await db.flush()
    return record


async def register_customer(
    db: AsyncSession, ctx: AuthContext, customer: dict, vehicle: dict,
) -> tuple[Customer, Vehicle]:
    """Step 1: create the customer and their first vehicle together."""
    ctx.require("customers.manage")
    name = (customer.get("name") or "").strip()
    if not name:
        raise ValidationError("Customer name is required")
    try:
        async with atomic(db):
            record = Customer(
                branch_id=customer.get("branch_id") or ctx.branch_id,
                name=name,
                phone=customer.get("phone", ""),
                email=customer.get("email", ""),
                address=customer.get("address", ""),
                notes=customer.get("notes", ""),
            )
            db.add(record)
            await db.flush()
            car = await _add_vehicle(db, record.id, vehicle)
    except IntegrityError as exc:
        raise ConflictError("Vehicle is already registered") from exc
    logger.info("Registered customer %s with vehicle %s", record.id, car.vin)
    return record, car


async def add_vehicle(db: AsyncSession, ctx: AuthContext, customer_id: str, vehicle: dict) -> Vehicle:
    ctx.require("customers.manage")
    try:
        async with atomic(db):
            customer = await crud.get_or_404(db, Customer, customer_id, "Customer")
            if not customer.is_active:
                raise ConflictError("Customer is disabled")
            car = await _add_vehicle(db, customer.id, vehicle)
    except IntegrityError as exc:
        raise ConflictError("Vehicle could not be added; retry") from exc
    return car


async def create_quotation(
    db: AsyncSession, ctx: AuthContext, customer_id: str, vehicle_id: str, variation_ids: list[str],
) -> Quotation:
    """Step 2: snapshot the chosen variations into a draft quotation."""
    ctx.require("quotations.manage")
    if not variation_ids:
        raise ValidationError("Select at least one variation")
    async with atomic(db):
        customer = await crud.get_or_404(db, Customer, customer_id, "Customer")
        if not customer.is_active:
            raise ConflictError("Customer is disabled")
        vehicle = await db.get(Vehicle, vehicle_id)
        if vehicle is None or vehicle.customer_id != customer.id:
            raise NotFoundError("Vehicle not found for this customer")

        items = []
        for variation_id in variation_ids:
            variation = await db.get(Variation, variation_id)
            if variation is None or not variation.is_active:
                raise NotFoundError(f"Variation {variation_id} not found or retired")
            items.append({
                "variation_id": variation.id,
                "version": variation.version,
                "name": variation.name,
                "price": str(variation.price),
            })
        quotation = Quotation(
            number=await crud.next_number(db, "quotation", "QT"),
            branch_id=customer.branch_id or ctx.branch_id,
            customer_id=customer.id,
            vehicle_id=vehicle.id,
            items=items,
            total=sum((Decimal(i["price"]) for i in items), Decimal("0")),
            status="draft",
            created_by=ctx.user_id,
        )
        db.add(quotation)
    return quotation


async def approve_quotation(db: AsyncSession, ctx: AuthContext, quotation_id: str) -> WorkOrder:
    """Approve a draft quotation and create its work order."""
    ctx.require("quotations.approve")
    async with entity_locks.hold("quotation", quotation_id):
        wo, notice = await _approve_locked(db, ctx, quotation_id)
    await notifications.publish(notice)
    return wo


async def _approve_locked(db: AsyncSession, ctx: AuthContext, quotation_id: str):
    async with atomic(db):
        quotation = await crud.get_or_404(db, Quotation, quotation_id, "Quotation")
        if quotation.status != "draft":
            raise InvalidTransition(f"Quotation {quotation.number} is already {quotation.status}")
        variations = []
        for item in quotation.items:
            # Quoted versions stay valid even if the variation was versioned since.
            variation = await crud.get_or_404(db, Variation, item["variation_id"], "Variation")
            if variation.price != Decimal(item["price"]):
                raise ConflictError(f"{variation.name} was repriced after quoting; issue a new quotation")
            variations.append(variation)
        wo = await instantiate_work_order(db, ctx, quotation, variations)
        quotation.status = "approved"
        quotation.decided_by = ctx.user_id
        quotation.work_order_id = wo.id
        notice = None
        if wo.branch_id:
            notice = notifications.queue(
                db, "work_order.created", f"{wo.number} opened from {quotation.number}",
                branch_id=wo.branch_id,
                data={"work_order_id": wo.id, "number": wo.number},
            )
    return wo, notice


async def reject_quotation(db: AsyncSession, ctx: AuthContext, quotation_id: str) -> Quotation:
    ctx.require("quotations.approve")
    async with atomic(db):
        quotation = await crud.get_or_404(db, Quotation, quotation_id, "Quotation")
        if quotation.status != "draft":
            raise InvalidTransition(f"Quotation {quotation.number} is already {quotation.status}")
        quotation.status = "rejected"
        quotation.decided_by = ctx.user_id
    return quotation
