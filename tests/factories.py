"""Builders shared by the unit and integration tests."""

from __future__ import annotations

import io
from decimal import Decimal

from PIL import Image

from garage.db import crud
from garage.models import User
from garage.models.base import new_id
from garage.permissions import resolve_permissions
from garage.services import catalog, file_store, lifecycle, qa, registration
from garage.services.auth import AuthContext, hash_password

VIN = "1HGCM82633A004352"


def make_ctx(role: str = "admin", branch_id: str | None = None, user_id: str | None = None, extra=()) -> AuthContext:
    return AuthContext(
        user_id=user_id or new_id(),
        role=role,
        branch_id=branch_id,
        email=f"{role}@garage.test",
        display_name=role.title(),
        permissions=resolve_permissions(role, extra),
    )


async def make_branch(db, name: str = "Main Workshop", code: str = "MAIN"):
    return await crud.create_branch(db, name, code)


async def make_user(db, role: str = "manager", email: str | None = None, branch_id: str | None = None) -> User:
    user = User(
        email=email or f"{new_id().lower()}@garage.test",
        display_name=role.title(),
        password_hash=hash_password("password123"),
        role=role,
        branch_id=branch_id,
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user


async def make_technician(db, name: str = "Sam Rivera", rate: str = "0", branch_id: str | None = None):
    return await crud.create_technician(db, name=name, hourly_rate=Decimal(rate), branch_id=branch_id)


async def make_variation(db, ctx, name: str = "Oil Change", price: str | None = "50.00", parts=None):
    return await catalog.create_variation(db, ctx, name, price=price, parts=parts)


def jpeg(color=(70, 130, 180)) -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", (64, 48), color=color).save(buf, format="JPEG")
    return buf.getvalue()


async def upload_photos(count: int = 3, category: str = "qa_photo") -> list[str]:
    """Store ``count`` distinct JPEGs and return their locations."""
    return [await file_store.save_upload(jpeg((i * 40, 90, 120)), "image/jpeg", category) for i in range(count)]


def vin(n: int) -> str:
    """A distinct valid VIN per ``n``."""
    return VIN[:-4] + f"{n:04d}"


async def make_work_order(db, ctx, variations, vehicle_vin: str = VIN):
    """Register Jane Doe, quote ``variations`` and approve the quotation."""
    customer, vehicle = await registration.register_customer(
        db, ctx,
        {"name": "Jane Doe", "phone": "+971500000000"},
        {"make": "Honda", "model": "Accord", "year": 2003, "vin": vehicle_vin},
    )
    quote = await registration.create_quotation(db, ctx, customer.id, vehicle.id, [v.id for v in variations])
    return await registration.approve_quotation(db, ctx, quote.id)


async def finish_stages(db, ctx, wo_id: str, technician_id: str, hours="2"):
    """Assign, start and complete every stage of a work order in order."""
    for stage in await crud.list_stages(db, wo_id):
        await lifecycle.assign_technician(db, ctx, wo_id, stage.id, technician_id)
        await lifecycle.start_stage(db, ctx, wo_id, stage.id)
        await lifecycle.complete_stage(db, ctx, wo_id, stage.id, hours=hours)


async def completed_work_order(db, ctx, variations, technician_id: str, hours="2", vehicle_vin: str = VIN):
    """A work order that passed QA and is ready to invoice."""
    wo = await make_work_order(db, ctx, variations, vehicle_vin=vehicle_vin)
    await finish_stages(db, ctx, wo.id, technician_id, hours)
    await lifecycle.submit_for_qa(db, ctx, wo.id)
    await qa.approve(db, ctx, wo.id, await upload_photos())
    return wo
