"""Variation catalog with versioning.

A variation that any work order points at is never edited in place; edits
produce a new version under the same ``code`` and retire the old one.
"""

from __future__ import annotations

import logging
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from garage.db import crud
from garage.db.transaction import atomic
from garage.errors import ConflictError, ValidationError
from garage.models import Variation
from garage.models.base import new_id
from garage.services.auth import AuthContext
from garage.services.invoicing import to_money

logger = logging.getLogger(__name__)

DEFAULT_STAGE = "Labor"


def normalize_parts(name: str, price, parts: list[dict] | None) -> tuple[Decimal, list[dict]]:
    """Validate the parts catalog and return ``(price, parts)`` as stored.

    Without parts the whole price goes to a single part named after the
    variation with one labor stage. With parts the price is their sum.
    """
    if not parts:
        if price is None:
            raise ValidationError("A variation needs a price or a parts list")
        amount = to_money(price)
        if amount < 0:
            raise ValidationError("Price cannot be negative")
        return amount, [{"name": name, "price": str(amount), "stages": [DEFAULT_STAGE]}]

    cleaned = []
    total = Decimal("0")
    for raw in parts:
        part_name = (raw.get("name") or "").strip()
        if not part_name:
            raise ValidationError("Every part needs a name")
        part_price = to_money(raw.get("price", 0))
        if part_price < 0:
            raise ValidationError(f"Part '{part_name}' has a negative price")
        stages = [s.strip() for s in (raw.get("stages") or [DEFAULT_STAGE]) if s and s.strip()]
        if not stages:
            raise ValidationError(f"Part '{part_name}' needs at least one stage")
        cleaned.append({"name": part_name, "price": str(part_price), "stages": stages})
        total += part_price
    if price is not None and to_money(price) != total:
        raise ValidationError(f"Variation price {to_money(price)} does not match the parts total {total}")
    return total, cleaned


async def create_variation(
    db: AsyncSession, ctx: AuthContext, name: str, price=None,
    parts: list[dict] | None = None, description: str = "",
) -> Variation:
    ctx.require("variations.manage")
    name = (name or "").strip()
    if not name:
        raise ValidationError("Variation name is required")
    amount, cleaned = normalize_parts(name, price, parts)
    async with atomic(db):
        variation = Variation(
            code=new_id(), version=1, name=name, description=description,
            price=amount, parts=cleaned, is_active=True,
        )
        db.add(variation)
    return variation


async def update_variation(
    db: AsyncSession, ctx: AuthContext, variation_id: str, name: str | None = None,
    price=None, parts: list[dict] | None = None, description: str | None = None,
) -> Variation:
    """Edit a variation; returns the row now carrying the change (maybe a new version)."""
    ctx.require("variations.manage")
    async with atomic(db):
        current = await crud.get_or_404(db, Variation, variation_id, "Variation")
        if not current.is_active:
            raise ConflictError("Only the active version of a variation can be edited")
        new_name = (name or current.name).strip()
        if parts is None and price is None:
            amount, cleaned = current.price, current.parts
        elif parts is None:
            if len(current.parts) != 1:
                raise ValidationError("Change the price of a multi-part variation through its parts")
            amount, cleaned = normalize_parts(new_name, None, [dict(current.parts[0], price=price)])
        else:
            amount, cleaned = normalize_parts(new_name, price, parts)
        new_description = current.description if description is None else description

        if not await crud.variation_is_referenced(db, current.id):
            current.name = new_name
            current.price = amount
            current.parts = cleaned
            current.description = new_description
            return current

        current.is_active = False
        successor = Variation(
            code=current.code,
            version=current.version + 1,
            name=new_name,
            description=new_description,
            price=amount,
            parts=cleaned,
            is_active=True,
        )
        db.add(successor)
    logger.info("Variation %s versioned to v%s", current.code, successor.version)
    return successor


async def retire_variation(db: AsyncSession, ctx: AuthContext, variation_id: str) -> Variation:
    ctx.require("variations.manage")
    async with atomic(db):
        variation = await crud.get_or_404(db, Variation, variation_id, "Variation")
        variation.is_active = False
    return variation
