"""Payroll engine: timesheets in, pay stubs out.

Regular hours are capped per ISO week at ``payroll.overtime_threshold_hours``;
anything above is paid at ``payroll.overtime_multiplier``.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from datetime import date
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from garage.config import get_settings
from garage.db import crud
from garage.db.transaction import atomic
from garage.errors import ConflictError, ValidationError
from garage.models import PayStub, Technician, TimesheetEntry
from garage.services.auth import AuthContext
from garage.services.invoicing import CENT, to_money
from garage.services.lifecycle import parse_hours

logger = logging.getLogger(__name__)


async def record_timesheet(
    db: AsyncSession, ctx: AuthContext, technician_id: str, work_date: date, hours, note: str = "",
) -> TimesheetEntry:
    ctx.require("payroll.manage")
    amount = parse_hours(hours)
    async with atomic(db):
        tech = await crud.get_or_404(db, Technician, technician_id, "Technician")
        entry = TimesheetEntry(
            technician_id=tech.id,
            work_date=work_date,
            hours=amount,
            note=note,
            recorded_by=ctx.user_id,
        )
        db.add(entry)
    return entry


async def list_timesheet(
    db: AsyncSession, technician_id: str, start: date | None = None, end: date | None = None,
) -> list[TimesheetEntry]:
    stmt = select(TimesheetEntry).where(TimesheetEntry.technician_id == technician_id)
    if start:
        stmt = stmt.where(TimesheetEntry.work_date >= start)
    if end:
        stmt = stmt.where(TimesheetEntry.work_date <= end)
    result = await db.execute(stmt.order_by(TimesheetEntry.work_date, TimesheetEntry.id))
    return list(result.scalars().all())


def split_hours(entries, threshold: Decimal) -> tuple[Decimal, Decimal]:
    """Return ``(regular, overtime)`` with the weekly cap applied per ISO week."""
    weeks: dict[tuple[int, int], Decimal] = defaultdict(Decimal)
    for entry in entries:
        year, week, _ = entry.work_date.isocalendar()
        weeks[(year, week)] += entry.hours
    regular = overtime = Decimal("0")
    for total in weeks.values():
        regular += min(total, threshold)
        overtime += max(total - threshold, Decimal("0"))
    return regular, overtime


def _percent(label: str, value) -> Decimal:
    try:
        percent = Decimal(str(value).strip())
    except (InvalidOperation, ValueError) as exc:
        raise ValidationError(f"Deduction '{label}' percent must be a number") from exc
    if not percent.is_finite() or percent < 0 or percent > 100:
        raise ValidationError(f"Deduction '{label}' percent must be between 0 and 100")
    return percent


def apply_deductions(gross: Decimal, deductions: list[dict] | None) -> tuple[list[dict], Decimal]:
    """Resolve ``{label, amount}`` / ``{label, percent}`` items to amounts."""
    resolved = []
    total = Decimal("0")
    for item in deductions or []:
        label = (item.get("label") or "").strip()
        if not label:
            raise ValidationError("Every deduction needs a label")
        if ("amount" in item) == ("percent" in item):
            raise ValidationError(f"Deduction '{label}' needs exactly one of amount or percent")
        if "percent" in item:
            percent = _percent(label, item["percent"])
            amount = (gross * percent / Decimal("100")).quantize(CENT, rounding=ROUND_HALF_UP)
        else:
            amount = to_money(item["amount"])
            if amount < 0:
                raise ValidationError(f"Deduction '{label}' cannot be negative")
        resolved.append({"label": label, "amount": str(amount)})
        total += amount
    return resolved, total


async def compute_pay_stub(
    db: AsyncSession, ctx: AuthContext, technician_id: str, period_start: date, period_end: date,
    deductions: list[dict] | None = None,
) -> PayStub:
    """Compute and persist the pay stub for one technician and period."""
    ctx.require("payroll.manage")
    if period_start > period_end:
        raise ValidationError("Period start must not be after period end")
    cfg = get_settings().payroll

    async with atomic(db):
        tech = await crud.get_or_404(db, Technician, technician_id, "Technician")
        result = await db.execute(
            select(PayStub.id).where(
                PayStub.technician_id == tech.id,
                PayStub.period_start <= period_end,
                PayStub.period_end >= period_start,
            ).limit(1)
        )
        if result.first() is not None:
            raise ConflictError(f"{tech.name} already has a pay stub overlapping this period")

        entries = await list_timesheet(db, tech.id, period_start, period_end)
        regular, overtime = split_hours(entries, cfg.overtime_threshold_hours)
        rate = tech.hourly_rate or Decimal("0")
        gross = (regular * rate + overtime * rate * cfg.overtime_multiplier).quantize(
            CENT, rounding=ROUND_HALF_UP
        )
        resolved, total_deductions = apply_deductions(gross, deductions)
        net = gross - total_deductions
        if net < 0:
            raise ValidationError(f"Deductions of {total_deductions} exceed gross pay of {gross}")

        stub = PayStub(
            technician_id=tech.id,
            period_start=period_start,
            period_end=period_end,
            hourly_rate=rate,
            regular_hours=regular,
            overtime_hours=overtime,
            gross=gross,
            deductions=resolved,
            total_deductions=total_deductions,
            net=net,
            created_by=ctx.user_id,
        )
        db.add(stub)
    logger.info("Pay stub for %s (%s..%s): gross %s net %s", tech.name, period_start, period_end, gross, net)
    return stub


async def list_pay_stubs(db: AsyncSession, technician_id: str | None = None) -> list[PayStub]:
    stmt = select(PayStub).order_by(PayStub.period_start.desc())
    if technician_id:
        stmt = stmt.where(PayStub.technician_id == technician_id)
    result = await db.execute(stmt)
    return list(result.scalars().all())
