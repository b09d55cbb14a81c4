"""Invoice engine: derive invoices from completed work orders and reconcile payments.

All money is ``Decimal`` rounded half-up to cents. VAT is a fixed 5% of the
subtotal. A payment that would push the cumulative total past the invoice
total is rejected outright (no credit balance is ever created).
"""

from __future__ import annotations

import logging
from datetime import timedelta
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from garage.config import get_settings
from garage.db import crud
from garage.db.transaction import atomic
from garage.errors import (
    AlreadyInvoiced, ConflictError, NotCompleted, Overpayment, ValidationError,
)
from garage.models import Invoice, InvoiceLine, Payment, Technician, WorkOrder
from garage.models.base import utcnow
from garage.services import notifications
from garage.services.auth import AuthContext
from garage.services.lifecycle import COMPLETED
from garage.services.locks import entity_locks

logger = logging.getLogger(__name__)

VAT_RATE = Decimal("0.05")
CENT = Decimal("0.01")
PAYMENT_METHODS = ("cash", "card", "bank_transfer", "cheque")


def to_money(value) -> Decimal:
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ValidationError(f"Invalid amount: {value!r}")
    if not amount.is_finite():
        raise ValidationError(f"Invalid amount: {value!r}")
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def payment_status(paid: Decimal, total: Decimal) -> str:
    """``paid`` iff paid == total, ``partial`` iff 0 < paid < total, else ``pending``."""
    if paid == total:
        return "paid"
    if Decimal("0") < paid < total:
        return "partial"
    return "pending"


def compute_totals(subtotal: Decimal) -> tuple[Decimal, Decimal]:
    vat = (subtotal * VAT_RATE).quantize(CENT, rounding=ROUND_HALF_UP)
    return vat, subtotal + vat


async def build_lines(db: AsyncSession, wo: WorkOrder) -> list[dict]:
    """One line per part: part price plus labor hours x technician rate."""
    default_rate = get_settings().billing.default_labor_rate
    stages = await crud.list_stages(db, wo.id)
    rates: dict[str, Decimal] = {}
    lines = []
    for position, part in enumerate(await crud.list_parts(db, wo.id), start=1):
        hours = Decimal("0")
        labor = Decimal("0")
        for stage in (s for s in stages if s.part_id == part.id):
            rate = default_rate
            if stage.technician_id:
                if stage.technician_id not in rates:
                    tech = await db.get(Technician, stage.technician_id)
                    rates[stage.technician_id] = tech.hourly_rate if tech and tech.hourly_rate else default_rate
                rate = rates[stage.technician_id]
            stage_hours = stage.actual_hours or Decimal("0")
            hours += stage_hours
            labor += stage_hours * rate
        labor = labor.quantize(CENT, rounding=ROUND_HALF_UP)
        lines.append({
            "position": position,
            "part_id": part.id,
            "description": part.name,
            "part_price": part.price,
            "labor_hours": hours,
            "labor_amount": labor,
            "amount": part.price + labor,
        })
    return lines


async def generate(db: AsyncSession, ctx: AuthContext, work_order_id: str) -> Invoice:
    """Create the single active invoice for a completed work order."""
    ctx.require("invoices.generate")
    async with entity_locks.hold("work_order", work_order_id):
        try:
            async with atomic(db):
                wo = await crud.get_or_404(db, WorkOrder, work_order_id, "Work order")
                if await crud.get_active_invoice_for_work_order(db, wo.id) is not None:
                    raise AlreadyInvoiced(f"Work order {wo.number} already has an active invoice")
                if wo.status != COMPLETED:
                    raise NotCompleted(f"Work order {wo.number} is {wo.status}, not completed")

                lines = await build_lines(db, wo)
                subtotal = sum((line["amount"] for line in lines), Decimal("0"))
                vat, total = compute_totals(subtotal)
                billing = get_settings().billing
                invoice = Invoice(
                    number=await crud.next_number(db, "invoice", "INV"),
                    work_order_id=wo.id,
                    customer_id=wo.customer_id,
                    branch_id=wo.branch_id,
                    currency=billing.currency,
                    subtotal=subtotal,
                    vat_rate=VAT_RATE,
                    vat_amount=vat,
                    total=total,
                    amount_paid=Decimal("0"),
                    payment_status=payment_status(Decimal("0"), total),
                    due_date=(utcnow() + timedelta(days=billing.invoice_due_days)).date(),
                    created_by=ctx.user_id,
                )
                db.add(invoice)
                await db.flush()
                for line in lines:
                    db.add(InvoiceLine(invoice_id=invoice.id, **line))
                notice = None
                if wo.branch_id:
                    notice = notifications.queue(
                        db, "invoice.generated", f"Invoice {invoice.number} for {wo.number}",
                        body=f"Total {invoice.currency} {total}",
                        branch_id=wo.branch_id,
                        data={"invoice_id": invoice.id, "work_order_id": wo.id},
                    )
        except IntegrityError as exc:
            raise AlreadyInvoiced("Work order already has an active invoice") from exc
        await notifications.publish(notice)
    logger.info("Invoice %s generated for %s: total %s", invoice.number, wo.number, invoice.total)
    return invoice


async def record_payment(
    db: AsyncSession, ctx: AuthContext, invoice_id: str, amount, method: str, reference: str = "",
) -> Payment:
    """Append a payment and recompute the payment status."""
    ctx.require("invoices.record_payment")
    value = to_money(amount)
    if value <= 0:
        raise ValidationError("Payment amount must be positive")
    if method not in PAYMENT_METHODS:
        raise ValidationError(f"Payment method must be one of {', '.join(PAYMENT_METHODS)}")

    async with entity_locks.hold("invoice", invoice_id):
        async with atomic(db):
            invoice = await crud.get_or_404(db, Invoice, invoice_id, "Invoice")
            if invoice.is_void:
                raise ConflictError(f"Invoice {invoice.number} is void")
            paid = invoice.amount_paid + value
            if paid > invoice.total:
                raise Overpayment(
                    f"Payment of {value} exceeds the outstanding balance of {invoice.total - invoice.amount_paid}"
                )
            existing = await crud.list_payments(db, invoice.id)
            payment = Payment(
                invoice_id=invoice.id,
                seq=len(existing) + 1,
                amount=value,
                method=method,
                reference=reference,
                recorded_by=ctx.user_id,
            )
            db.add(payment)
            invoice.amount_paid = paid
            invoice.payment_status = payment_status(paid, invoice.total)
            notice = None
            if invoice.branch_id:
                notice = notifications.queue(
                    db, "invoice.payment", f"Payment on {invoice.number}",
                    body=f"{invoice.currency} {value} by {method}; status {invoice.payment_status}",
                    branch_id=invoice.branch_id,
                    data={"invoice_id": invoice.id, "payment_status": invoice.payment_status},
                )
        await notifications.publish(notice)
    logger.info("Payment %s on %s (%s), status %s", value, invoice.number, method, invoice.payment_status)
    return payment


async def void_invoice(db: AsyncSession, ctx: AuthContext, invoice_id: str, reason: str) -> Invoice:
    """Void an invoice that has no payments, freeing the work order for regeneration."""
    ctx.require("invoices.void")
    if not reason or not reason.strip():
        raise ValidationError("A void reason is required")
    async with entity_locks.hold("invoice", invoice_id):
        async with atomic(db):
            invoice = await crud.get_or_404(db, Invoice, invoice_id, "Invoice")
            if invoice.is_void:
                raise ConflictError(f"Invoice {invoice.number} is already void")
            if invoice.amount_paid > 0:
                raise ConflictError(f"Invoice {invoice.number} has payments and cannot be voided")
            invoice.is_void = True
            invoice.void_reason = reason.strip()
            invoice.voided_at = utcnow()
    logger.info("Invoice %s voided by %s", invoice.number, ctx.user_id)
    return invoice
