from decimal import Decimal

import pytest

from garage.db import crud
from garage.errors import (
    AlreadyInvoiced, ConflictError, NotCompleted, Overpayment, PermissionDenied, ValidationError,
)
from garage.models import Invoice
from garage.services import invoicing
from tests.factories import completed_work_order, make_ctx, make_technician, make_variation, make_work_order


def test_payment_status():
    total = Decimal("52.50")
    assert invoicing.payment_status(Decimal("0"), total) == "pending"
    assert invoicing.payment_status(Decimal("10.00"), total) == "partial"
    assert invoicing.payment_status(total, total) == "paid"


def test_vat_is_five_percent_rounded_half_up():
    assert invoicing.compute_totals(Decimal("50.00")) == (Decimal("2.50"), Decimal("52.50"))
    assert invoicing.compute_totals(Decimal("0.10")) == (Decimal("0.01"), Decimal("0.11"))


def test_to_money_rejects_garbage():
    assert invoicing.to_money("12.345") == Decimal("12.35")
    for bad in ("abc", "Infinity"):
        with pytest.raises(ValidationError):
            invoicing.to_money(bad)


async def test_invoice_for_oil_change(db, admin):
    variation = await make_variation(db, admin)
    tech = await make_technician(db)
    wo = await completed_work_order(db, admin, [variation], tech.id, hours="2")

    invoice = await invoicing.generate(db, admin, wo.id)
    assert invoice.number == "INV-000001"
    assert invoice.subtotal == Decimal("50.00")
    assert invoice.vat_amount == Decimal("2.50")
    assert invoice.total == Decimal("52.50")
    assert invoice.payment_status == "pending"

    lines = await crud.list_invoice_lines(db, invoice.id)
    assert len(lines) == 1
    assert lines[0].labor_hours == Decimal("2.00")
    assert lines[0].amount == Decimal("50.00")


async def test_labor_uses_technician_rate(db, admin):
    variation = await make_variation(db, admin)
    tech = await make_technician(db, rate="40.00")
    wo = await completed_work_order(db, admin, [variation], tech.id, hours="1.5")

    invoice = await invoicing.generate(db, admin, wo.id)
    # 50.00 part + 1.5h x 40.00
    assert invoice.subtotal == Decimal("110.00")
    assert invoice.vat_amount == Decimal("5.50")
    assert invoice.total == Decimal("115.50")


async def test_one_line_per_part(db, admin):
    variation = await make_variation(db, admin, "Brake Service", price=None, parts=[
        {"name": "Front pads", "price": "120.00", "stages": ["Replace pads"]},
        {"name": "Brake fluid", "price": "35.00", "stages": ["Flush"]},
    ])
    tech = await make_technician(db)
    wo = await completed_work_order(db, admin, [variation], tech.id)
    invoice = await invoicing.generate(db, admin, wo.id)
    lines = await crud.list_invoice_lines(db, invoice.id)
    assert [(l.description, l.amount) for l in lines] == [
        ("Front pads", Decimal("120.00")), ("Brake fluid", Decimal("35.00")),
    ]
    assert invoice.subtotal == Decimal("155.00")


async def test_generate_requires_completed_work_order(db, admin):
    variation = await make_variation(db, admin)
    wo = await make_work_order(db, admin, [variation])
    with pytest.raises(NotCompleted):
        await invoicing.generate(db, admin, wo.id)


async def test_second_invoice_rejected_and_original_unchanged(db, admin):
    variation = await make_variation(db, admin)
    tech = await make_technician(db)
    wo = await completed_work_order(db, admin, [variation], tech.id)
    wo_id = wo.id
    invoice = await invoicing.generate(db, admin, wo_id)
    invoice_id = invoice.id

    with pytest.raises(AlreadyInvoiced):
        await invoicing.generate(db, admin, wo_id)

    original = await db.get(Invoice, invoice_id)
    assert original.total == Decimal("52.50")
    assert original.number == "INV-000001"
    assert len(await crud.list_invoices(db)) == 1


async def test_payments_progress_to_paid(db, admin):
    variation = await make_variation(db, admin)
    tech = await make_technician(db)
    wo = await completed_work_order(db, admin, [variation], tech.id)
    invoice = await invoicing.generate(db, admin, wo.id)

    await invoicing.record_payment(db, admin, invoice.id, "20.00", "cash")
    assert invoice.payment_status == "partial"
    payment = await invoicing.record_payment(db, admin, invoice.id, "32.50", "card", reference="AUTH-991")
    assert payment.seq == 2
    assert invoice.amount_paid == Decimal("52.50")
    assert invoice.payment_status == "paid"


async def test_overpayment_rejected(db, admin):
    variation = await make_variation(db, admin)
    tech = await make_technician(db)
    wo = await completed_work_order(db, admin, [variation], tech.id)
    invoice = await invoicing.generate(db, admin, wo.id)
    invoice_id = invoice.id
    await invoicing.record_payment(db, admin, invoice_id, "50.00", "cash")

    with pytest.raises(Overpayment):
        await invoicing.record_payment(db, admin, invoice_id, "5.00", "cash")

    invoice = await db.get(Invoice, invoice_id)
    assert invoice.amount_paid == Decimal("50.00")
    assert invoice.payment_status == "partial"
    assert len(await crud.list_payments(db, invoice_id)) == 1


async def test_payment_validation(db, admin):
    variation = await make_variation(db, admin)
    tech = await make_technician(db)
    wo = await completed_work_order(db, admin, [variation], tech.id)
    invoice = await invoicing.generate(db, admin, wo.id)
    with pytest.raises(ValidationError):
        await invoicing.record_payment(db, admin, invoice.id, "0", "cash")
    with pytest.raises(ValidationError):
        await invoicing.record_payment(db, admin, invoice.id, "10", "bitcoin")
    with pytest.raises(PermissionDenied):
        await invoicing.record_payment(db, make_ctx("technician"), invoice.id, "10", "cash")


async def test_void_frees_work_order_for_regeneration(db, admin):
    variation = await make_variation(db, admin)
    tech = await make_technician(db)
    wo = await completed_work_order(db, admin, [variation], tech.id)
    first = await invoicing.generate(db, admin, wo.id)

    voided = await invoicing.void_invoice(db, admin, first.id, "Wrong customer address")
    assert voided.is_void
    second = await invoicing.generate(db, admin, wo.id)
    assert second.number == "INV-000002"
    assert (await crud.get_active_invoice_for_work_order(db, wo.id)).id == second.id


async def test_void_refused_once_paid(db, admin):
    variation = await make_variation(db, admin)
    tech = await make_technician(db)
    wo = await completed_work_order(db, admin, [variation], tech.id)
    invoice = await invoicing.generate(db, admin, wo.id)
    await invoicing.record_payment(db, admin, invoice.id, "10.00", "cash")
    with pytest.raises(ConflictError):
        await invoicing.void_invoice(db, admin, invoice.id, "Mistake")
