"""Invoice API: generate from a completed work order, record payments, void, PDF."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from fastapi.responses import Response
from sqlalchemy.ext.asyncio import AsyncSession

from garage.db import crud
from garage.db.engine import get_db
from garage.dependencies import require_auth, require_permission
from garage.models import Invoice
from garage.schemas import (
    InvoiceDetail, InvoiceGenerate, InvoiceLineRead, InvoiceRead, PaymentCreate, PaymentRead, VoidRequest,
)
from garage.services import invoicing
from garage.services.auth import AuthContext
from garage.services.pdf_generator import render_invoice_pdf

router = APIRouter(prefix="/api/invoices", tags=["invoices"])


async def _detail(db: AsyncSession, invoice: Invoice) -> InvoiceDetail:
    out = InvoiceDetail.model_validate(invoice)
    out.lines = [InvoiceLineRead.model_validate(l) for l in await crud.list_invoice_lines(db, invoice.id)]
    out.payments = [PaymentRead.model_validate(p) for p in await crud.list_payments(db, invoice.id)]
    return out


@router.get("", response_model=list[InvoiceRead])
async def list_invoices(
    payment_status: str | None = None,
    customer_id: str | None = None,
    auth: AuthContext = Depends(require_permission("invoices.view")),
    db: AsyncSession = Depends(get_db),
):
    return await crud.list_invoices(db, payment_status=payment_status, customer_id=customer_id)


@router.post("/generate", response_model=InvoiceDetail, status_code=201)
async def generate_invoice(
    body: InvoiceGenerate,
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    invoice = await invoicing.generate(db, auth, body.work_order_id)
    return await _detail(db, invoice)


@router.get("/{invoice_id}", response_model=InvoiceDetail)
async def get_invoice(
    invoice_id: str,
    auth: AuthContext = Depends(require_permission("invoices.view")),
    db: AsyncSession = Depends(get_db),
):
    return await _detail(db, await crud.get_or_404(db, Invoice, invoice_id, "Invoice"))


@router.post("/{invoice_id}/record-payment", response_model=InvoiceDetail, status_code=201)
async def record_payment(
    invoice_id: str, body: PaymentCreate,
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    await invoicing.record_payment(db, auth, invoice_id, body.amount, body.method, body.reference)
    return await _detail(db, await crud.get_or_404(db, Invoice, invoice_id, "Invoice"))


@router.post("/{invoice_id}/void", response_model=InvoiceRead)
async def void_invoice(
    invoice_id: str, body: VoidRequest,
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    return await invoicing.void_invoice(db, auth, invoice_id, body.reason)


@router.get("/{invoice_id}/pdf")
async def invoice_pdf(
    invoice_id: str,
    auth: AuthContext = Depends(require_permission("invoices.view")),
    db: AsyncSession = Depends(get_db),
):
    invoice = await crud.get_or_404(db, Invoice, invoice_id, "Invoice")
    pdf_bytes = await render_invoice_pdf(db, invoice)
    return Response(
        content=pdf_bytes,
        media_type="application/pdf",
        headers={"Content-Disposition": f"attachment; filename={invoice.number}.pdf"},
    )
