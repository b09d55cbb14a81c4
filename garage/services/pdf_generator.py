"""Invoice PDF rendering using Jinja2 + xhtml2pdf."""

from __future__ import annotations

import io
from pathlib import Path

from jinja2 import Environment, FileSystemLoader, select_autoescape
from sqlalchemy.ext.asyncio import AsyncSession

from garage.db import crud
from garage.errors import DependencyError
from garage.models import Customer, Invoice, Vehicle, WorkOrder

_TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "templates"

_env = Environment(loader=FileSystemLoader(str(_TEMPLATE_DIR)), autoescape=select_autoescape(["html", "j2"]))


async def render_invoice_pdf(db: AsyncSession, invoice: Invoice) -> bytes:
    """Render an invoice to PDF bytes."""
    from xhtml2pdf import pisa

    wo = await db.get(WorkOrder, invoice.work_order_id)
    customer = await db.get(Customer, invoice.customer_id)
    vehicle = await db.get(Vehicle, wo.vehicle_id) if wo else None

    html = _env.get_template("invoice.html.j2").render(
        invoice=invoice,
        work_order=wo,
        customer=customer,
        vehicle=vehicle,
        lines=await crud.list_invoice_lines(db, invoice.id),
        payments=await crud.list_payments(db, invoice.id),
        vat_percent=(invoice.vat_rate * 100).normalize(),
    )

    pdf_buffer = io.BytesIO()
    pisa_status = pisa.CreatePDF(io.StringIO(html), dest=pdf_buffer)
    if pisa_status.err:
        raise DependencyError(f"Invoice PDF generation failed with {pisa_status.err} errors")
    return pdf_buffer.getvalue()
