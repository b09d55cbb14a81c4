"""Invoice, invoice lines and payments.

An invoice is derived from exactly one completed work order; the partial
unique index keeps at most one non-void invoice per work order.
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import String, Boolean, Integer, ForeignKey, Date, DateTime, Index, text
from sqlalchemy.orm import Mapped, mapped_column

from garage.models.base import Base, ULIDMixin
from garage.models.types import FixedDecimal, Money


class Invoice(Base, ULIDMixin):
    __tablename__ = "invoices"
    __table_args__ = (
        Index(
            "uq_active_invoice_per_work_order", "work_order_id", unique=True,
            sqlite_where=text("is_void = 0"),
            postgresql_where=text("is_void = false"),
        ),
    )

    number: Mapped[str] = mapped_column(String(20), unique=True, index=True)
    work_order_id: Mapped[str] = mapped_column(String(26), ForeignKey("work_orders.id"), index=True)
    customer_id: Mapped[str] = mapped_column(String(26), ForeignKey("customers.id"), index=True)
    branch_id: Mapped[str | None] = mapped_column(String(26), ForeignKey("branches.id"), nullable=True)
    currency: Mapped[str] = mapped_column(String(3), default="AED")
    subtotal: Mapped[Decimal] = mapped_column(Money())
    vat_rate: Mapped[Decimal] = mapped_column(FixedDecimal(4))
    vat_amount: Mapped[Decimal] = mapped_column(Money())
    total: Mapped[Decimal] = mapped_column(Money())
    amount_paid: Mapped[Decimal] = mapped_column(Money(), default=Decimal("0"))
    payment_status: Mapped[str] = mapped_column(String(20), default="pending")  # pending | partial | paid
    due_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    created_by: Mapped[str] = mapped_column(String(26))
    is_void: Mapped[bool] = mapped_column(Boolean, default=False)
    void_reason: Mapped[str] = mapped_column(String(1000), default="")
    voided_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}


class InvoiceLine(Base, ULIDMixin):
    __tablename__ = "invoice_lines"

    invoice_id: Mapped[str] = mapped_column(String(26), ForeignKey("invoices.id"), index=True)
    position: Mapped[int] = mapped_column(Integer)
    part_id: Mapped[str] = mapped_column(String(26), ForeignKey("work_order_parts.id"))
    description: Mapped[str] = mapped_column(String(300))
    part_price: Mapped[Decimal] = mapped_column(Money())
    labor_hours: Mapped[Decimal] = mapped_column(FixedDecimal(2))
    labor_amount: Mapped[Decimal] = mapped_column(Money())
    amount: Mapped[Decimal] = mapped_column(Money())


class Payment(Base, ULIDMixin):
    __tablename__ = "payments"

    invoice_id: Mapped[str] = mapped_column(String(26), ForeignKey("invoices.id"), index=True)
    seq: Mapped[int] = mapped_column(Integer)
    amount: Mapped[Decimal] = mapped_column(Money())
    method: Mapped[str] = mapped_column(String(20))  # cash | card | bank_transfer | cheque
    reference: Mapped[str] = mapped_column(String(200), default="")
    recorded_by: Mapped[str] = mapped_column(String(26))
