from __future__ import annotations

from decimal import Decimal

from sqlalchemy import String, ForeignKey, JSON
from sqlalchemy.orm import Mapped, mapped_column

from garage.models.base import Base, ULIDMixin
from garage.models.types import Money


class Quotation(Base, ULIDMixin):
    __tablename__ = "quotations"

    number: Mapped[str] = mapped_column(String(20), unique=True, index=True)
    branch_id: Mapped[str | None] = mapped_column(String(26), ForeignKey("branches.id"), nullable=True)
    customer_id: Mapped[str] = mapped_column(String(26), ForeignKey("customers.id"), index=True)
    vehicle_id: Mapped[str] = mapped_column(String(26), ForeignKey("vehicles.id"))
    items: Mapped[list] = mapped_column(JSON, default=list)  # [{variation_id, version, name, price}]
    total: Mapped[Decimal] = mapped_column(Money())
    status: Mapped[str] = mapped_column(String(20), default="draft")  # draft | approved | rejected
    created_by: Mapped[str] = mapped_column(String(26))
    decided_by: Mapped[str | None] = mapped_column(String(26), nullable=True)
    work_order_id: Mapped[str | None] = mapped_column(String(26), nullable=True)
