from __future__ import annotations

from datetime import date
from decimal import Decimal

from sqlalchemy import String, ForeignKey, Date
from sqlalchemy.orm import Mapped, mapped_column

from garage.models.base import Base, ULIDMixin
from garage.models.types import Money


class Expense(Base, ULIDMixin):
    __tablename__ = "expenses"

    branch_id: Mapped[str | None] = mapped_column(String(26), ForeignKey("branches.id"), nullable=True, index=True)
    category: Mapped[str] = mapped_column(String(50), index=True)
    description: Mapped[str] = mapped_column(String(1000), default="")
    amount: Mapped[Decimal] = mapped_column(Money())
    incurred_on: Mapped[date] = mapped_column(Date, index=True)
    receipt_location: Mapped[str] = mapped_column(String(500), default="")
    recorded_by: Mapped[str] = mapped_column(String(26))
