"""Technician model, assigned to work order stages."""

from __future__ import annotations

from decimal import Decimal

from sqlalchemy import String, Boolean, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column

from garage.models.base import Base, ULIDMixin
from garage.models.types import Money


class Technician(Base, ULIDMixin):
    __tablename__ = "technicians"

    user_id: Mapped[str | None] = mapped_column(String(26), ForeignKey("users.id"), nullable=True)
    branch_id: Mapped[str | None] = mapped_column(String(26), ForeignKey("branches.id"), nullable=True)
    name: Mapped[str] = mapped_column(String(200))
    email: Mapped[str] = mapped_column(String(255), default="")
    phone: Mapped[str] = mapped_column(String(50), default="")
    hourly_rate: Mapped[Decimal] = mapped_column(Money(), default=Decimal("0"))
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
