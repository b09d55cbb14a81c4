"""Timesheets and the pay stubs computed from them."""

from __future__ import annotations

from datetime import date
from decimal import Decimal

from sqlalchemy import String, ForeignKey, Date, JSON
from sqlalchemy.orm import Mapped, mapped_column

from garage.models.base import Base, ULIDMixin
from garage.models.types import FixedDecimal, Money


class TimesheetEntry(Base, ULIDMixin):
    __tablename__ = "timesheet_entries"

    technician_id: Mapped[str] = mapped_column(String(26), ForeignKey("technicians.id"), index=True)
    work_date: Mapped[date] = mapped_column(Date, index=True)
    hours: Mapped[Decimal] = mapped_column(FixedDecimal(2))
    note: Mapped[str] = mapped_column(String(500), default="")
    recorded_by: Mapped[str] = mapped_column(String(26))


class PayStub(Base, ULIDMixin):
    __tablename__ = "pay_stubs"

    technician_id: Mapped[str] = mapped_column(String(26), ForeignKey("technicians.id"), index=True)
    period_start: Mapped[date] = mapped_column(Date)
    period_end: Mapped[date] = mapped_column(Date)
    hourly_rate: Mapped[Decimal] = mapped_column(Money())
    regular_hours: Mapped[Decimal] = mapped_column(FixedDecimal(2))
    overtime_hours: Mapped[Decimal] = mapped_column(FixedDecimal(2))
    gross: Mapped[Decimal] = mapped_column(Money())
    deductions: Mapped[list] = mapped_column(JSON, default=list)  # [{label, amount}]
    total_deductions: Mapped[Decimal] = mapped_column(Money())
    net: Mapped[Decimal] = mapped_column(Money())
    created_by: Mapped[str] = mapped_column(String(26))
