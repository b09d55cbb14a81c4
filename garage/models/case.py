"""Case tracking with an append-only activity trail."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import String, ForeignKey, JSON, DateTime
from sqlalchemy.orm import Mapped, mapped_column

from garage.models.base import Base, ULIDMixin, utcnow


class Case(Base, ULIDMixin):
    __tablename__ = "cases"

    branch_id: Mapped[str | None] = mapped_column(String(26), ForeignKey("branches.id"), nullable=True)
    title: Mapped[str] = mapped_column(String(200))
    description: Mapped[str] = mapped_column(String(4000), default="")
    priority: Mapped[str] = mapped_column(String(10), default="medium")  # low | medium | high | urgent
    status: Mapped[str] = mapped_column(String(20), default="open", index=True)  # open | in_progress | resolved | closed
    customer_id: Mapped[str | None] = mapped_column(String(26), nullable=True, index=True)
    work_order_id: Mapped[str | None] = mapped_column(String(26), nullable=True)
    invoice_id: Mapped[str | None] = mapped_column(String(26), nullable=True)
    assignee_id: Mapped[str | None] = mapped_column(String(26), nullable=True)
    opened_by: Mapped[str] = mapped_column(String(26))
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)


class CaseActivity(Base, ULIDMixin):
    __tablename__ = "case_activities"

    case_id: Mapped[str] = mapped_column(String(26), ForeignKey("cases.id"), index=True)
    actor_id: Mapped[str] = mapped_column(String(26))
    kind: Mapped[str] = mapped_column(String(20))  # opened | comment | status | priority | assignee
    body: Mapped[str] = mapped_column(String(4000), default="")
    attachments: Mapped[list] = mapped_column(JSON, default=list)
