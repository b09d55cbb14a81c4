"""QA verification: one row per submission of a work order for review."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import String, ForeignKey, JSON, DateTime, Index, text
from sqlalchemy.orm import Mapped, mapped_column

from garage.models.base import Base, ULIDMixin


class QAVerification(Base, ULIDMixin):
    __tablename__ = "qa_verifications"
    __table_args__ = (
        Index(
            "uq_qa_approved_per_work_order", "work_order_id", unique=True,
            sqlite_where=text("decision = 'approved'"),
            postgresql_where=text("decision = 'approved'"),
        ),
    )

    work_order_id: Mapped[str] = mapped_column(String(26), ForeignKey("work_orders.id"), index=True)
    submitted_by: Mapped[str] = mapped_column(String(26))
    reviewer_id: Mapped[str | None] = mapped_column(String(26), nullable=True)
    decision: Mapped[str] = mapped_column(String(20), default="pending")  # pending | approved | rejected
    photos: Mapped[list] = mapped_column(JSON, default=list)
    comments: Mapped[str] = mapped_column(String(2000), default="")
    decided_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
