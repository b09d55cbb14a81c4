"""Work order aggregate, stored as flat tables keyed by id.

``work_orders`` -> ``work_order_parts`` -> ``stages`` -> ``stage_logs``; each
child carries explicit parent ids. ``version`` columns are optimistic
concurrency stamps: a flush against a row someone else already changed fails.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from sqlalchemy import String, Boolean, Integer, ForeignKey, DateTime, event
from sqlalchemy.orm import Mapped, mapped_column

from garage.errors import ConflictError
from garage.models.base import Base, ULIDMixin, utcnow
from garage.models.types import FixedDecimal, Money


class WorkOrder(Base, ULIDMixin):
    __tablename__ = "work_orders"

    number: Mapped[str] = mapped_column(String(20), unique=True, index=True)
    branch_id: Mapped[str | None] = mapped_column(String(26), ForeignKey("branches.id"), nullable=True)
    customer_id: Mapped[str] = mapped_column(String(26), ForeignKey("customers.id"), index=True)
    vehicle_id: Mapped[str] = mapped_column(String(26), ForeignKey("vehicles.id"))
    quotation_id: Mapped[str | None] = mapped_column(String(26), ForeignKey("quotations.id"), nullable=True)
    status: Mapped[str] = mapped_column(String(20), default="pending", index=True)
    created_by: Mapped[str] = mapped_column(String(26))
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    cancelled_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    cancel_requested_by: Mapped[str | None] = mapped_column(String(26), nullable=True)
    cancel_approved_by: Mapped[str | None] = mapped_column(String(26), nullable=True)
    cancel_reason: Mapped[str] = mapped_column(String(1000), default="")
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}


class WorkOrderPart(Base, ULIDMixin):
    __tablename__ = "work_order_parts"

    work_order_id: Mapped[str] = mapped_column(String(26), ForeignKey("work_orders.id"), index=True)
    position: Mapped[int] = mapped_column(Integer)
    variation_id: Mapped[str] = mapped_column(String(26), ForeignKey("variations.id"))
    name: Mapped[str] = mapped_column(String(200))
    price: Mapped[Decimal] = mapped_column(Money())


class Stage(Base, ULIDMixin):
    __tablename__ = "stages"

    work_order_id: Mapped[str] = mapped_column(String(26), ForeignKey("work_orders.id"), index=True)
    part_id: Mapped[str] = mapped_column(String(26), ForeignKey("work_order_parts.id"), index=True)
    position: Mapped[int] = mapped_column(Integer)
    name: Mapped[str] = mapped_column(String(200))
    status: Mapped[str] = mapped_column(String(20), default="pending")  # pending | in_progress | blocked | completed
    technician_id: Mapped[str | None] = mapped_column(String(26), ForeignKey("technicians.id"), nullable=True)
    actual_hours: Mapped[Decimal] = mapped_column(FixedDecimal(2), default=Decimal("0"))
    ready_for_qa: Mapped[bool] = mapped_column(Boolean, default=False)
    log_count: Mapped[int] = mapped_column(Integer, default=0)
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}


class StageLog(Base, ULIDMixin):
    """Audit trail entry. Insert-only."""

    __tablename__ = "stage_logs"

    stage_id: Mapped[str] = mapped_column(String(26), ForeignKey("stages.id"), index=True)
    work_order_id: Mapped[str] = mapped_column(String(26), ForeignKey("work_orders.id"), index=True)
    seq: Mapped[int] = mapped_column(Integer)
    action: Mapped[str] = mapped_column(String(30))
    actor_id: Mapped[str] = mapped_column(String(26))
    note: Mapped[str] = mapped_column(String(2000), default="")
    hours: Mapped[Decimal | None] = mapped_column(FixedDecimal(2), nullable=True)


@event.listens_for(StageLog, "before_update")
@event.listens_for(StageLog, "before_delete")
def _refuse_log_rewrite(mapper, connection, target):
    raise ConflictError("Stage logs are append-only")
