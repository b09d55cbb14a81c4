"""Work order lifecycle: stage state machine and derived work order status.

Stage states::

    pending -> in_progress -> completed
                  |   ^
                  v   |
                 blocked

Work order status is never set directly; it is recomputed from the stages by
``derive_status`` after every transition:

    pending -> in_progress -> pending_qa -> completed
    (any non-terminal) -> cancelled   [needs an approval record]

Every stage transition appends a ``StageLog`` row and bumps the work order's
version stamp, so transitions on one work order are serialized.
"""

from __future__ import annotations

import logging
from decimal import Decimal, InvalidOperation
from typing import Iterable

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from garage.config import get_settings
from garage.db import crud
from garage.db.transaction import atomic
from garage.errors import (
    InvalidTransition, NotFoundError, NotReadyForQA, PermissionDenied, ValidationError, ConflictError,
)
from garage.models import (
    Quotation, QAVerification, Stage, StageLog, Technician, User, Variation, WorkOrder, WorkOrderPart,
)
from garage.models.base import utcnow
from garage.permissions import resolve_permissions
from garage.services import notifications
from garage.services.auth import AuthContext
from garage.services.locks import entity_locks

logger = logging.getLogger(__name__)

# Stage states
PENDING = "pending"
IN_PROGRESS = "in_progress"
BLOCKED = "blocked"
COMPLETED = "completed"

# Work order states (PENDING, IN_PROGRESS and COMPLETED are shared)
PENDING_QA = "pending_qa"
CANCELLED = "cancelled"
TERMINAL = (COMPLETED, CANCELLED)

MAX_HOURS_PER_ENTRY = Decimal("24")


def derive_status(stages: Iterable, qa_approved: bool = False, cancelled: bool = False) -> str:
    """Work order status as a pure function of its stages and QA outcome."""
    if cancelled:
        return CANCELLED
    stages = list(stages)
    all_completed = bool(stages) and all(s.status == COMPLETED for s in stages)
    if qa_approved:
        if not all_completed:
            raise ConflictError("QA approved while stages are incomplete")
        return COMPLETED
    if all_completed and all(s.ready_for_qa for s in stages):
        return PENDING_QA
    if any(s.status != PENDING for s in stages):
        return IN_PROGRESS
    return PENDING


def parse_hours(value) -> Decimal:
    try:
        hours = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ValidationError(f"Invalid hours value: {value!r}")
    if not hours.is_finite() or hours <= 0 or hours > MAX_HOURS_PER_ENTRY:
        raise ValidationError("Hours must be greater than 0 and at most 24 per entry")
    return hours.quantize(Decimal("0.01"))


# ── Internal helpers ─────────────────────────────────────

async def has_approved_qa(db: AsyncSession, work_order_id: str) -> bool:
    result = await db.execute(
        select(QAVerification.id).where(
            QAVerification.work_order_id == work_order_id,
            QAVerification.decision == "approved",
        ).limit(1)
    )
    return result.first() is not None


def append_log(
    db: AsyncSession, stage: Stage, action: str, actor_id: str,
    note: str = "", hours: Decimal | None = None,
) -> StageLog:
    stage.log_count = (stage.log_count or 0) + 1
    entry = StageLog(
        stage_id=stage.id,
        work_order_id=stage.work_order_id,
        seq=stage.log_count,
        action=action,
        actor_id=actor_id,
        note=note,
        hours=hours,
    )
    db.add(entry)
    return entry


async def refresh_status(db: AsyncSession, wo: WorkOrder) -> str:
    """Recompute and store the derived status; always bumps the version stamp."""
    stages = await crud.list_stages(db, wo.id)
    previous = wo.status
    wo.status = derive_status(
        stages,
        qa_approved=await has_approved_qa(db, wo.id),
        cancelled=wo.cancelled_at is not None,
    )
    wo.updated_at = utcnow()
    if wo.status == COMPLETED and wo.completed_at is None:
        wo.completed_at = wo.updated_at
    if previous != wo.status:
        logger.info("Work order %s: %s -> %s", wo.number, previous, wo.status)
    return wo.status


async def _load_stage(db: AsyncSession, work_order_id: str, stage_id: str) -> tuple[WorkOrder, Stage]:
    wo = await crud.get_or_404(db, WorkOrder, work_order_id, "Work order")
    stage = await db.get(Stage, stage_id)
    if stage is None or stage.work_order_id != wo.id:
        raise NotFoundError("Stage not found")
    if wo.status in TERMINAL:
        raise InvalidTransition(f"Work order {wo.number} is {wo.status}")
    if wo.status == PENDING_QA:
        raise InvalidTransition(f"Work order {wo.number} is awaiting QA review")
    return wo, stage


def _stage_notice(db: AsyncSession, wo: WorkOrder, stage: Stage, action: str, title: str):
    if not wo.branch_id:
        return None
    return notifications.queue(
        db, f"work_order.{action}", title,
        branch_id=wo.branch_id,
        data={"work_order_id": wo.id, "number": wo.number, "stage_id": stage.id, "status": wo.status},
    )


async def _finish(db: AsyncSession, wo: WorkOrder, stage: Stage, action: str, title: str):
    """Recompute the work order status and queue the branch notice."""
    await refresh_status(db, wo)
    return _stage_notice(db, wo, stage, action, title)


# ── Creation ─────────────────────────────────────────────

async def instantiate_work_order(
    db: AsyncSession, ctx: AuthContext, quotation: Quotation, variations: list[Variation],
) -> WorkOrder:
    """Build a work order with parts and pending stages. Caller commits."""
    wo = WorkOrder(
        number=await crud.next_number(db, "work_order", "WO"),
        branch_id=quotation.branch_id,
        customer_id=quotation.customer_id,
        vehicle_id=quotation.vehicle_id,
        quotation_id=quotation.id,
        status=PENDING,
        created_by=ctx.user_id,
    )
    db.add(wo)
    await db.flush()

    position = 0
    for variation in variations:
        for part_def in variation.parts:
            position += 1
            part = WorkOrderPart(
                work_order_id=wo.id,
                position=position,
                variation_id=variation.id,
                name=part_def["name"],
                price=Decimal(str(part_def["price"])),
            )
            db.add(part)
            await db.flush()
            for stage_pos, stage_name in enumerate(part_def["stages"], start=1):
                db.add(Stage(
                    work_order_id=wo.id,
                    part_id=part.id,
                    position=stage_pos,
                    name=stage_name,
                    status=PENDING,
                ))
    await db.flush()
    logger.info("Work order %s created from quotation %s", wo.number, quotation.number)
    return wo


# ── Stage transitions ────────────────────────────────────

async def assign_technician(
    db: AsyncSession, ctx: AuthContext, work_order_id: str, stage_id: str, technician_id: str,
) -> Stage:
    """Assign (or re-assign) a technician. Completed stages are frozen."""
    ctx.require("work_orders.assign")
    async with entity_locks.hold("work_order", work_order_id):
        notes = []
        async with atomic(db):
            wo, stage = await _load_stage(db, work_order_id, stage_id)
            if stage.status == COMPLETED:
                raise InvalidTransition("Cannot reassign a completed stage")
            tech = await db.get(Technician, technician_id)
            if tech is None or not tech.is_active:
                raise NotFoundError("Technician not found")

            stage.technician_id = tech.id
            append_log(db, stage, "assign", ctx.user_id, note=tech.name)
            notes.append(await _finish(db, wo, stage, "assign", f"{wo.number}: {tech.name} assigned to {stage.name}"))
            if tech.user_id:
                notes.append(notifications.queue(
                    db, "work_order.assigned", f"You were assigned {stage.name} on {wo.number}",
                    user_id=tech.user_id,
                    data={"work_order_id": wo.id, "stage_id": stage.id},
                ))
        await notifications.publish(*notes)
    return stage


async def start_stage(db: AsyncSession, ctx: AuthContext, work_order_id: str, stage_id: str) -> Stage:
    """Move a stage to in_progress.

    When ``workflow.enforce_stage_order`` is on, every earlier stage of the
    same part must already be completed.
    """
    ctx.require("work_orders.progress")
    async with entity_locks.hold("work_order", work_order_id):
        async with atomic(db):
            wo, stage = await _load_stage(db, work_order_id, stage_id)
            if stage.status != PENDING:
                raise InvalidTransition(f"Stage is {stage.status}, expected pending")
            if not stage.technician_id:
                raise InvalidTransition("Assign a technician before starting the stage")
            if get_settings().workflow.enforce_stage_order:
                result = await db.execute(
                    select(Stage).where(
                        Stage.part_id == stage.part_id,
                        Stage.position < stage.position,
                        Stage.status != COMPLETED,
                    ).order_by(Stage.position)
                )
                blocker = result.scalars().first()
                if blocker is not None:
                    raise InvalidTransition(f"Stage '{blocker.name}' must be completed first")

            stage.status = IN_PROGRESS
            append_log(db, stage, "start", ctx.user_id)
            note = await _finish(db, wo, stage, "start", f"{wo.number}: {stage.name} started")
        await notifications.publish(note)
    return stage


async def log_hours(
    db: AsyncSession, ctx: AuthContext, work_order_id: str, stage_id: str, hours, note: str = "",
) -> Stage:
    ctx.require("work_orders.progress")
    amount = parse_hours(hours)
    async with entity_locks.hold("work_order", work_order_id):
        async with atomic(db):
            wo, stage = await _load_stage(db, work_order_id, stage_id)
            if stage.status not in (IN_PROGRESS, BLOCKED):
                raise InvalidTransition(f"Cannot log hours on a {stage.status} stage")
            stage.actual_hours = (stage.actual_hours or Decimal("0")) + amount
            append_log(db, stage, "hours", ctx.user_id, note=note, hours=amount)
            await refresh_status(db, wo)
    return stage


async def report_error(
    db: AsyncSession, ctx: AuthContext, work_order_id: str, stage_id: str, description: str,
) -> Stage:
    ctx.require("work_orders.progress")
    if not description or not description.strip():
        raise ValidationError("An error description is required")
    async with entity_locks.hold("work_order", work_order_id):
        async with atomic(db):
            wo, stage = await _load_stage(db, work_order_id, stage_id)
            if stage.status != IN_PROGRESS:
                raise InvalidTransition(f"Stage is {stage.status}, expected in_progress")
            stage.status = BLOCKED
            append_log(db, stage, "error", ctx.user_id, note=description.strip())
            note = await _finish(db, wo, stage, "error", f"{wo.number}: {stage.name} blocked")
        await notifications.publish(note)
    return stage


async def resolve_error(
    db: AsyncSession, ctx: AuthContext, work_order_id: str, stage_id: str, note: str = "",
) -> Stage:
    ctx.require("work_orders.progress")
    async with entity_locks.hold("work_order", work_order_id):
        async with atomic(db):
            wo, stage = await _load_stage(db, work_order_id, stage_id)
            if stage.status != BLOCKED:
                raise InvalidTransition(f"Stage is {stage.status}, expected blocked")
            stage.status = IN_PROGRESS
            append_log(db, stage, "resolve", ctx.user_id, note=note)
            notice = await _finish(db, wo, stage, "resolve", f"{wo.number}: {stage.name} unblocked")
        await notifications.publish(notice)
    return stage


async def complete_stage(
    db: AsyncSession, ctx: AuthContext, work_order_id: str, stage_id: str, hours=None, note: str = "",
) -> Stage:
    """Complete an in-progress stage. Accumulated hours must end up above zero."""
    ctx.require("work_orders.progress")
    amount = parse_hours(hours) if hours is not None else None
    async with entity_locks.hold("work_order", work_order_id):
        async with atomic(db):
            wo, stage = await _load_stage(db, work_order_id, stage_id)
            if stage.status != IN_PROGRESS:
                raise InvalidTransition(f"Stage is {stage.status}, expected in_progress")
            total = (stage.actual_hours or Decimal("0")) + (amount or Decimal("0"))
            if total <= 0:
                raise ValidationError("Log working hours before completing the stage")

            stage.actual_hours = total
            stage.status = COMPLETED
            append_log(db, stage, "complete", ctx.user_id, note=note, hours=amount)
            notice = await _finish(db, wo, stage, "complete", f"{wo.number}: {stage.name} completed")
        await notifications.publish(notice)
    return stage


# ── Work order transitions ───────────────────────────────

async def submit_for_qa(db: AsyncSession, ctx: AuthContext, work_order_id: str) -> QAVerification:
    """Flag every stage ready and open a pending QA verification."""
    ctx.require("work_orders.submit_qa")
    async with entity_locks.hold("work_order", work_order_id):
        async with atomic(db):
            wo = await crud.get_or_404(db, WorkOrder, work_order_id, "Work order")
            if wo.status in TERMINAL:
                raise InvalidTransition(f"Work order {wo.number} is {wo.status}")
            if await crud.get_pending_qa(db, wo.id) is not None:
                raise ConflictError(f"Work order {wo.number} already has a pending QA review")
            stages = await crud.list_stages(db, wo.id)
            unfinished = [s.name for s in stages if s.status != COMPLETED]
            if not stages or unfinished:
                raise NotReadyForQA(f"Stages not completed: {', '.join(unfinished) or 'none defined'}")

            for stage in stages:
                stage.ready_for_qa = True
                append_log(db, stage, "submit_qa", ctx.user_id)
            qa = QAVerification(work_order_id=wo.id, submitted_by=ctx.user_id, decision="pending")
            db.add(qa)
            await refresh_status(db, wo)
            notice = None
            if wo.branch_id:
                notice = notifications.queue(
                    db, "work_order.submit_qa", f"{wo.number} is ready for QA",
                    branch_id=wo.branch_id,
                    data={"work_order_id": wo.id, "number": wo.number, "status": wo.status},
                )
        await notifications.publish(notice)
    return qa


async def cancel(
    db: AsyncSession, ctx: AuthContext, work_order_id: str, approved_by: str | None, reason: str,
) -> WorkOrder:
    """Cancel a non-terminal work order. Requires an approver and a reason."""
    ctx.require("work_orders.cancel")
    if not approved_by or not reason or not reason.strip():
        raise ValidationError("Cancellation requires an approving user and a reason")
    async with entity_locks.hold("work_order", work_order_id):
        async with atomic(db):
            wo = await crud.get_or_404(db, WorkOrder, work_order_id, "Work order")
            if wo.status in TERMINAL:
                raise InvalidTransition(f"Work order {wo.number} is already {wo.status}")
            approver = await db.get(User, approved_by)
            if approver is None or not approver.is_active:
                raise NotFoundError("Approving user not found")
            granted = resolve_permissions(approver.role, approver.extra_permissions or ())
            if "work_orders.approve_cancellation" not in granted:
                raise PermissionDenied(f"{approver.email} cannot approve cancellations")

            wo.cancelled_at = utcnow()
            wo.cancel_requested_by = ctx.user_id
            wo.cancel_approved_by = approver.id
            wo.cancel_reason = reason.strip()
            pending = await crud.get_pending_qa(db, wo.id)
            if pending is not None:
                pending.decision = "withdrawn"
                pending.decided_at = wo.cancelled_at
            for stage in await crud.list_stages(db, wo.id):
                append_log(db, stage, "cancel", ctx.user_id, note=wo.cancel_reason)
            await refresh_status(db, wo)
            notice = None
            if wo.branch_id:
                notice = notifications.queue(
                    db, "work_order.cancelled", f"{wo.number} cancelled",
                    body=wo.cancel_reason,
                    branch_id=wo.branch_id,
                    data={"work_order_id": wo.id, "number": wo.number},
                )
        await notifications.publish(notice)
    logger.info("Work order %s cancelled by %s (approved by %s)", wo.number, ctx.user_id, approver.id)
    return wo
