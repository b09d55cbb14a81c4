"""QA gate: photographic sign-off that unlocks invoicing."""

from __future__ import annotations

import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from garage.config import get_settings
from garage.db import crud
from garage.db.transaction import atomic
from garage.errors import ConflictError, InvalidPhotoCount, NotReadyForQA, ValidationError
from garage.models import QAVerification, WorkOrder
from garage.models.base import utcnow
from garage.services import file_store, notifications
from garage.services.auth import AuthContext
from garage.services.lifecycle import PENDING_QA, append_log, refresh_status
from garage.services.locks import entity_locks

logger = logging.getLogger(__name__)


def validate_photos(photos: list[str]) -> list[str]:
    cfg = get_settings().workflow
    if photos is None:
        photos = []
    if not isinstance(photos, list):
        raise ValidationError("Photos must be a list of upload locations")
    if not (cfg.qa_min_photos <= len(photos) <= cfg.qa_max_photos):
        count = len(photos)
        raise InvalidPhotoCount(
            f"QA approval needs {cfg.qa_min_photos} to {cfg.qa_max_photos} photos, got {count}"
        )
    cleaned = [p.strip() for p in photos if isinstance(p, str) and p.strip()]
    if len(cleaned) != len(photos):
        raise ValidationError("Photo locations must be non-empty strings")
    if len(set(cleaned)) != len(cleaned):
        raise ValidationError("Photo locations must be distinct")
    return cleaned


async def _pending_for(db: AsyncSession, work_order_id: str) -> tuple[WorkOrder, QAVerification]:
    wo = await crud.get_or_404(db, WorkOrder, work_order_id, "Work order")
    if wo.status != PENDING_QA:
        raise NotReadyForQA(f"Work order {wo.number} is {wo.status}, not pending_qa")
    qa = await crud.get_pending_qa(db, wo.id)
    if qa is None:
        raise NotReadyForQA(f"Work order {wo.number} has no pending QA verification")
    return wo, qa


async def approve(
    db: AsyncSession, ctx: AuthContext, work_order_id: str, photos: list[str], comments: str = "",
) -> QAVerification:
    """Approve the pending verification and complete the work order."""
    ctx.require("qa.review")
    photos = validate_photos(photos)
    async with entity_locks.hold("work_order", work_order_id):
        try:
            async with atomic(db):
                wo, qa = await _pending_for(db, work_order_id)
                await file_store.confirm_uploads(photos, "qa_photo")
                qa.decision = "approved"
                qa.reviewer_id = ctx.user_id
                qa.photos = photos
                qa.comments = comments
                qa.decided_at = utcnow()
                for stage in await crud.list_stages(db, wo.id):
                    append_log(db, stage, "qa_approve", ctx.user_id, note=comments)
                await refresh_status(db, wo)
                notice = None
                if wo.branch_id:
                    notice = notifications.queue(
                        db, "qa.approved", f"{wo.number} passed QA",
                        branch_id=wo.branch_id,
                        data={"work_order_id": wo.id, "number": wo.number, "qa_id": qa.id},
                    )
        except IntegrityError as exc:
            raise ConflictError("Work order already has an approved QA verification") from exc
        await notifications.publish(notice)
    logger.info("QA approved for %s by %s", wo.number, ctx.user_id)
    return qa


async def reject(db: AsyncSession, ctx: AuthContext, work_order_id: str, reason: str) -> QAVerification:
    """Reject the pending verification; stages must be re-submitted."""
    ctx.require("qa.review")
    if not reason or not reason.strip():
        raise ValidationError("A rejection reason is required")
    async with entity_locks.hold("work_order", work_order_id):
        async with atomic(db):
            wo, qa = await _pending_for(db, work_order_id)
            qa.decision = "rejected"
            qa.reviewer_id = ctx.user_id
            qa.comments = reason.strip()
            qa.decided_at = utcnow()
            for stage in await crud.list_stages(db, wo.id):
                stage.ready_for_qa = False
                append_log(db, stage, "qa_reject", ctx.user_id, note=qa.comments)
            await refresh_status(db, wo)
            notice = None
            if wo.branch_id:
                notice = notifications.queue(
                    db, "qa.rejected", f"{wo.number} failed QA",
                    body=qa.comments,
                    branch_id=wo.branch_id,
                    data={"work_order_id": wo.id, "number": wo.number, "qa_id": qa.id},
                )
        await notifications.publish(notice)
    logger.info("QA rejected for %s by %s", wo.number, ctx.user_id)
    return qa
