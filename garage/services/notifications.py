"""Notification persistence and real-time fan-out.

Engines ``queue`` notifications inside their transaction and ``publish`` them
only after the commit succeeded, so clients never hear about rolled-back work.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta

from sqlalchemy import or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from garage.config import get_settings
from garage.errors import NotFoundError, ValidationError
from garage.models import Notification
from garage.models.base import utcnow
from garage.schemas.ws_messages import WSMessage
from garage.services.auth import AuthContext
from garage.services.ws_manager import ws_manager, user_room, branch_room

logger = logging.getLogger(__name__)


def queue(
    db: AsyncSession,
    kind: str,
    title: str,
    body: str = "",
    *,
    user_id: str | None = None,
    branch_id: str | None = None,
    data: dict | None = None,
) -> Notification:
    if not user_id and not branch_id:
        raise ValidationError("A notification needs a user or branch recipient")
    days = get_settings().retention.notification_days
    note = Notification(
        user_id=user_id,
        branch_id=branch_id,
        kind=kind,
        title=title,
        body=body,
        data=data or {},
        expires_at=utcnow() + timedelta(days=days),
    )
    db.add(note)
    return note


def serialize(note: Notification) -> dict:
    return {
        "id": note.id,
        "kind": note.kind,
        "title": note.title,
        "body": note.body,
        "data": note.data or {},
        "user_id": note.user_id,
        "branch_id": note.branch_id,
        "read_at": note.read_at.isoformat() if note.read_at else None,
        "created_at": note.created_at.isoformat() if note.created_at else None,
    }


async def publish(*notes: Notification | None) -> None:
    for note in notes:
        if note is None:
            continue
        payload = serialize(note)
        if note.user_id:
            room = user_room(note.user_id)
            await ws_manager.broadcast(room, WSMessage(event="notification", room=room, data=payload).model_dump())
        if note.branch_id:
            room = branch_room(note.branch_id)
            await ws_manager.broadcast(room, WSMessage(event="notification", room=room, data=payload).model_dump())


async def notify(db: AsyncSession, kind: str, title: str, body: str = "", **recipients) -> Notification:
    """Persist and push a standalone notification."""
    note = queue(db, kind, title, body, **recipients)
    await db.commit()
    await publish(note)
    return note


async def list_for_user(db: AsyncSession, ctx: AuthContext, unread_only: bool = False) -> list[Notification]:
    clauses = [Notification.user_id == ctx.user_id]
    if ctx.branch_id:
        clauses.append(Notification.branch_id == ctx.branch_id)
    stmt = (
        select(Notification)
        .where(or_(*clauses), Notification.expires_at > utcnow())
        .order_by(Notification.created_at.desc())
    )
    if unread_only:
        stmt = stmt.where(Notification.read_at.is_(None))
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def mark_read(db: AsyncSession, ctx: AuthContext, notification_id: str) -> Notification:
    note = await db.get(Notification, notification_id)
    if note is None or (note.user_id != ctx.user_id and (not ctx.branch_id or note.branch_id != ctx.branch_id)):
        raise NotFoundError("Notification not found")
    if note.read_at is None:
        note.read_at = utcnow()
        await db.commit()
    return note


async def mark_all_read(db: AsyncSession, ctx: AuthContext, now: datetime | None = None) -> None:
    await db.execute(
        update(Notification)
        .where(Notification.user_id == ctx.user_id, Notification.read_at.is_(None))
        .values(read_at=now or utcnow())
        .execution_options(synchronize_session=False)
    )
    await db.commit()
