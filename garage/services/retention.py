"""Expiry sweep for notifications and conversations.

Expiry is a predicate on ``expires_at``; the sweep only deletes rows that
already satisfy it, so running it twice, or next to live traffic, is harmless.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from garage.models import Notification, Conversation, ConversationParticipant, Message
from garage.models.base import utcnow

logger = logging.getLogger(__name__)


async def sweep_expired(db: AsyncSession, now: datetime | None = None) -> dict[str, int]:
    now = now or utcnow()

    notes = await db.execute(
        delete(Notification)
        .where(Notification.expires_at <= now)
        .execution_options(synchronize_session=False)
    )

    result = await db.execute(select(Conversation.id).where(Conversation.expires_at <= now))
    conv_ids = list(result.scalars().all())
    messages = 0
    if conv_ids:
        msg_result = await db.execute(
            delete(Message)
            .where(Message.conversation_id.in_(conv_ids))
            .execution_options(synchronize_session=False)
        )
        messages = msg_result.rowcount or 0
        await db.execute(
            delete(ConversationParticipant)
            .where(ConversationParticipant.conversation_id.in_(conv_ids))
            .execution_options(synchronize_session=False)
        )
        await db.execute(
            delete(Conversation)
            .where(Conversation.id.in_(conv_ids))
            .execution_options(synchronize_session=False)
        )
    await db.commit()

    counts = {
        "notifications": notes.rowcount or 0,
        "conversations": len(conv_ids),
        "messages": messages,
    }
    if any(counts.values()):
        logger.info("Expiry sweep removed %s", counts)
    return counts


async def run_periodic_sweep(session_factory: async_sessionmaker, interval_seconds: int) -> None:
    """Background task: sweep expired rows forever."""
    while True:
        try:
            async with session_factory() as db:
                await sweep_expired(db)
        except Exception:
            logger.exception("Expiry sweep failed; retrying in %ss", interval_seconds)
        await asyncio.sleep(interval_seconds)
