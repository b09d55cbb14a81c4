"""Conversations between staff members with real-time delivery."""

from __future__ import annotations

import logging
from datetime import timedelta

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from garage.config import get_settings
from garage.db.crud import as_utc
from garage.errors import NotFoundError, PermissionDenied, ValidationError
from garage.models import Conversation, ConversationParticipant, Message, User
from garage.models.base import utcnow
from garage.schemas.ws_messages import WSMessage
from garage.services.auth import AuthContext
from garage.services.ws_manager import ws_manager, user_room

logger = logging.getLogger(__name__)


async def _participant_ids(db: AsyncSession, conversation_id: str) -> list[str]:
    result = await db.execute(
        select(ConversationParticipant.user_id)
        .where(ConversationParticipant.conversation_id == conversation_id)
    )
    return list(result.scalars().all())


async def _get_for_participant(db: AsyncSession, ctx: AuthContext, conversation_id: str) -> Conversation:
    conv = await db.get(Conversation, conversation_id)
    if conv is None or as_utc(conv.expires_at) <= utcnow():
        raise NotFoundError("Conversation not found")
    if ctx.user_id not in await _participant_ids(db, conversation_id):
        raise PermissionDenied("Not a participant in this conversation")
    return conv


async def start_conversation(
    db: AsyncSession, ctx: AuthContext, participant_ids: list[str], subject: str = "",
) -> Conversation:
    ctx.require("messages.send")
    members = sorted(set(participant_ids) | {ctx.user_id})
    if len(members) < 2:
        raise ValidationError("A conversation needs at least one other participant")

    result = await db.execute(select(User.id).where(User.id.in_(members), User.is_active == True))
    found = set(result.scalars().all())
    missing = [m for m in members if m not in found]
    if missing:
        raise NotFoundError(f"Unknown users: {', '.join(missing)}")

    conv = Conversation(
        subject=subject,
        created_by=ctx.user_id,
        expires_at=utcnow() + timedelta(days=get_settings().retention.conversation_days),
    )
    db.add(conv)
    await db.flush()
    for user_id in members:
        db.add(ConversationParticipant(conversation_id=conv.id, user_id=user_id))
    await db.commit()
    return conv


async def send_message(
    db: AsyncSession, ctx: AuthContext, conversation_id: str, body: str,
    attachments: list[str] | None = None,
) -> Message:
    ctx.require("messages.send")
    if not body.strip() and not attachments:
        raise ValidationError("Message is empty")
    await _get_for_participant(db, ctx, conversation_id)

    msg = Message(
        conversation_id=conversation_id,
        sender_id=ctx.user_id,
        body=body.strip(),
        attachments=attachments or [],
    )
    db.add(msg)
    await db.commit()

    payload = serialize_message(msg)
    for user_id in await _participant_ids(db, conversation_id):
        room = user_room(user_id)
        await ws_manager.broadcast(room, WSMessage(event="message", room=room, data=payload).model_dump())
    return msg


async def list_conversations(db: AsyncSession, ctx: AuthContext) -> list[Conversation]:
    result = await db.execute(
        select(Conversation)
        .join(ConversationParticipant, ConversationParticipant.conversation_id == Conversation.id)
        .where(ConversationParticipant.user_id == ctx.user_id, Conversation.expires_at > utcnow())
        .order_by(Conversation.created_at.desc())
    )
    return list(result.scalars().all())


async def list_messages(db: AsyncSession, ctx: AuthContext, conversation_id: str) -> list[Message]:
    await _get_for_participant(db, ctx, conversation_id)
    result = await db.execute(
        select(Message)
        .where(Message.conversation_id == conversation_id)
        .order_by(Message.created_at, Message.id)
    )
    return list(result.scalars().all())


def serialize_message(msg: Message) -> dict:
    return {
        "id": msg.id,
        "conversation_id": msg.conversation_id,
        "sender_id": msg.sender_id,
        "body": msg.body,
        "attachments": msg.attachments or [],
        "created_at": msg.created_at.isoformat() if msg.created_at else None,
    }
