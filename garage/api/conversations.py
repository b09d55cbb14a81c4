from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from garage.db.engine import get_db
from garage.dependencies import require_auth
from garage.schemas import ConversationCreate, ConversationRead, MessageCreate, MessageRead
from garage.services import messaging
from garage.services.auth import AuthContext

router = APIRouter(prefix="/api/conversations", tags=["conversations"])


@router.get("", response_model=list[ConversationRead])
async def list_conversations(
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    return await messaging.list_conversations(db, auth)


@router.post("", response_model=ConversationRead, status_code=201)
async def start_conversation(
    body: ConversationCreate,
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    return await messaging.start_conversation(db, auth, body.participant_ids, body.subject)


@router.get("/{conversation_id}/messages", response_model=list[MessageRead])
async def list_messages(
    conversation_id: str,
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    return await messaging.list_messages(db, auth, conversation_id)


@router.post("/{conversation_id}/messages", response_model=MessageRead, status_code=201)
async def send_message(
    conversation_id: str, body: MessageCreate,
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    return await messaging.send_message(db, auth, conversation_id, body.body, body.attachments)
