from __future__ import annotations
from datetime import datetime
from pydantic import BaseModel


class ConversationCreate(BaseModel):
    participant_ids: list[str]
    subject: str = ""


class MessageCreate(BaseModel):
    body: str = ""
    attachments: list[str] = []


class ConversationRead(BaseModel):
    id: str
    subject: str = ""
    created_by: str
    created_at: datetime
    expires_at: datetime

    model_config = {"from_attributes": True}


class MessageRead(BaseModel):
    id: str
    conversation_id: str
    sender_id: str
    body: str = ""
    attachments: list[str] = []
    created_at: datetime

    model_config = {"from_attributes": True}


class NotificationRead(BaseModel):
    id: str
    kind: str
    title: str
    body: str = ""
    data: dict = {}
    user_id: str | None = None
    branch_id: str | None = None
    read_at: datetime | None = None
    created_at: datetime

    model_config = {"from_attributes": True}
