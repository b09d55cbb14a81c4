"""Notifications and conversations. Both expire and are removed by the sweep."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import String, ForeignKey, JSON, DateTime, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from garage.models.base import Base, ULIDMixin


class Notification(Base, ULIDMixin):
    __tablename__ = "notifications"

    user_id: Mapped[str | None] = mapped_column(String(26), nullable=True, index=True)
    branch_id: Mapped[str | None] = mapped_column(String(26), nullable=True, index=True)
    kind: Mapped[str] = mapped_column(String(50))
    title: Mapped[str] = mapped_column(String(200))
    body: Mapped[str] = mapped_column(String(2000), default="")
    data: Mapped[dict] = mapped_column(JSON, default=dict)
    read_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), index=True)


class Conversation(Base, ULIDMixin):
    __tablename__ = "conversations"

    subject: Mapped[str] = mapped_column(String(200), default="")
    created_by: Mapped[str] = mapped_column(String(26))
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), index=True)


class ConversationParticipant(Base, ULIDMixin):
    __tablename__ = "conversation_participants"
    __table_args__ = (UniqueConstraint("conversation_id", "user_id", name="uq_participant"),)

    conversation_id: Mapped[str] = mapped_column(String(26), ForeignKey("conversations.id"), index=True)
    user_id: Mapped[str] = mapped_column(String(26), index=True)


class Message(Base, ULIDMixin):
    __tablename__ = "messages"

    conversation_id: Mapped[str] = mapped_column(String(26), ForeignKey("conversations.id"), index=True)
    sender_id: Mapped[str] = mapped_column(String(26))
    body: Mapped[str] = mapped_column(String(4000), default="")
    attachments: Mapped[list] = mapped_column(JSON, default=list)
