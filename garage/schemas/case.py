from __future__ import annotations
from datetime import datetime
from pydantic import BaseModel


class CaseCreate(BaseModel):
    title: str
    description: str = ""
    priority: str = "medium"
    customer_id: str | None = None
    work_order_id: str | None = None
    invoice_id: str | None = None
    assignee_id: str | None = None


class CaseUpdate(BaseModel):
    status: str | None = None
    priority: str | None = None
    assignee_id: str | None = None


class CommentCreate(BaseModel):
    body: str = ""
    attachments: list[str] = []


class CaseActivityRead(BaseModel):
    id: str
    actor_id: str
    kind: str
    body: str = ""
    attachments: list[str] = []
    created_at: datetime

    model_config = {"from_attributes": True}


class CaseRead(BaseModel):
    id: str
    title: str
    description: str = ""
    priority: str
    status: str
    customer_id: str | None = None
    work_order_id: str | None = None
    invoice_id: str | None = None
    assignee_id: str | None = None
    opened_by: str
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class CaseDetail(CaseRead):
    activity: list[CaseActivityRead] = []
