from __future__ import annotations
from datetime import datetime
from decimal import Decimal
from pydantic import BaseModel


class AssignRequest(BaseModel):
    technician_id: str


class HoursRequest(BaseModel):
    hours: Decimal
    note: str = ""


class CompleteRequest(BaseModel):
    hours: Decimal | None = None
    note: str = ""


class ErrorReport(BaseModel):
    description: str


class ResolveRequest(BaseModel):
    note: str = ""


class CancelRequest(BaseModel):
    approved_by: str
    reason: str


class QAApproveRequest(BaseModel):
    photos: list[str]
    comments: str = ""


class QARejectRequest(BaseModel):
    reason: str


class StageRead(BaseModel):
    id: str
    part_id: str
    position: int
    name: str
    status: str
    technician_id: str | None = None
    actual_hours: Decimal
    ready_for_qa: bool

    model_config = {"from_attributes": True}


class PartRead(BaseModel):
    id: str
    position: int
    variation_id: str
    name: str
    price: Decimal
    stages: list[StageRead] = []

    model_config = {"from_attributes": True}


class StageLogRead(BaseModel):
    id: str
    stage_id: str
    seq: int
    action: str
    actor_id: str
    note: str = ""
    hours: Decimal | None = None
    created_at: datetime

    model_config = {"from_attributes": True}


class QARead(BaseModel):
    id: str
    work_order_id: str
    submitted_by: str
    reviewer_id: str | None = None
    decision: str
    photos: list[str] = []
    comments: str = ""
    decided_at: datetime | None = None
    created_at: datetime

    model_config = {"from_attributes": True}


class WorkOrderRead(BaseModel):
    id: str
    number: str
    branch_id: str | None = None
    customer_id: str
    vehicle_id: str
    quotation_id: str | None = None
    status: str
    created_at: datetime
    completed_at: datetime | None = None
    cancelled_at: datetime | None = None
    cancel_reason: str = ""
    version: int

    model_config = {"from_attributes": True}


class WorkOrderDetail(WorkOrderRead):
    parts: list[PartRead] = []
