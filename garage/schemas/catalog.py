from __future__ import annotations
from datetime import datetime
from decimal import Decimal
from typing import Any
from pydantic import BaseModel


class PartSpec(BaseModel):
    name: str
    price: Decimal
    stages: list[str] = []


class VariationCreate(BaseModel):
    name: str
    price: Decimal | None = None
    parts: list[PartSpec] | None = None
    description: str = ""


class VariationUpdate(BaseModel):
    name: str | None = None
    price: Decimal | None = None
    parts: list[PartSpec] | None = None
    description: str | None = None


class VariationRead(BaseModel):
    id: str
    code: str
    version: int
    name: str
    description: str = ""
    price: Decimal
    parts: list[dict[str, Any]]
    is_active: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class TechnicianCreate(BaseModel):
    name: str
    email: str = ""
    phone: str = ""
    hourly_rate: Decimal = Decimal("0")
    user_id: str | None = None
    branch_id: str | None = None


class TechnicianUpdate(BaseModel):
    name: str | None = None
    email: str | None = None
    phone: str | None = None
    hourly_rate: Decimal | None = None
    is_active: bool | None = None


class TechnicianRead(BaseModel):
    id: str
    name: str
    email: str = ""
    phone: str = ""
    hourly_rate: Decimal
    user_id: str | None = None
    branch_id: str | None = None
    is_active: bool

    model_config = {"from_attributes": True}


class QuotationCreate(BaseModel):
    customer_id: str
    vehicle_id: str
    variation_ids: list[str]


class QuotationRead(BaseModel):
    id: str
    number: str
    customer_id: str
    vehicle_id: str
    items: list[dict[str, Any]]
    total: Decimal
    status: str
    work_order_id: str | None = None
    created_at: datetime

    model_config = {"from_attributes": True}
