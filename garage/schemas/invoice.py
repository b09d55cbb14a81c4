from __future__ import annotations
from datetime import date, datetime
from decimal import Decimal
from pydantic import BaseModel


class InvoiceGenerate(BaseModel):
    work_order_id: str


class PaymentCreate(BaseModel):
    amount: Decimal
    method: str
    reference: str = ""


class VoidRequest(BaseModel):
    reason: str


class InvoiceLineRead(BaseModel):
    position: int
    part_id: str
    description: str
    part_price: Decimal
    labor_hours: Decimal
    labor_amount: Decimal
    amount: Decimal

    model_config = {"from_attributes": True}


class PaymentRead(BaseModel):
    id: str
    invoice_id: str
    seq: int
    amount: Decimal
    method: str
    reference: str = ""
    recorded_by: str
    created_at: datetime

    model_config = {"from_attributes": True}


class InvoiceRead(BaseModel):
    id: str
    number: str
    work_order_id: str
    customer_id: str
    currency: str
    subtotal: Decimal
    vat_rate: Decimal
    vat_amount: Decimal
    total: Decimal
    amount_paid: Decimal
    payment_status: str
    due_date: date | None = None
    is_void: bool
    void_reason: str = ""
    created_at: datetime

    model_config = {"from_attributes": True}


class InvoiceDetail(InvoiceRead):
    lines: list[InvoiceLineRead] = []
    payments: list[PaymentRead] = []


class ExpenseCreate(BaseModel):
    category: str
    amount: Decimal
    incurred_on: date
    description: str = ""
    receipt_location: str = ""
    branch_id: str | None = None


class ExpenseUpdate(BaseModel):
    category: str | None = None
    amount: Decimal | None = None
    incurred_on: date | None = None
    description: str | None = None
    receipt_location: str | None = None


class ExpenseRead(BaseModel):
    id: str
    branch_id: str | None = None
    category: str
    description: str = ""
    amount: Decimal
    incurred_on: date
    receipt_location: str = ""
    recorded_by: str
    created_at: datetime

    model_config = {"from_attributes": True}


class TimesheetCreate(BaseModel):
    technician_id: str
    work_date: date
    hours: Decimal
    note: str = ""


class TimesheetRead(BaseModel):
    id: str
    technician_id: str
    work_date: date
    hours: Decimal
    note: str = ""

    model_config = {"from_attributes": True}


class PayStubCreate(BaseModel):
    technician_id: str
    period_start: date
    period_end: date
    deductions: list[dict] = []


class PayStubRead(BaseModel):
    id: str
    technician_id: str
    period_start: date
    period_end: date
    hourly_rate: Decimal
    regular_hours: Decimal
    overtime_hours: Decimal
    gross: Decimal
    deductions: list[dict]
    total_deductions: Decimal
    net: Decimal

    model_config = {"from_attributes": True}
