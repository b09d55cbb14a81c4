from __future__ import annotations
from datetime import datetime
from pydantic import BaseModel


class VehicleCreate(BaseModel):
    make: str
    model: str
    vin: str
    year: int | None = None
    plate: str = ""
    color: str = ""
    mileage: int | None = None


class VehicleRead(BaseModel):
    id: str
    customer_id: str
    position: int
    make: str
    model: str
    year: int | None = None
    vin: str
    plate: str = ""
    color: str = ""
    mileage: int | None = None

    model_config = {"from_attributes": True}


class CustomerCreate(BaseModel):
    name: str
    phone: str = ""
    email: str = ""
    address: str = ""
    notes: str = ""
    branch_id: str | None = None


class CustomerUpdate(BaseModel):
    name: str | None = None
    phone: str | None = None
    email: str | None = None
    address: str | None = None
    notes: str | None = None
    is_active: bool | None = None


class RegistrationRequest(BaseModel):
    customer: CustomerCreate
    vehicle: VehicleCreate


class CustomerRead(BaseModel):
    id: str
    branch_id: str | None = None
    name: str
    phone: str = ""
    email: str = ""
    address: str = ""
    notes: str = ""
    is_active: bool
    created_at: datetime
    vehicles: list[VehicleRead] = []

    model_config = {"from_attributes": True}
