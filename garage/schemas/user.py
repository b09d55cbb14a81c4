from __future__ import annotations
from datetime import datetime
from pydantic import BaseModel


class LoginRequest(BaseModel):
    email: str
    password: str


class UserCreate(BaseModel):
    email: str
    password: str
    role: str
    display_name: str = ""
    branch_id: str | None = None
    extra_permissions: list[str] = []


class UserUpdate(BaseModel):
    role: str | None = None
    extra_permissions: list[str] | None = None
    branch_id: str | None = None
    display_name: str | None = None


class UserRead(BaseModel):
    id: str
    email: str
    display_name: str
    role: str
    branch_id: str | None = None
    extra_permissions: list[str] = []
    is_active: bool
    created_at: datetime
    last_login_at: datetime | None = None

    model_config = {"from_attributes": True}


class BranchCreate(BaseModel):
    name: str
    code: str


class BranchRead(BaseModel):
    id: str
    name: str
    code: str
    is_active: bool

    model_config = {"from_attributes": True}
