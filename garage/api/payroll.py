from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from garage.db import crud
from garage.db.engine import get_db
from garage.dependencies import require_auth, require_permission
from garage.models import Technician
from garage.schemas import PayStubCreate, PayStubRead, TimesheetCreate, TimesheetRead
from garage.services import payroll
from garage.services.auth import AuthContext

router = APIRouter(prefix="/api/payroll", tags=["payroll"])


@router.post("/timesheets", response_model=TimesheetRead, status_code=201)
async def record_timesheet(
    body: TimesheetCreate,
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    return await payroll.record_timesheet(db, auth, body.technician_id, body.work_date, body.hours, body.note)


@router.get("/timesheets/{technician_id}", response_model=list[TimesheetRead])
async def list_timesheet(
    technician_id: str,
    start: date | None = None,
    end: date | None = None,
    auth: AuthContext = Depends(require_permission("payroll.view")),
    db: AsyncSession = Depends(get_db),
):
    await crud.get_or_404(db, Technician, technician_id, "Technician")
    return await payroll.list_timesheet(db, technician_id, start, end)


@router.post("/pay-stubs", response_model=PayStubRead, status_code=201)
async def compute_pay_stub(
    body: PayStubCreate,
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    return await payroll.compute_pay_stub(
        db, auth, body.technician_id, body.period_start, body.period_end, body.deductions,
    )


@router.get("/pay-stubs", response_model=list[PayStubRead])
async def list_pay_stubs(
    technician_id: str | None = None,
    auth: AuthContext = Depends(require_permission("payroll.view")),
    db: AsyncSession = Depends(get_db),
):
    return await payroll.list_pay_stubs(db, technician_id)
