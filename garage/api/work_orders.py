"""Work order API: read views plus one POST per lifecycle action."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from garage.db import crud
from garage.db.engine import get_db
from garage.dependencies import require_auth, require_permission
from garage.models import WorkOrder
from garage.schemas import (
    AssignRequest, CancelRequest, CompleteRequest, ErrorReport, HoursRequest, PartRead,
    QARead, ResolveRequest, StageLogRead, StageRead, WorkOrderDetail, WorkOrderRead,
)
from garage.services import lifecycle
from garage.services.auth import AuthContext

router = APIRouter(prefix="/api/work-orders", tags=["work_orders"])


async def _detail(db: AsyncSession, wo: WorkOrder) -> WorkOrderDetail:
    stages = await crud.list_stages(db, wo.id)
    out = WorkOrderDetail.model_validate(wo)
    for part in await crud.list_parts(db, wo.id):
        part_out = PartRead.model_validate(part)
        part_out.stages = [StageRead.model_validate(s) for s in stages if s.part_id == part.id]
        out.parts.append(part_out)
    return out


@router.get("", response_model=list[WorkOrderRead])
async def list_work_orders(
    status: str | None = None,
    branch_id: str | None = None,
    customer_id: str | None = None,
    auth: AuthContext = Depends(require_permission("work_orders.view")),
    db: AsyncSession = Depends(get_db),
):
    return await crud.list_work_orders(db, status=status, branch_id=branch_id, customer_id=customer_id)


@router.get("/{wo_id}", response_model=WorkOrderDetail)
async def get_work_order(
    wo_id: str,
    auth: AuthContext = Depends(require_permission("work_orders.view")),
    db: AsyncSession = Depends(get_db),
):
    return await _detail(db, await crud.get_or_404(db, WorkOrder, wo_id, "Work order"))


@router.get("/{wo_id}/logs", response_model=list[StageLogRead])
async def list_logs(
    wo_id: str,
    auth: AuthContext = Depends(require_permission("work_orders.view")),
    db: AsyncSession = Depends(get_db),
):
    wo = await crud.get_or_404(db, WorkOrder, wo_id, "Work order")
    return await crud.list_work_order_logs(db, wo.id)


@router.get("/{wo_id}/qa", response_model=list[QARead])
async def list_qa(
    wo_id: str,
    auth: AuthContext = Depends(require_permission("work_orders.view")),
    db: AsyncSession = Depends(get_db),
):
    wo = await crud.get_or_404(db, WorkOrder, wo_id, "Work order")
    return await crud.list_qa_verifications(db, wo.id)


# ── Stage actions ─────────────────────────────────────────

@router.post("/{wo_id}/stages/{stage_id}/assign", response_model=StageRead)
async def assign(
    wo_id: str, stage_id: str, body: AssignRequest,
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    return await lifecycle.assign_technician(db, auth, wo_id, stage_id, body.technician_id)


@router.post("/{wo_id}/stages/{stage_id}/start", response_model=StageRead)
async def start(
    wo_id: str, stage_id: str,
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    return await lifecycle.start_stage(db, auth, wo_id, stage_id)


@router.post("/{wo_id}/stages/{stage_id}/hours", response_model=StageRead)
async def log_hours(
    wo_id: str, stage_id: str, body: HoursRequest,
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    return await lifecycle.log_hours(db, auth, wo_id, stage_id, body.hours, body.note)


@router.post("/{wo_id}/stages/{stage_id}/report-error", response_model=StageRead)
async def report_error(
    wo_id: str, stage_id: str, body: ErrorReport,
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    return await lifecycle.report_error(db, auth, wo_id, stage_id, body.description)


@router.post("/{wo_id}/stages/{stage_id}/resolve-error", response_model=StageRead)
async def resolve_error(
    wo_id: str, stage_id: str, body: ResolveRequest,
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    return await lifecycle.resolve_error(db, auth, wo_id, stage_id, body.note)


@router.post("/{wo_id}/stages/{stage_id}/complete", response_model=StageRead)
async def complete(
    wo_id: str, stage_id: str, body: CompleteRequest,
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    return await lifecycle.complete_stage(db, auth, wo_id, stage_id, body.hours, body.note)


# ── Work order actions ────────────────────────────────────

@router.post("/{wo_id}/submit-qa", response_model=QARead, status_code=201)
async def submit_qa(
    wo_id: str,
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    return await lifecycle.submit_for_qa(db, auth, wo_id)


@router.post("/{wo_id}/cancel", response_model=WorkOrderRead)
async def cancel(
    wo_id: str, body: CancelRequest,
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    return await lifecycle.cancel(db, auth, wo_id, body.approved_by, body.reason)
