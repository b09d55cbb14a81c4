from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from garage.db import crud
from garage.db.engine import get_db
from garage.dependencies import require_auth, require_permission
from garage.models import Case
from garage.schemas import CaseActivityRead, CaseCreate, CaseDetail, CaseRead, CaseUpdate, CommentCreate
from garage.services import cases
from garage.services.auth import AuthContext

router = APIRouter(prefix="/api/cases", tags=["cases"])


@router.get("", response_model=list[CaseRead])
async def list_cases(
    status: str | None = None,
    customer_id: str | None = None,
    assignee_id: str | None = None,
    auth: AuthContext = Depends(require_permission("cases.view")),
    db: AsyncSession = Depends(get_db),
):
    return await cases.list_cases(db, status=status, customer_id=customer_id, assignee_id=assignee_id)


@router.post("", response_model=CaseRead, status_code=201)
async def open_case(
    body: CaseCreate,
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    return await cases.open_case(db, auth, **body.model_dump())


@router.get("/{case_id}", response_model=CaseDetail)
async def get_case(
    case_id: str,
    auth: AuthContext = Depends(require_permission("cases.view")),
    db: AsyncSession = Depends(get_db),
):
    case = await crud.get_or_404(db, Case, case_id, "Case")
    out = CaseDetail.model_validate(case)
    out.activity = [CaseActivityRead.model_validate(a) for a in await cases.list_activity(db, case.id)]
    return out


@router.put("/{case_id}", response_model=CaseRead)
async def update_case(
    case_id: str, body: CaseUpdate,
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    return await cases.update_case(db, auth, case_id, **body.model_dump())


@router.post("/{case_id}/comments", response_model=CaseActivityRead, status_code=201)
async def comment(
    case_id: str, body: CommentCreate,
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    return await cases.comment(db, auth, case_id, body.body, body.attachments)
