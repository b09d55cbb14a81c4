from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from garage.db.engine import get_db
from garage.dependencies import require_auth
from garage.schemas import QAApproveRequest, QARead, QARejectRequest
from garage.services import qa
from garage.services.auth import AuthContext

router = APIRouter(prefix="/api/qa", tags=["qa"])


@router.post("/{wo_id}/approve", response_model=QARead)
async def approve(
    wo_id: str, body: QAApproveRequest,
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    return await qa.approve(db, auth, wo_id, body.photos, body.comments)


@router.post("/{wo_id}/reject", response_model=QARead)
async def reject(
    wo_id: str, body: QARejectRequest,
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    return await qa.reject(db, auth, wo_id, body.reason)
