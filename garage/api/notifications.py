from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from garage.db.engine import get_db
from garage.dependencies import require_auth
from garage.schemas import NotificationRead
from garage.services import notifications
from garage.services.auth import AuthContext

router = APIRouter(prefix="/api/notifications", tags=["notifications"])


@router.get("", response_model=list[NotificationRead])
async def list_notifications(
    unread_only: bool = False,
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    return await notifications.list_for_user(db, auth, unread_only=unread_only)


@router.post("/{notification_id}/read", response_model=NotificationRead)
async def mark_read(
    notification_id: str,
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    return await notifications.mark_read(db, auth, notification_id)


@router.post("/read-all")
async def mark_all_read(
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    await notifications.mark_all_read(db, auth)
    return {"ok": True}
