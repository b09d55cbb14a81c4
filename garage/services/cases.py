"""Case tracking. Every change to a case is written to its activity trail."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from garage.db import crud
from garage.db.transaction import atomic
from garage.errors import InvalidTransition, ValidationError
from garage.models import Case, CaseActivity, Customer, Invoice, User, WorkOrder
from garage.models.base import utcnow
from garage.services import notifications
from garage.services.auth import AuthContext

PRIORITIES = ("low", "medium", "high", "urgent")
STATUSES = ("open", "in_progress", "resolved", "closed")


def _activity(db: AsyncSession, case: Case, ctx: AuthContext, kind: str, body: str = "", attachments=None):
    db.add(CaseActivity(
        case_id=case.id, actor_id=ctx.user_id, kind=kind, body=body,
        attachments=attachments or [],
    ))
    case.updated_at = utcnow()


async def open_case(
    db: AsyncSession, ctx: AuthContext, title: str, description: str = "", priority: str = "medium",
    customer_id: str | None = None, work_order_id: str | None = None,
    invoice_id: str | None = None, assignee_id: str | None = None,
) -> Case:
    ctx.require("cases.manage")
    if not title or not title.strip():
        raise ValidationError("Case title is required")
    if priority not in PRIORITIES:
        raise ValidationError(f"Priority must be one of {', '.join(PRIORITIES)}")
    async with atomic(db):
        if customer_id:
            await crud.get_or_404(db, Customer, customer_id, "Customer")
        if work_order_id:
            await crud.get_or_404(db, WorkOrder, work_order_id, "Work order")
        if invoice_id:
            await crud.get_or_404(db, Invoice, invoice_id, "Invoice")
        if assignee_id:
            await crud.get_or_404(db, User, assignee_id, "Assignee")
        case = Case(
            branch_id=ctx.branch_id,
            title=title.strip(),
            description=description,
            priority=priority,
            status="open",
            customer_id=customer_id,
            work_order_id=work_order_id,
            invoice_id=invoice_id,
            assignee_id=assignee_id,
            opened_by=ctx.user_id,
        )
        db.add(case)
        await db.flush()
        _activity(db, case, ctx, "opened", case.title)
        notice = None
        if assignee_id:
            notice = notifications.queue(
                db, "case.assigned", f"Case assigned: {case.title}",
                user_id=assignee_id, data={"case_id": case.id},
            )
    await notifications.publish(notice)
    return case


async def update_case(
    db: AsyncSession, ctx: AuthContext, case_id: str, status: str | None = None,
    priority: str | None = None, assignee_id: str | None = None,
) -> Case:
    """Change status, priority or assignee; closed cases may only be reopened."""
    ctx.require("cases.manage")
    if status is not None and status not in STATUSES:
        raise ValidationError(f"Status must be one of {', '.join(STATUSES)}")
    if priority is not None and priority not in PRIORITIES:
        raise ValidationError(f"Priority must be one of {', '.join(PRIORITIES)}")
    async with atomic(db):
        case = await crud.get_or_404(db, Case, case_id, "Case")
        if case.status == "closed" and (status not in (None, "open") or priority or assignee_id):
            raise InvalidTransition("Closed cases can only be reopened")
        notice = None
        if status is not None and status != case.status:
            _activity(db, case, ctx, "status", f"{case.status} -> {status}")
            case.status = status
        if priority is not None and priority != case.priority:
            _activity(db, case, ctx, "priority", f"{case.priority} -> {priority}")
            case.priority = priority
        if assignee_id is not None and assignee_id != case.assignee_id:
            await crud.get_or_404(db, User, assignee_id, "Assignee")
            _activity(db, case, ctx, "assignee", assignee_id)
            case.assignee_id = assignee_id
            notice = notifications.queue(
                db, "case.assigned", f"Case assigned: {case.title}",
                user_id=assignee_id, data={"case_id": case.id},
            )
    await notifications.publish(notice)
    return case


async def comment(
    db: AsyncSession, ctx: AuthContext, case_id: str, body: str, attachments: list[str] | None = None,
) -> CaseActivity:
    ctx.require("cases.manage")
    if not (body or "").strip() and not attachments:
        raise ValidationError("Comment is empty")
    async with atomic(db):
        case = await crud.get_or_404(db, Case, case_id, "Case")
        _activity(db, case, ctx, "comment", (body or "").strip(), attachments)
    return await latest_activity(db, case_id)


async def latest_activity(db: AsyncSession, case_id: str) -> CaseActivity:
    result = await db.execute(
        select(CaseActivity)
        .where(CaseActivity.case_id == case_id)
        .order_by(CaseActivity.created_at.desc(), CaseActivity.id.desc())
        .limit(1)
    )
    return result.scalars().one()


async def list_activity(db: AsyncSession, case_id: str) -> list[CaseActivity]:
    result = await db.execute(
        select(CaseActivity)
        .where(CaseActivity.case_id == case_id)
        .order_by(CaseActivity.created_at, CaseActivity.id)
    )
    return list(result.scalars().all())


async def list_cases(
    db: AsyncSession, status: str | None = None, customer_id: str | None = None,
    assignee_id: str | None = None,
) -> list[Case]:
    stmt = select(Case).order_by(Case.updated_at.desc())
    if status:
        stmt = stmt.where(Case.status == status)
    if customer_id:
        stmt = stmt.where(Case.customer_id == customer_id)
    if assignee_id:
        stmt = stmt.where(Case.assignee_id == assignee_id)
    result = await db.execute(stmt)
    return list(result.scalars().all())
