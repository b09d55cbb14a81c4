"""Shared lookups and simple CRUD used by the API and the engines.

Helpers that take part in a larger engine operation only ``flush``; the
engine owns the commit. Standalone record helpers commit like before.
"""

from __future__ import annotations

from datetime import date, datetime, timezone

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from garage.errors import NotFoundError
from garage.models import (
    Branch, Counter, Customer, Vehicle, Technician, Variation, Quotation,
    WorkOrder, WorkOrderPart, Stage, StageLog, QAVerification,
    Invoice, InvoiceLine, Payment, Expense, User,
)


async def get_or_404(db: AsyncSession, model, obj_id: str, label: str | None = None):
    obj = await db.get(model, obj_id) if obj_id else None
    if obj is None:
        raise NotFoundError(f"{label or model.__name__} not found")
    return obj


# ── Counters ─────────────────────────────────────────────

async def next_number(db: AsyncSession, name: str, prefix: str) -> str:
    """Increment the named counter inside the current transaction."""
    result = await db.execute(
        update(Counter)
        .where(Counter.name == name)
        .values(value=Counter.value + 1)
        .returning(Counter.value)
        .execution_options(synchronize_session=False)
    )
    value = result.scalar_one_or_none()
    if value is None:
        db.add(Counter(name=name, value=1))
        await db.flush()
        value = 1
    return f"{prefix}-{value:06d}"


# ── Branch ───────────────────────────────────────────────

async def create_branch(db: AsyncSession, name: str, code: str) -> Branch:
    branch = Branch(name=name, code=code)
    db.add(branch)
    await db.commit()
    await db.refresh(branch)
    return branch


async def list_branches(db: AsyncSession) -> list[Branch]:
    result = await db.execute(select(Branch).order_by(Branch.name))
    return list(result.scalars().all())


# ── Users ────────────────────────────────────────────────

async def get_user_by_email(db: AsyncSession, email: str) -> User | None:
    result = await db.execute(select(User).where(User.email == email.strip().lower()))
    return result.scalars().first()


async def list_users(db: AsyncSession, branch_id: str | None = None) -> list[User]:
    stmt = select(User).order_by(User.email)
    if branch_id:
        stmt = stmt.where(User.branch_id == branch_id)
    result = await db.execute(stmt)
    return list(result.scalars().all())


# ── Customer / Vehicle ───────────────────────────────────

async def list_customers(db: AsyncSession, search: str = "", include_inactive: bool = False) -> list[Customer]:
    stmt = select(Customer).order_by(Customer.created_at.desc())
    if not include_inactive:
        stmt = stmt.where(Customer.is_active == True)
    if search:
        stmt = stmt.where(Customer.name.ilike(f"%{search}%"))
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def list_vehicles(db: AsyncSession, customer_id: str) -> list[Vehicle]:
    result = await db.execute(
        select(Vehicle).where(Vehicle.customer_id == customer_id).order_by(Vehicle.position)
    )
    return list(result.scalars().all())


async def get_vehicle_by_vin(db: AsyncSession, vin: str) -> Vehicle | None:
    result = await db.execute(select(Vehicle).where(Vehicle.vin == vin))
    return result.scalars().first()


async def update_customer(db: AsyncSession, customer: Customer, **kwargs) -> Customer:
    for k, v in kwargs.items():
        if v is not None:
            setattr(customer, k, v)
    await db.commit()
    await db.refresh(customer)
    return customer


# ── Technician ───────────────────────────────────────────

async def create_technician(db: AsyncSession, **fields) -> Technician:
    tech = Technician(**fields)
    db.add(tech)
    await db.commit()
    await db.refresh(tech)
    return tech


async def list_technicians(db: AsyncSession, active_only: bool = True) -> list[Technician]:
    stmt = select(Technician).order_by(Technician.name)
    if active_only:
        stmt = stmt.where(Technician.is_active == True)
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def update_technician(db: AsyncSession, tech: Technician, **kwargs) -> Technician:
    for k, v in kwargs.items():
        if v is not None:
            setattr(tech, k, v)
    await db.commit()
    await db.refresh(tech)
    return tech


# ── Variation / Quotation ────────────────────────────────

async def list_variations(db: AsyncSession, active_only: bool = True) -> list[Variation]:
    stmt = select(Variation).order_by(Variation.name, Variation.version)
    if active_only:
        stmt = stmt.where(Variation.is_active == True)
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def list_variation_versions(db: AsyncSession, code: str) -> list[Variation]:
    result = await db.execute(
        select(Variation).where(Variation.code == code).order_by(Variation.version)
    )
    return list(result.scalars().all())


async def variation_is_referenced(db: AsyncSession, variation_id: str) -> bool:
    result = await db.execute(
        select(WorkOrderPart.id).where(WorkOrderPart.variation_id == variation_id).limit(1)
    )
    return result.first() is not None


async def list_quotations(db: AsyncSession, customer_id: str | None = None) -> list[Quotation]:
    stmt = select(Quotation).order_by(Quotation.created_at.desc())
    if customer_id:
        stmt = stmt.where(Quotation.customer_id == customer_id)
    result = await db.execute(stmt)
    return list(result.scalars().all())


# ── Work orders ──────────────────────────────────────────

async def list_work_orders(
    db: AsyncSession, status: str | None = None, branch_id: str | None = None,
    customer_id: str | None = None,
) -> list[WorkOrder]:
    stmt = select(WorkOrder).order_by(WorkOrder.created_at.desc())
    if status:
        stmt = stmt.where(WorkOrder.status == status)
    if branch_id:
        stmt = stmt.where(WorkOrder.branch_id == branch_id)
    if customer_id:
        stmt = stmt.where(WorkOrder.customer_id == customer_id)
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def list_parts(db: AsyncSession, work_order_id: str) -> list[WorkOrderPart]:
    result = await db.execute(
        select(WorkOrderPart)
        .where(WorkOrderPart.work_order_id == work_order_id)
        .order_by(WorkOrderPart.position)
    )
    return list(result.scalars().all())


async def list_stages(db: AsyncSession, work_order_id: str) -> list[Stage]:
    result = await db.execute(
        select(Stage)
        .join(WorkOrderPart, Stage.part_id == WorkOrderPart.id)
        .where(Stage.work_order_id == work_order_id)
        .order_by(WorkOrderPart.position, Stage.position)
    )
    return list(result.scalars().all())


async def list_stage_logs(db: AsyncSession, stage_id: str) -> list[StageLog]:
    result = await db.execute(
        select(StageLog).where(StageLog.stage_id == stage_id).order_by(StageLog.seq)
    )
    return list(result.scalars().all())


async def list_work_order_logs(db: AsyncSession, work_order_id: str) -> list[StageLog]:
    result = await db.execute(
        select(StageLog)
        .where(StageLog.work_order_id == work_order_id)
        .order_by(StageLog.created_at, StageLog.stage_id, StageLog.seq)
    )
    return list(result.scalars().all())


async def list_qa_verifications(db: AsyncSession, work_order_id: str) -> list[QAVerification]:
    result = await db.execute(
        select(QAVerification)
        .where(QAVerification.work_order_id == work_order_id)
        .order_by(QAVerification.created_at)
    )
    return list(result.scalars().all())


async def get_pending_qa(db: AsyncSession, work_order_id: str) -> QAVerification | None:
    result = await db.execute(
        select(QAVerification).where(
            QAVerification.work_order_id == work_order_id,
            QAVerification.decision == "pending",
        )
    )
    return result.scalars().first()


# ── Invoices ─────────────────────────────────────────────

async def get_active_invoice_for_work_order(db: AsyncSession, work_order_id: str) -> Invoice | None:
    result = await db.execute(
        select(Invoice).where(Invoice.work_order_id == work_order_id, Invoice.is_void == False)
    )
    return result.scalars().first()


async def list_invoices(
    db: AsyncSession, payment_status: str | None = None, customer_id: str | None = None,
) -> list[Invoice]:
    stmt = select(Invoice).order_by(Invoice.created_at.desc())
    if payment_status:
        stmt = stmt.where(Invoice.payment_status == payment_status)
    if customer_id:
        stmt = stmt.where(Invoice.customer_id == customer_id)
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def list_invoice_lines(db: AsyncSession, invoice_id: str) -> list[InvoiceLine]:
    result = await db.execute(
        select(InvoiceLine).where(InvoiceLine.invoice_id == invoice_id).order_by(InvoiceLine.position)
    )
    return list(result.scalars().all())


async def list_payments(db: AsyncSession, invoice_id: str) -> list[Payment]:
    result = await db.execute(
        select(Payment).where(Payment.invoice_id == invoice_id).order_by(Payment.seq)
    )
    return list(result.scalars().all())


# ── Expenses ─────────────────────────────────────────────

async def create_expense(db: AsyncSession, **fields) -> Expense:
    expense = Expense(**fields)
    db.add(expense)
    await db.commit()
    await db.refresh(expense)
    return expense


async def list_expenses(
    db: AsyncSession, branch_id: str | None = None, category: str | None = None,
    start: date | None = None, end: date | None = None,
) -> list[Expense]:
    stmt = select(Expense).order_by(Expense.incurred_on.desc())
    if branch_id:
        stmt = stmt.where(Expense.branch_id == branch_id)
    if category:
        stmt = stmt.where(Expense.category == category)
    if start:
        stmt = stmt.where(Expense.incurred_on >= start)
    if end:
        stmt = stmt.where(Expense.incurred_on <= end)
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def update_expense(db: AsyncSession, expense: Expense, **kwargs) -> Expense:
    for k, v in kwargs.items():
        if v is not None:
            setattr(expense, k, v)
    await db.commit()
    await db.refresh(expense)
    return expense


async def delete_expense(db: AsyncSession, expense: Expense) -> None:
    await db.delete(expense)
    await db.commit()


def as_utc(value: datetime) -> datetime:
    """SQLite drops tzinfo on read; restore UTC."""
    return value.replace(tzinfo=timezone.utc) if value.tzinfo is None else value
