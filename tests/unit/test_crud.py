from datetime import date
from decimal import Decimal

import pytest
from cryptography.fernet import Fernet
from sqlalchemy import text

from garage.db import crud
from garage.models import Customer
from garage.services import registration
from tests.factories import vin


async def test_counters_are_independent(db):
    assert await crud.next_number(db, "work_order", "WO") == "WO-000001"
    assert await crud.next_number(db, "work_order", "WO") == "WO-000002"
    assert await crud.next_number(db, "invoice", "INV") == "INV-000001"
    await db.commit()
    assert await crud.next_number(db, "work_order", "WO") == "WO-000003"


async def test_rolled_back_number_is_reused(db):
    await crud.next_number(db, "quotation", "QT")
    await db.commit()
    assert await crud.next_number(db, "quotation", "QT") == "QT-000002"
    await db.rollback()
    assert await crud.next_number(db, "quotation", "QT") == "QT-000002"


async def test_branch_listing(db):
    await crud.create_branch(db, "North", "NTH")
    await crud.create_branch(db, "Airport", "APT")
    assert [b.code for b in await crud.list_branches(db)] == ["APT", "NTH"]


async def test_customer_search_and_disable(db, admin):
    jane, _ = await registration.register_customer(
        db, admin, {"name": "Jane Doe"}, {"make": "Honda", "model": "Accord", "vin": "1HGCM82633A004352"},
    )
    await registration.register_customer(
        db, admin, {"name": "John Roe"}, {"make": "Toyota", "model": "Camry", "vin": "4T1BE46K27U123456"},
    )
    assert [c.name for c in await crud.list_customers(db, search="jane")] == ["Jane Doe"]

    await crud.update_customer(db, jane, is_active=False)
    assert [c.name for c in await crud.list_customers(db)] == ["John Roe"]
    assert len(await crud.list_customers(db, include_inactive=True)) == 2
    assert (await crud.get_vehicle_by_vin(db, "1HGCM82633A004352")).customer_id == jane.id


async def test_money_survives_storage_exactly(db, admin):
    expense = await crud.create_expense(
        db, category="parts", amount=Decimal("0.10") + Decimal("0.20"),
        incurred_on=date(2026, 10, 1), recorded_by=admin.user_id, branch_id=admin.branch_id,
    )
    assert expense.amount == Decimal("0.30")


async def test_expense_filters(db, admin):
    await crud.create_expense(db, category="parts", amount=Decimal("120.00"),
                              incurred_on=date(2026, 10, 1), recorded_by=admin.user_id)
    await crud.create_expense(db, category="utilities", amount=Decimal("80.00"),
                              incurred_on=date(2026, 10, 15), recorded_by=admin.user_id)
    rent = await crud.create_expense(db, category="rent", amount=Decimal("5000.00"),
                                     incurred_on=date(2026, 11, 1), recorded_by=admin.user_id)

    october = await crud.list_expenses(db, start=date(2026, 10, 1), end=date(2026, 10, 31))
    assert [e.category for e in october] == ["utilities", "parts"]
    assert [e.id for e in await crud.list_expenses(db, category="rent")] == [rent.id]

    await crud.update_expense(db, rent, amount=Decimal("4800.00"))
    assert rent.amount == Decimal("4800.00")
    await crud.delete_expense(db, rent)
    assert await crud.list_expenses(db, category="rent") == []


@pytest.mark.parametrize("with_key", [True, False])
async def test_customer_contact_encrypted_only_with_key(db, admin, monkeypatch, with_key):
    if with_key:
        monkeypatch.setenv("FERNET_KEY", Fernet.generate_key().decode())
    customer, _ = await registration.register_customer(
        db, admin,
        {"name": "José Núñez", "phone": "+971500000001", "address": "Al Quoz 3"},
        {"make": "Kia", "model": "Rio", "year": 2019, "vin": vin(41)},
    )
    customer_id = customer.id
    raw = (await db.execute(text("SELECT phone FROM customers WHERE id = :id"), {"id": customer_id})).scalar_one()
    assert (raw != "+971500000001") is with_key

    db.expire_all()
    assert (await db.get(Customer, customer_id)).phone == "+971500000001"
