from decimal import Decimal

import pytest

from garage.db import crud
from garage.errors import ConflictError, InvalidTransition, NotFoundError, ValidationError
from garage.models import Customer, Quotation
from garage.services import catalog, registration
from tests.factories import VIN, make_variation, vin

JANE = {"name": "Jane Doe", "phone": "+971500000000", "email": "jane@example.com"}
ACCORD = {"make": "Honda", "model": "Accord", "year": 2003, "vin": VIN}


async def test_register_customer_with_first_vehicle(db, admin):
    customer, vehicle = await registration.register_customer(db, admin, JANE, dict(ACCORD, vin=VIN.lower()))
    assert customer.branch_id == admin.branch_id
    assert vehicle.vin == VIN
    assert vehicle.position == 1
    assert [v.id for v in await crud.list_vehicles(db, customer.id)] == [vehicle.id]


async def test_vehicle_positions_increase(db, admin):
    customer, _ = await registration.register_customer(db, admin, JANE, ACCORD)
    second = await registration.add_vehicle(db, admin, customer.id, dict(ACCORD, vin=vin(1)))
    third = await registration.add_vehicle(db, admin, customer.id, dict(ACCORD, vin=vin(2)))
    assert (second.position, third.position) == (2, 3)


async def test_duplicate_vin_rejected(db, admin):
    await registration.register_customer(db, admin, JANE, ACCORD)
    with pytest.raises(ConflictError):
        await registration.register_customer(db, admin, {"name": "John Roe"}, ACCORD)
    # The second customer was rolled back along with the vehicle
    assert len(await crud.list_customers(db)) == 1


@pytest.mark.parametrize("bad", ["", "1HGCM82633A00435", "1HGCM82633A00435O", "1HGCM82633A0043-2"])
async def test_invalid_vin(db, admin, bad):
    with pytest.raises(ValidationError):
        await registration.register_customer(db, admin, JANE, dict(ACCORD, vin=bad))


async def test_customer_name_required(db, admin):
    with pytest.raises(ValidationError):
        await registration.register_customer(db, admin, {"name": "  "}, ACCORD)


async def test_quotation_snapshots_variations(db, admin):
    oil = await make_variation(db, admin)
    brakes = await make_variation(db, admin, "Brake Service", price="155.00")
    customer, vehicle = await registration.register_customer(db, admin, JANE, ACCORD)

    quote = await registration.create_quotation(db, admin, customer.id, vehicle.id, [oil.id, brakes.id])
    assert quote.number == "QT-000001"
    assert quote.status == "draft"
    assert quote.total == Decimal("205.00")
    assert [i["name"] for i in quote.items] == ["Oil Change", "Brake Service"]
    assert quote.items[0]["price"] == "50.00"


async def test_quotation_needs_matching_vehicle(db, admin):
    oil = await make_variation(db, admin)
    jane, _ = await registration.register_customer(db, admin, JANE, ACCORD)
    _, other_car = await registration.register_customer(db, admin, {"name": "John Roe"}, dict(ACCORD, vin=vin(7)))
    with pytest.raises(NotFoundError):
        await registration.create_quotation(db, admin, jane.id, other_car.id, [oil.id])
    with pytest.raises(ValidationError):
        await registration.create_quotation(db, admin, jane.id, other_car.id, [])


async def test_approve_creates_work_order_once(db, admin):
    oil = await make_variation(db, admin)
    customer, vehicle = await registration.register_customer(db, admin, JANE, ACCORD)
    quote = await registration.create_quotation(db, admin, customer.id, vehicle.id, [oil.id])
    quote_id = quote.id

    wo = await registration.approve_quotation(db, admin, quote_id)
    assert wo.number == "WO-000001"
    assert wo.quotation_id == quote_id
    assert quote.status == "approved"
    assert quote.work_order_id == wo.id

    with pytest.raises(InvalidTransition):
        await registration.approve_quotation(db, admin, quote_id)
    assert len(await crud.list_work_orders(db)) == 1


async def test_rejected_quotation_cannot_be_approved(db, admin):
    oil = await make_variation(db, admin)
    customer, vehicle = await registration.register_customer(db, admin, JANE, ACCORD)
    quote = await registration.create_quotation(db, admin, customer.id, vehicle.id, [oil.id])
    quote_id = quote.id
    rejected = await registration.reject_quotation(db, admin, quote_id)
    assert rejected.status == "rejected"
    with pytest.raises(InvalidTransition):
        await registration.approve_quotation(db, admin, quote_id)
    assert (await db.get(Quotation, quote_id)).work_order_id is None


async def test_repriced_variation_blocks_approval(db, admin):
    oil = await make_variation(db, admin)
    customer, vehicle = await registration.register_customer(db, admin, JANE, ACCORD)
    quote = await registration.create_quotation(db, admin, customer.id, vehicle.id, [oil.id])
    quote_id = quote.id

    # Not yet on any work order, so edited in place
    await catalog.update_variation(db, admin, oil.id, price="65.00")

    with pytest.raises(ConflictError):
        await registration.approve_quotation(db, admin, quote_id)
    assert (await db.get(Quotation, quote_id)).status == "draft"


async def test_disabled_customer_cannot_be_quoted(db, admin):
    oil = await make_variation(db, admin)
    customer, vehicle = await registration.register_customer(db, admin, JANE, ACCORD)
    customer_id, vehicle_id = customer.id, vehicle.id
    await crud.update_customer(db, customer, is_active=False)
    with pytest.raises(ConflictError):
        await registration.create_quotation(db, admin, customer_id, vehicle_id, [oil.id])
    assert (await db.get(Customer, customer_id)).is_active is False
