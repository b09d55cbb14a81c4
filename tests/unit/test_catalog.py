from decimal import Decimal

import pytest

from garage.db import crud
from garage.errors import ConflictError, NotFoundError, PermissionDenied, ValidationError
from garage.models import Variation
from garage.services import catalog, registration
from tests.factories import make_ctx, make_variation, make_work_order


def test_price_only_variation_gets_single_labor_part():
    price, parts = catalog.normalize_parts("Oil Change", "50", None)
    assert price == Decimal("50.00")
    assert parts == [{"name": "Oil Change", "price": "50.00", "stages": ["Labor"]}]


def test_parts_define_the_price():
    price, parts = catalog.normalize_parts("Brake Service", None, [
        {"name": "Front pads", "price": "120", "stages": ["Remove wheels", " Replace pads "]},
        {"name": "Brake fluid", "price": "35.00"},
    ])
    assert price == Decimal("155.00")
    assert parts[0]["stages"] == ["Remove wheels", "Replace pads"]
    assert parts[1]["stages"] == ["Labor"]


@pytest.mark.parametrize("price, parts", [
    (None, None),
    ("-1", None),
    ("100.00", [{"name": "Pads", "price": "120.00"}]),
    (None, [{"name": "", "price": "10"}]),
    (None, [{"name": "Pads", "price": "-5"}]),
])
def test_invalid_catalog_entries(price, parts):
    with pytest.raises(ValidationError):
        catalog.normalize_parts("Brakes", price, parts)


async def test_unreferenced_variation_is_edited_in_place(db, admin):
    variation = await make_variation(db, admin)
    updated = await catalog.update_variation(db, admin, variation.id, price="55.00")
    assert updated.id == variation.id
    assert updated.version == 1
    assert updated.price == Decimal("55.00")


async def test_referenced_variation_gets_new_version(db, admin):
    variation = await make_variation(db, admin)
    await make_work_order(db, admin, [variation])

    successor = await catalog.update_variation(db, admin, variation.id, price="60.00")
    assert successor.id != variation.id
    assert successor.code == variation.code
    assert successor.version == 2
    assert successor.price == Decimal("60.00")

    original = await db.get(Variation, variation.id)
    assert original.is_active is False
    assert original.price == Decimal("50.00")
    versions = await crud.list_variation_versions(db, variation.code)
    assert [v.version for v in versions] == [1, 2]
    assert [v.id for v in await crud.list_variations(db)] == [successor.id]


async def test_retired_version_cannot_be_edited_or_quoted(db, admin):
    variation = await make_variation(db, admin)
    variation_id = variation.id
    await catalog.retire_variation(db, admin, variation_id)
    with pytest.raises(ConflictError):
        await catalog.update_variation(db, admin, variation_id, price="1.00")

    customer, vehicle = await registration.register_customer(
        db, admin, {"name": "Jane Doe"}, {"make": "Honda", "model": "Accord", "vin": "1HGCM82633A004352"},
    )
    with pytest.raises(NotFoundError):
        await registration.create_quotation(db, admin, customer.id, vehicle.id, [variation_id])


async def test_multi_part_price_change_goes_through_parts(db, admin):
    variation = await make_variation(db, admin, "Brake Service", price=None, parts=[
        {"name": "Front pads", "price": "120.00"},
        {"name": "Brake fluid", "price": "35.00"},
    ])
    with pytest.raises(ValidationError):
        await catalog.update_variation(db, admin, variation.id, price="200.00")


async def test_catalog_requires_permission(db):
    with pytest.raises(PermissionDenied):
        await catalog.create_variation(db, make_ctx("technician"), "Oil Change", price="50")
