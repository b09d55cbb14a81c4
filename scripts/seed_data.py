"""Seed the database with a demo branch, technicians, variations and a customer."""

import asyncio

from garage.db.engine import async_session_factory, create_all
from garage.db import crud
from garage.permissions import resolve_permissions
from garage.services import catalog, registration
from garage.services.auth import AuthContext

SEED_CONTEXT = AuthContext(
    user_id="seed",
    role="admin",
    branch_id=None,
    email="seed@localhost",
    display_name="Seed script",
    permissions=resolve_permissions("admin"),
)


async def seed():
    await create_all()

    async with async_session_factory() as db:
        if any(b.code == "MAIN" for b in await crud.list_branches(db)):
            print("Demo branch already exists, skipping seed.")
            return

        branch = await crud.create_branch(db, "Main Workshop", "MAIN")
        print(f"Created branch: {branch.name} (id: {branch.id})")

        for name, rate in (("Sam Rivera", "45.00"), ("Alex Chen", "55.00")):
            tech = await crud.create_technician(db, name=name, hourly_rate=rate, branch_id=branch.id)
            print(f"Created technician: {tech.name} at {tech.hourly_rate}/h")

        oil = await catalog.create_variation(db, SEED_CONTEXT, "Oil Change", price="50.00")
        brakes = await catalog.create_variation(db, SEED_CONTEXT, "Brake Service", parts=[
            {"name": "Front pads", "price": "120.00", "stages": ["Remove wheels", "Replace pads", "Test drive"]},
            {"name": "Brake fluid", "price": "35.00", "stages": ["Flush"]},
        ])
        print(f"Created variations: {oil.name} ({oil.price}), {brakes.name} ({brakes.price})")

        customer, vehicle = await registration.register_customer(
            db, SEED_CONTEXT,
            {"name": "Jane Doe", "phone": "+971500000000", "email": "jane@example.com", "branch_id": branch.id},
            {"make": "Honda", "model": "Accord", "year": 2003, "vin": "1HGCM82633A004352"},
        )
        print(f"Created customer: {customer.name} with {vehicle.make} {vehicle.model} ({vehicle.vin})")

    print("\nSeed complete. Create an admin with: python -m garage.cli create-user --email you@example.com")


if __name__ == "__main__":
    asyncio.run(seed())
