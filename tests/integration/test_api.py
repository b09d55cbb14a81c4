"""Integration tests for API endpoints."""

from __future__ import annotations

import io
from datetime import datetime, timedelta, timezone

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from PIL import Image
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from garage.db.engine import get_db
from garage.main import app
from garage.models import Base, Branch, User, UserSession
from garage.services.auth import hash_password, hash_token

# Raw identity tokens for the seeded users
_ADMIN_TOKEN = "test-admin-token-abc123"
_TECH_TOKEN = "test-tech-token-def456"
_VIN = "1HGCM82633A004352"


def _bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


@pytest_asyncio.fixture
async def client():
    """Test client backed by an in-memory database with an admin and a technician."""
    engine = create_async_engine("sqlite+aiosqlite:///:memory:")
    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with factory() as db:
        branch = Branch(name="Main Workshop", code="MAIN")
        db.add(branch)
        await db.flush()
        expires = datetime.now(timezone.utc) + timedelta(hours=24)
        for email, role, token in (
            ("admin@garage.test", "admin", _ADMIN_TOKEN),
            ("tech@garage.test", "technician", _TECH_TOKEN),
        ):
            user = User(
                email=email,
                display_name=role.title(),
                password_hash=hash_password("testpass123"),
                role=role,
                branch_id=branch.id,
            )
            db.add(user)
            await db.flush()
            db.add(UserSession(user_id=user.id, token_hash=hash_token(token), expires_at=expires))
        await db.commit()

    async def override_get_db():
        async with factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test", headers=_bearer(_ADMIN_TOKEN)) as ac:
        yield ac

    app.dependency_overrides.clear()
    await engine.dispose()


async def _upload(client, category: str = "qa_photo", color=(200, 30, 30)) -> str:
    buf = io.BytesIO()
    Image.new("RGB", (64, 64), color=color).save(buf, format="PNG")
    r = await client.post(
        "/api/uploads",
        data={"category": category},
        files={"file": ("photo.png", buf.getvalue(), "image/png")},
    )
    assert r.status_code == 201, r.text
    return r.json()["location"]


async def _register_jane(client) -> dict:
    r = await client.post("/api/customers", json={
        "customer": {"name": "Jane Doe", "phone": "+971500000000"},
        "vehicle": {"make": "Honda", "model": "Accord", "year": 2003, "vin": _VIN},
    })
    assert r.status_code == 201, r.text
    return r.json()


async def _oil_change_work_order(client) -> dict:
    customer = await _register_jane(client)
    r = await client.post("/api/variations", json={"name": "Oil Change", "price": "50.00"})
    assert r.status_code == 201, r.text
    variation = r.json()
    r = await client.post("/api/quotations", json={
        "customer_id": customer["id"],
        "vehicle_id": customer["vehicles"][0]["id"],
        "variation_ids": [variation["id"]],
    })
    assert r.status_code == 201, r.text
    r = await client.post(f"/api/quotations/{r.json()['id']}/approve")
    assert r.status_code == 201, r.text
    return r.json()


async def test_health(client):
    r = await client.get("/api/health")
    assert r.status_code == 200
    assert r.json() == {"ok": True}


async def test_oil_change_end_to_end(client):
    wo = await _oil_change_work_order(client)
    assert wo["number"] == "WO-000001"
    assert wo["status"] == "pending"

    r = await client.post("/api/technicians", json={"name": "Sam Rivera"})
    assert r.status_code == 201
    tech_id = r.json()["id"]

    detail = (await client.get(f"/api/work-orders/{wo['id']}")).json()
    assert [p["name"] for p in detail["parts"]] == ["Oil Change"]
    stage_id = detail["parts"][0]["stages"][0]["id"]
    base = f"/api/work-orders/{wo['id']}/stages/{stage_id}"

    r = await client.post(f"{base}/assign", json={"technician_id": tech_id})
    assert r.status_code == 200, r.text
    r = await client.post(f"{base}/start")
    assert r.json()["status"] == "in_progress"
    r = await client.post(f"{base}/complete", json={"hours": "2"})
    assert r.json()["status"] == "completed"
    assert r.json()["actual_hours"] == "2.00"

    r = await client.post(f"/api/work-orders/{wo['id']}/submit-qa")
    assert r.status_code == 201, r.text
    assert r.json()["decision"] == "pending"

    photos = [await _upload(client, color=(i * 60, 30, 30)) for i in range(3)]
    r = await client.post(f"/api/qa/{wo['id']}/approve", json={"photos": photos})
    assert r.status_code == 200, r.text
    assert r.json()["decision"] == "approved"
    assert (await client.get(f"/api/work-orders/{wo['id']}")).json()["status"] == "completed"

    r = await client.post("/api/invoices/generate", json={"work_order_id": wo["id"]})
    assert r.status_code == 201, r.text
    invoice = r.json()
    assert invoice["subtotal"] == "50.00"
    assert invoice["vat_amount"] == "2.50"
    assert invoice["total"] == "52.50"
    assert invoice["payment_status"] == "pending"
    assert len(invoice["lines"]) == 1

    r = await client.post(f"/api/invoices/{invoice['id']}/record-payment", json={"amount": "52.50", "method": "card"})
    assert r.status_code == 201, r.text
    assert r.json()["payment_status"] == "paid"
    assert [p["amount"] for p in r.json()["payments"]] == ["52.50"]

    logs = (await client.get(f"/api/work-orders/{wo['id']}/logs")).json()
    assert [entry["action"] for entry in logs] == ["assign", "start", "complete", "submit_qa", "qa_approve"]
    assert [entry["seq"] for entry in logs] == [1, 2, 3, 4, 5]

    r = await client.get(f"/api/invoices/{invoice['id']}/pdf")
    assert r.status_code == 200
    assert r.headers["content-type"] == "application/pdf"
    assert r.content[:4] == b"%PDF"


async def test_error_envelope(client):
    wo = await _oil_change_work_order(client)

    r = await client.post(f"/api/qa/{wo['id']}/approve", json={"photos": ["a.jpg", "b.jpg", "c.jpg"]})
    assert r.status_code == 409
    assert r.json()["error"]["kind"] == "conflict_error"

    r = await client.post("/api/invoices/generate", json={"work_order_id": wo["id"]})
    assert r.status_code == 409
    assert "not completed" in r.json()["error"]["message"]

    r = await client.get("/api/work-orders/01J0000000000000000000000")
    assert r.status_code == 404
    assert r.json()["error"]["kind"] == "not_found"

    r = await client.post("/api/customers", json={"customer": {"name": "No Car"}})
    assert r.status_code == 422
    assert r.json()["error"]["kind"] == "validation_error"


async def test_duplicate_vin_conflict(client):
    await _register_jane(client)
    r = await client.post("/api/customers", json={
        "customer": {"name": "John Roe"},
        "vehicle": {"make": "Honda", "model": "Accord", "vin": _VIN},
    })
    assert r.status_code == 409


async def test_unauthenticated_and_forbidden(client):
    r = await client.get("/api/work-orders", headers={"Authorization": ""})
    assert r.status_code == 401
    assert r.json()["error"]["kind"] == "auth_error"

    r = await client.get("/api/admin/users", headers=_bearer(_TECH_TOKEN))
    assert r.status_code == 403
    assert r.json()["error"]["kind"] == "permission_error"

    r = await client.get("/api/work-orders", headers=_bearer(_TECH_TOKEN))
    assert r.status_code == 200


async def test_login_and_me(client):
    r = await client.post("/api/auth/login", json={"email": "admin@garage.test", "password": "testpass123"})
    assert r.status_code == 200
    token = r.json()["token"]

    r = await client.get("/api/auth/me", headers=_bearer(token))
    assert r.json()["role"] == "admin"
    assert "users.manage" in r.json()["permissions"]

    r = await client.post("/api/auth/login", json={"email": "admin@garage.test", "password": "nope"})
    assert r.status_code == 401


async def test_upload_and_download(client, upload_dir):
    buf = io.BytesIO()
    Image.new("RGB", (64, 64), color=(200, 30, 30)).save(buf, format="PNG")

    r = await client.post(
        "/api/uploads",
        data={"category": "qa_photo"},
        files={"file": ("front.png", buf.getvalue(), "image/png")},
    )
    assert r.status_code == 201, r.text
    location = r.json()["location"]
    assert location.startswith("qa_photo/")

    r = await client.get(f"/api/uploads/{location}")
    assert r.status_code == 200
    assert r.headers["content-type"] == "image/png"
    assert r.content == buf.getvalue()
    assert (upload_dir / location).is_file()


async def test_expense_receipt_must_be_a_stored_upload(client):
    expense = {"category": "Fuel", "amount": "40.00", "incurred_on": "2026-03-01"}

    r = await client.post("/api/expenses", json={**expense, "receipt_location": "receipt/missing.pdf"})
    assert r.status_code == 422
    assert r.json()["error"]["kind"] == "validation_error"

    photo = await _upload(client, "qa_photo")
    r = await client.post("/api/expenses", json={**expense, "receipt_location": photo})
    assert r.status_code == 422

    receipt = await _upload(client, "receipt")
    r = await client.post("/api/expenses", json={**expense, "receipt_location": receipt})
    assert r.status_code == 201, r.text
    assert r.json()["receipt_location"] == receipt
    expense_id = r.json()["id"]

    r = await client.put(f"/api/expenses/{expense_id}", json={"receipt_location": "../../etc/passwd"})
    assert r.status_code == 422

    r = await client.post("/api/expenses", json=expense)
    assert r.status_code == 201, r.text


async def test_case_and_notifications(client):
    r = await client.post("/api/cases", json={"title": "Customer asks about warranty", "priority": "low"})
    assert r.status_code == 201, r.text
    case_id = r.json()["id"]
    r = await client.post(f"/api/cases/{case_id}/comments", json={"body": "Warranty covers 12 months"})
    assert r.status_code == 201
    detail = (await client.get(f"/api/cases/{case_id}")).json()
    assert [a["kind"] for a in detail["activity"]] == ["opened", "comment"]

    await _oil_change_work_order(client)
    notes = (await client.get("/api/notifications")).json()
    assert any(n["kind"] == "work_order.created" for n in notes)
