from datetime import datetime, timedelta

import httpx
import pytest

from src.library.infrastructure.dependencies import build_circulation_container
from src.main import create_app
from src.shared.database import Base, get_engine, get_session_factory
from src.shared.security import create_access_token

T0 = datetime(2025, 3, 1, 0, 0, 0)


@pytest.fixture
async def api(settings, gateway, clock):
    app = create_app(settings, start_scheduler=False)
    async with app.router.lifespan_context(app):
        async with get_engine().begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        app.state.circulation = build_circulation_container(
            settings, get_session_factory(), gateway=gateway, clock=clock
        )
        transport = httpx.ASGITransport(app=app)
        async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as client:
            client.headers["Authorization"] = f"Bearer {create_access_token('librarian@school.edu.ph')}"
            yield client


async def _seed(api, *, copies=1, email="juan@school.edu.ph"):
    r = await api.post(
        "/api/v1/students",
        json={"student_number": "2024-0001", "full_name": "Juan Dela Cruz", "email": email},
    )
    assert r.status_code == 201, r.text
    student = r.json()
    r = await api.post(
        "/api/v1/items",
        json={"title": "Noli Me Tangere", "author": "Jose Rizal", "accession_number": "ACC-00001",
              "total_copies": copies},
    )
    assert r.status_code == 201, r.text
    return student, r.json()


async def test_requires_bearer_token(api):
    r = await api.get("/api/v1/circulation/loans/active/count", headers={"Authorization": ""})
    assert r.status_code == 401
    body = r.json()
    assert body["code"] == "unauthorized"
    assert "correlation_id" in body


async def test_rejects_garbage_token(api):
    r = await api.get("/api/v1/circulation/loans/active/count", headers={"Authorization": "Bearer nope"})
    assert r.status_code == 401


async def test_borrow_return_cycle(api, clock, gateway):
    student, item = await _seed(api)

    r = await api.post(
        "/api/v1/circulation/borrow",
        json={"student_token": "@@" + student["student_number"], "item_token": item["id"], "method": "qr"},
    )
    assert r.status_code == 201, r.text
    loan = r.json()
    assert loan["method"] == "qr"
    assert loan["returned"] is False
    assert len(gateway.confirmations) == 1

    r = await api.get(f"/api/v1/items/{item['id']}")
    assert r.json()["available_copies"] == 0
    assert r.json()["status"] == "borrowed"

    r = await api.get("/api/v1/circulation/loans/active/count")
    assert r.json() == {"active_loans": 1}

    clock.set(T0 + timedelta(days=9, minutes=1))
    r = await api.post("/api/v1/circulation/return", json={"loan_token": loan["id"]})
    assert r.status_code == 200, r.text
    assert float(r.json()["fine_amount"]) == 30.0
    assert r.json()["loan"]["returned"] is True

    r = await api.post("/api/v1/circulation/profile", json={"student_token": student["id"]})
    assert r.status_code == 200
    assert r.json()["active_loans"] == []
    assert float(r.json()["total_outstanding_fine"]) == 30.0

    r = await api.post("/api/v1/circulation/fines/settle", json={"student_token": student["student_number"]})
    assert r.json() == {"settled_count": 1}

    r = await api.get("/api/v1/circulation/activities", params={"limit": 5})
    assert [a["loan"]["id"] for a in r.json()] == [loan["id"]]

    r = await api.get("/api/v1/circulation/loans", params={"skip": 0, "limit": 10})
    assert r.status_code == 200
    history = r.json()
    assert (history["total"], history["skip"], history["limit"]) == (1, 0, 10)
    assert history["loans"][0]["loan"]["id"] == loan["id"]
    assert history["loans"][0]["student_name"] == "Juan Dela Cruz"

    r = await api.get("/api/v1/circulation/loans", params={"limit": 0})
    assert r.status_code == 422


async def test_conflicts_use_error_contract(api):
    student, item = await _seed(api)
    body = {"student_token": student["id"], "item_token": item["accession_number"]}

    assert (await api.post("/api/v1/circulation/borrow", json=body)).status_code == 201
    r = await api.post("/api/v1/circulation/borrow", json=body)
    assert r.status_code == 409
    assert r.json()["code"] == "already_borrowed"

    loan_id = r.json()["details"]["loan_id"]
    assert (await api.post("/api/v1/circulation/return", json={"loan_token": loan_id})).status_code == 200
    r = await api.post("/api/v1/circulation/return", json={"loan_token": loan_id})
    assert r.status_code == 409
    assert r.json()["code"] == "already_returned"


async def test_unknown_identity_is_404_with_attempted(api):
    await _seed(api)
    r = await api.post("/api/v1/circulation/profile", json={"student_token": "2099-0001"})
    assert r.status_code == 404
    body = r.json()
    assert body["code"] == "identity_not_found"
    assert "human_number" in body["details"]["attempted"]


async def test_blank_token_is_422(api):
    r = await api.post("/api/v1/circulation/profile", json={"student_token": " @@ "})
    assert r.status_code == 422
    assert r.json()["code"] == "invalid_identity_token"


async def test_return_request_needs_one_identification(api):
    r = await api.post("/api/v1/circulation/return", json={"student_token": "2024-0001"})
    assert r.status_code == 422
    assert r.json()["code"] == "validation_error"


async def test_fine_queue_and_manual_sweep(api, clock, gateway):
    student, item = await _seed(api)
    await api.post("/api/v1/circulation/borrow", json={"student_token": student["id"], "item_token": item["id"]})

    clock.set(T0 + timedelta(days=10))
    r = await api.get("/api/v1/circulation/fines/queue")
    queue = r.json()
    assert len(queue) == 1
    assert queue[0]["days_overdue"] == 3
    assert queue[0]["item_title"] == "Noli Me Tangere"

    r = await api.post("/api/v1/circulation/sweep/run")
    assert r.status_code == 200
    report = r.json()
    assert (report["scanned"], report["notified"]) == (1, 1)
    assert gateway.overdue[0]["fine_amount"] == 30


async def test_duplicate_student_number_is_409(api):
    await _seed(api)
    r = await api.post("/api/v1/students", json={"student_number": "2024-0001", "full_name": "Someone Else"})
    assert r.status_code == 409
    assert r.json()["details"]["field"] == "student_number"


async def test_health_and_request_id(api):
    r = await api.get("/_health/db", headers={"X-Request-ID": "req-123"})
    assert r.status_code == 200
    assert r.json()["ok"] is True
    assert r.headers["X-Request-ID"] == "req-123"
