from datetime import date
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from apartment_admin.api.dependencies import get_db
from apartment_admin.auth.jwt import get_current_admin
from apartment_admin.main import app
from apartment_admin.models.models import Apartment, AuditLog


@pytest.fixture
def client(db_session):
    def _override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = _override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


def _override_user(admin):
    app.dependency_overrides[get_current_admin] = lambda: admin


@pytest.fixture
def as_admin(create_admin):
    admin = create_admin(email="site@example.com")
    _override_user(admin)
    return admin


def _create_due(client, flat, month=3):
    response = client.post("/dues/", json={"flat_id": flat.id, "amount": "1000.00", "month": month, "year": 2025})
    assert response.status_code == 201
    return response.json()


def test_due_then_partial_payment(client, as_admin, create_flat):
    due = _create_due(client, create_flat())

    response = client.post(
        "/payments/",
        json={"due_id": due["id"], "amount": "400.00", "payment_date": "2025-03-10", "payment_method": "cash"},
    )

    assert response.status_code == 201
    assert response.json()["receipt_number"].startswith("RCP-")
    refreshed = client.get(f"/dues/{due['id']}").json()
    assert refreshed["status"] == "partial"
    assert Decimal(refreshed["paid_amount"]) == Decimal("400.00")


def test_overpayment_is_unprocessable(client, as_admin, create_flat):
    due = _create_due(client, create_flat())

    response = client.post(
        "/payments/",
        json={"due_id": due["id"], "amount": "5000.00", "payment_date": "2025-03-10", "payment_method": "cash"},
    )

    assert response.status_code == 422
    assert client.get(f"/dues/{due['id']}").json()["status"] == "pending"


def test_duplicate_period_due_conflicts(client, as_admin, create_flat):
    flat = create_flat()
    _create_due(client, flat)

    response = client.post("/dues/", json={"flat_id": flat.id, "amount": "1000.00", "month": 3, "year": 2025})

    assert response.status_code == 409


def test_unknown_due_is_not_found(client, as_admin):
    response = client.get("/dues/missing")

    assert response.status_code == 404
    assert response.json()["path"].endswith("/dues/missing")


def test_non_positive_amount_fails_validation(client, as_admin, create_flat):
    response = client.post("/dues/", json={"flat_id": create_flat().id, "amount": "0", "month": 3, "year": 2025})

    assert response.status_code == 422
    assert response.json()["detail"] == "Validation failed."


def test_expense_cannot_be_approved_twice(client, as_admin, create_apartment):
    apartment = create_apartment()
    created = client.post(
        "/expenses/",
        json={
            "apartment_id": apartment.id,
            "category": "cleaning",
            "amount": "750.00",
            "description": "Stairwell cleaning",
            "expense_date": "2025-03-01",
        },
    ).json()

    first = client.post(f"/expenses/{created['id']}/approve")
    second = client.post(f"/expenses/{created['id']}/approve")

    assert first.status_code == 200
    assert first.json()["approved_by"] == as_admin.id
    assert second.status_code == 409


def test_apply_late_fees_endpoint(client, as_admin, create_due):
    create_due(due_date=date(2020, 1, 15), month=1, year=2020)

    response = client.post("/dues/apply-late-fees")

    assert response.status_code == 200
    assert response.json() == {"updated": 1}


def test_health_reports_database_ok(client):
    response = client.get("/system/health")

    assert response.json() == {"status": "ok", "database": "ok"}
    assert "X-Request-ID" in response.headers


def test_login_and_read_profile(client, create_admin):
    create_admin(email="login@example.com", password="s3cret-pass")

    response = client.post("/auth/login", data={"username": "LOGIN@example.com", "password": "s3cret-pass"})

    assert response.status_code == 200
    token = response.json()["access_token"]
    me = client.get("/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert me.json()["email"] == "login@example.com"
    assert me.json()["last_login"] is not None


def test_login_with_wrong_password(client, create_admin):
    create_admin(email="login@example.com", password="s3cret-pass")

    response = client.post("/auth/login", data={"username": "login@example.com", "password": "nope"})

    assert response.status_code == 401


def test_requests_without_token_are_rejected(client):
    assert client.get("/dues/").status_code == 401


def test_only_super_admin_deletes_apartments(client, db_session, create_admin, create_apartment):
    apartment = create_apartment()

    _override_user(create_admin(email="site@example.com"))
    assert client.delete(f"/apartments/{apartment.id}").status_code == 403

    _override_user(create_admin(email="root@example.com", role="super-admin"))
    assert client.delete(f"/apartments/{apartment.id}").status_code == 204
    db_session.expire_all()
    assert db_session.get(Apartment, apartment.id).is_deleted is True


def test_dues_export_downloads_csv_and_is_audited(client, db_session, as_admin, create_due):
    create_due(amount="450.00", month=2)

    response = client.get("/reports/dues.csv")

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    assert "attachment; filename=\"dues_" in response.headers["content-disposition"]
    assert response.text.splitlines()[1].startswith("February,2025,450.00")
    assert db_session.query(AuditLog).filter(AuditLog.action == "export", AuditLog.entity_id == "dues").count() == 1
