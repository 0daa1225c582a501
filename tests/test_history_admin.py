from datetime import datetime, timedelta

import pytest

from solar_portal.models.payment import PaymentRecord
from solar_portal.models.profile import UserRole
from solar_portal.models.purchase import ElectricityPackage, Purchase

from conftest import ADMIN_ID, OTHER_USER_ID, USER_ID


@pytest.fixture()
def payments(db_session):
    base = datetime(2025, 3, 1, 12, 0, 0)
    rows = [
        PaymentRecord(user_id=USER_ID, amount=1000, description="old", authority="A-old",
                      status="success", ref_id="R1", created_at=base),
        PaymentRecord(user_id=USER_ID, amount=2500, description="mid", authority="A-mid",
                      status="pending", created_at=base + timedelta(days=1)),
        PaymentRecord(user_id=USER_ID, amount=4000, description="new", authority="A-new",
                      status="completed", created_at=base + timedelta(days=2)),
        PaymentRecord(user_id=USER_ID, amount=9000, description="nope", authority="A-fail",
                      status="failed", created_at=base + timedelta(hours=3)),
        PaymentRecord(user_id=OTHER_USER_ID, amount=7000, description="theirs", authority="B1",
                      status="success", created_at=base + timedelta(days=3)),
    ]
    db_session.add_all(rows)
    db_session.commit()
    return rows


@pytest.fixture()
def purchases(db_session):
    base = datetime(2025, 3, 1, 12, 0, 0)
    monthly = ElectricityPackage(name="Monthly 300", kwh_amount=300, duration_months=1, price=450000)
    yearly = ElectricityPackage(name="Yearly 4000", kwh_amount=4000, duration_months=12, price=5400000)
    db_session.add_all([monthly, yearly])
    db_session.flush()
    db_session.add_all([
        Purchase(user_id=USER_ID, package_id=monthly.id, amount=450000, status="completed", created_at=base),
        Purchase(user_id=USER_ID, package_id=yearly.id, amount=5400000, status="completed",
                 created_at=base + timedelta(days=5)),
        Purchase(user_id=USER_ID, package_id=monthly.id, amount=450000, status="pending",
                 created_at=base + timedelta(days=2)),
        Purchase(user_id=OTHER_USER_ID, package_id=yearly.id, amount=5400000, status="completed",
                 created_at=base + timedelta(days=9)),
    ])
    db_session.commit()


@pytest.fixture()
def admin(db_session):
    db_session.add(UserRole(user_id=ADMIN_ID, role="admin"))
    db_session.commit()


def test_history_lists_only_callers_payments_newest_first(client, auth_headers, payments):
    resp = client.get("/api/payment/history", headers=auth_headers())

    assert resp.status_code == 200
    assert [p["description"] for p in resp.json()] == ["new", "mid", "nope", "old"]


def test_history_requires_authentication(client):
    assert client.get("/api/payment/history").status_code == 401


def test_summary_counts_paid_and_pending(client, auth_headers, payments):
    resp = client.get("/api/payment/summary", headers=auth_headers())

    assert resp.json() == {
        "total_payments": 4,
        "pending_payments": 1,
        "successful_payments": 2,
        "total_spent": 5000,
        "active_purchases": 0,
    }


def test_summary_for_user_without_payments(client, auth_headers):
    resp = client.get("/api/payment/summary", headers=auth_headers())

    assert resp.json() == {
        "total_payments": 0,
        "pending_payments": 0,
        "successful_payments": 0,
        "total_spent": 0,
        "active_purchases": 0,
    }


def test_summary_counts_active_purchases(client, auth_headers, purchases):
    resp = client.get("/api/payment/summary", headers=auth_headers())

    assert resp.json()["active_purchases"] == 2
    assert resp.json()["total_payments"] == 0


def test_purchases_list_callers_rows_with_package_newest_first(client, auth_headers, purchases):
    resp = client.get("/api/payment/purchases", headers=auth_headers())

    assert resp.status_code == 200
    rows = resp.json()
    assert [(p["package"]["name"], p["status"]) for p in rows] == [
        ("Yearly 4000", "completed"),
        ("Monthly 300", "pending"),
        ("Monthly 300", "completed"),
    ]
    assert rows[0]["package"]["kwh_amount"] == 4000
    assert rows[0]["package"]["duration_months"] == 12
    assert rows[0]["amount"] == 5400000


def test_purchases_require_authentication(client):
    assert client.get("/api/payment/purchases").status_code == 401


def test_admin_console_rejects_regular_users(client, auth_headers, payments):
    assert client.get("/api/admin/payments", headers=auth_headers()).status_code == 403
    assert client.get("/api/admin/payments").status_code == 401


def test_admin_lists_all_payments_with_distribution(client, auth_headers, payments, admin):
    resp = client.get("/api/admin/payments", headers=auth_headers(user_id=ADMIN_ID))

    assert resp.status_code == 200
    body = resp.json()
    assert body["total"] == 5
    assert body["status_distribution"] == {"success": 2, "pending": 1, "completed": 1, "failed": 1}
    assert body["payments"][0]["user_id"] == OTHER_USER_ID


def test_admin_filters_by_status_and_paginates(client, auth_headers, payments, admin):
    resp = client.get(
        "/api/admin/payments",
        params={"status": "success", "limit": 1, "offset": 1},
        headers=auth_headers(user_id=ADMIN_ID),
    )

    body = resp.json()
    assert body["total"] == 2
    assert [p["authority"] for p in body["payments"]] == ["A-old"]


def test_admin_delete_keeps_audit_trail(client, auth_headers, payments, admin, session_factory):
    target = payments[1]

    resp = client.delete(f"/api/admin/payments/{target.id}", headers=auth_headers(user_id=ADMIN_ID))

    assert resp.status_code == 200
    assert resp.json() == {"success": True, "deleted": target.id}

    db = session_factory()
    try:
        assert db.get(PaymentRecord, target.id) is None
    finally:
        db.close()

    chain = client.get("/api/admin/audit/A-mid/verify", headers=auth_headers(user_id=ADMIN_ID)).json()
    assert chain["valid"] is True
    assert chain["total_entries"] == 1


def test_admin_delete_unknown_payment(client, auth_headers, admin):
    resp = client.delete("/api/admin/payments/does-not-exist", headers=auth_headers(user_id=ADMIN_ID))

    assert resp.status_code == 404


def test_admin_reads_payment_audit_trail(client, gateway, auth_headers, admin, session_factory):
    client.post("/api/payment/request", json={"amount": 300000, "description": "bill"}, headers=auth_headers())
    client.post("/api/payment/verify", json={"authority": "A1", "status": "NOK"}, headers=auth_headers())

    db = session_factory()
    try:
        payment_id = db.query(PaymentRecord).filter(PaymentRecord.authority == "A1").one().id
    finally:
        db.close()

    resp = client.get(f"/api/admin/payments/{payment_id}/audit", headers=auth_headers(user_id=ADMIN_ID))

    assert resp.status_code == 200
    assert [e["action"] for e in resp.json()] == ["PAYMENT_REQUESTED", "PAYMENT_CANCELLED"]
