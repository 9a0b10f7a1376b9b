from __future__ import annotations

import csv
import io
from decimal import Decimal

from app.models.payment import Payment


def _record(client, user_id: int, amount: str, category: str = "TITHE", **extra):
    payload = {"user_id": user_id, "category_code": category, "amount": amount, "payment_method": "mpesa"}
    payload.update(extra)
    return client.post("/payments", json=payload)


def test_default_categories_are_seeded(client, authorize, treasurer_user):
    authorize(treasurer_user)

    response = client.get("/payments/categories")

    assert response.status_code == 200
    codes = {item["code"] for item in response.json()}
    assert {"TITHE", "OFFERING", "BUILDING", "MISSIONS", "WELFARE"} <= codes


def test_secretary_can_view_categories_but_not_create(client, authorize, secretary_user):
    authorize(secretary_user)

    assert client.get("/payments/categories").status_code == 200
    response = client.post("/payments/categories", json={"name": "Youth Camp", "code": "youth"})
    assert response.status_code == 403


def test_create_category_normalizes_code_and_rejects_duplicates(client, authorize, treasurer_user):
    authorize(treasurer_user)

    created = client.post(
        "/payments/categories",
        json={"name": "Youth Camp", "code": " youth ", "target_amount": "150000"},
    )
    assert created.status_code == 201, created.text
    assert created.json()["code"] == "YOUTH"

    duplicate = client.post("/payments/categories", json={"name": "Youth", "code": "YOUTH"})
    assert duplicate.status_code == 409


def test_category_window_must_be_ordered(client, authorize, treasurer_user):
    authorize(treasurer_user)

    response = client.post(
        "/payments/categories",
        json={"name": "Harvest", "code": "HARVEST", "start_date": "2026-11-01", "end_date": "2026-10-01"},
    )

    assert response.status_code == 422


def test_record_and_fetch_payment(client, authorize, treasurer_user, member_user):
    authorize(treasurer_user)
    client.get("/payments/categories")

    response = _record(client, member_user.id, "1500", reference_number="RKT55A1", payment_date="2026-10-04")

    assert response.status_code == 201, response.text
    body = response.json()
    assert body["category"]["code"] == "TITHE"
    assert body["recorded_by_id"] == treasurer_user.id
    assert body["payment_date"] == "2026-10-04"

    fetched = client.get(f"/payments/{body['id']}")
    assert fetched.status_code == 200
    assert Decimal(fetched.json()["amount"]) == Decimal("1500")


def test_record_payment_validation(client, authorize, treasurer_user, member_user):
    authorize(treasurer_user)
    client.get("/payments/categories")

    assert _record(client, member_user.id, "0").status_code == 422
    assert _record(client, member_user.id, "100", category="UNKNOWN").status_code == 400
    assert _record(client, 9999, "100").status_code == 400


def test_payment_amount_is_not_editable(client, authorize, treasurer_user, member_user, db_session):
    authorize(treasurer_user)
    client.get("/payments/categories")
    payment_id = _record(client, member_user.id, "1500").json()["id"]

    response = client.patch(
        f"/payments/{payment_id}",
        json={"amount": "99999", "reference_number": "FIXED-REF", "payment_method": "cheque"},
    )

    assert response.status_code == 200
    body = response.json()
    assert Decimal(body["amount"]) == Decimal("1500")
    assert body["reference_number"] == "FIXED-REF"
    assert body["payment_method"] == "cheque"


def test_list_payments_filters(client, authorize, treasurer_user, member_user, user_factory):
    authorize(treasurer_user)
    client.get("/payments/categories")
    john = user_factory("john.mwangi@example.com", "John Mwangi", "member")
    _record(client, member_user.id, "1000", payment_date="2026-09-01")
    _record(client, member_user.id, "2000", category="OFFERING", payment_date="2026-10-01")
    _record(client, john.id, "3000", payment_date="2026-10-02")

    by_member = client.get("/payments", params={"user_id": member_user.id}).json()
    assert by_member["total"] == 2

    by_category = client.get("/payments", params={"category": "offering"}).json()
    assert [Decimal(item["amount"]) for item in by_category["items"]] == [Decimal("2000")]

    by_window = client.get("/payments", params={"start_date": "2026-10-01", "end_date": "2026-10-31"}).json()
    assert by_window["total"] == 2


def test_member_sees_only_own_payments(client, authorize, treasurer_user, member_user, user_factory):
    authorize(treasurer_user)
    client.get("/payments/categories")
    john = user_factory("john.mwangi@example.com", "John Mwangi", "member")
    _record(client, member_user.id, "1000")
    _record(client, john.id, "3000")

    authorize(member_user)
    mine = client.get("/payments/mine")
    assert mine.status_code == 200
    assert mine.json()["total"] == 1
    assert mine.json()["items"][0]["user_id"] == member_user.id

    assert client.get("/payments").status_code == 403


def test_export_payments_csv(client, authorize, treasurer_user, member_user):
    authorize(treasurer_user)
    client.get("/payments/categories")
    _record(client, member_user.id, "1250.50", reference_number="QWE123")

    response = client.get("/payments/export.csv")

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    rows = list(csv.reader(io.StringIO(response.text)))
    assert rows[0][0] == "payment_id"
    assert len(rows) == 2
    assert rows[1][2] == "1250.50"
    assert rows[1][4] == "QWE123"
    assert rows[1][5] == "TITHE"
    assert rows[1][8] == "Mary Achieng"


def test_payment_summary_groups_by_category(client, authorize, treasurer_user, member_user, db_session):
    authorize(treasurer_user)
    client.get("/payments/categories")
    _record(client, member_user.id, "1000")
    _record(client, member_user.id, "500")
    _record(client, member_user.id, "4000", category="BUILDING")

    response = client.get("/payments/reports/summary")

    assert response.status_code == 200
    body = response.json()
    assert body["currency"] == "KES"
    assert Decimal(body["grand_total"]) == Decimal("5500")
    assert [item["category_code"] for item in body["items"]] == ["BUILDING", "TITHE"]
    assert body["items"][1]["payment_count"] == 2
    assert db_session.query(Payment).count() == 3
