from __future__ import annotations

from datetime import date, timedelta
from decimal import Decimal

from app.models.payment import Payment


def test_pledge_summary(client, authorize, treasurer_user, make_pledge):
    today = date.today()
    make_pledge(amount="10000", fulfilled_amount="4000", due_date=today - timedelta(days=2))
    make_pledge(amount="5000", fulfilled_amount="1000", due_date=today + timedelta(days=3))
    make_pledge(amount="5000", fulfilled_amount="5000", status="fulfilled", due_date=today - timedelta(days=1))
    make_pledge(amount="2000", status="cancelled")
    authorize(treasurer_user)

    response = client.get("/reports/pledges/summary")

    assert response.status_code == 200, response.text
    body = response.json()
    assert Decimal(body["total_pledged"]) == Decimal("22000")
    assert Decimal(body["total_fulfilled"]) == Decimal("10000")
    assert body["pending_count"] == 2
    assert body["fulfilled_count"] == 1
    assert body["cancelled_count"] == 1
    assert body["overdue_count"] == 1
    assert body["upcoming_due_count"] == 1
    assert body["overall_progress"] == 45.5
    assert body["currency"] == "KES"


def test_pledge_summary_with_no_pledges(client, authorize, pastor_user):
    authorize(pastor_user)

    body = client.get("/reports/pledges/summary").json()

    assert Decimal(body["total_pledged"]) == Decimal("0")
    assert body["overall_progress"] == 0.0


def test_contribution_report_groups_by_category_and_month(
    client, authorize, elder_user, member_user, building_fund, db_session
):
    for amount, paid_on in (("1000", date(2026, 8, 14)), ("2500", date(2026, 9, 2)), ("500", date(2026, 9, 20))):
        db_session.add(
            Payment(
                user_id=member_user.id,
                category_id=building_fund.id,
                amount=Decimal(amount),
                payment_method="mpesa",
                payment_date=paid_on,
            )
        )
    db_session.commit()
    authorize(elder_user)

    response = client.get("/reports/contributions", params={"from": "2026-09-01", "to": "2026-09-30"})

    assert response.status_code == 200, response.text
    body = response.json()
    assert Decimal(body["grand_total"]) == Decimal("3000")
    assert body["by_category"][0]["category_code"] == "BUILDING"
    assert body["by_category"][0]["payment_count"] == 2
    assert [item["month"] for item in body["by_month"]] == ["2026-09"]


def test_contribution_report_rejects_inverted_range(client, authorize, treasurer_user):
    authorize(treasurer_user)

    response = client.get("/reports/contributions", params={"from": "2026-10-01", "to": "2026-09-01"})

    assert response.status_code == 400


def test_members_cannot_read_reports(client, authorize, member_user):
    authorize(member_user)

    assert client.get("/reports/pledges/summary").status_code == 403
