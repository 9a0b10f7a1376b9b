from __future__ import annotations


def test_super_admin_reads_activity_feed(client, authorize, super_admin_user, treasurer_user, make_pledge):
    pledge = make_pledge(amount="10000")
    authorize(treasurer_user)
    client.post(f"/pledges/{pledge.id}/payments", json={"amount": "4000", "payment_method": "mpesa"})
    client.post(f"/pledges/{pledge.id}/cancel")

    authorize(super_admin_user)
    response = client.get("/activity-logs", params={"entity_type": "pledge"})

    assert response.status_code == 200
    actions = [entry["action"] for entry in response.json()]
    assert actions == ["pledge_cancelled", "pledge_payment_recorded"]
    assert response.json()[1]["user_id"] == treasurer_user.id

    limited = client.get("/activity-logs", params={"limit": 1})
    assert len(limited.json()) == 1

    filtered = client.get("/activity-logs", params={"action": "pledge_payment_recorded"})
    assert len(filtered.json()) == 1


def test_activity_feed_requires_super_admin(client, authorize, treasurer_user):
    authorize(treasurer_user)

    assert client.get("/activity-logs").status_code == 403
