from __future__ import annotations

from app.models.event import Event


def test_create_event_drops_pattern_for_one_off_events(client, authorize, secretary_user):
    authorize(secretary_user)

    response = client.post(
        "/events",
        json={
            "title": "Harvest Thanksgiving",
            "event_date": "2026-11-21",
            "start_time": "09:00:00",
            "end_time": "15:00:00",
            "location": "Church grounds",
            "recurrence_pattern": "yearly",
        },
    )

    assert response.status_code == 201, response.text
    body = response.json()
    assert body["is_recurring"] is False
    assert body["recurrence_pattern"] is None
    assert body["created_by_id"] == secretary_user.id


def test_recurring_event_keeps_pattern(client, authorize, pastor_user):
    authorize(pastor_user)

    response = client.post(
        "/events",
        json={
            "title": "Youth fellowship",
            "event_date": "2026-10-24",
            "is_recurring": True,
            "recurrence_pattern": " weekly on Saturday ",
        },
    )

    assert response.status_code == 201
    assert response.json()["recurrence_pattern"] == "weekly on Saturday"


def test_list_events_in_date_order_and_range(client, authorize, secretary_user):
    authorize(secretary_user)
    for title, day in (("Choir concert", "2026-12-12"), ("Baptism", "2026-10-31"), ("Camp meeting", "2026-08-01")):
        assert client.post("/events", json={"title": title, "event_date": day}).status_code == 201

    everything = client.get("/events")
    in_range = client.get("/events", params={"start_date": "2026-10-01", "end_date": "2026-12-31"})

    assert [item["title"] for item in everything.json()] == ["Camp meeting", "Baptism", "Choir concert"]
    assert [item["title"] for item in in_range.json()] == ["Baptism", "Choir concert"]


def test_update_event(client, authorize, secretary_user):
    authorize(secretary_user)
    event = client.post(
        "/events",
        json={"title": "Bible study", "event_date": "2026-10-20", "is_recurring": True, "recurrence_pattern": "weekly"},
    ).json()

    moved = client.patch(f"/events/{event['id']}", json={"event_date": "2026-10-27", "is_recurring": False})
    cleared = client.patch(f"/events/{event['id']}", json={"title": None})
    inverted = client.patch(f"/events/{event['id']}", json={"start_time": "19:00:00", "end_time": "18:00:00"})

    assert moved.status_code == 200, moved.text
    assert moved.json()["event_date"] == "2026-10-27"
    assert moved.json()["recurrence_pattern"] is None
    assert cleared.status_code == 400
    assert inverted.status_code == 400


def test_delete_event(client, authorize, secretary_user, db_session):
    authorize(secretary_user)
    event = client.post("/events", json={"title": "Bible study", "event_date": "2026-10-20"}).json()

    assert client.delete(f"/events/{event['id']}").status_code == 204
    assert client.get(f"/events/{event['id']}").status_code == 404
    assert db_session.query(Event).count() == 0


def test_event_roles(client, authorize, elder_user, member_user):
    authorize(elder_user)
    assert client.get("/events").status_code == 200
    assert client.post("/events", json={"title": "Retreat", "event_date": "2026-10-20"}).status_code == 403

    authorize(member_user)
    assert client.get("/events").status_code == 403
