from __future__ import annotations

from app.models.activity_log import ActivityLog
from app.models.attendance import AttendanceRecord, ChurchService


def _create_service(client, **overrides):
    payload = {
        "title": "Sabbath Divine Service",
        "service_type": "divine_service",
        "service_date": "2026-10-10",
        "start_time": "10:30:00",
        "end_time": "12:30:00",
        "location": "Main sanctuary",
    }
    payload.update(overrides)
    response = client.post("/church-services", json=payload)
    assert response.status_code == 201, response.text
    return response.json()


def test_secretary_creates_and_fetches_service(client, authorize, secretary_user):
    authorize(secretary_user)

    created = _create_service(client)

    assert created["service_type"] == "divine_service"
    assert created["attendance_count"] == 0
    assert created["created_by_id"] == secretary_user.id
    fetched = client.get(f"/church-services/{created['id']}")
    assert fetched.status_code == 200
    assert fetched.json()["title"] == "Sabbath Divine Service"


def test_service_rejects_bad_type_and_time_window(client, authorize, secretary_user):
    authorize(secretary_user)

    bad_type = client.post(
        "/church-services",
        json={"title": "Vespers", "service_type": "vespers", "service_date": "2026-10-10"},
    )
    bad_window = client.post(
        "/church-services",
        json={"title": "Vespers", "service_date": "2026-10-10", "start_time": "18:00:00", "end_time": "17:00:00"},
    )

    assert bad_type.status_code == 422
    assert bad_window.status_code == 422


def test_list_services_filters_by_date_range_and_type(client, authorize, secretary_user):
    authorize(secretary_user)
    _create_service(client, title="Early", service_date="2026-09-05")
    october = _create_service(client, title="October", service_date="2026-10-03")
    prayer = _create_service(client, title="Prayer", service_type="prayer_meeting", service_date="2026-10-07")
    _create_service(client, title="Late", service_date="2026-11-14")

    in_range = client.get("/church-services", params={"start_date": "2026-10-01", "end_date": "2026-10-31"})
    assert in_range.status_code == 200
    assert [item["id"] for item in in_range.json()] == [prayer["id"], october["id"]]

    by_type = client.get("/church-services", params={"service_type": "prayer_meeting"})
    assert [item["id"] for item in by_type.json()] == [prayer["id"]]

    reversed_range = client.get("/church-services", params={"start_date": "2026-10-31", "end_date": "2026-10-01"})
    assert reversed_range.status_code == 400


def test_update_service_rejects_clearing_required_fields(client, authorize, pastor_user):
    authorize(pastor_user)
    service = _create_service(client)

    cleared = client.patch(f"/church-services/{service['id']}", json={"service_date": None})
    renamed = client.patch(f"/church-services/{service['id']}", json={"title": "Communion Service"})

    assert cleared.status_code == 400
    assert renamed.status_code == 200
    assert renamed.json()["title"] == "Communion Service"


def test_check_in_is_unique_per_member(client, authorize, secretary_user, member_user, user_factory, db_session):
    john = user_factory("john.mwangi@example.com", "John Mwangi", "member")
    authorize(secretary_user)
    service = _create_service(client)

    first = client.post(f"/church-services/{service['id']}/attendance", json={"user_ids": [member_user.id]})
    assert first.status_code == 201, first.text
    assert [item["user_id"] for item in first.json()] == [member_user.id]
    assert first.json()[0]["full_name"] == "Mary Achieng"
    assert first.json()[0]["checked_in_by_id"] == secretary_user.id

    again = client.post(
        f"/church-services/{service['id']}/attendance",
        json={"user_ids": [member_user.id, john.id, john.id]},
    )
    assert again.status_code == 201
    assert sorted(item["user_id"] for item in again.json()) == sorted([member_user.id, john.id])
    assert db_session.query(AttendanceRecord).count() == 2
    assert client.get(f"/church-services/{service['id']}").json()["attendance_count"] == 2


def test_check_in_unknown_member_writes_nothing(client, authorize, secretary_user, member_user, db_session):
    authorize(secretary_user)
    service = _create_service(client)

    response = client.post(
        f"/church-services/{service['id']}/attendance",
        json={"user_ids": [member_user.id, 9999]},
    )

    assert response.status_code == 400
    assert response.json()["detail"] == "Member not found: 9999"
    assert db_session.query(AttendanceRecord).count() == 0


def test_check_in_requires_members(client, authorize, secretary_user):
    authorize(secretary_user)
    service = _create_service(client)

    response = client.post(f"/church-services/{service['id']}/attendance", json={"user_ids": []})

    assert response.status_code == 422


def test_remove_attendance(client, authorize, secretary_user, member_user, db_session):
    authorize(secretary_user)
    service = _create_service(client)
    client.post(f"/church-services/{service['id']}/attendance", json={"user_ids": [member_user.id]})

    removed = client.delete(f"/church-services/{service['id']}/attendance/{member_user.id}")
    missing = client.delete(f"/church-services/{service['id']}/attendance/{member_user.id}")

    assert removed.status_code == 204
    assert missing.status_code == 404
    assert db_session.query(AttendanceRecord).count() == 0


def test_delete_service_removes_its_attendance(client, authorize, secretary_user, member_user, db_session):
    authorize(secretary_user)
    service = _create_service(client)
    client.post(f"/church-services/{service['id']}/attendance", json={"user_ids": [member_user.id]})

    response = client.delete(f"/church-services/{service['id']}")

    assert response.status_code == 204
    assert db_session.query(ChurchService).count() == 0
    assert db_session.query(AttendanceRecord).count() == 0
    assert client.get(f"/church-services/{service['id']}").status_code == 404
    entry = db_session.query(ActivityLog).filter(ActivityLog.action == "service_deleted").one()
    assert entry.ip_address == "testclient"


def test_attendance_stats(client, authorize, secretary_user, member_user, user_factory):
    john = user_factory("john.mwangi@example.com", "John Mwangi", "member")
    ruth = user_factory("ruth.njeri@example.com", "Ruth Njeri", "member")
    authorize(secretary_user)
    divine = _create_service(client, service_date="2026-10-03")
    prayer = _create_service(client, title="Prayer", service_type="prayer_meeting", service_date="2026-10-07")
    _create_service(client, title="Outside range", service_date="2026-12-05")
    client.post(f"/church-services/{divine['id']}/attendance", json={"user_ids": [member_user.id, john.id, ruth.id]})
    client.post(f"/church-services/{prayer['id']}/attendance", json={"user_ids": [john.id]})

    response = client.get("/church-services/stats", params={"start_date": "2026-10-01", "end_date": "2026-10-31"})

    assert response.status_code == 200, response.text
    body = response.json()
    assert body["total_services"] == 2
    assert body["total_attendance"] == 4
    assert body["average_attendance"] == 2
    assert body["by_service_type"]["divine_service"] == {"count": 1, "total_attendance": 3}
    assert body["by_service_type"]["prayer_meeting"] == {"count": 1, "total_attendance": 1}


def test_attendance_roles(client, authorize, elder_user, treasurer_user, member_user):
    authorize(elder_user)
    assert client.get("/church-services").status_code == 200
    write = client.post("/church-services", json={"title": "Vespers", "service_date": "2026-10-10"})
    assert write.status_code == 403

    authorize(treasurer_user)
    assert client.get("/church-services").status_code == 403

    authorize(member_user)
    assert client.get("/church-services/stats").status_code == 403
