from __future__ import annotations

import pytest

from app.models.user import User
from app.schemas.member import normalize_member_phone


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("0712345678", "+254712345678"),
        ("+254 712 345 678", "+254712345678"),
        ("712345678", "+254712345678"),
    ],
)
def test_normalize_member_phone(raw, expected):
    assert normalize_member_phone(raw) == expected


def test_normalize_member_phone_rejects_foreign_numbers():
    with pytest.raises(ValueError):
        normalize_member_phone("+1 202 555 0143")


def test_secretary_registers_member(client, authorize, secretary_user, db_session):
    authorize(secretary_user)

    response = client.post(
        "/members",
        json={
            "first_name": "Esther",
            "last_name": "Wambui",
            "phone": "0722000111",
            "gender": "Female",
            "marital_status": "married",
        },
    )

    assert response.status_code == 201, response.text
    body = response.json()
    assert body["full_name"] == "Esther Wambui"
    assert body["phone"] == "+254722000111"
    assert body["gender"] == "female"
    assert body["membership_number"] == f"MBR-{body['id']:05d}"

    user = db_session.get(User, body["user_id"])
    assert user.full_name == "Esther Wambui"
    assert "member" in user.role_names


def test_register_member_for_existing_user(client, authorize, secretary_user, member_user):
    authorize(secretary_user)
    payload = {"user_id": member_user.id, "first_name": "Mary", "last_name": "Achieng", "membership_number": "SDA-001"}

    created = client.post("/members", json=payload)
    assert created.status_code == 201, created.text
    assert created.json()["user_id"] == member_user.id
    assert created.json()["membership_number"] == "SDA-001"

    again = client.post("/members", json=payload)
    assert again.status_code == 409


def test_invalid_phone_is_rejected(client, authorize, secretary_user):
    authorize(secretary_user)

    response = client.post("/members", json={"first_name": "Ann", "last_name": "Moraa", "phone": "12345"})

    assert response.status_code == 422


def test_list_and_search_members(client, authorize, secretary_user, pastor_user):
    authorize(secretary_user)
    client.post("/members", json={"first_name": "Esther", "last_name": "Wambui"})
    client.post("/members", json={"first_name": "David", "last_name": "Kiprono"})

    authorize(pastor_user)
    listing = client.get("/members")
    assert listing.status_code == 200
    assert listing.json()["total"] == 2

    search = client.get("/members", params={"search": "kipro"})
    assert [item["last_name"] for item in search.json()["items"]] == ["Kiprono"]

    assert client.post("/members", json={"first_name": "No", "last_name": "Access"}).status_code == 403


def test_update_member_syncs_user_name(client, authorize, secretary_user, db_session):
    authorize(secretary_user)
    member_id = client.post("/members", json={"first_name": "Esther", "last_name": "Wambui"}).json()["id"]

    response = client.patch(f"/members/{member_id}", json={"last_name": "Njeri"})

    assert response.status_code == 200
    assert response.json()["full_name"] == "Esther Njeri"
    user = db_session.get(User, response.json()["user_id"])
    db_session.refresh(user)
    assert user.full_name == "Esther Njeri"


def test_archive_and_restore_member(client, authorize, secretary_user):
    authorize(secretary_user)
    member_id = client.post("/members", json={"first_name": "Esther", "last_name": "Wambui"}).json()["id"]

    archived = client.post(f"/members/{member_id}/archive")
    assert archived.status_code == 200
    assert archived.json()["is_active"] is False
    assert client.get("/members", params={"active": True}).json()["total"] == 0

    restored = client.post(f"/members/{member_id}/restore")
    assert restored.json()["is_active"] is True


def test_get_missing_member(client, authorize, secretary_user):
    authorize(secretary_user)

    assert client.get("/members/404").status_code == 404
