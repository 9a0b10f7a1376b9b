from __future__ import annotations

from jose import jwt

from app.core.config import settings


def _token(**claims) -> str:
    return jwt.encode(claims, settings.JWT_SECRET, algorithm=settings.JWT_ALG)


def test_whoami_with_valid_token(client, treasurer_user):
    response = client.get("/auth/whoami", headers={"Authorization": f"Bearer {_token(sub=str(treasurer_user.id))}"})

    assert response.status_code == 200
    body = response.json()
    assert body["user"] == "treasurer@example.com"
    assert body["roles"] == ["treasurer"]
    assert body["membership_number"] is None


def test_token_subject_can_be_email(client, member_user):
    token = _token(sub="external-7781", email="mary.achieng@example.com")

    response = client.get("/auth/whoami", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 200
    assert response.json()["id"] == member_user.id


def test_missing_token_is_rejected(client):
    assert client.get("/auth/whoami").status_code == 401


def test_bad_signature_is_rejected(client, treasurer_user):
    forged = jwt.encode({"sub": str(treasurer_user.id)}, "not-the-secret", algorithm="HS256")

    response = client.get("/auth/whoami", headers={"Authorization": f"Bearer {forged}"})

    assert response.status_code == 401


def test_inactive_user_is_rejected(client, member_user, db_session):
    member_user.is_active = False
    db_session.commit()

    response = client.get("/auth/whoami", headers={"Authorization": f"Bearer {_token(sub=str(member_user.id))}"})

    assert response.status_code == 401


def test_role_check_uses_token_identity(client, member_user, treasurer_user, make_pledge):
    pledge = make_pledge()
    member_token = _token(sub=str(member_user.id))
    treasurer_token = _token(sub=str(treasurer_user.id))

    denied = client.get(f"/pledges/{pledge.id}", headers={"Authorization": f"Bearer {member_token}"})
    allowed = client.get(f"/pledges/{pledge.id}", headers={"Authorization": f"Bearer {treasurer_token}"})

    assert denied.status_code == 403
    assert allowed.status_code == 200


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}
