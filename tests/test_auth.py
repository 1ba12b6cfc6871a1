from datetime import datetime, timedelta, timezone

from app.models.user import User

PASSWORD = "correct-horse-battery"


def login(client, email, password=PASSWORD):
    return client.post("/auth/login", data={"username": email, "password": password})


def register(client, email="fresh@surveyflow.org"):
    return client.post("/auth/register", json={
        "email": email,
        "password": "long-enough-pw",
        "full_name": "Fresh Researcher",
        "organization": "Uni Lab",
        "research_area": "Sociology",
        "purpose": "Student wellbeing study",
    })


def test_login_returns_tokens(client, researcher):
    response = login(client, researcher.email)

    assert response.status_code == 200
    body = response.json()
    assert body["access_token"]
    assert body["refresh_token"]
    assert body["user"]["email"] == researcher.email
    assert body["user"]["role"] == "researcher"


def test_login_with_wrong_password(client, researcher):
    response = login(client, researcher.email, "wrong-password")
    assert response.status_code == 401


def test_me(client, researcher_headers):
    response = client.get("/auth/me", headers=researcher_headers)
    assert response.status_code == 200
    assert response.json()["email"] == "researcher@surveyflow.org"


def test_registration_verification_and_approval(client, db, admin_headers):
    response = register(client)
    assert response.status_code == 201
    assert response.json()["user"]["is_email_verified"] is False

    assert login(client, "fresh@surveyflow.org", "long-enough-pw").json()["code"] == "email_not_verified"

    user = db.query(User).filter_by(email="fresh@surveyflow.org").one()
    bad = client.post("/auth/verify-email", json={"email": user.email, "verification_code": "000000"})
    assert bad.status_code == 400

    verified = client.post(
        "/auth/verify-email",
        json={"email": user.email, "verification_code": user.email_verification_code},
    )
    assert verified.status_code == 200
    assert verified.json()["is_email_verified"] is True

    pending = login(client, "fresh@surveyflow.org", "long-enough-pw")
    assert pending.status_code == 403
    assert pending.json()["code"] == "pending_approval"

    client.patch(f"/admin/users/{user.id}", json={"action": "approve"}, headers=admin_headers)
    assert login(client, "fresh@surveyflow.org", "long-enough-pw").status_code == 200


def test_duplicate_registration(client, researcher):
    response = register(client, researcher.email)
    assert response.status_code == 400


def test_expired_verification_code(client, db):
    register(client)
    user = db.query(User).filter_by(email="fresh@surveyflow.org").one()
    user.email_verification_expires = datetime.now(timezone.utc) - timedelta(minutes=1)
    db.commit()

    response = client.post(
        "/auth/verify-email",
        json={"email": user.email, "verification_code": user.email_verification_code},
    )
    assert response.status_code == 400
    assert response.json()["code"] == "verification_code_expired"


def test_banned_user_cannot_login(client, user_factory):
    user_factory("banned@surveyflow.org", is_banned=True, ban_reason="spam")

    response = login(client, "banned@surveyflow.org")

    assert response.status_code == 403
    assert response.json()["code"] == "account_banned"
    assert "spam" in response.json()["message"]


def test_expired_ban_is_lifted_on_login(client, db, user_factory):
    user = user_factory(
        "was-banned@surveyflow.org",
        is_banned=True,
        ban_expires_at=datetime.now(timezone.utc) - timedelta(hours=1),
    )

    assert login(client, user.email).status_code == 200
    db.refresh(user)
    assert user.is_banned is False


def test_refresh_rotates_tokens(client, researcher):
    tokens = login(client, researcher.email).json()

    refreshed = client.post("/auth/refresh", json={"refresh_token": tokens["refresh_token"]})
    assert refreshed.status_code == 200
    assert refreshed.json()["access_token"]

    reused = client.post("/auth/refresh", json={"refresh_token": tokens["refresh_token"]})
    assert reused.status_code == 401


def test_access_token_is_not_a_refresh_token(client, researcher):
    tokens = login(client, researcher.email).json()
    response = client.post("/auth/refresh", json={"refresh_token": tokens["access_token"]})
    assert response.status_code == 401


def test_logout_revokes_refresh_token(client, researcher):
    tokens = login(client, researcher.email).json()
    headers = {"Authorization": f"Bearer {tokens['access_token']}"}

    assert client.post("/auth/logout", headers=headers).status_code == 200
    response = client.post("/auth/refresh", json={"refresh_token": tokens["refresh_token"]})
    assert response.status_code == 401
