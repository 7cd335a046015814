from pianosearch.db import models


def test_signup_returns_token_and_user(api_client):
    response = api_client.post(
        "/api/v1/auth/signup",
        json={"email": "Teacher@Example.com", "password": "password123", "name": "先生"},
    )

    assert response.status_code == 201
    body = response.json()
    assert body["token_type"] == "bearer"
    assert body["access_token"]
    assert body["user"]["email"] == "sensei@example.com"
    assert body["user"]["name"] == "先生"


def test_signup_rejects_duplicate_email(api_client):
    payload = {"email": "dup@example.com", "password": "password123", "name": "山田"}
    assert api_client.post("/api/v1/auth/signup", json=payload).status_code == 201

    response = api_client.post(
        "/api/v1/auth/signup",
        json={"email": "DUP@example.com", "password": "password456", "name": "山田"},
    )
    assert response.status_code == 409


def test_signup_requires_name(api_client):
    response = api_client.post(
        "/api/v1/auth/signup",
        json={"email": "noname@example.com", "password": "password123"},
    )
    assert response.status_code == 422


def test_signup_rejects_short_password(api_client):
    response = api_client.post(
        "/api/v1/auth/signup",
        json={"email": "short@example.com", "password": "1234567", "name": "山田"},
    )
    assert response.status_code == 422


def test_login_and_me(api_client, session_factory):
    api_client.post(
        "/api/v1/auth/signup",
        json={"email": "login@example.com", "password": "password123", "name": "山田"},
    )

    response = api_client.post(
        "/api/v1/auth/login",
        data={"username": "LOGIN@example.com", "password": "password123"},
    )
    assert response.status_code == 200
    token = response.json()["access_token"]

    me = api_client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert me.status_code == 200
    assert me.json()["email"] == "login@example.com"

    with session_factory() as db:
        user = db.query(models.User).filter_by(email="login@example.com").one()
        assert user.last_login_at is not None


def test_login_rejects_wrong_password(api_client):
    api_client.post(
        "/api/v1/auth/signup",
        json={"email": "wrong@example.com", "password": "password123", "name": "山田"},
    )
    response = api_client.post(
        "/api/v1/auth/login",
        data={"username": "wrong@example.com", "password": "password999"},
    )
    assert response.status_code == 400


def test_me_requires_valid_token(api_client):
    assert api_client.get("/api/v1/auth/me").status_code == 401
    response = api_client.get("/api/v1/auth/me", headers={"Authorization": "Bearer broken"})
    assert response.status_code == 401


def test_update_profile(api_client, auth_headers):
    headers = auth_headers()
    response = api_client.patch(
        "/api/v1/auth/me",
        json={"classroom_name": "ひまわり音楽教室"},
        headers=headers,
    )
    assert response.status_code == 200
    assert response.json()["classroom_name"] == "ひまわり音楽教室"
