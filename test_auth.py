from datetime import timedelta

from jose import jwt

from conftest import PASSWORD, auth_headers
from database import utcnow
from models import User


def register(client, email="ada@example.com", name="Ada", password=PASSWORD):
    return client.post("/api/auth/register", json={"name": name, "email": email, "password": password})


# --- Registration ---
def test_register_returns_token_for_new_user(client, settings):
    response = register(client)
    assert response.status_code == 201
    body = response.json()

    assert body["success"] is True
    assert body["user"]["email"] == "ada@example.com"
    assert "hashedPassword" not in body["user"]

    payload = jwt.decode(body["token"], settings.secret_key, algorithms=[settings.algorithm])
    assert payload["user_id"] == body["user"]["id"]


def test_register_lowercases_email_and_sets_cookie(client):
    response = register(client, email="Grace@Example.COM")
    assert response.status_code == 201
    assert response.json()["user"]["email"] == "grace@example.com"
    assert response.cookies.get("token") == response.json()["token"]


def test_register_duplicate_email_conflicts(client):
    assert register(client).status_code == 201
    response = register(client, email="ADA@example.com")
    assert response.status_code == 409
    assert response.json() == {"success": False, "message": "User already exists"}


def test_register_conflicts_when_unique_constraint_fires(client, monkeypatch):
    # A concurrent registration can pass the lookup and still lose at commit
    assert register(client).status_code == 201
    monkeypatch.setattr("routers.auth._email_taken", lambda db, email: False)
    response = register(client)
    assert response.status_code == 409
    assert response.json() == {"success": False, "message": "User already exists"}


def test_register_rejects_invalid_input(client):
    response = register(client, email="not-an-email", password="123")
    assert response.status_code == 400
    body = response.json()
    assert body["success"] is False
    fields = {err["field"] for err in body["errors"]}
    assert {"email", "password"} <= fields


def test_register_sends_welcome_mail_with_verification_link(client, mailer):
    register(client)
    assert len(mailer.outbox) == 1
    assert mailer.outbox[0]["to"] == "ada@example.com"
    assert len(mailer.last_token("verify-email")) == 40


def test_register_survives_mail_failure(client, mailer):
    mailer.fail = True
    assert register(client).status_code == 201


# --- Login ---
def test_login_with_correct_password(client):
    register(client)
    response = client.post("/api/auth/login", json={"email": "ada@example.com", "password": PASSWORD})
    assert response.status_code == 200
    assert response.json()["token"]
    assert response.json()["user"]["name"] == "Ada"


def test_login_failures_are_indistinguishable(client):
    register(client)
    wrong_password = client.post("/api/auth/login", json={"email": "ada@example.com", "password": "wrong-one"})
    unknown_email = client.post("/api/auth/login", json={"email": "nobody@example.com", "password": PASSWORD})

    assert wrong_password.status_code == unknown_email.status_code == 401
    assert wrong_password.json() == unknown_email.json() == {"success": False, "message": "Invalid credentials"}


# --- Session ---
def test_me_requires_token(client):
    response = client.get("/api/auth/me")
    assert response.status_code == 401
    assert response.json()["success"] is False


def test_me_rejects_garbage_token(client):
    response = client.get("/api/auth/me", headers=auth_headers("not.a.jwt"))
    assert response.status_code == 401


def test_me_accepts_bearer_header_and_cookie(client):
    token = register(client).json()["token"]

    # The register response left the cookie on the client
    by_cookie = client.get("/api/auth/me")
    assert by_cookie.status_code == 200

    client.cookies.clear()
    by_header = client.get("/api/auth/me", headers=auth_headers(token))
    assert by_header.status_code == 200
    assert by_header.json()["user"] == {
        "id": by_cookie.json()["user"]["id"],
        "name": "Ada",
        "email": "ada@example.com",
        "role": "user",
        "avatar": None,
        "isEmailVerified": False,
    }


def test_logout_expires_cookie_but_not_token(client):
    token = register(client).json()["token"]
    response = client.post("/api/auth/logout", headers=auth_headers(token))
    assert response.status_code == 200
    assert 'token="none"' in response.headers["set-cookie"] or "token=none" in response.headers["set-cookie"]

    # No server-side revocation
    assert client.get("/api/auth/me", headers=auth_headers(token)).status_code == 200


# --- Profile and password ---
def test_update_profile(client, make_user):
    headers, _ = make_user()
    response = client.put("/api/auth/profile", json={"name": "<b>Renamed</b>"}, headers=headers)
    assert response.status_code == 200
    assert response.json()["user"]["name"] == "Renamed"


def test_update_profile_rejects_taken_email(client, make_user):
    _, other = make_user()
    headers, _ = make_user()
    response = client.put("/api/auth/profile", json={"email": other["email"]}, headers=headers)
    assert response.status_code == 409


def test_update_profile_conflicts_when_unique_constraint_fires(client, make_user, monkeypatch):
    _, other = make_user()
    headers, user = make_user()
    monkeypatch.setattr("routers.auth._email_taken", lambda db, email: False)

    response = client.put("/api/auth/profile", json={"email": other["email"]}, headers=headers)
    assert response.status_code == 409
    assert response.json()["message"] == "Email is already in use"
    assert client.get("/api/auth/me", headers=headers).json()["user"]["email"] == user["email"]


def test_update_password(client, make_user):
    headers, user = make_user()

    wrong = client.put(
        "/api/auth/password", json={"currentPassword": "nope", "newPassword": "brandnew1"}, headers=headers
    )
    assert wrong.status_code == 401

    ok = client.put(
        "/api/auth/password", json={"currentPassword": PASSWORD, "newPassword": "brandnew1"}, headers=headers
    )
    assert ok.status_code == 200
    assert ok.json()["token"]

    login = client.post("/api/auth/login", json={"email": user["email"], "password": "brandnew1"})
    assert login.status_code == 200


# --- Password reset ---
def test_forgot_password_unknown_email(client):
    response = client.post("/api/auth/forgot-password", json={"email": "ghost@example.com"})
    assert response.status_code == 404


def test_reset_token_works_exactly_once(client, mailer, db):
    register(client)
    assert client.post("/api/auth/forgot-password", json={"email": "ada@example.com"}).status_code == 200
    raw_token = mailer.last_token("reset-password")

    # Only the hash is stored
    user = db.query(User).filter(User.email == "ada@example.com").one()
    assert user.password_reset_token != raw_token

    first = client.put(f"/api/auth/reset-password/{raw_token}", json={"password": "resetpass1"})
    assert first.status_code == 200
    assert first.json()["token"]

    second = client.put(f"/api/auth/reset-password/{raw_token}", json={"password": "another1"})
    assert second.status_code == 400
    assert second.json()["message"] == "Invalid or expired token"

    login = client.post("/api/auth/login", json={"email": "ada@example.com", "password": "resetpass1"})
    assert login.status_code == 200

    db.expire_all()
    user = db.query(User).filter(User.email == "ada@example.com").one()
    assert user.password_reset_token is None
    assert user.password_reset_expires is None


def test_reset_token_expires(client, mailer, db):
    register(client)
    client.post("/api/auth/forgot-password", json={"email": "ada@example.com"})
    raw_token = mailer.last_token("reset-password")

    user = db.query(User).filter(User.email == "ada@example.com").one()
    user.password_reset_expires = utcnow() - timedelta(seconds=1)
    db.commit()

    response = client.put(f"/api/auth/reset-password/{raw_token}", json={"password": "resetpass1"})
    assert response.status_code == 400


def test_forgot_password_mail_failure_clears_reset(client, mailer, db):
    register(client)
    mailer.fail = True
    response = client.post("/api/auth/forgot-password", json={"email": "ada@example.com"})
    assert response.status_code == 500
    assert response.json()["message"] == "Email could not be sent"

    user = db.query(User).filter(User.email == "ada@example.com").one()
    assert user.password_reset_token is None
    assert user.password_reset_expires is None


# --- Email verification ---
def test_verify_email(client, mailer):
    token = register(client).json()["token"]
    verification_token = mailer.last_token("verify-email")

    assert client.get(f"/api/auth/verify-email/{verification_token}").status_code == 200
    me = client.get("/api/auth/me", headers=auth_headers(token)).json()
    assert me["user"]["isEmailVerified"] is True

    assert client.get(f"/api/auth/verify-email/{verification_token}").status_code == 400
