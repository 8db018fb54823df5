from conftest import PASSWORD, seed_user, fetch
from portal.models import User


def register(client, **overrides):
    payload = {
        "email": "New.Person@Example.com ",
        "password": "Passw0rd",
        "first_name": "New",
        "last_name": "Person",
    }
    payload.update(overrides)
    return client.post("/auth/register", json=payload)


def test_register_normalizes_email_and_returns_token(client):
    response = register(client)
    assert response.status_code == 201
    body = response.get_json()
    assert body["email"] == "new.person@example.com"
    assert body["role"] == "USER"
    assert body["token_type"] == "Bearer"
    assert body["access_token"]


def test_register_ignores_requested_role(client):
    response = register(client, role="ADMIN")
    assert response.status_code == 201
    assert fetch(User, response.get_json()["id"]).role == "USER"


def test_register_duplicate_email_is_case_insensitive(client):
    assert register(client).status_code == 201
    response = register(client, email="NEW.PERSON@example.com")
    assert response.status_code == 400
    assert response.get_json()["message"] == "Email already in use"


def test_register_reports_all_invalid_fields(client):
    response = client.post("/auth/register", json={"email": "not-an-email", "password": "123", "first_name": "A"})
    assert response.status_code == 400
    body = response.get_json()
    assert body["error"] == "Bad Request"
    assert set(body["fields"]) == {"email", "password", "first_name", "last_name"}


def test_login_success_and_token_works(client):
    seed_user("ENGINEER", email="eng@example.com")
    response = client.post("/auth/login", json={"email": "ENG@example.com", "password": PASSWORD})
    assert response.status_code == 200
    token = response.get_json()["access_token"]

    me = client.get("/api/users/me", headers={"Authorization": f"Bearer {token}"})
    assert me.status_code == 200
    assert me.get_json()["role"] == "ENGINEER"


def test_login_wrong_password(client):
    seed_user(email="someone@example.com")
    response = client.post("/auth/login", json={"email": "someone@example.com", "password": "wrong"})
    assert response.status_code == 401
    body = response.get_json()
    assert body["status"] == 401
    assert body["message"] == "Invalid email or password"
    assert "timestamp" in body


def test_login_inactive_account(client):
    seed_user(email="gone@example.com", is_active=False)
    response = client.post("/auth/login", json={"email": "gone@example.com", "password": PASSWORD})
    assert response.status_code == 401


def test_missing_and_invalid_token(client):
    assert client.get("/api/users/me").status_code == 401
    response = client.get("/api/users/me", headers={"Authorization": "Bearer garbage"})
    assert response.status_code == 401
    assert response.get_json()["message"] == "Invalid token"


def test_deactivated_user_token_rejected(client):
    u = seed_user(is_active=False)
    assert client.get("/api/users/me", headers=u["headers"]).status_code == 401
