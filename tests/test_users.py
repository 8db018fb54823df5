from conftest import seed_user, fetch
from portal.models import User


def test_update_profile(client, user):
    response = client.put("/api/users/me", json={"first_name": "Ulla"}, headers=user["headers"])
    assert response.status_code == 200
    assert response.get_json()["first_name"] == "Ulla"
    assert response.get_json()["last_name"] == "Requester"


def test_change_password_flow(client, user):
    bad = client.put("/api/users/me/password", headers=user["headers"], json={
        "current_password": "wrong", "new_password": "Newpass1", "confirm_password": "Newpass1",
    })
    assert bad.status_code == 400

    mismatch = client.put("/api/users/me/password", headers=user["headers"], json={
        "current_password": "Secret123", "new_password": "Newpass1", "confirm_password": "Newpass2",
    })
    assert mismatch.status_code == 400

    weak = client.put("/api/users/me/password", headers=user["headers"], json={
        "current_password": "Secret123", "new_password": "alllower", "confirm_password": "alllower",
    })
    assert weak.status_code == 400
    assert "new_password" in weak.get_json()["fields"]

    ok = client.put("/api/users/me/password", headers=user["headers"], json={
        "current_password": "Secret123", "new_password": "Newpass1", "confirm_password": "Newpass1",
    })
    assert ok.status_code == 200
    login = client.post("/auth/login", json={"email": user["email"], "password": "Newpass1"})
    assert login.status_code == 200


def test_get_user_admin_or_self(client, user, other_user, admin):
    assert client.get(f"/api/users/{user['id']}", headers=user["headers"]).status_code == 200
    assert client.get(f"/api/users/{user['id']}", headers=admin["headers"]).status_code == 200
    denied = client.get(f"/api/users/{user['id']}", headers=other_user["headers"])
    assert denied.status_code == 403
    assert denied.get_json()["message"] == "You don't have permission to access this resource"


def test_unknown_user_is_404(client, admin):
    response = client.get("/api/users/999", headers=admin["headers"])
    assert response.status_code == 404
    assert response.get_json()["message"] == "User not found with id : 999"


def test_list_users_paginated_and_filtered(client, admin, user, engineer):
    response = client.get("/api/users?size=2&sort=id,asc", headers=admin["headers"])
    assert response.status_code == 200
    page = response.get_json()
    assert page["total_elements"] == 3
    assert page["total_pages"] == 2
    assert page["first"] is True and page["has_next"] is True
    assert [u["id"] for u in page["content"]] == [admin["id"], user["id"]]

    engineers = client.get("/api/users?role=engineer", headers=admin["headers"]).get_json()
    assert [u["id"] for u in engineers["content"]] == [engineer["id"]]

    assert client.get("/api/users", headers=user["headers"]).status_code == 403
    assert client.get("/api/users?sort=password_hash", headers=admin["headers"]).status_code == 400


def test_users_by_role(client, admin, engineer):
    seed_user("ENGINEER", is_active=False)
    response = client.get("/api/users/role/ENGINEER", headers=admin["headers"])
    assert [u["id"] for u in response.get_json()] == [engineer["id"]]


def test_admin_creates_user_with_role(client, admin):
    response = client.post("/api/users", headers=admin["headers"], json={
        "email": "staff@example.com", "password": "Passw0rd",
        "first_name": "Staff", "last_name": "Member", "role": "ENGINEER",
    })
    assert response.status_code == 201
    assert response.get_json()["role"] == "ENGINEER"


def test_admin_update_role_and_self_deactivation(client, admin, user):
    response = client.put(f"/api/users/{user['id']}/admin", json={"role": "ENGINEER"}, headers=admin["headers"])
    assert response.status_code == 200
    assert fetch(User, user["id"]).role == "ENGINEER"

    self_off = client.put(f"/api/users/{admin['id']}/admin", json={"is_active": False}, headers=admin["headers"])
    assert self_off.status_code == 400
    assert client.post(f"/api/users/{admin['id']}/deactivate", headers=admin["headers"]).status_code == 400


def test_deactivate_and_activate(client, admin, user):
    assert client.post(f"/api/users/{user['id']}/deactivate", headers=admin["headers"]).status_code == 200
    assert fetch(User, user["id"]).is_active is False
    assert client.get("/api/users/me", headers=user["headers"]).status_code == 401

    assert client.post(f"/api/users/{user['id']}/activate", headers=admin["headers"]).status_code == 200
    assert fetch(User, user["id"]).is_active is True
