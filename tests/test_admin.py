from conftest import seed_user, seed_ticket
from portal.utils import utcnow


def test_dashboard_requires_admin(client, engineer):
    assert client.get("/api/admin/dashboard/stats", headers=engineer["headers"]).status_code == 403
    assert client.get("/api/admin/dashboard/stats").status_code == 401


def test_dashboard_stats(client, admin, user, engineer):
    seed_user("USER", is_active=False)
    seed_ticket(user["id"])
    seed_ticket(user["id"], status="CLOSED", assignee_id=engineer["id"], closed_at=utcnow())

    stats = client.get("/api/admin/dashboard/stats?fresh=true", headers=admin["headers"]).get_json()
    assert stats["total_users"] == 4
    assert stats["active_users"] == 3
    assert stats["inactive_users"] == 1
    assert stats["total_engineers"] == 1
    assert stats["total_admins"] == 1
    assert stats["total_tickets"] == 2
    assert stats["new_tickets"] == 1
    assert stats["closed_tickets"] == 1
    assert stats["unassigned_tickets"] == 1
    assert stats["tickets_created_this_week"] == 2
    assert stats["tickets_resolved_this_month"] == 1
    assert stats["ticket_resolution_rate"] == 50.0
    assert stats["average_tickets_per_engineer"] == 2.0
    assert "generated_at" in stats


def test_engineer_performance_sorted_by_load(client, admin, user, engineer, engineer2):
    seed_ticket(user["id"], assignee_id=engineer2["id"], status="IN_PROGRESS")
    seed_ticket(user["id"], assignee_id=engineer2["id"], status="RESOLVED", closed_at=utcnow())

    rows = client.get("/api/admin/engineers/performance", headers=admin["headers"]).get_json()
    assert [r["engineer_id"] for r in rows] == [engineer2["id"], engineer["id"]]
    assert rows[0]["total_assigned_tickets"] == 2
    assert rows[0]["active_tickets"] == 1
    assert rows[0]["resolution_rate"] == 50.0
    assert rows[1]["total_assigned_tickets"] == 0
    assert rows[1]["resolution_rate"] == 0.0


def test_system_health(client, admin, user, engineer):
    healthy = client.get("/api/admin/system/health", headers=admin["headers"]).get_json()
    assert healthy["status"] == "HEALTHY"
    assert healthy["warnings"] == []

    seed_ticket(user["id"])
    seed_user("ENGINEER", is_active=False)
    warning = client.get("/api/admin/system/health", headers=admin["headers"]).get_json()
    assert warning["status"] == "WARNING"
    assert "There are 1 unassigned tickets" in warning["warnings"]
    assert "Some engineers are inactive" in warning["warnings"]


def test_engineer_group_lifecycle(client, admin, user, engineer, engineer2):
    created = client.post("/api/admin/engineer-groups", headers=admin["headers"], json={
        "name": "Network team", "description": "Routers and VPN", "member_ids": [engineer["id"]],
    })
    assert created.status_code == 201
    group = created.get_json()
    assert group["member_ids"] == [engineer["id"]]
    assert group["member_names"] == ["Erin Engineer"]
    url = f"/api/admin/engineer-groups/{group['id']}"

    added = client.post(f"{url}/members/{engineer2['id']}", headers=admin["headers"]).get_json()
    assert added["member_count"] == 2
    assert client.post(f"{url}/members/{engineer2['id']}", headers=admin["headers"]).status_code == 400
    assert client.post(f"{url}/members/{user['id']}", headers=admin["headers"]).status_code == 400

    removed = client.delete(f"{url}/members/{engineer['id']}", headers=admin["headers"]).get_json()
    assert removed["member_ids"] == [engineer2["id"]]
    assert client.delete(f"{url}/members/{engineer['id']}", headers=admin["headers"]).status_code == 400

    renamed = client.put(url, headers=admin["headers"], json={"name": "Networking"}).get_json()
    assert renamed["name"] == "Networking"

    assert client.delete(url, headers=admin["headers"]).status_code == 200
    assert client.get(url, headers=admin["headers"]).status_code == 404


def test_engineer_group_names_unique(client, admin):
    client.post("/api/admin/engineer-groups", headers=admin["headers"], json={"name": "Hardware"})
    client.post("/api/admin/engineer-groups", headers=admin["headers"], json={"name": "Accounts"})

    duplicate = client.post("/api/admin/engineer-groups", headers=admin["headers"], json={"name": "hardware"})
    assert duplicate.status_code == 400
    short = client.post("/api/admin/engineer-groups", headers=admin["headers"], json={"name": "HW"})
    assert short.status_code == 400
    assert "name" in short.get_json()["fields"]

    names = [g["name"] for g in client.get("/api/admin/engineer-groups", headers=admin["headers"]).get_json()]
    assert names == ["Accounts", "Hardware"]


def test_demoted_engineer_leaves_groups(client, admin, engineer, engineer2):
    group = client.post("/api/admin/engineer-groups", headers=admin["headers"], json={
        "name": "Field support", "member_ids": [engineer["id"], engineer2["id"]],
    }).get_json()

    demoted = client.put(f"/api/users/{engineer['id']}/admin", headers=admin["headers"], json={"role": "USER"})
    assert demoted.status_code == 200
    assert demoted.get_json()["role"] == "USER"

    refreshed = client.get(f"/api/admin/engineer-groups/{group['id']}", headers=admin["headers"]).get_json()
    assert refreshed["member_ids"] == [engineer2["id"]]
    assert refreshed["member_count"] == 1


def test_promotion_keeps_group_membership(client, admin, engineer):
    group = client.post("/api/admin/engineer-groups", headers=admin["headers"], json={
        "name": "Escalations", "member_ids": [engineer["id"]],
    }).get_json()

    client.put(f"/api/users/{engineer['id']}/admin", headers=admin["headers"], json={"role": "ADMIN"})

    refreshed = client.get(f"/api/admin/engineer-groups/{group['id']}", headers=admin["headers"]).get_json()
    assert refreshed["member_ids"] == [engineer["id"]]
