from datetime import datetime, time, timedelta

import pytest

from conftest import app, db, seed_user, seed_ticket
from portal import analytics
from portal.models import User
from portal.errors import BadRequestError

FEB_15 = datetime(2026, 2, 15, 12, 0)


def test_period_bounds_month_and_quarter():
    now = datetime(2026, 1, 15, 10, 30)
    assert analytics.period_bounds("THIS_MONTH", now) == (datetime(2026, 1, 1), now)
    assert analytics.period_bounds("LAST_MONTH", now) == (
        datetime(2025, 12, 1), datetime.combine(datetime(2025, 12, 31).date(), time.max))
    assert analytics.period_bounds("THIS_QUARTER", now) == (datetime(2026, 1, 1), now)
    assert analytics.period_bounds("LAST_QUARTER", now) == (
        datetime(2025, 10, 1), datetime.combine(datetime(2025, 12, 31).date(), time.max))

    start, end = analytics.period_bounds("last_quarter", datetime(2026, 5, 10))
    assert (start, end.date()) == (datetime(2026, 1, 1), datetime(2026, 3, 31).date())


def test_unknown_period_rejected():
    with pytest.raises(BadRequestError):
        analytics.period_bounds("LAST_YEAR")


def test_trend_labels():
    assert analytics.trend_label(0, lower_is_better=True) == "SAME"
    assert analytics.trend_label(-10, lower_is_better=True) == "BETTER"
    assert analytics.trend_label(-10, lower_is_better=False) == "WORSE"
    assert analytics.change_percent(5, 0) == 100.0
    assert analytics.change_percent(0, 0) == 0.0
    assert analytics.change_percent(15, 10) == 50.0


def seed_february(requester_id, engineer_id=None, engineer2_id=None):
    # 2026-02-02 is a Monday
    seed_ticket(requester_id, created_at=datetime(2026, 2, 2, 9, 0), status="CLOSED", priority="HIGH",
                assignee_id=engineer_id, closed_at=datetime(2026, 2, 2, 19, 0))
    seed_ticket(requester_id, created_at=datetime(2026, 2, 2, 9, 30), status="RESOLVED",
                assignee_id=engineer_id, closed_at=datetime(2026, 2, 3, 13, 30))
    seed_ticket(requester_id, created_at=datetime(2026, 2, 3, 14, 0))
    seed_ticket(requester_id, created_at=datetime(2026, 2, 4, 9, 0), status="IN_PROGRESS",
                assignee_id=engineer2_id)
    seed_ticket(requester_id, created_at=datetime(2026, 2, 4, 10, 0), status="RESOLVED",
                closed_at=datetime(2026, 2, 4, 11, 0))


def test_ticket_analytics_metrics(user):
    seed_february(user["id"])
    seed_ticket(user["id"], created_at=datetime(2026, 1, 20, 8, 0))

    with app.app_context():
        result = analytics.ticket_analytics("THIS_MONTH", FEB_15)

    assert result["start_date"] == "2026-02-01"
    assert result["end_date"] == "2026-02-15"
    assert result["ticket_metrics"] == {
        "total_created": 5,
        "total_resolved": 2,
        "total_closed": 1,
        "resolution_rate": 60.0,
        "avg_resolution_time_hours": 13.0,
        "median_resolution_time_hours": 10.0,
    }
    assert result["distribution_by_status"] == {"NEW": 1, "IN_PROGRESS": 1, "RESOLVED": 2, "CLOSED": 1}
    assert result["distribution_by_priority"] == {"LOW": 0, "MEDIUM": 4, "HIGH": 1, "CRITICAL": 0}
    assert result["peak_days"] == ["MONDAY", "WEDNESDAY"]
    assert result["peak_hours"] == [9, 10, 14]


def test_empty_period_has_zero_metrics(user):
    with app.app_context():
        metrics = analytics.ticket_analytics("LAST_QUARTER", FEB_15)["ticket_metrics"]
    assert metrics["total_created"] == 0
    assert metrics["resolution_rate"] == 0.0
    assert metrics["avg_resolution_time_hours"] == 0.0


def test_compare_periods(user):
    seed_february(user["id"])
    seed_ticket(user["id"], created_at=datetime(2026, 1, 20, 8, 0))
    seed_ticket(user["id"], created_at=datetime(2026, 1, 21, 8, 0))

    with app.app_context():
        result = analytics.compare("LAST_MONTH", "THIS_MONTH", FEB_15)

    comparison = result["comparison"]
    assert comparison["total_tickets"]["period1_value"] == 2.0
    assert comparison["total_tickets"]["period2_value"] == 5.0
    assert comparison["total_tickets"]["change_percent"] == 150.0
    assert comparison["total_tickets"]["trend"] == "WORSE"
    assert comparison["resolution_rate"]["change_percent"] == 100.0
    assert comparison["resolution_rate"]["trend"] == "BETTER"
    assert comparison["avg_resolution_time"]["trend"] == "WORSE"


def test_trends_one_point_per_day(user, engineer):
    seed_february(user["id"], engineer_id=engineer["id"])
    now = datetime(2026, 2, 4, 23, 0)

    with app.app_context():
        tickets = analytics.trends("TICKETS", "THIS_MONTH", now)
        resolution = analytics.trends("RESOLUTION_TIME", "THIS_MONTH", now)
        load = analytics.trends("ENGINEER_LOAD", "THIS_MONTH", now)

    assert [p["date"] for p in tickets["data"]] == ["2026-02-01", "2026-02-02", "2026-02-03", "2026-02-04"]
    assert [p["value"] for p in tickets["data"]] == [0.0, 2.0, 1.0, 2.0]
    assert tickets["data"][1]["label"] == "2 tickets"
    assert [p["value"] for p in resolution["data"]] == [0.0, 10.0, 28.0, 1.0]
    assert [p["value"] for p in load["data"]] == [0.0, 0.0, 1.0, 2.0]


def test_engineer_ranking(admin, user, engineer, engineer2):
    seed_february(user["id"], engineer_id=engineer["id"], engineer2_id=engineer2["id"])

    with app.app_context():
        admin_view = analytics.engineer_analytics(db.session.get(User, admin["id"]), "THIS_MONTH", FEB_15)
        own_view = analytics.engineer_analytics(db.session.get(User, engineer2["id"]), "THIS_MONTH", FEB_15)

    rows = admin_view["engineers"]
    assert [(r["engineer_id"], r["rank"]) for r in rows] == [(engineer["id"], 1), (engineer2["id"], 2)]
    assert rows[0]["resolution_rate"] == 100.0
    assert rows[0]["avg_resolution_time_hours"] == 19.0
    assert rows[0]["high_priority_count"] == 1
    assert [r["engineer_id"] for r in own_view["engineers"]] == [engineer2["id"]]


def test_user_analytics():
    frequent = seed_user("USER", created_at=datetime(2026, 2, 5))
    returning = seed_user("USER", created_at=datetime(2026, 1, 10))
    seed_user("USER", created_at=datetime(2026, 3, 1))
    for day in range(6, 11):
        seed_ticket(frequent["id"], created_at=datetime(2026, 2, day, 12, 0))
    seed_ticket(returning["id"], created_at=datetime(2026, 1, 12, 12, 0))
    seed_ticket(returning["id"], created_at=datetime(2026, 2, 12, 12, 0))

    with app.app_context():
        result = analytics.user_analytics("THIS_MONTH", FEB_15)

    assert result["new_users_count"] == 1
    assert result["active_users_count"] == 2
    assert result["total_users_with_tickets"] == 2
    assert result["avg_tickets_per_user"] == 3.0
    assert result["users_with_multiple_tickets"] == 1
    assert result["user_retention_rate"] == 100.0


def test_analytics_endpoints_access(client, user, engineer, admin):
    assert client.get("/api/analytics/tickets", headers=user["headers"]).status_code == 403
    assert client.get("/api/analytics/users", headers=engineer["headers"]).status_code == 403
    assert client.get("/api/analytics/users", headers=admin["headers"]).status_code == 200

    body = client.get("/api/analytics/tickets", headers=engineer["headers"]).get_json()
    assert body["period"] == "THIS_MONTH"
    assert "ticket_metrics" in body


def test_analytics_bad_parameters(client, engineer):
    response = client.get("/api/analytics/tickets?period=FOREVER", headers=engineer["headers"])
    assert response.status_code == 400
    assert response.get_json()["status"] == 400
    assert client.get("/api/analytics/trends?metric=SMILES", headers=engineer["headers"]).status_code == 400


def test_compare_endpoint_defaults(client, engineer):
    body = client.get("/api/analytics/compare", headers=engineer["headers"]).get_json()
    assert body["period1"] == "LAST_MONTH"
    assert body["period2"] == "THIS_MONTH"
    assert set(body["comparison"]) == {"total_tickets", "resolution_rate", "avg_resolution_time"}


def test_median_of_even_count_averages_middle_values(user):
    for day, hours in ((12, 2), (13, 4), (14, 10), (15, 30)):
        created = datetime(2026, 1, day, 8, 0)
        seed_ticket(user["id"], created_at=created, status="CLOSED",
                    closed_at=created + timedelta(hours=hours))

    with app.app_context():
        metrics = analytics.ticket_analytics("LAST_MONTH", FEB_15)["ticket_metrics"]

    assert metrics["total_closed"] == 4
    assert metrics["avg_resolution_time_hours"] == 11.5
    assert metrics["median_resolution_time_hours"] == 7.0
