import pytest

CONTENT = "Open settings, choose Network and press Reset to restore defaults."


def create_article(client, admin, **payload):
    body = {"title": "Resetting network settings", "content": CONTENT, "tags": ["network", "howto"]}
    body.update(payload)
    return client.post("/api/kb/articles", json=body, headers=admin["headers"])


@pytest.fixture
def published(client, admin):
    article_id = create_article(client, admin).get_json()["id"]
    client.put(f"/api/kb/articles/{article_id}/publish", headers=admin["headers"])
    return article_id


def test_create_starts_as_draft(client, admin):
    response = create_article(client, admin)
    assert response.status_code == 201
    body = response.get_json()
    assert body["status"] == "DRAFT"
    assert body["tags"] == ["network", "howto"]
    assert body["published_at"] is None

    drafts = client.get("/api/kb/articles/drafts", headers=admin["headers"]).get_json()
    assert [a["id"] for a in drafts] == [body["id"]]


def test_article_validation(client, admin):
    response = client.post("/api/kb/articles", json={"title": "Hey", "content": "too short"}, headers=admin["headers"])
    assert response.status_code == 400
    assert set(response.get_json()["fields"]) == {"title", "content"}


def test_only_admin_manages_articles(client, user):
    assert create_article(client, user).status_code == 403


def test_draft_hidden_from_users(client, admin, user):
    article_id = create_article(client, admin).get_json()["id"]
    assert client.get(f"/api/kb/articles/{article_id}", headers=user["headers"]).status_code == 404
    assert client.get("/api/kb/articles", headers=user["headers"]).get_json()["total_elements"] == 0


def test_publish_and_view_counter(client, user, published):
    first = client.get(f"/api/kb/articles/{published}", headers=user["headers"]).get_json()
    second = client.get(f"/api/kb/articles/{published}", headers=user["headers"]).get_json()
    assert first["status"] == "PUBLISHED"
    assert first["published_at"] is not None
    assert first["view_count"] == 1
    assert second["view_count"] == 2


def test_helpful_votes(client, user, published):
    client.post(f"/api/kb/articles/{published}/helpful", headers=user["headers"])
    client.post(f"/api/kb/articles/{published}/helpful", headers=user["headers"])
    body = client.post(f"/api/kb/articles/{published}/not-helpful", headers=user["headers"]).get_json()
    assert body["helpful_count"] == 2
    assert body["not_helpful_count"] == 1
    assert body["helpful_percentage"] == 66.67


def test_archive_and_republish(client, admin, user, published):
    client.put(f"/api/kb/articles/{published}/archive", headers=admin["headers"])
    assert client.get(f"/api/kb/articles/{published}", headers=user["headers"]).status_code == 404

    again = client.put(f"/api/kb/articles/{published}/publish", headers=admin["headers"])
    assert again.status_code == 200
    assert again.get_json()["status"] == "PUBLISHED"


def test_featured_first_search_and_tags(client, admin, user, published):
    other = create_article(client, admin, title="Printer troubleshooting guide", tags=["printer"]).get_json()["id"]
    client.put(f"/api/kb/articles/{other}/publish", headers=admin["headers"])
    client.put(f"/api/kb/articles/{published}/feature", headers=admin["headers"])

    listing = client.get("/api/kb/articles", headers=user["headers"]).get_json()
    assert [a["id"] for a in listing["content"]] == [published, other]

    featured = client.get("/api/kb/articles/featured", headers=user["headers"]).get_json()
    assert [a["id"] for a in featured] == [published]

    found = client.get("/api/kb/articles/search?q=PRINTER", headers=user["headers"]).get_json()
    assert [a["id"] for a in found] == [other]
    assert client.get("/api/kb/articles/search?q=", headers=user["headers"]).status_code == 400

    tagged = client.get("/api/kb/articles/tag/Network", headers=user["headers"]).get_json()
    assert [a["id"] for a in tagged] == [published]


def test_categories(client, admin, user):
    second = client.post("/api/kb/categories", json={"name": "Hardware", "display_order": 2}, headers=admin["headers"])
    first = client.post("/api/kb/categories", json={"name": "Accounts", "display_order": 1}, headers=admin["headers"])
    last = client.post("/api/kb/categories", json={"name": "Misc"}, headers=admin["headers"])
    assert last.get_json()["display_order"] == 999

    duplicate = client.post("/api/kb/categories", json={"name": "hardware"}, headers=admin["headers"])
    assert duplicate.status_code == 400
    assert client.post("/api/kb/categories", json={"name": "IT"}, headers=admin["headers"]).status_code == 400

    hardware_id = second.get_json()["id"]
    article_id = create_article(client, admin, category_id=hardware_id).get_json()["id"]
    client.put(f"/api/kb/articles/{article_id}/publish", headers=admin["headers"])

    categories = client.get("/api/kb/categories", headers=user["headers"]).get_json()
    assert [c["name"] for c in categories] == ["Accounts", "Hardware", "Misc"]
    assert categories[1]["article_count"] == 1

    in_category = client.get(f"/api/kb/articles/category/{hardware_id}", headers=user["headers"]).get_json()
    assert [a["id"] for a in in_category] == [article_id]

    assert client.delete(f"/api/kb/categories/{first.get_json()['id']}", headers=admin["headers"]).status_code == 200
    assert client.get(f"/api/kb/categories/{first.get_json()['id']}", headers=user["headers"]).status_code == 404


def test_update_and_delete_article(client, admin, user):
    article_id = create_article(client, admin).get_json()["id"]
    updated = client.put(f"/api/kb/articles/{article_id}", json={"tags": ["vpn"], "title": "Resetting VPN settings"},
                         headers=admin["headers"]).get_json()
    assert updated["tags"] == ["vpn"]
    assert updated["title"] == "Resetting VPN settings"

    assert client.delete(f"/api/kb/articles/{article_id}", headers=admin["headers"]).status_code == 200
    assert client.get(f"/api/kb/articles/{article_id}", headers=admin["headers"]).status_code == 404
