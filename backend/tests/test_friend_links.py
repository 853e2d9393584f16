"""
Tests for friend link endpoints.
"""

import pytest

from buysoft.db.repositories import create_friend_link


@pytest.fixture
def links(db_session):
    return [
        create_friend_link(db_session, name="Second", url="https://two.example.com", sort_order=2),
        create_friend_link(db_session, name="First", url="https://one.example.com", sort_order=1),
        create_friend_link(
            db_session, name="Hidden", url="https://hidden.example.com", is_active=False
        ),
    ]


class TestPublicList:
    def test_active_links_in_sort_order(self, client, links):
        response = client.get("/api/friend-links")
        assert response.status_code == 200
        names = [link["name"] for link in response.json()["friend_links"]]
        assert names == ["First", "Second"]

    def test_admin_view_requires_session(self, client, links):
        response = client.get("/api/friend-links", params={"admin": "true"})
        assert response.status_code == 401

    def test_admin_view_includes_inactive(self, admin_client, links):
        response = admin_client.get("/api/friend-links", params={"admin": "true"})
        names = [link["name"] for link in response.json()["friend_links"]]
        assert names == ["Hidden", "First", "Second"]


class TestManagement:
    def test_create(self, admin_client):
        response = admin_client.post(
            "/api/friend-links",
            json={"name": " Partner ", "url": "https://partner.example.com", "sort_order": 3},
        )
        assert response.status_code == 201
        link = response.json()["friend_link"]
        assert link["name"] == "Partner"
        assert link["is_active"] is True
        assert link["logo"] is None

    def test_create_requires_name_and_url(self, admin_client):
        response = admin_client.post("/api/friend-links", json={"name": "No URL"})
        assert response.status_code == 422

        response = admin_client.post("/api/friend-links", json={"name": "  ", "url": "x"})
        assert response.status_code == 400

    def test_create_requires_auth(self, client):
        response = client.post("/api/friend-links", json={"name": "A", "url": "https://a.example"})
        assert response.status_code == 401

    def test_partial_update(self, admin_client, links):
        link_id = links[0].id
        response = admin_client.put(
            f"/api/friend-links/{link_id}", json={"is_active": False, "logo": ""}
        )
        assert response.status_code == 200
        link = response.json()["friend_link"]
        assert link["is_active"] is False
        assert link["logo"] is None
        assert link["name"] == "Second"

    def test_update_rejects_blank_url(self, admin_client, links):
        response = admin_client.put(f"/api/friend-links/{links[0].id}", json={"url": "   "})
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "E1001"

    def test_update_unknown(self, admin_client):
        response = admin_client.put("/api/friend-links/missing", json={"name": "X"})
        assert response.status_code == 404
        assert response.json()["error"]["code"] == "E5001"

    def test_delete(self, admin_client, links):
        link_id = links[1].id
        response = admin_client.delete(f"/api/friend-links/{link_id}")
        assert response.status_code == 200
        assert response.json() == {"deleted": True, "id": link_id}

        names = [link["name"] for link in admin_client.get("/api/friend-links").json()["friend_links"]]
        assert names == ["Second"]
        assert admin_client.delete(f"/api/friend-links/{link_id}").status_code == 404
