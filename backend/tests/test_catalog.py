"""
Tests for the public catalog endpoints.
"""

import pytest

from buysoft.core.metrics import metrics
from buysoft.db.models import Product
from buysoft.db.repositories import create_platform, create_product, get_or_create_channel


@pytest.fixture
def catalog(db_session):
    """Two platforms and three products, one of them hidden."""
    windows = create_platform(db_session, name="Windows", icon="windows", sort_order=0)
    macos = create_platform(db_session, name="macOS", icon="macos", sort_order=1)
    channel = get_or_create_channel(db_session, "Official Store")

    editor = create_product(
        db_session,
        {
            "name": "Pixel Editor Pro",
            "subtitle": "Layered photo editing",
            "cps_link": "https://aff.example.com/pixel",
            "original_price": 299.0,
            "sale_price": 149.0,
            "slug": "pixel-editor-pro",
            "sort_order": 2,
            "click_count": 5,
            "channel_id": channel.id,
        },
        [windows, macos],
    )
    backup = create_product(
        db_session,
        {
            "name": "Safe Backup",
            "subtitle": "Encrypted cloud backup",
            "cps_link": "https://aff.example.com/backup",
            "sort_order": 1,
            "click_count": 12,
        },
        [windows],
    )
    hidden = create_product(
        db_session,
        {
            "name": "Retired Tool",
            "cps_link": "https://aff.example.com/retired",
            "slug": "retired-tool",
            "is_active": False,
            "click_count": 100,
        },
        [macos],
    )
    return {
        "windows": windows,
        "macos": macos,
        "editor": editor,
        "backup": backup,
        "hidden": hidden,
    }


class TestProductList:
    def test_lists_active_products_in_sort_order(self, client, catalog):
        response = client.get("/api/products")
        assert response.status_code == 200
        names = [p["name"] for p in response.json()["products"]]
        assert names == ["Safe Backup", "Pixel Editor Pro"]

    def test_product_payload(self, client, catalog):
        products = client.get("/api/products").json()["products"]
        editor = next(p for p in products if p["slug"] == "pixel-editor-pro")
        assert editor["sale_price"] == 149.0
        assert editor["images"] == []
        assert editor["channel"]["name"] == "Official Store"
        assert sorted(p["name"] for p in editor["platforms"]) == ["Windows", "macOS"]
        assert editor["created_at"]

    def test_filter_by_platform(self, client, catalog):
        response = client.get("/api/products", params={"platformId": catalog["macos"].id})
        names = [p["name"] for p in response.json()["products"]]
        assert names == ["Pixel Editor Pro"]

    def test_platform_all_disables_filter(self, client, catalog):
        response = client.get("/api/products", params={"platformId": "all"})
        assert len(response.json()["products"]) == 2

    def test_unknown_platform_yields_empty_list(self, client, catalog):
        response = client.get("/api/products", params={"platformId": "missing"})
        assert response.status_code == 200
        assert response.json()["products"] == []

    @pytest.mark.parametrize("keyword", ["backup", "BACKUP", "cloud"])
    def test_keyword_matches_name_or_subtitle(self, client, catalog, keyword):
        response = client.get("/api/products", params={"keyword": keyword})
        names = [p["name"] for p in response.json()["products"]]
        assert names == ["Safe Backup"]

    @pytest.mark.parametrize("keyword", ["%", "_", "%backup"])
    def test_keyword_wildcards_are_literal(self, client, catalog, keyword):
        response = client.get("/api/products", params={"keyword": keyword})
        assert response.json()["products"] == []


class TestHotProducts:
    def test_ordered_by_clicks_and_skips_inactive(self, client, catalog):
        response = client.get("/api/products/hot")
        assert response.status_code == 200
        names = [p["name"] for p in response.json()["products"]]
        assert names == ["Safe Backup", "Pixel Editor Pro"]


class TestProductDetail:
    def test_by_slug(self, client, catalog):
        response = client.get("/api/products/pixel-editor-pro")
        assert response.status_code == 200
        assert response.json()["product"]["id"] == catalog["editor"].id

    def test_by_id(self, client, catalog):
        response = client.get(f"/api/products/{catalog['backup'].id}")
        assert response.status_code == 200
        assert response.json()["product"]["name"] == "Safe Backup"

    def test_inactive_product_is_hidden(self, client, catalog):
        response = client.get("/api/products/retired-tool")
        assert response.status_code == 404
        assert response.json()["error"]["code"] == "E5000"

    def test_unknown_product(self, client, catalog):
        response = client.get("/api/products/does-not-exist")
        assert response.status_code == 404


class TestClickTracking:
    def test_click_returns_link_and_counts(self, client, catalog, db_session):
        product_id = catalog["backup"].id
        response = client.post(f"/api/products/{product_id}/click")
        assert response.status_code == 200
        assert response.json() == {"url": "https://aff.example.com/backup"}

        client.post(f"/api/products/{product_id}/click")

        db_session.expire_all()
        assert db_session.get(Product, product_id).click_count == 14
        assert metrics.snapshot()["counters"]["product_clicks_total"] == 2

    def test_click_on_inactive_product(self, client, catalog):
        response = client.post(f"/api/products/{catalog['hidden'].id}/click")
        assert response.status_code == 404

    def test_click_needs_no_csrf(self, client, catalog):
        response = client.post(
            f"/api/products/{catalog['editor'].id}/click",
            headers={"Origin": "http://localhost:3000"},
        )
        assert response.status_code == 200


class TestPlatforms:
    def test_platforms_in_sort_order(self, client, catalog):
        response = client.get("/api/platforms")
        assert response.status_code == 200
        platforms = response.json()["platforms"]
        assert [p["name"] for p in platforms] == ["Windows", "macOS"]
        assert platforms[0]["icon"] == "windows"
