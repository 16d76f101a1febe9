"""
tests/integration/test_listings.py — Listing endpoints.

Endpoints covered:
  GET    /listings          → 200  browse (filters, search, pagination)
  GET    /listings/mine     → 200
  GET    /listings/:id      → 200  counts a view
  POST   /listings          → 201
  PUT    /listings/:id      → 200  seller only
  DELETE /listings/:id      → 200  seller only

Error cases:
  FREE_LISTING_PRICE  400 — free listing sent with a non-zero price
  FREE_LISTING_PRICE  422 — update that leaves a free listing priced
  FORBIDDEN           403 — someone other than the seller writes
  LISTING_NOT_FOUND   404
"""

from __future__ import annotations

from .conftest import auth_headers, listing_payload, make_listing, register


class TestCreateListing:

    def test_create_success(self, client):
        seller = register(client)
        resp = client.post(
            "/api/listings/",
            json=listing_payload(images=["https://img.example.com/a.jpg"]),
            headers=auth_headers(seller["access_token"]),
        )
        assert resp.status_code == 201
        data = resp.get_json()["data"]
        assert data["price"] == "20.00"
        assert data["status"] == "active"
        assert data["views"] == 0
        assert data["seller_id"] == seller["user"]["user_id"]
        assert data["seller"]["first_name"] == "Alice"
        assert data["images"] == ["https://img.example.com/a.jpg"]

    def test_create_requires_auth(self, client):
        resp = client.post("/api/listings/", json=listing_payload())
        assert resp.status_code == 401
        assert resp.get_json()["error"]["code"] == "TOKEN_MISSING"

    def test_free_listing_with_price_returns_400(self, client):
        seller = register(client)
        resp = client.post(
            "/api/listings/",
            json=listing_payload(price_type="free", price="5.00"),
            headers=auth_headers(seller["access_token"]),
        )
        assert resp.status_code == 400
        error = resp.get_json()["error"]
        assert error["code"] == "FREE_LISTING_PRICE"
        assert error["field"] == "price"

    def test_free_listing_with_zero_price(self, client):
        seller = register(client)
        data = make_listing(client, seller["access_token"], price_type="free", price="0")
        assert data["price"] == "0.00"
        assert data["price_type"] == "free"

    def test_negative_price_returns_400(self, client):
        seller = register(client)
        resp = client.post(
            "/api/listings/",
            json=listing_payload(price="-1"),
            headers=auth_headers(seller["access_token"]),
        )
        assert resp.status_code == 400
        assert resp.get_json()["error"]["field"] == "price"

    def test_unknown_category_returns_400(self, client):
        seller = register(client)
        resp = client.post(
            "/api/listings/",
            json=listing_payload(category="furniture"),
            headers=auth_headers(seller["access_token"]),
        )
        assert resp.status_code == 400
        assert resp.get_json()["error"]["field"] == "category"


class TestBrowseListings:

    def test_default_browse_shows_only_active(self, client):
        seller = register(client)
        token = seller["access_token"]
        keep = make_listing(client, token, title="Laptop stand")
        hidden = make_listing(client, token, title="Old monitor")
        client.put(
            f"/api/listings/{hidden['listing_id']}",
            json={"status": "inactive"},
            headers=auth_headers(token),
        )

        resp = client.get("/api/listings/")
        assert resp.status_code == 200
        data = resp.get_json()["data"]
        assert [item["listing_id"] for item in data["listings"]] == [keep["listing_id"]]
        assert data["total"] == 1

    def test_filter_by_category(self, client):
        seller = register(client)
        token = seller["access_token"]
        make_listing(client, token, category="textbook")
        laptop = make_listing(client, token, title="ThinkPad", category="laptop")

        resp = client.get("/api/listings/?category=laptop")
        listings = resp.get_json()["data"]["listings"]
        assert [item["listing_id"] for item in listings] == [laptop["listing_id"]]

    def test_search_matches_title_or_description_case_insensitive(self, client):
        seller = register(client)
        token = seller["access_token"]
        by_title = make_listing(client, token, title="Organic Chemistry notes")
        by_description = make_listing(
            client, token, title="Binder", description="Full CHEMISTRY lab write-ups."
        )
        make_listing(client, token, title="Desk lamp", description="Warm light.")

        resp = client.get("/api/listings/?search=chemistry")
        data = resp.get_json()["data"]
        ids = {item["listing_id"] for item in data["listings"]}
        assert ids == {by_title["listing_id"], by_description["listing_id"]}
        assert data["total"] == 2

    def test_pagination_newest_first(self, client):
        seller = register(client)
        token = seller["access_token"]
        created = [make_listing(client, token, title=f"Item {n}") for n in range(5)]

        first = client.get("/api/listings/?limit=2&page=1").get_json()["data"]
        last = client.get("/api/listings/?limit=2&page=3").get_json()["data"]

        assert first["total"] == 5
        assert first["total_pages"] == 3
        assert first["current_page"] == 1
        assert [item["listing_id"] for item in first["listings"]] == [
            created[4]["listing_id"],
            created[3]["listing_id"],
        ]
        assert [item["listing_id"] for item in last["listings"]] == [created[0]["listing_id"]]

    def test_limit_above_max_returns_400(self, client):
        resp = client.get("/api/listings/?limit=500")
        assert resp.status_code == 400
        assert resp.get_json()["error"]["field"] == "limit"

    def test_my_listings_include_every_status(self, client):
        seller = register(client)
        other = register(client, first_name="Bob")
        token = seller["access_token"]
        listing = make_listing(client, token)
        client.put(
            f"/api/listings/{listing['listing_id']}",
            json={"status": "sold"},
            headers=auth_headers(token),
        )
        make_listing(client, other["access_token"])

        resp = client.get("/api/listings/mine", headers=auth_headers(token))
        data = resp.get_json()["data"]
        assert len(data) == 1
        assert data[0]["status"] == "sold"


class TestListingDetail:

    def test_detail_counts_views(self, client):
        seller = register(client)
        listing = make_listing(client, seller["access_token"])

        client.get(f"/api/listings/{listing['listing_id']}")
        resp = client.get(f"/api/listings/{listing['listing_id']}")

        assert resp.status_code == 200
        data = resp.get_json()["data"]
        assert data["views"] == 2
        assert data["favorite_count"] == 0
        assert "is_favorited" not in data

    def test_detail_with_token_reports_is_favorited(self, client):
        seller = register(client)
        viewer = register(client, first_name="Bob")
        listing = make_listing(client, seller["access_token"])
        client.post(
            "/api/favorites/",
            json={"listing_id": listing["listing_id"]},
            headers=auth_headers(viewer["access_token"]),
        )

        resp = client.get(
            f"/api/listings/{listing['listing_id']}",
            headers=auth_headers(viewer["access_token"]),
        )
        data = resp.get_json()["data"]
        assert data["is_favorited"] is True
        assert data["favorite_count"] == 1

    def test_detail_unknown_listing_returns_404(self, client):
        resp = client.get("/api/listings/missing")
        assert resp.status_code == 404
        assert resp.get_json()["error"]["code"] == "LISTING_NOT_FOUND"


class TestUpdateDeleteListing:

    def test_seller_can_update(self, client):
        seller = register(client)
        listing = make_listing(client, seller["access_token"])
        resp = client.put(
            f"/api/listings/{listing['listing_id']}",
            json={"price": "15.50", "title": "Calculus (used)"},
            headers=auth_headers(seller["access_token"]),
        )
        assert resp.status_code == 200
        data = resp.get_json()["data"]
        assert data["price"] == "15.50"
        assert data["title"] == "Calculus (used)"

    def test_non_seller_update_returns_403(self, client):
        seller = register(client)
        other = register(client, first_name="Bob")
        listing = make_listing(client, seller["access_token"])
        resp = client.put(
            f"/api/listings/{listing['listing_id']}",
            json={"price": "1.00"},
            headers=auth_headers(other["access_token"]),
        )
        assert resp.status_code == 403
        assert resp.get_json()["error"]["code"] == "FORBIDDEN"

    def test_switching_to_free_without_zero_price_returns_422(self, client):
        seller = register(client)
        listing = make_listing(client, seller["access_token"])
        resp = client.put(
            f"/api/listings/{listing['listing_id']}",
            json={"price_type": "free"},
            headers=auth_headers(seller["access_token"]),
        )
        assert resp.status_code == 422
        assert resp.get_json()["error"]["code"] == "FREE_LISTING_PRICE"

    def test_update_cannot_change_seller(self, client):
        seller = register(client)
        listing = make_listing(client, seller["access_token"])
        resp = client.put(
            f"/api/listings/{listing['listing_id']}",
            json={"seller_id": "someone-else"},
            headers=auth_headers(seller["access_token"]),
        )
        assert resp.status_code == 400

    def test_seller_can_delete(self, client):
        seller = register(client)
        listing = make_listing(client, seller["access_token"])
        resp = client.delete(
            f"/api/listings/{listing['listing_id']}",
            headers=auth_headers(seller["access_token"]),
        )
        assert resp.status_code == 200
        assert resp.get_json()["data"]["deleted"] is True
        assert client.get(f"/api/listings/{listing['listing_id']}").status_code == 404

    def test_non_seller_delete_returns_403(self, client):
        seller = register(client)
        other = register(client, first_name="Bob")
        listing = make_listing(client, seller["access_token"])
        resp = client.delete(
            f"/api/listings/{listing['listing_id']}",
            headers=auth_headers(other["access_token"]),
        )
        assert resp.status_code == 403
