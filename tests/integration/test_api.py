"""
Integration tests for API endpoints.
"""

from pathlib import Path

import pytest

from delicacies.storage.tables import PRODUCTS, SELLER_BANKING, SELLERS

pytestmark = pytest.mark.asyncio


class TestHealthEndpoints:
    """Tests for health check endpoints."""

    async def test_health_check(self, client):
        response = await client.get("/api/health")

        assert response.status_code == 200
        assert response.json() == {"data": {"ok": True}}

    async def test_unknown_route_is_json_error(self, client):
        response = await client.get("/api/nope")

        assert response.status_code == 404
        assert "error" in response.json()


class TestAuthEndpoints:
    """Tests for registration, login and session handling."""

    async def test_register_sets_session(self, client, registration):
        response = await client.post("/api/auth/register", json=registration)

        assert response.status_code == 201
        assert "sid" in response.cookies
        assert response.json() == {
            "data": {"ID": 1, "Name": "Asha Kumari", "Email": "a@x.com", "Roles": "user"}
        }

        cookie_header = response.headers["set-cookie"].lower()
        assert "httponly" in cookie_header
        assert "samesite=lax" in cookie_header

    async def test_me_after_register(self, logged_in_client):
        response = await logged_in_client.get("/api/auth/me")

        assert response.status_code == 200
        assert response.json()["data"]["Email"] == "a@x.com"

    async def test_me_without_cookie(self, client):
        response = await client.get("/api/auth/me")

        assert response.status_code == 401
        assert response.json() == {"error": "Not authenticated"}

    async def test_duplicate_email_case_insensitive(self, client, registration):
        await client.post("/api/auth/register", json=registration)

        response = await client.post(
            "/api/auth/register",
            json={**registration, "email": "A@X.COM"},
        )

        assert response.status_code == 409
        assert response.json() == {"error": "Email already registered"}

    async def test_register_missing_fields(self, client):
        response = await client.post("/api/auth/register", json={"email": "a@x.com"})

        assert response.status_code == 400
        error = response.json()["error"]
        assert error.startswith("Missing required fields")
        assert "password" in error
        assert "firstName" in error

    async def test_login_scenario(self, client, registration):
        await client.post("/api/auth/register", json=registration)
        client.cookies.clear()

        bad = await client.post("/api/auth/login", json={"email": "a@x.com", "password": "wrong"})
        assert bad.status_code == 401
        assert bad.json() == {"error": "Invalid credentials"}

        good = await client.post("/api/auth/login", json={"email": "a@x.com", "password": "secret1"})
        assert good.status_code == 200
        assert "sid" in good.cookies
        assert good.json()["data"] == {
            "ID": 1, "Name": "Asha Kumari", "Email": "a@x.com", "Roles": "user",
        }

        me = await client.get("/api/auth/me")
        assert me.status_code == 200

    async def test_login_unknown_email(self, client):
        response = await client.post("/api/auth/login", json={"email": "nobody@x.com", "password": "x"})

        assert response.status_code == 401

    async def test_logout_ends_session(self, logged_in_client):
        response = await logged_in_client.post("/api/auth/logout")

        assert response.status_code == 200
        assert response.json() == {"data": True}

        me = await logged_in_client.get("/api/auth/me")
        assert me.status_code == 401

    async def test_logout_without_session(self, client):
        response = await client.post("/api/auth/logout")

        assert response.status_code == 200
        assert response.json() == {"data": True}

    async def test_password_is_not_stored_plain(self, client, store, registration):
        await client.post("/api/auth/register", json=registration)

        user = store.find_one("users", {"email": "a@x.com"})
        assert user["password"] != "secret1"


class TestTableEndpoints:
    """Tests for the generic table API."""

    async def test_create_into_empty_collection(self, client, store):
        store.write_all(PRODUCTS, [])

        response = await client.post(
            "/api/table/create/39102",
            json={"name": "Test Sweet", "price": 99},
        )

        assert response.status_code == 200
        assert response.json() == {"data": {"id": 1, "name": "Test Sweet", "price": 99}}

    async def test_create_ignores_client_id(self, client, store):
        store.write_all(PRODUCTS, [])

        response = await client.post(
            "/api/table/create/39102",
            json={"id": 77, "name": "Tilkut"},
        )

        assert response.json()["data"]["id"] == 1

    async def test_page_filter_excludes_seeded_product(self, client):
        response = await client.post(
            "/api/table/page/39102",
            json={
                "Filters": [{"name": "price", "op": "LessThanOrEqual", "value": 100}],
                "PageSize": 10,
                "PageNo": 1,
            },
        )

        assert response.status_code == 200
        assert response.json() == {"data": {"List": [], "VirtualCount": 0}}

    async def test_page_defaults(self, client):
        response = await client.post("/api/table/page/39102", json={})

        data = response.json()["data"]
        assert data["VirtualCount"] == 1
        assert data["List"][0]["name"] == "Authentic Silao Khaja"

    async def test_page_sort_and_slice(self, client, store):
        store.write_all(PRODUCTS, [
            {"id": 1, "name": "Khaja", "price": 350},
            {"id": 2, "name": "Tilkut", "price": 120},
            {"id": 3, "name": "Anarsa", "price": 200},
        ])

        response = await client.post(
            "/api/table/page/39102",
            json={"OrderByField": "price", "IsAsc": False, "PageSize": 2, "PageNo": 1},
        )

        data = response.json()["data"]
        assert [p["id"] for p in data["List"]] == [1, 3]
        assert data["VirtualCount"] == 3

    async def test_unknown_table(self, client):
        for path in ("/api/table/page/1", "/api/table/create/1", "/api/table/page/abc"):
            response = await client.post(path, json={})
            assert response.status_code == 404
            assert response.json() == {"error": "Unknown table"}


class TestSellerEndpoints:
    """Tests for seller profiles and banking details."""

    async def test_create_seller_requires_login(self, client):
        response = await client.post("/api/sellers", data={"business_name": "X"})

        assert response.status_code == 401

    async def test_create_and_get_seller(self, logged_in_client, png_bytes):
        response = await logged_in_client.post(
            "/api/sellers",
            data={"business_name": "Mithai Ghar", "city": "Gaya"},
            files={"profile_image": ("me.png", png_bytes, "image/png")},
        )

        assert response.status_code == 200
        seller = response.json()["data"]
        assert seller["userId"] == 1
        assert seller["business_name"] == "Mithai Ghar"
        assert seller["email"] == "a@x.com"
        assert seller["profile_image_path"].startswith("/api/uploads/")
        assert seller["profile_image_path"].endswith("-me.png")
        assert seller["banner_image_path"] is None

        mine = await logged_in_client.get("/api/sellers/me")
        assert mine.json()["data"]["id"] == seller["id"]

        served = await logged_in_client.get(seller["profile_image_path"])
        assert served.status_code == 200
        assert served.content == png_bytes

    async def test_second_seller_conflicts(self, logged_in_client):
        await logged_in_client.post("/api/sellers", data={"business_name": "One"})

        response = await logged_in_client.post("/api/sellers", data={"business_name": "Two"})

        assert response.status_code == 409
        assert response.json() == {"error": "Seller profile already exists for this user"}

    async def test_seller_me_not_found(self, logged_in_client):
        response = await logged_in_client.get("/api/sellers/me")

        assert response.status_code == 404
        assert response.json() == {"error": "Seller profile not found"}

    async def test_banking_roundtrip_and_upsert(self, logged_in_client, store):
        empty = await logged_in_client.get("/api/sellers/banking")
        assert empty.json() == {"data": None}

        details = {
            "accountHolderName": "Asha Kumari",
            "bankAccountNumber": "12345678",
            "ifsc": "sbin0001234",
            "bankName": "SBI",
        }
        saved = await logged_in_client.post("/api/sellers/banking", json=details)
        assert saved.json() == {"data": True}

        again = await logged_in_client.post(
            "/api/sellers/banking",
            json={**details, "branch": "Patna"},
        )
        assert again.status_code == 200

        records = store.read_all(SELLER_BANKING)
        assert len(records) == 1
        assert records[0]["ifsc"] == "SBIN0001234"
        assert records[0]["branch"] == "Patna"
        assert "createdAt" in records[0]

        fetched = await logged_in_client.get("/api/sellers/banking")
        assert fetched.json()["data"]["userId"] == 1

    @pytest.mark.parametrize("override, message", [
        ({"bankName": ""}, "Missing required fields"),
        ({"bankAccountNumber": "12ab"}, "Invalid bank account number"),
        ({"ifsc": "SBIN1001234"}, "Invalid IFSC format"),
    ])
    async def test_banking_validation(self, logged_in_client, override, message):
        details = {
            "accountHolderName": "Asha Kumari",
            "bankAccountNumber": "12345678",
            "ifsc": "SBIN0001234",
            "bankName": "SBI",
            **override,
        }

        response = await logged_in_client.post("/api/sellers/banking", json=details)

        assert response.status_code == 400
        assert response.json() == {"error": message}


class TestProductEndpoints:
    """Tests for seller product submission."""

    async def test_product_requires_seller(self, logged_in_client):
        response = await logged_in_client.post("/api/products", data={"name": "Khaja"})

        assert response.status_code == 404

    async def test_create_and_list_products(self, logged_in_client, store, png_bytes):
        seller = (await logged_in_client.post("/api/sellers", data={"business_name": "Ghar"})).json()["data"]

        response = await logged_in_client.post(
            "/api/products",
            data={
                "name": "Tilkut",
                "price": "120.50",
                "originalPrice": "150",
                "stock_quantity": "",
                "category_id": "1",
            },
            files=[
                ("main_image", ("main.png", png_bytes, "image/png")),
                ("additional_images", ("a.png", png_bytes, "image/png")),
                ("additional_images", ("b.png", png_bytes, "image/png")),
            ],
        )

        assert response.status_code == 200
        product = response.json()["data"]
        assert product["seller_id"] == seller["id"]
        assert product["price"] == 120.5
        assert product["original_price"] == 150.0
        assert product["stock_quantity"] == 0
        assert product["category_id"] == 1
        assert product["spice_level_id"] is None
        assert product["main_image"].endswith("-main.png")
        assert len(product["additional_images"]) == 2

        mine = await logged_in_client.get("/api/products/me")
        assert [p["id"] for p in mine.json()["data"]] == [product["id"]]

    async def test_products_me_without_seller(self, logged_in_client):
        response = await logged_in_client.get("/api/products/me")

        assert response.status_code == 404


class TestUploadEndpoints:
    """Tests for the generic image upload."""

    async def test_upload_image(self, client, png_bytes):
        response = await client.post(
            "/api/upload",
            files={"image": ("My Photo.png", png_bytes, "image/png")},
        )

        assert response.status_code == 200
        url = response.json()["data"]["url"]
        assert url.startswith("/api/uploads/")
        assert url.endswith("-My_Photo.png")

    async def test_upload_without_file(self, client):
        response = await client.post("/api/upload", data={"other": "x"})

        assert response.status_code == 400
        assert response.json() == {"error": "No file uploaded"}

    async def test_upload_rejects_non_image(self, client):
        response = await client.post(
            "/api/upload",
            files={"image": ("notes.txt", b"hello", "text/plain")},
        )

        assert response.status_code == 400
        assert response.json() == {"error": "Invalid file type"}

    async def test_upload_over_size_limit(self, client, test_settings):
        response = await client.post(
            "/api/upload",
            files={"image": ("huge.png", b"x" * (5 * 1024 * 1024 + 1), "image/png")},
        )

        assert response.status_code == 413
        assert response.json() == {"error": "File too large"}
        assert not any(Path(test_settings.upload_dir).glob("*huge.png"))

    async def test_missing_upload_is_404(self, client):
        response = await client.get("/api/uploads/does-not-exist.png")

        assert response.status_code == 404


class TestOrderEndpoints:
    """Tests for orders and simulated payments."""

    async def test_orders_get_sequential_ids(self, client, store):
        first = await client.post("/api/orders", json={"items": [{"productId": 1, "qty": 2}]})
        second = await client.post("/api/orders", json={"total": 700})

        assert first.json() == {"data": {"id": 1}}
        assert second.json() == {"data": {"id": 2}}

        stored = store.find_one("orders", {"id": 1})
        assert stored["items"] == [{"productId": 1, "qty": 2}]
        assert "createdAt" in stored

    async def test_payment_simulation_echoes(self, client):
        response = await client.post("/api/payments/simulate", json={"amount": 350})

        data = response.json()["data"]
        assert data["success"] is True
        assert data["echo"] == {"amount": 350}
        assert len(data["paymentId"]) == 36


class TestErrorHandling:
    """Tests for the uniform error body."""

    async def test_unexpected_error_is_500(self, app, client, monkeypatch):
        container = app.state.services

        def broken(*args, **kwargs):
            raise RuntimeError("disk on fire")

        monkeypatch.setattr(container.record_store, "insert", broken)

        response = await client.post("/api/orders", json={})

        assert response.status_code == 500
        assert response.json() == {"error": "Internal Server Error"}
