import pytest
from fastapi.testclient import TestClient

from app.main import create_app
from app.services.geo import MockGeoService, get_geo_service
from app.services.imagery import MockImageService, get_image_service

from tests.conftest import ADMIN_PASSWORD, ADMIN_USERNAME


@pytest.fixture
def client(state):
    app = create_app(state)
    app.dependency_overrides[get_geo_service] = lambda: MockGeoService(
        failure_rate=0, min_latency=0, max_latency=0
    )
    app.dependency_overrides[get_image_service] = lambda: MockImageService()
    with TestClient(app) as test_client:
        yield test_client


def _login_admin(client):
    response = client.post("/api/session/staff", json={"username": ADMIN_USERNAME, "password": ADMIN_PASSWORD})
    assert response.status_code == 200
    return response.json()


def _checkout(client, phone="03001234567"):
    client.post("/api/session/customer", json={"phone": phone})
    client.post("/api/cart", json={"restaurant_id": "1", "item_id": "m1"})
    client.post("/api/cart", json={"restaurant_id": "1", "item_id": "m2"})
    return client.post("/api/checkout", json={"customer_name": "Ali Ahmed", "address": "Clifton Block 5"})


def test_health_reports_local_mode(client):
    body = client.get("/health").json()

    assert body["status"] == "operational"
    assert body["sync_status"] == "local"
    assert body["initializing"] is False
    assert body["remote_mirror"] == "disabled"


def test_state_document_uses_wire_names(client):
    body = client.get("/api/state").json()

    assert "_timestamp" in body
    assert body["restaurants"][0]["deliveryTime"] == "25-35 min"
    assert body["settings"]["commissions"]["minOrderValue"] == 200


def test_search_and_cuisines(client):
    assert [r["id"] for r in client.get("/api/restaurants", params={"q": "biryani"}).json()] == ["1"]
    assert client.get("/api/restaurants", params={"cuisine": "BBQ"}).json() == []
    assert client.get("/api/cuisines").json() == ["All", "Desi", "Rice"]


def test_unknown_restaurant_is_404(client):
    response = client.get("/api/restaurants/nope")

    assert response.status_code == 404
    assert response.json()["success"] is False


def test_checkout_flow(client):
    response = _checkout(client)

    assert response.status_code == 201
    order = response.json()
    assert order["total"] == 500
    assert order["status"] == "Pending"
    assert client.get("/api/session").json()["cart"] == []

    mine = client.get("/api/my-orders").json()
    assert [o["id"] for o in mine] == [order["id"]]


def test_checkout_requires_login(client):
    response = client.post("/api/checkout", json={"customer_name": "Ali", "address": "Clifton"})

    assert response.status_code == 401


def test_checkout_below_minimum_is_400(client):
    client.post("/api/session/customer", json={"phone": "03001234567"})
    client.post("/api/cart", json={"restaurant_id": "1", "item_id": "m2"})

    response = client.post("/api/checkout", json={"customer_name": "Ali", "address": "Clifton"})

    assert response.status_code == 400
    assert "Minimum order" in response.json()["detail"]


def test_malformed_body_is_400(client):
    response = client.post("/api/session/customer", json={})

    assert response.status_code == 400


def test_bad_staff_login_is_401(client):
    response = client.post("/api/session/staff", json={"username": "Ansar", "password": "nope"})

    assert response.status_code == 401


def test_customer_cannot_reach_admin(client):
    client.post("/api/session/customer", json={"phone": "03001234567"})

    assert client.get("/api/admin/stats").status_code == 403


def test_admin_routes(client):
    order_id = _checkout(client).json()["id"]
    _login_admin(client)

    created = client.post("/api/admin/restaurants", json={"name": "Lahori Tikka", "cuisine": "BBQ"})
    assert created.status_code == 201
    restaurant_id = created.json()["id"]

    item = client.post(
        f"/api/admin/restaurants/{restaurant_id}/menu",
        json={"name": "Seekh Kabab", "price": 300, "category": "Main"},
    )
    assert item.status_code == 201

    status = client.put(f"/api/admin/orders/{order_id}/status", json={"status": "Delivered"})
    assert status.json()["status"] == "Delivered"

    stats = client.get("/api/admin/stats").json()
    assert stats == {"total_orders": 1, "pending_orders": 0, "revenue": 500, "restaurants": 2, "users": 1}

    assert client.delete(f"/api/admin/restaurants/{restaurant_id}").status_code == 204
    assert client.delete("/api/admin/restaurants/nope").status_code == 404


def test_staff_without_right_gets_403(client):
    _login_admin(client)
    created = client.post(
        "/api/admin/users",
        json={"username": "rider1", "password": "pw", "rights": ["orders"]},
    )
    assert created.status_code == 201

    client.post("/api/session/staff", json={"username": "rider1", "password": "pw"})
    response = client.post("/api/admin/restaurants", json={"name": "Sneaky Snacks"})

    assert response.status_code == 403


def test_invoice_download(client):
    order_id = _checkout(client).json()["id"]

    response = client.get(f"/api/orders/{order_id}/invoice")

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/plain")
    assert f"#{order_id.upper()}" in response.text

    client.post("/api/session/customer", json={"phone": "03119999999"})
    assert client.get(f"/api/orders/{order_id}/invoice").status_code == 403


def test_reverse_geocode(client):
    response = client.post("/api/geo/reverse", json={"latitude": 24.8607, "longitude": 67.0011})

    body = response.json()
    assert body["success"] is True
    assert body["address"].endswith("Karachi")


def test_generate_image_requires_operator(client):
    assert client.post("/api/admin/images", json={"prompt": "Biryani"}).status_code == 401

    _login_admin(client)
    body = client.post("/api/admin/images", json={"prompt": "Biryani"}).json()

    assert body["success"] is True
    assert body["image"].startswith("https://picsum.photos/seed/Biryani/")


def test_notification_log_and_reset(client):
    _checkout(client)
    _login_admin(client)

    log = client.get("/api/admin/notifications").json()
    assert log[0]["status"] == "Pending Dispatch"

    session = client.post("/api/admin/reset-cache").json()
    assert session["user"] is None
    assert client.get("/api/state").json()["_timestamp"] == 0
