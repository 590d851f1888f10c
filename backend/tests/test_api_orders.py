"""
Order API tests.

Verifies:
- Anyone can place and track an order
- Only admins update, advance and delete orders (401 anonymous / 403 customer)
- Constraint failures come back with the violated constraint name
"""

import re
from datetime import datetime

import pytest

from conftest import auth_headers


def _ts(value: str) -> datetime:
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


@pytest.fixture
def placed(client, db_session, fabric, garment):
    resp = client.post("/api/orders", json={
        "fabric_id": fabric.id,
        "garment_id": garment.id,
        "price": 4000,
        "customizations_json": {"collar": "Spread"},
        "urgent": True,
    })
    assert resp.status_code == 201, resp.get_json()
    return resp.get_json()


class TestPlaceAndTrack:

    def test_anonymous_order_gets_tracking_code(self, placed):
        assert re.match(r"^RT\d{10}$", placed["tracking_id"])
        assert placed["status"] == "confirmed"
        assert placed["price"] == 4000.0
        assert placed["urgent"] is True
        assert placed["created_at"] == placed["updated_at"]

    def test_blank_tracking_code_is_issued(self, client, db_session):
        resp = client.post("/api/orders", json={"price": 10, "tracking_id": "  "})
        assert resp.status_code == 201
        assert resp.get_json()["tracking_id"].startswith("RT")

    def test_server_fields_are_ignored(self, client, db_session):
        resp = client.post("/api/orders", json={
            "price": 10,
            "id": "chosen-by-client",
            "created_at": "2000-01-01T00:00:00Z",
        })
        body = resp.get_json()
        assert resp.status_code == 201
        assert body["id"] != "chosen-by-client"
        assert not body["created_at"].startswith("2000")

    def test_track_anonymously(self, client, placed):
        resp = client.get(f"/api/orders/track/{placed['tracking_id']}")
        assert resp.status_code == 200
        body = resp.get_json()
        assert body["order"]["id"] == placed["id"]
        assert body["progress"]["step"] == 1
        assert body["progress"]["total_steps"] == 8

    def test_track_unknown_code(self, client, db_session):
        resp = client.get("/api/orders/track/RT0000000000")
        assert resp.status_code == 404

    def test_missing_reference(self, client, db_session):
        resp = client.post("/api/orders", json={"price": 10, "garment_id": "nope"})
        assert resp.status_code == 409
        assert resp.get_json()["constraint"] == "orders_garment_id_fkey"

    def test_invalid_status_on_create(self, client, db_session):
        resp = client.post("/api/orders", json={"price": 10, "status": "shipped"})
        assert resp.status_code == 400
        assert resp.get_json()["constraint"] == "orders_status_check"

    def test_negative_price(self, client, db_session):
        resp = client.post("/api/orders", json={"price": -1})
        assert resp.status_code == 400

    def test_owner_order_snapshots_measurements(self, client, customer_account, customer_headers):
        _, customer = customer_account
        resp = client.post("/api/orders", json={"price": 10, "customer_id": customer.id}, headers=customer_headers)
        assert resp.status_code == 201
        assert resp.get_json()["measurements_json"] == {"chest": 38, "waist": 32}

    def test_statuses(self, client):
        resp = client.get("/api/orders/statuses")
        body = resp.get_json()
        assert [s["status"] for s in body["statuses"]][0] == "confirmed"
        assert len(body["statuses"]) == 8


class TestStaffPipeline:

    def test_anonymous_update_is_401(self, client, placed):
        resp = client.put(f"/api/orders/{placed['id']}", json={"status": "cutting"})
        assert resp.status_code == 401

    def test_customer_update_is_403(self, client, placed, customer_headers):
        resp = client.put(f"/api/orders/{placed['id']}", json={"status": "cutting"}, headers=customer_headers)
        assert resp.status_code == 403

    def test_admin_update(self, client, placed, admin_headers):
        resp = client.put(
            f"/api/orders/{placed['id']}",
            json={"status": "cutting", "estimated_completion": "2026-11-01"},
            headers=admin_headers,
        )
        assert resp.status_code == 200
        body = resp.get_json()
        assert body["status"] == "cutting"
        assert body["estimated_completion"] == "2026-11-01"
        assert _ts(body["updated_at"]) > _ts(placed["updated_at"])

    def test_invalid_status_update(self, client, placed, admin_headers):
        resp = client.put(f"/api/orders/{placed['id']}", json={"status": "lost"}, headers=admin_headers)
        assert resp.status_code == 400
        assert resp.get_json()["constraint"] == "orders_status_check"

    def test_tracking_code_is_not_writable(self, client, placed, admin_headers):
        resp = client.put(f"/api/orders/{placed['id']}", json={"tracking_id": "RT1"}, headers=admin_headers)
        assert resp.status_code == 400

    def test_sequenced_skip_is_409(self, app, client, placed, admin_headers, monkeypatch):
        monkeypatch.setitem(app.config, "ORDER_STATUS_ENFORCE_SEQUENCE", True)
        resp = client.put(f"/api/orders/{placed['id']}", json={"status": "ready"}, headers=admin_headers)
        assert resp.status_code == 409

    def test_advance(self, client, placed, admin_headers):
        resp = client.post(f"/api/orders/{placed['id']}/advance", headers=admin_headers)
        assert resp.status_code == 200
        assert resp.get_json()["status"] == "fabric_ready"

    def test_advance_missing_order(self, client, db_session, admin_headers):
        resp = client.post("/api/orders/nope/advance", headers=admin_headers)
        assert resp.status_code == 404

    def test_delete(self, client, placed, admin_headers, customer_headers):
        assert client.delete(f"/api/orders/{placed['id']}", headers=customer_headers).status_code == 403
        assert client.delete(f"/api/orders/{placed['id']}", headers=admin_headers).status_code == 200
        assert client.get(f"/api/orders/{placed['id']}").status_code == 404


class TestListing:

    def test_public_listing(self, client, placed):
        resp = client.get("/api/orders")
        assert resp.status_code == 200
        assert resp.get_json()["count"] == 1

    def test_filters(self, client, placed, admin_headers):
        assert client.get("/api/orders?urgent=true").get_json()["count"] == 1
        assert client.get("/api/orders?urgent=false").get_json()["count"] == 0
        assert client.get("/api/orders?status=cutting").get_json()["count"] == 0
        assert client.get("/api/orders?status=bogus").status_code == 400
        assert client.get("/api/orders?created_after=2000-01-01T00:00:00Z").get_json()["count"] == 1

    def test_paginated(self, client, placed):
        body = client.get("/api/orders?page=1&per_page=10").get_json()
        assert body["pagination"]["total"] == 1

    def test_bad_token_is_401(self, client, db_session):
        resp = client.get("/api/orders", headers=auth_headers("not-a-real-token"))
        assert resp.status_code == 401

    def test_malformed_header_is_401(self, client, db_session):
        resp = client.get("/api/orders", headers={"Authorization": "Token abc"})
        assert resp.status_code == 401
