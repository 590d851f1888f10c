"""
Auth and customer API tests.

Verifies:
- Sign-up creates an account and a customer row with the same id
- Login/logout issue and revoke bearer tokens
- Customers read only their own row; admins manage all rows
"""

import pytest

from tailorshop.models import Order, SecurityEvent

from conftest import PASSWORD, auth_headers


SIGNUP = {
    "name": "Meera Iyer",
    "phone": "+91 98450 00003",
    "email": "Meera@Example.com",
    "password": PASSWORD,
    "measurements": {"shoulder": 17},
}


class TestRegister:

    def test_register(self, client, db_session):
        resp = client.post("/api/auth/register", json=SIGNUP)
        assert resp.status_code == 201
        body = resp.get_json()
        assert body["user"]["id"] == body["customer"]["id"]
        assert body["user"]["email"] == "meera@example.com"
        assert body["customer"]["measurements_json"] == {"shoulder": 17}
        assert body["token"]

        me = client.get("/api/auth/me", headers=auth_headers(body["token"]))
        assert me.status_code == 200
        assert me.get_json()["customer"]["name"] == "Meera Iyer"

    def test_weak_password(self, client, db_session):
        resp = client.post("/api/auth/register", json={**SIGNUP, "password": "short"})
        assert resp.status_code == 400

    def test_missing_fields(self, client, db_session):
        resp = client.post("/api/auth/register", json={"email": "x@example.com"})
        assert resp.status_code == 400
        assert "name" in resp.get_json()["error"]

    def test_measurements_must_be_object(self, client, db_session):
        resp = client.post("/api/auth/register", json={**SIGNUP, "measurements": [17]})
        assert resp.status_code == 400

    def test_duplicate_email(self, client, customer_account):
        resp = client.post("/api/auth/register", json={**SIGNUP, "email": "asha@example.com"})
        assert resp.status_code == 409


class TestLoginLogout:

    def test_login(self, client, customer_account):
        resp = client.post("/api/auth/login", json={"email": "ASHA@example.com", "password": PASSWORD})
        assert resp.status_code == 200
        assert resp.get_json()["token"]

    def test_wrong_password_is_audited(self, client, db_session, customer_account):
        resp = client.post("/api/auth/login", json={"email": "asha@example.com", "password": "Wrong123!"})
        assert resp.status_code == 401

        event = db_session.query(SecurityEvent).filter_by(event_type="LOGIN_FAILED").one()
        assert event.success is False
        assert event.caller_class == "anonymous"

    def test_login_requires_both_fields(self, client, db_session):
        assert client.post("/api/auth/login", json={"email": "a@b.com"}).status_code == 400

    def test_me(self, client, customer_account, customer_headers):
        body = client.get("/api/auth/me", headers=customer_headers).get_json()
        assert body["caller_class"] == "authenticated"
        assert body["customer"]["email"] == "asha@example.com"
        assert body["access"]["fabrics"]["select"] is True
        assert body["access"]["fabrics"]["insert"] is False

    def test_me_for_admin(self, client, admin_headers):
        body = client.get("/api/auth/me", headers=admin_headers).get_json()
        assert body["caller_class"] == "admin"
        assert body["customer"] is None
        assert body["access"]["orders"]["delete"] is True

    def test_me_requires_token(self, client, db_session):
        assert client.get("/api/auth/me").status_code == 401

    def test_logout_revokes_token(self, client, customer_headers):
        assert client.post("/api/auth/logout", headers=customer_headers).status_code == 200
        assert client.get("/api/auth/me", headers=customer_headers).status_code == 401
        assert client.post("/api/auth/logout", headers=customer_headers).status_code == 401


class TestCustomersApi:

    def test_owner_reads_own_row(self, client, customer_account, customer_headers):
        _, customer = customer_account
        resp = client.get(f"/api/customers/{customer.id}", headers=customer_headers)
        assert resp.status_code == 200
        assert resp.get_json()["measurements_json"] == {"chest": 38, "waist": 32}

    def test_owner_cannot_read_others(self, client, other_customer, customer_headers):
        resp = client.get(f"/api/customers/{other_customer.id}", headers=customer_headers)
        assert resp.status_code == 403

    def test_missing_row(self, client, customer_headers, admin_headers):
        # Customers have no row-independent read rule, so a missing row is a denial.
        assert client.get("/api/customers/nope", headers=customer_headers).status_code == 403
        assert client.get("/api/customers/nope", headers=admin_headers).status_code == 404

    def test_listing_is_row_filtered(self, client, customer_account, other_customer, customer_headers, admin_headers):
        assert client.get("/api/customers").status_code == 401

        own = client.get("/api/customers", headers=customer_headers).get_json()
        assert [c["name"] for c in own["items"]] == ["Asha Rao"]

        everyone = client.get("/api/customers", headers=admin_headers).get_json()
        assert everyone["count"] == 2

    def test_anyone_can_create(self, client, db_session):
        resp = client.post("/api/customers", json={
            "name": "Walk-in", "phone": "555-0100", "email": "walkin@example.com",
        })
        assert resp.status_code == 201
        assert resp.get_json()["measurements_json"] == {}

    def test_create_requires_contact_fields(self, client, db_session):
        assert client.post("/api/customers", json={"name": "No phone"}).status_code == 400

    def test_owner_cannot_update(self, client, customer_account, customer_headers):
        _, customer = customer_account
        resp = client.put(f"/api/customers/{customer.id}", json={"phone": "1"}, headers=customer_headers)
        assert resp.status_code == 403

    def test_admin_updates(self, client, customer_account, admin_headers):
        _, customer = customer_account
        resp = client.put(
            f"/api/customers/{customer.id}",
            json={"measurements_json": {"chest": 40}},
            headers=admin_headers,
        )
        assert resp.status_code == 200
        assert resp.get_json()["measurements_json"] == {"chest": 40}

    def test_admin_delete_cascades(self, client, db_session, customer_account, admin_headers):
        _, customer = customer_account
        customer_id = customer.id
        client.post("/api/orders", json={"price": 10, "customer_id": customer_id})

        assert client.delete(f"/api/customers/{customer_id}", headers=admin_headers).status_code == 200
        assert db_session.query(Order).filter_by(customer_id=customer_id).count() == 0


class TestSystem:

    def test_health(self, client, db_session):
        resp = client.get("/health")
        assert resp.status_code == 200
        assert resp.get_json()["status"] == "degraded"

    @pytest.mark.usefixtures("fabric")
    def test_health_with_catalog(self, client):
        assert client.get("/health").get_json()["status"] == "healthy"

    def test_policies(self, client, db_session):
        body = client.get("/api/policies").get_json()
        assert len(body["rules"]) == 11
        assert body["caller_class"] == "anonymous"
        assert body["access"]["customers"]["insert"] is True
        assert body["access"]["customers"]["select"] is False
