"""HTTP surface: auth, roles, error payloads and pagination."""
import pytest

from pharmacy_api.core.config import settings
from pharmacy_api.core.permissions import Role


@pytest.fixture
def medicine(client, auth_headers):
    resp = client.post(
        "/medicines",
        json={"name": "Paracetamol 500mg", "category": "Analgesic", "retail_price": "2.50", "stock": 10},
        headers=auth_headers(Role.INVENTORY_MANAGER),
    )
    assert resp.status_code == 201, resp.text
    return resp.json()


class TestAuth:
    def test_login_returns_token_and_cookie(self, client, password):
        resp = client.post("/auth/login", json={"username": "pharmacist", "password": password})
        assert resp.status_code == 200
        assert resp.json()["access_token"]
        assert settings.TOKEN_COOKIE_NAME in resp.cookies

    def test_login_failure_is_generic(self, client):
        resp = client.post("/auth/login", json={"username": "pharmacist", "password": "wrong-password"})
        assert resp.status_code == 401
        assert resp.json() == {"error": "Invalid username or password", "kind": "UNAUTHORIZED"}

    def test_me(self, client, auth_headers):
        resp = client.get("/auth/me", headers=auth_headers(Role.PHARMACIST))
        assert resp.status_code == 200
        assert resp.json()["role"] == "PHARMACIST"

    def test_missing_token(self, client):
        resp = client.get("/medicines")
        assert resp.status_code == 401
        assert resp.json()["kind"] == "UNAUTHORIZED"

    def test_garbage_token(self, client):
        resp = client.get("/medicines", headers={"Authorization": "Bearer not-a-jwt"})
        assert resp.status_code == 401

    def test_admin_creates_staff(self, client, auth_headers):
        payload = {
            "name": "New Clerk",
            "username": "clerk",
            "email": "clerk@pharmacy.example.com",
            "password": "long-enough-password",
            "role": "PHARMACIST",
        }
        resp = client.post("/auth/users", json=payload, headers=auth_headers(Role.ADMIN))
        assert resp.status_code == 201
        assert resp.json()["role"] == "PHARMACIST"

        again = client.post("/auth/users", json=payload, headers=auth_headers(Role.ADMIN))
        assert again.status_code == 400
        assert again.json()["kind"] == "CONFLICT"

    def test_non_admin_cannot_create_staff(self, client, auth_headers):
        resp = client.post(
            "/auth/users",
            json={"name": "X", "username": "x", "email": "x@pharmacy.example.com", "password": "long-enough-password"},
            headers=auth_headers(Role.INVENTORY_MANAGER),
        )
        assert resp.status_code == 403


class TestRoles:
    def test_pharmacist_cannot_create_medicine(self, client, auth_headers):
        resp = client.post("/medicines", json={"name": "X", "category": "Y"}, headers=auth_headers(Role.PHARMACIST))
        assert resp.status_code == 403
        assert resp.json()["kind"] == "FORBIDDEN"

    def test_pharmacist_can_sell(self, client, auth_headers, medicine):
        resp = client.post(
            "/invoices",
            json={"payment_method": "CASH", "items": [{"medicine_id": medicine["id"], "quantity": 2}]},
            headers=auth_headers(Role.PHARMACIST),
        )
        assert resp.status_code == 201, resp.text
        body = resp.json()
        assert body["code"].startswith("INV-")
        assert body["items"][0]["medicine"]["name"] == "Paracetamol 500mg"

    def test_only_admin_edits_interactions(self, client, auth_headers, medicine):
        other = client.post(
            "/medicines", json={"name": "Aspirin", "category": "Antiplatelet"}, headers=auth_headers(Role.ADMIN),
        ).json()
        payload = {
            "medicine_from_id": medicine["id"],
            "medicine_to_id": other["id"],
            "severity": "moderate",
            "description": "Additive effect",
        }
        denied = client.post("/interactions", json=payload, headers=auth_headers(Role.INVENTORY_MANAGER))
        assert denied.status_code == 403

        created = client.post("/interactions", json=payload, headers=auth_headers(Role.ADMIN))
        assert created.status_code == 201

        check = client.post(
            "/interactions/check",
            json={"medicine_from_id": other["id"], "medicine_to_id": medicine["id"]},
            headers=auth_headers(Role.USER),
        )
        assert check.status_code == 200
        assert check.json()["found"] is True
        assert check.json()["interaction"]["id"] == created.json()["id"]


class TestErrors:
    def test_insufficient_stock_payload(self, client, auth_headers, medicine):
        resp = client.post(
            "/invoices",
            json={"payment_method": "CASH", "items": [{"medicine_id": medicine["id"], "quantity": 11}]},
            headers=auth_headers(Role.PHARMACIST),
        )
        assert resp.status_code == 400
        assert resp.json()["kind"] == "INSUFFICIENT_STOCK"
        assert set(resp.json()) == {"error", "kind"}

        stock = client.get(f"/medicines/{medicine['id']}", headers=auth_headers(Role.PHARMACIST)).json()["stock"]
        assert stock == 10

    def test_not_found_payload(self, client, auth_headers):
        resp = client.get("/invoices/INV-00404", headers=auth_headers(Role.PHARMACIST))
        assert resp.status_code == 404
        assert resp.json()["kind"] == "NOT_FOUND"

    def test_request_validation_is_400(self, client, auth_headers):
        resp = client.post("/invoices", json={"payment_method": "CASH", "items": []}, headers=auth_headers())
        assert resp.status_code == 400
        assert resp.json()["kind"] == "VALIDATION_ERROR"

    def test_invalid_item_quantity(self, client, auth_headers):
        resp = client.post("/invoices", json={"items": [{"medicine_id": 1, "quantity": 0}]}, headers=auth_headers())
        assert resp.status_code == 400


class TestUpdateValidation:
    """A null for a required column is a validation error; an omitted field is left unchanged."""

    def test_customer_null_name(self, client, auth_headers):
        headers = auth_headers(Role.PHARMACIST)
        customer = client.post("/customers", json={"name": "Le Van C", "phone": "0912"}, headers=headers).json()

        resp = client.put(f"/customers/{customer['id']}", json={"name": None}, headers=headers)
        assert resp.status_code == 400
        assert resp.json()["kind"] == "VALIDATION_ERROR"

        resp = client.put(f"/customers/{customer['id']}", json={"name": "   "}, headers=headers)
        assert resp.status_code == 400

        resp = client.put(f"/customers/{customer['id']}", json={"address": "District 3"}, headers=headers)
        assert resp.status_code == 200, resp.text
        assert resp.json()["name"] == "Le Van C"

    def test_supplier_null_phone(self, client, auth_headers):
        headers = auth_headers(Role.ADMIN)
        supplier = client.post(
            "/suppliers",
            json={"name": "Mekong Pharma", "phone": "0281111111", "address": "2 Port Road", "contact_person": "Desk"},
            headers=headers,
        ).json()

        resp = client.put(f"/suppliers/{supplier['id']}", json={"phone": None}, headers=headers)
        assert resp.status_code == 400
        assert resp.json()["kind"] == "VALIDATION_ERROR"

        resp = client.put(f"/suppliers/{supplier['id']}", json={"contact_person": "Ms Hoa"}, headers=headers)
        assert resp.status_code == 200, resp.text
        assert resp.json()["phone"] == "0281111111"

    @pytest.mark.parametrize("body", [{"name": None}, {"category": None}, {"retail_price": None}, {"name": ""}])
    def test_medicine_null_required_field(self, client, auth_headers, medicine, body):
        resp = client.put(f"/medicines/{medicine['id']}", json=body, headers=auth_headers(Role.INVENTORY_MANAGER))
        assert resp.status_code == 400
        assert resp.json()["kind"] == "VALIDATION_ERROR"

    def test_medicine_nullable_field_cleared(self, client, auth_headers, medicine):
        resp = client.put(
            f"/medicines/{medicine['id']}", json={"dosage": None}, headers=auth_headers(Role.INVENTORY_MANAGER),
        )
        assert resp.status_code == 200, resp.text
        assert resp.json()["name"] == "Paracetamol 500mg"


class TestInvoiceKeys:
    def _sell(self, client, auth_headers, medicine, **extra):
        return client.post(
            "/invoices",
            json={"payment_method": "CASH", "items": [{"medicine_id": medicine["id"], "quantity": 1}], **extra},
            headers=auth_headers(Role.PHARMACIST),
        )

    def test_all_digit_code_rejected(self, client, auth_headers, medicine):
        resp = self._sell(client, auth_headers, medicine, code="777")
        assert resp.status_code == 400
        assert resp.json()["kind"] == "VALIDATION_ERROR"

        stock = client.get(f"/medicines/{medicine['id']}", headers=auth_headers(Role.PHARMACIST)).json()["stock"]
        assert stock == 10

    def test_caller_code_is_addressable(self, client, auth_headers, medicine):
        created = self._sell(client, auth_headers, medicine, code="SHOP-777")
        assert created.status_code == 201, created.text
        invoice = created.json()

        by_code = client.get("/invoices/SHOP-777", headers=auth_headers(Role.PHARMACIST))
        by_id = client.get(f"/invoices/{invoice['id']}", headers=auth_headers(Role.PHARMACIST))
        assert by_code.status_code == by_id.status_code == 200
        assert by_code.json()["id"] == by_id.json()["id"] == invoice["id"]
        assert by_id.json()["code"] == "SHOP-777"

    def test_non_ascii_digit_key_is_not_found(self, client, auth_headers):
        resp = client.get("/invoices/²", headers=auth_headers(Role.PHARMACIST))
        assert resp.status_code == 404
        assert resp.json()["kind"] == "NOT_FOUND"


class TestInventoryEndpoints:
    def test_adjust_and_reconcile(self, client, auth_headers, medicine):
        resp = client.post(
            "/inventory/adjust",
            json={"medicine_id": medicine["id"], "adjust_type": "set", "quantity": 25},
            headers=auth_headers(Role.INVENTORY_MANAGER),
        )
        assert resp.status_code == 200, resp.text
        body = resp.json()
        assert body["medicine"]["stock"] == 25
        assert body["log"]["type"] == "ADJUSTMENT_ADD"
        assert body["log"]["quantity"] == 15

        noop = client.post(
            "/inventory/adjust",
            json={"medicine_id": medicine["id"], "adjust_type": "set", "quantity": 25},
            headers=auth_headers(Role.INVENTORY_MANAGER),
        )
        assert noop.json()["log"] is None

        recon = client.get(f"/inventory/{medicine['id']}/reconcile", headers=auth_headers(Role.PHARMACIST))
        assert recon.json() == {"medicine_id": medicine["id"], "stock": 25, "ledger_total": 25, "consistent": True}

    def test_logs_endpoint(self, client, auth_headers, medicine):
        resp = client.get("/inventory/logs", params={"type": "INITIAL"}, headers=auth_headers(Role.PHARMACIST))
        assert resp.status_code == 200
        body = resp.json()
        assert body["meta"]["total"] == 1
        assert body["data"][0]["label"] == "Opening stock"

    def test_stock_filter(self, client, auth_headers, medicine):
        resp = client.get("/inventory", params={"stock": "low"}, headers=auth_headers(Role.PHARMACIST))
        assert [row["id"] for row in resp.json()["data"]] == [medicine["id"]]
        assert resp.json()["data"][0]["level"] == "low"

        resp = client.get("/inventory", params={"stock": "high"}, headers=auth_headers(Role.PHARMACIST))
        assert resp.json()["data"] == []


class TestPagination:
    def test_meta(self, client, auth_headers):
        for n in range(12):
            client.post("/customers", json={"name": f"Customer {n}"}, headers=auth_headers(Role.PHARMACIST))

        first = client.get("/customers", headers=auth_headers(Role.PHARMACIST)).json()
        assert first["meta"] == {"total": 12, "page": 1, "limit": 10, "total_pages": 2}
        assert len(first["data"]) == 10

        second = client.get("/customers", params={"page": 2, "limit": 10}, headers=auth_headers(Role.PHARMACIST)).json()
        assert len(second["data"]) == 2
        assert not {c["id"] for c in first["data"]} & {c["id"] for c in second["data"]}

    def test_limit_bounds(self, client, auth_headers):
        resp = client.get("/customers", params={"limit": 101}, headers=auth_headers(Role.PHARMACIST))
        assert resp.status_code == 400


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}
    assert resp.headers["X-Frame-Options"] == "DENY"
