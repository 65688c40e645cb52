"""HTTP surface: webhook ingestion, audit retrieval, orders, payments, reports."""

import json

import pytest

from feepay.common.config import settings
from feepay.common.errors import GatewayError
from feepay.services.webhooks.signature import compute_signature

API_HEADERS = {"x-api-key": "test-key"}

ORDER_BODY = {
    "school_id": "SCH-1",
    "trustee_id": "TR-1",
    "student_info": {"name": "Asha Rao", "id": "STU-9", "email": "asha.rao@greenwood.org"},
    "gateway_name": "razorpay",
    "custom_order_id": "FEE2026T1",
    "order_amount": 2000,
}


def _create_order(client, **overrides) -> dict:
    response = client.post("/orders", json={**ORDER_BODY, **overrides}, headers=API_HEADERS)
    assert response.status_code == 201, response.text
    return response.json()


def test_health(client):
    assert client.get("/health").json() == {"ok": True}


def test_webhook_reconciles_order(client):
    order = _create_order(client)

    response = client.post(
        "/webhook",
        json={
            "collect_id": order["id"],
            "status": "success",
            "transaction_amount": 2000,
            "payment_mode": "upi",
            "bank_reference": "BANK123",
        },
    )

    assert response.status_code == 200
    assert response.json() == {"success": True, "message": "Webhook processed successfully"}
    status = client.get(f"/payments/status/{order['id']}", headers=API_HEADERS).json()
    assert status["status"] == "success"
    assert status["transaction_amount"] == 2000
    assert status["bank_reference"] == "BANK123"
    assert client.get(f"/orders/{order['id']}", headers=API_HEADERS).json()["status"] == "success"


def test_webhook_legacy_path(client):
    order = _create_order(client)

    response = client.post("/webhooks/webhook", json={"order_info": {"order_id": order["id"]}, "status": "pending"})

    assert response.json()["success"] is True


def test_unmatched_webhook_is_200_negative(client):
    response = client.post("/webhook", json={"collect_id": "does-not-exist", "status": "success"})

    assert response.status_code == 200
    assert response.json() == {"success": False, "message": "Order not found"}


def test_invalid_json_is_logged_not_crashed(client):
    response = client.post("/webhook", content=b"not json", headers={"content-type": "application/json"})

    assert response.status_code == 200
    assert response.json()["success"] is False
    logs = client.get("/webhooks/logs", headers=API_HEADERS).json()
    assert logs[0]["payload"] == {"raw_body": "not json"}
    assert logs[0]["status"] == "error"


def test_logs_require_api_key(client):
    assert client.get("/webhooks/logs").status_code == 401
    assert client.get("/webhooks/logs", headers={"x-api-key": "wrong"}).status_code == 401


def test_logs_newest_first(client):
    order = _create_order(client)
    client.post("/webhook", json={"status": "success"})
    client.post("/webhook", json={"collect_id": order["id"], "status": "success"})

    logs = client.get("/webhooks/logs", headers=API_HEADERS).json()

    assert [row["status"] for row in logs] == ["success", "error"]
    assert logs[0]["order_id"] == order["id"]
    single = client.get(f"/webhooks/logs/{logs[1]['id']}", headers=API_HEADERS).json()
    assert single["notes"] == "No order ID found in payload"


def test_signature_required_when_secret_configured(client, monkeypatch):
    monkeypatch.setattr(settings, "webhook_secret", "s3cret")
    order = _create_order(client)
    body = json.dumps({"collect_id": order["id"], "status": "success"}).encode()

    rejected = client.post("/webhook", content=body, headers={"content-type": "application/json"})
    accepted = client.post(
        "/webhook",
        content=body,
        headers={
            "content-type": "application/json",
            settings.webhook_signature_header: compute_signature(body, "s3cret"),
        },
    )

    assert rejected.status_code == 401
    assert accepted.status_code == 200
    assert accepted.json()["success"] is True
    # The rejected call never reached the pipeline.
    assert len(client.get("/webhooks/logs", headers=API_HEADERS).json()) == 1


def test_duplicate_custom_order_id_conflicts(client):
    _create_order(client)

    response = client.post("/orders", json=ORDER_BODY, headers=API_HEADERS)

    assert response.status_code == 409


@pytest.mark.parametrize(
    "overrides",
    [
        {"gateway_name": "cashfree"},
        {"order_amount": 0},
        {"order_amount": 1_000_001},
        {"custom_order_id": "FEE-2026"},
        {"student_info": {"name": "A", "id": "S", "email": "not-an-email"}},
    ],
)
def test_order_validation(client, overrides):
    response = client.post("/orders", json={**ORDER_BODY, **overrides}, headers=API_HEADERS)

    assert response.status_code == 422


def test_order_listing_and_lookup(client):
    first = _create_order(client, custom_order_id="A1")
    _create_order(client, custom_order_id="A2", school_id="SCH-2")

    page = client.get("/orders", params={"page": 1, "limit": 10}, headers=API_HEADERS).json()
    school = client.get("/orders/school/SCH-2", headers=API_HEADERS).json()
    by_custom = client.get("/orders/custom/A1", headers=API_HEADERS).json()

    assert page["total"] == 2
    assert school["total"] == 1
    assert school["data"][0]["custom_order_id"] == "A2"
    assert by_custom["id"] == first["id"]
    assert client.get("/orders", params={"limit": 101}, headers=API_HEADERS).status_code == 400
    assert client.get("/orders/missing", headers=API_HEADERS).status_code == 404


def test_admin_status_update_is_validated(client):
    order = _create_order(client)

    ok = client.post(f"/orders/{order['id']}/status", json={"status": "failed"}, headers=API_HEADERS)
    bad = client.post(f"/orders/{order['id']}/status", json={"status": "PAID"}, headers=API_HEADERS)
    missing = client.post("/orders/nope/status", json={"status": "failed"}, headers=API_HEADERS)

    assert ok.json()["status"] == "failed"
    assert bad.status_code == 400
    assert missing.status_code == 404


def test_collect_id_binding(client):
    order = _create_order(client)

    response = client.post(f"/orders/{order['id']}/collect-id", json={"collectId": "COL-1"}, headers=API_HEADERS)

    assert response.json()["collect_id"] == "COL-1"
    assert client.post("/orders/nope/collect-id", json={"collectId": "X"}, headers=API_HEADERS).status_code == 404


def test_create_payment_binds_collect_id(client, mocker):
    from feepay.services.api_gateway.main import payments

    gateway = mocker.patch.object(
        payments.gateway,
        "create_payment",
        return_value={"payment_url": "https://pay.example/abc", "collect_id": "COL-77"},
    )

    response = client.post("/payments/create-payment", json=ORDER_BODY, headers=API_HEADERS)

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["collect_id"] == "COL-77"
    sent = gateway.call_args.args[0]
    assert sent["order_id"] == body["order_id"]
    assert sent["custom_order_id"] == "FEE2026T1"
    assert sent["webhook_url"].endswith("/webhook")
    order = client.get(f"/orders/{body['order_id']}", headers=API_HEADERS).json()
    assert order["collect_id"] == "COL-77"
    # No outcome recorded until the gateway notifies us.
    status = client.get(f"/payments/status/{body['order_id']}", headers=API_HEADERS).json()
    assert status["status"] == "created"
    assert status["transaction_amount"] is None


def test_create_payment_gateway_failure(client, mocker):
    from feepay.services.api_gateway.main import payments

    mocker.patch.object(
        payments.gateway,
        "create_payment",
        side_effect=GatewayError("payment gateway rejected request (status=503)"),
    )

    response = client.post("/payments/create-payment", json=ORDER_BODY, headers=API_HEADERS)

    assert response.status_code == 502


def test_transactions_report(client):
    paid = _create_order(client, custom_order_id="T1", order_amount=5000)
    _create_order(client, custom_order_id="T2", school_id="SCH-2")
    client.post("/webhook", json={"collect_id": paid["id"], "status": "success", "amount": 4990})

    listing = client.get("/transactions", params={"status": "success"}, headers=API_HEADERS).json()
    school = client.get("/transactions/school/SCH-2", headers=API_HEADERS).json()
    single = client.get("/transactions/status/T1", headers=API_HEADERS).json()
    stats = client.get("/transactions/stats", headers=API_HEADERS).json()

    assert listing["pagination"]["total"] == 1
    assert listing["transactions"][0]["order_amount"] == 5000
    assert listing["transactions"][0]["transaction_amount"] == 4990
    assert school["transactions"][0]["status"] is None
    assert single["status"] == "success"
    assert stats == {"total_orders": 2, "total_amount": 4990, "status_stats": [{"status": "success", "count": 1}]}
    assert client.get("/transactions/status/NOPE", headers=API_HEADERS).status_code == 404
    assert client.get("/transactions", params={"sort": "password"}, headers=API_HEADERS).status_code == 400
