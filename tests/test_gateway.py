from decimal import Decimal

import pytest
import requests
from redis.exceptions import RedisError

from storefront.services import gateway_client
from storefront.services.gateway_client import (
    GatewayClient,
    extract_method_details,
    from_minor_units,
    to_minor_units,
)
from storefront.services.payment_service import PaymentService
from storefront.services.webhook_guard import WebhookEventGuard

from tests.helpers import WEBHOOK_SECRET, sign, webhook_body


class FakeResponse:
    def __init__(self, payload, status=200):
        self.payload = payload
        self.status = status

    def raise_for_status(self):
        if self.status >= 400:
            raise requests.HTTPError(f"{self.status}")

    def json(self):
        return self.payload


def test_minor_units():
    assert to_minor_units(Decimal("1180.00")) == 118000
    assert to_minor_units(Decimal("0.5")) == 50
    assert from_minor_units(118050) == Decimal("1180.50")


@pytest.mark.parametrize(
    "entity, expected",
    [
        ({"method": "card", "card": {"last4": "1111", "network": "MasterCard"}}, {"card_last4": "1111", "card_network": "MasterCard"}),
        ({"method": "netbanking", "bank": "HDFC"}, {"bank_name": "HDFC"}),
        ({"method": "upi", "vpa": "a@upi"}, {"vpa": "a@upi"}),
        ({"method": "wallet", "wallet": "paytm"}, {"wallet_name": "paytm"}),
    ],
)
def test_method_details(entity, expected):
    details = extract_method_details(entity)

    assert details["payment_method"] == entity["method"]
    for field in ("card_last4", "card_network", "bank_name", "vpa", "wallet_name"):
        assert details[field] == expected.get(field)


def test_create_order_sends_paise(monkeypatch):
    calls = []

    def post(url, json, auth, timeout):
        calls.append((url, json, auth))
        return FakeResponse({"id": "order_abc", "amount": json["amount"]})

    monkeypatch.setattr(gateway_client.requests, "post", post)
    client = GatewayClient(base_url="https://api.example.com/v1/", key_id="k", key_secret="s", timeout=5)

    result = client.create_order(Decimal("1180.00"), "INR", "ORD-2026-0001", {"orderId": "1"})

    assert result["id"] == "order_abc"
    url, body, auth = calls[0]
    assert url == "https://api.example.com/v1/orders"
    assert body["amount"] == 118000
    assert auth == ("k", "s")


def test_fetch_payment_retries_connection_errors(monkeypatch):
    attempts = []

    def get(url, auth, timeout):
        attempts.append(url)
        if len(attempts) < 2:
            raise requests.ConnectionError("reset")
        return FakeResponse({"id": "pay_1", "method": "upi"})

    monkeypatch.setattr(gateway_client.requests, "get", get)
    client = GatewayClient(base_url="https://api.example.com/v1", key_id="k", key_secret="s")

    assert client.fetch_payment("pay_1")["id"] == "pay_1"
    assert len(attempts) == 2


def test_fetch_payment_does_not_retry_http_errors(monkeypatch):
    attempts = []

    def get(url, auth, timeout):
        attempts.append(url)
        return FakeResponse({}, status=400)

    monkeypatch.setattr(gateway_client.requests, "get", get)
    client = GatewayClient(base_url="https://api.example.com/v1", key_id="k", key_secret="s")

    with pytest.raises(requests.HTTPError):
        client.fetch_payment("pay_1")
    assert len(attempts) == 1


# =====================================================
# webhook event guard
# =====================================================
class FakeRedis:
    def __init__(self):
        self.store = {}

    def set(self, name, value, nx, ex):
        if nx and name in self.store:
            return None
        self.store[name] = value
        return True

    def eval(self, script, numkeys, key, owner):
        if self.store.get(key) == owner:
            del self.store[key]
            return 1
        return 0


def test_event_guard_claim_and_release():
    guard = WebhookEventGuard(url="redis://localhost:6379/0", ttl=60)
    guard.redis = FakeRedis()

    assert guard.claim("evt_1", "a") is True
    assert guard.claim("evt_1", "b") is False
    assert guard.release("evt_1", "b") is False
    assert guard.release("evt_1", "a") is True
    assert guard.claim("evt_1", "b") is True


class BrokenGuard:
    def claim(self, event_id, owner):
        raise RedisError("down")

    def release(self, event_id, owner):
        raise RedisError("down")


def test_webhook_is_processed_when_guard_is_down(db):
    svc = PaymentService(db, event_guard=BrokenGuard(), webhook_secret=WEBHOOK_SECRET)
    body = webhook_body("order.paid", {})

    assert svc.handle_webhook(body, sign(body, WEBHOOK_SECRET), "evt_1") == "Webhook processed"


def test_failed_processing_releases_the_claim(client, event_guard):
    # payment.captured without an entity cannot be processed
    body = webhook_body("payment.captured", {})

    resp = client.post(
        "/api/payments/webhook",
        content=body,
        headers={"x-razorpay-signature": sign(body, WEBHOOK_SECRET), "x-razorpay-event-id": "evt_9"},
    )

    assert resp.status_code == 500
    assert resp.json() == {"success": False, "error": "Webhook processing failed"}
    assert "evt_9" not in event_guard.claims
