# storefront/services/gateway_client.py
from decimal import Decimal

import requests

from storefront.domain.pricing import round_money
from storefront.utils import settings
from storefront.utils.retry import http_retry
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


def to_minor_units(amount: Decimal) -> int:
    """Rupees -> paise."""
    return int(round_money(amount) * 100)


def from_minor_units(amount: int) -> Decimal:
    return round_money(Decimal(amount) / 100)


class GatewayClient:
    """Thin client over the Razorpay REST API (orders and payments)."""

    def __init__(
        self,
        base_url: str | None = None,
        key_id: str | None = None,
        key_secret: str | None = None,
        timeout: int | None = None,
    ):
        self.base_url = (base_url or settings.RAZORPAY_API_URL).rstrip("/")
        self.key_id = key_id if key_id is not None else settings.RAZORPAY_KEY_ID
        self.key_secret = key_secret if key_secret is not None else settings.RAZORPAY_KEY_SECRET
        self.timeout = timeout or settings.GATEWAY_TIMEOUT_SECONDS

    # not retried, a second POST would open a second gateway order
    def create_order(self, amount: Decimal, currency: str, receipt: str, notes: dict) -> dict:
        url = f"{self.base_url}/orders"
        logger.info(f"GatewayClient POST {url} receipt={receipt}")

        resp = requests.post(
            url,
            json={
                "amount": to_minor_units(amount),
                "currency": currency,
                "receipt": receipt,
                "notes": notes,
            },
            auth=(self.key_id, self.key_secret),
            timeout=self.timeout,
        )
        resp.raise_for_status()
        return resp.json()

    @http_retry()
    def fetch_payment(self, payment_id: str) -> dict:
        url = f"{self.base_url}/payments/{payment_id}"
        logger.info(f"GatewayClient GET {url}")

        resp = requests.get(url, auth=(self.key_id, self.key_secret), timeout=self.timeout)
        resp.raise_for_status()
        return resp.json()


def extract_method_details(entity: dict) -> dict:
    """
    Method-specific fields of a gateway payment entity.
    Only the fields of the method actually used are filled, the rest stay None.
    """
    method = entity.get("method")
    details = {
        "payment_method": method,
        "card_last4": None,
        "card_network": None,
        "bank_name": None,
        "vpa": None,
        "wallet_name": None,
    }

    if method == "card":
        card = entity.get("card") or {}
        details["card_last4"] = card.get("last4")
        details["card_network"] = card.get("network")
    elif method == "netbanking":
        details["bank_name"] = entity.get("bank")
    elif method == "upi":
        details["vpa"] = entity.get("vpa")
    elif method == "wallet":
        details["wallet_name"] = entity.get("wallet")

    return details
