# storefront/api/deps.py
import hmac

from fastapi import Header, HTTPException

from storefront.domain.errors import StoreError, Unauthorized, Forbidden
from storefront.services.gateway_client import GatewayClient
from storefront.services.notification_service import NotificationService
from storefront.services.webhook_guard import WebhookEventGuard
from storefront.utils import settings


def http_error(e: StoreError) -> HTTPException:
    return HTTPException(status_code=e.status_code, detail=e.message)


def require_admin(x_admin_key: str | None = Header(None)):
    """Admin endpoints: `x-admin-key` must match ADMIN_API_KEY."""
    try:
        if not x_admin_key:
            raise Unauthorized("Unauthorized")
        if not settings.ADMIN_API_KEY or not hmac.compare_digest(x_admin_key, settings.ADMIN_API_KEY):
            raise Forbidden("Admin access required")
    except StoreError as e:
        raise http_error(e)


#collaborators are dependencies so they can be swapped out (tests, local dev)
def get_gateway() -> GatewayClient:
    return GatewayClient()


def get_notifier() -> NotificationService:
    return NotificationService()


def get_event_guard() -> WebhookEventGuard:
    return WebhookEventGuard()
