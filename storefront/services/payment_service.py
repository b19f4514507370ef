# storefront/services/payment_service.py
import json
import uuid
from datetime import datetime, timezone
from decimal import Decimal
from typing import Dict, Any

import requests
from redis.exceptions import RedisError
from sqlalchemy.orm import Session

from storefront.data.models.payment import PaymentModel
from storefront.domain.errors import (
    NotFound,
    Forbidden,
    ValidationError,
    PaymentVerificationFailed,
    InternalError,
)
from storefront.domain.pricing import format_money
from storefront.domain.status import OrderStatus, PaymentStatus
from storefront.repos.order_repo import OrderRepo
from storefront.repos.payment_repo import PaymentRepo
from storefront.services.gateway_client import GatewayClient, extract_method_details, from_minor_units
from storefront.services.notification_service import NotificationService
from storefront.services.webhook_guard import WebhookEventGuard
from storefront.utils import settings
from storefront.utils.signatures import signature_matches
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

_REFUND_FINAL = (PaymentStatus.REFUNDED.value,)
_REFUND_STATES = (
    PaymentStatus.REFUNDED.value,
    PaymentStatus.PARTIALLY_REFUNDED.value,
)
_NOT_DOWNGRADED_BY_FAILURE = (PaymentStatus.SUCCESS.value,) + _REFUND_STATES


class PaymentService:
    """
    Payment side of an order.

    Confirmation can arrive twice (client verification and the captured
    webhook, in any order). Both paths record the payment and then run the
    same conditional PENDING -> CONFIRMED update; only the path whose update
    hits a row sends the confirmation email.
    """

    def __init__(
        self,
        db: Session,
        gateway: GatewayClient | None = None,
        notifier: NotificationService | None = None,
        event_guard: WebhookEventGuard | None = None,
        key_id: str | None = None,
        key_secret: str | None = None,
        webhook_secret: str | None = None,
    ):
        self.repo = PaymentRepo(db)
        self.orders = OrderRepo(db)
        self.gateway = gateway or GatewayClient()
        self.notifier = notifier or NotificationService()
        self.event_guard = event_guard
        self.key_id = key_id if key_id is not None else settings.RAZORPAY_KEY_ID
        self.key_secret = key_secret if key_secret is not None else settings.RAZORPAY_KEY_SECRET
        self.webhook_secret = webhook_secret if webhook_secret is not None else settings.RAZORPAY_WEBHOOK_SECRET

    # =====================================================
    # GATEWAY ORDER
    # =====================================================
    def create_gateway_order(self, user_id: int, order_id: int) -> Dict[str, Any]:
        order = self.orders.get_order_details(order_id)
        if not order:
            raise NotFound("Order not found")

        if order.user_id != user_id:
            raise Forbidden("Order does not belong to you")

        if order.status != OrderStatus.PENDING.value:
            raise ValidationError(f"Cannot create payment for order with status {order.status}")

        payment = order.payment
        if payment and payment.razorpay_order_id:
            logger.info(f"Order {order.order_number} already has gateway order {payment.razorpay_order_id}")
            return self._gateway_order_dict(payment, order)

        try:
            gw_order = self.gateway.create_order(
                amount=order.total_amount,
                currency=settings.PAYMENT_CURRENCY,
                receipt=order.order_number,
                notes={
                    "orderId": str(order.id),
                    "userId": str(user_id),
                    "orderNumber": order.order_number,
                },
            )
        except requests.RequestException as e:
            logger.exception(f"Gateway order creation failed for {order.order_number}")
            raise InternalError("Payment gateway is unavailable") from e

        if payment is None:
            payment = PaymentModel(order_id=order.id)

        payment.razorpay_order_id = gw_order["id"]
        payment.amount = order.total_amount
        payment.currency = settings.PAYMENT_CURRENCY
        payment.status = PaymentStatus.PENDING.value

        self.repo.save(payment)
        self.orders.commit()

        logger.info(f"Gateway order {gw_order['id']} created for {order.order_number}")
        return self._gateway_order_dict(payment, order)

    def _gateway_order_dict(self, payment: PaymentModel, order) -> Dict[str, Any]:
        return {
            "razorpay_order_id": payment.razorpay_order_id,
            "amount": format_money(payment.amount),
            "currency": payment.currency,
            "order_id": order.id,
            "order_number": order.order_number,
            "key_id": self.key_id,
        }

    # =====================================================
    # CLIENT VERIFICATION
    # =====================================================
    def verify_payment(
        self,
        user_id: int,
        razorpay_order_id: str,
        razorpay_payment_id: str,
        razorpay_signature: str,
    ) -> Dict[str, Any]:
        payment = self.repo.get_by_gateway_order_id(razorpay_order_id)
        if not payment:
            raise NotFound("Payment not found")

        if payment.order.user_id != user_id:
            raise Forbidden("Order does not belong to you")

        #HMAC_SHA256(key_secret, "<order_id>|<payment_id>")
        message = f"{razorpay_order_id}|{razorpay_payment_id}"
        if not signature_matches(self.key_secret, message, razorpay_signature):
            payment.status = PaymentStatus.FAILED.value
            payment.failure_reason = "Invalid signature"
            self.orders.commit()

            logger.warning(f"Invalid payment signature for gateway order {razorpay_order_id}")
            raise PaymentVerificationFailed("Payment verification failed. Invalid signature")

        # a replayed verification must not turn a refunded payment back into SUCCESS
        if payment.status in _REFUND_STATES:
            logger.warning(
                f"Verification for gateway order {razorpay_order_id} ignored, payment is {payment.status}"
            )
            return self._verification_dict(payment)

        try:
            entity = self.gateway.fetch_payment(razorpay_payment_id)
        except requests.RequestException as e:
            logger.exception(f"Could not fetch payment {razorpay_payment_id} from gateway")
            raise InternalError("Payment gateway is unavailable") from e

        self._record_success(payment, razorpay_payment_id, entity, signature=razorpay_signature)
        order_id = payment.order_id
        confirmed = self._confirm(order_id)
        self.orders.commit()

        self._after_confirmation(order_id, confirmed, source="verification")

        return self._verification_dict(self.repo.get_by_gateway_order_id(razorpay_order_id))

    @staticmethod
    def _verification_dict(payment: PaymentModel) -> Dict[str, Any]:
        return {
            "payment_id": payment.id,
            "order_id": payment.order_id,
            "order_number": payment.order.order_number,
            "status": payment.status,
            "amount": format_money(payment.amount),
        }

    # =====================================================
    # WEBHOOK
    # =====================================================
    def handle_webhook(self, raw_body: bytes, signature: str | None, event_id: str | None = None) -> str:
        if not signature:
            raise ValidationError("Missing webhook signature")

        if not signature_matches(self.webhook_secret, raw_body, signature):
            logger.warning("Invalid webhook signature")
            raise PaymentVerificationFailed("Invalid webhook signature")

        try:
            event = json.loads(raw_body)
        except ValueError:
            raise ValidationError("Malformed webhook payload")

        owner = uuid.uuid4().hex
        claimed = self._claim(event_id, owner)
        if claimed is False:
            logger.info(f"Webhook event {event_id} already processed, skipping")
            return "Duplicate event ignored"

        try:
            return self._dispatch(event)
        except Exception:
            if claimed:
                self._release(event_id, owner)
            raise

    def _dispatch(self, event: dict) -> str:
        event_type = event.get("event")
        payload = event.get("payload") or {}

        handlers = {
            "payment.captured": self._on_payment_captured,
            "payment.failed": self._on_payment_failed,
            "refund.created": self._on_refund_created,
        }
        handler = handlers.get(event_type)
        if handler is None:
            logger.info(f"Webhook event {event_type} ignored")
            return "Webhook processed"

        logger.info(f"Processing webhook event {event_type}")
        return handler(payload)

    def _on_payment_captured(self, payload: dict) -> str:
        entity = payload["payment"]["entity"]
        payment = self.repo.get_by_gateway_order_id(entity["order_id"])
        if not payment:
            logger.error(f"Payment not found for gateway order {entity['order_id']}")
            return "Payment not found"

        if payment.status in _REFUND_STATES:
            logger.warning(
                f"payment.captured for gateway order {entity['order_id']} ignored, payment is {payment.status}"
            )
            return "Webhook processed"

        self._record_success(payment, entity["id"], entity)
        order_id = payment.order_id
        confirmed = self._confirm(order_id)
        self.orders.commit()

        self._after_confirmation(order_id, confirmed, source="webhook")
        return "Webhook processed"

    def _on_payment_failed(self, payload: dict) -> str:
        entity = payload["payment"]["entity"]
        payment = self.repo.get_by_gateway_order_id(entity["order_id"])
        if not payment:
            logger.error(f"Payment not found for gateway order {entity['order_id']}")
            return "Payment not found"

        # an earlier failed attempt reported after a later attempt succeeded
        if payment.status in _NOT_DOWNGRADED_BY_FAILURE:
            logger.warning(
                f"payment.failed for gateway order {entity['order_id']} ignored, payment is {payment.status}"
            )
            return "Webhook processed"

        payment.status = PaymentStatus.FAILED.value
        payment.failure_reason = entity.get("error_description") or "Payment failed"
        payment.failure_code = entity.get("error_code")
        self.orders.commit()

        logger.info(f"Payment failed for gateway order {entity['order_id']}")
        return "Webhook processed"

    def _on_refund_created(self, payload: dict) -> str:
        refund = payload["refund"]["entity"]
        payment = self.repo.get_by_gateway_payment_id(refund["payment_id"])
        if not payment:
            logger.error(f"Payment not found for gateway payment {refund['payment_id']}")
            return "Payment not found"

        # cumulative refunded amount when the payment entity is attached, else this refund alone
        payment_entity = (payload.get("payment") or {}).get("entity") or {}
        refunded_minor = payment_entity.get("amount_refunded", refund["amount"])
        refunded = from_minor_units(refunded_minor)
        full = refunded >= Decimal(payment.amount)

        if payment.status not in _REFUND_FINAL:
            payment.status = (
                PaymentStatus.REFUNDED.value if full else PaymentStatus.PARTIALLY_REFUNDED.value
            )

        if full and self.orders.mark_refunded(payment.order_id):
            logger.info(f"Order {payment.order_id} refunded in full")

        self.orders.commit()
        logger.info(f"Refund of {refunded} recorded for gateway payment {refund['payment_id']}")
        return "Webhook processed"

    # =====================================================
    # helpers
    # =====================================================
    def _record_success(self, payment: PaymentModel, payment_id: str, entity: dict, signature: str | None = None):
        payment.razorpay_payment_id = payment_id
        if signature:
            payment.razorpay_signature = signature
        payment.status = PaymentStatus.SUCCESS.value
        for field, value in extract_method_details(entity).items():
            setattr(payment, field, value)
        payment.failure_reason = None
        payment.failure_code = None
        payment.paid_at = payment.paid_at or datetime.now(timezone.utc)

    def _confirm(self, order_id: int) -> bool:
        # UPDATE orders SET status='CONFIRMED' WHERE id=? AND status='PENDING'
        return self.orders.confirm_if_pending(order_id, datetime.now(timezone.utc)) == 1

    def _after_confirmation(self, order_id: int, confirmed: bool, source: str):
        if confirmed:
            logger.info(f"Order {order_id} confirmed by payment {source}")
            self.notifier.send_order_confirmation(order_id)
        else:
            logger.info(f"Order {order_id} was not PENDING, {source} made no status change")

    def _claim(self, event_id: str | None, owner: str) -> bool | None:
        """True: claimed, False: duplicate, None: not guarded (no id, no guard or Redis down)."""
        if not event_id or self.event_guard is None:
            return None
        try:
            return self.event_guard.claim(event_id, owner)
        except RedisError:
            logger.warning(f"Webhook event guard unavailable, processing {event_id} unguarded")
            return None

    def _release(self, event_id: str, owner: str):
        try:
            self.event_guard.release(event_id, owner)
        except RedisError:
            logger.warning(f"Could not release webhook event {event_id}")
