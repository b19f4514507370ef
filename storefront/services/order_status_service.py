# storefront/services/order_status_service.py
from datetime import datetime, timezone
from typing import Dict, Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from storefront.data.models.order import OrderModel
from storefront.domain.errors import StoreError, NotFound, Forbidden, InvalidTransition, InternalError
from storefront.domain.status import (
    OrderStatus,
    PaymentStatus,
    PAYMENT_OWNED_TRANSITIONS,
    STATUS_TIMESTAMPS,
    CUSTOMER_CANCELLABLE,
    allowed_targets,
)
from storefront.repos.order_repo import OrderRepo
from storefront.repos.product_repo import ProductRepo
from storefront.services.notification_service import NotificationService
from storefront.services.serializers import order_to_dict
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

REFUND_NOTICE = "Refund will be processed within 5-7 business days"


def append_note(existing: str | None, entry: str) -> str:
    if existing:
        return f"{existing}\n\n{entry}"
    return entry


class OrderStatusService:
    """
    Guards order lifecycle transitions.

    Every write is conditional on the status that was validated
    (UPDATE ... WHERE status = <current>), so two racing updates cannot both win.
    Cancelling puts the ordered quantities back on stock in the same transaction.
    """

    def __init__(self, db: Session, notifier: NotificationService | None = None):
        self.repo = OrderRepo(db)
        self.products = ProductRepo(db)
        self.notifier = notifier or NotificationService()

    def update_status(
        self,
        order_id: int,
        status: OrderStatus | str,
        tracking_number: str | None = None,
        tracking_url: str | None = None,
        notes: str | None = None,
        system: bool = False,
    ) -> Dict[str, Any]:
        order = self.repo.get_order_details(order_id)
        if not order:
            raise NotFound("Order not found")

        current = OrderStatus(order.status)
        target = OrderStatus(status)
        allowed = allowed_targets(current, system=system)

        if target not in allowed:
            allowed_str = ", ".join(s.value for s in allowed) or "None"
            if not system and (current, target) in PAYMENT_OWNED_TRANSITIONS:
                raise InvalidTransition(
                    f"Cannot transition from {current.value} to {target.value}: "
                    f"orders are confirmed by a successful payment. Allowed: {allowed_str}"
                )
            raise InvalidTransition(
                f"Cannot transition from {current.value} to {target.value}. Allowed: {allowed_str}"
            )

        now = datetime.now(timezone.utc)
        values = {"status": target.value}

        ts_field = STATUS_TIMESTAMPS.get(target)
        if ts_field:
            values[ts_field] = now

        if target == OrderStatus.SHIPPED:
            if tracking_number:
                values["tracking_number"] = tracking_number
            if tracking_url:
                values["tracking_url"] = tracking_url

        if notes:
            values["notes"] = append_note(order.notes, f"[{now.isoformat()}] {notes}")

        self._apply(order, current, values, restock=target == OrderStatus.CANCELLED)

        logger.info(f"Order {order.order_number}: {current.value} -> {target.value}")
        self.notifier.send_order_status_update(order_id, target.value)

        return order_to_dict(self.repo.get_order_details(order_id))

    def cancel_by_customer(self, order_id: int, user_id: int, reason: str | None = None) -> Dict[str, Any]:
        """
        Use Case: customer cancels their own order while it is PENDING or CONFIRMED.
        The refund itself is recorded when the gateway reports it (refund.created).
        """
        order = self.repo.get_order_details(order_id)
        if not order:
            raise NotFound("Order not found")

        if order.user_id != user_id:
            raise Forbidden("Order does not belong to you")

        current = OrderStatus(order.status)
        if current not in CUSTOMER_CANCELLABLE:
            raise InvalidTransition(
                f"Order cannot be cancelled. Order is already {current.value.lower()}"
            )

        reason = reason or "Customer requested cancellation"
        now = datetime.now(timezone.utc)
        paid = order.payment is not None and order.payment.status == PaymentStatus.SUCCESS.value

        self._apply(
            order,
            current,
            {
                "status": OrderStatus.CANCELLED.value,
                "cancelled_at": now,
                "notes": append_note(order.notes, f"[{now.isoformat()}] Cancellation reason: {reason}"),
            },
            restock=True,
        )

        logger.info(f"Order {order.order_number} cancelled by user {user_id}")
        self.notifier.send_order_status_update(order_id, OrderStatus.CANCELLED.value)

        return {
            "order_id": order_id,
            "status": OrderStatus.CANCELLED.value,
            "refund_status": REFUND_NOTICE if paid else None,
        }

    def _apply(self, order: OrderModel, current: OrderStatus, values: dict, restock: bool):
        try:
            if self.repo.update_status_if(order.id, current.value, values) == 0:
                raise InvalidTransition(
                    f"Order {order.order_number} is no longer {current.value}, it was updated concurrently"
                )

            if restock:
                for item in order.items:
                    self.products.increment_stock(item.product_id, item.quantity)

            self.repo.commit()

        except StoreError:
            self.repo.rollback()
            raise
        except SQLAlchemyError as e:
            self.repo.rollback()
            logger.exception(f"Status update of order {order.id} failed, transaction rolled back")
            raise InternalError() from e
