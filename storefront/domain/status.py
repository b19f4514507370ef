# storefront/domain/status.py
from enum import Enum


class OrderStatus(str, Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    PROCESSING = "PROCESSING"
    SHIPPED = "SHIPPED"
    DELIVERED = "DELIVERED"
    CANCELLED = "CANCELLED"
    REFUNDED = "REFUNDED"


class PaymentStatus(str, Enum):
    PENDING = "PENDING"
    PROCESSING = "PROCESSING"
    SUCCESS = "SUCCESS"
    FAILED = "FAILED"
    REFUNDED = "REFUNDED"
    PARTIALLY_REFUNDED = "PARTIALLY_REFUNDED"


class Availability(str, Enum):
    IN_STOCK = "IN_STOCK"
    OUT_OF_STOCK = "OUT_OF_STOCK"
    PREORDER = "PREORDER"


# REFUNDED is only ever reached through the refund webhook, never through this table
ALLOWED_TRANSITIONS: dict[OrderStatus, tuple[OrderStatus, ...]] = {
    OrderStatus.PENDING: (OrderStatus.CONFIRMED, OrderStatus.CANCELLED),
    OrderStatus.CONFIRMED: (OrderStatus.PROCESSING, OrderStatus.CANCELLED),
    OrderStatus.PROCESSING: (OrderStatus.SHIPPED, OrderStatus.CANCELLED),
    OrderStatus.SHIPPED: (OrderStatus.DELIVERED,),
    OrderStatus.DELIVERED: (),
    OrderStatus.CANCELLED: (),
    OrderStatus.REFUNDED: (),
}

# payment confirmation is the only writer of PENDING -> CONFIRMED
PAYMENT_OWNED_TRANSITIONS = {(OrderStatus.PENDING, OrderStatus.CONFIRMED)}

# timestamp column stamped when an order enters the status
STATUS_TIMESTAMPS = {
    OrderStatus.CONFIRMED: "confirmed_at",
    OrderStatus.PROCESSING: "processed_at",
    OrderStatus.SHIPPED: "shipped_at",
    OrderStatus.DELIVERED: "delivered_at",
    OrderStatus.CANCELLED: "cancelled_at",
}

CUSTOMER_CANCELLABLE = (OrderStatus.PENDING, OrderStatus.CONFIRMED)


def allowed_targets(current: OrderStatus, system: bool = False) -> list[OrderStatus]:
    """
    Statuses reachable from `current`.

    Manual (admin) callers do not get the payment-owned transitions;
    `system=True` returns the full table.
    """
    targets = ALLOWED_TRANSITIONS[OrderStatus(current)]
    if system:
        return list(targets)
    return [t for t in targets if (OrderStatus(current), t) not in PAYMENT_OWNED_TRANSITIONS]


def can_transition(current: OrderStatus, target: OrderStatus, system: bool = False) -> bool:
    return OrderStatus(target) in allowed_targets(current, system=system)
