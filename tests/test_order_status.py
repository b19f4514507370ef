import pytest

from storefront.data.models import OrderModel, ProductModel
from storefront.domain.errors import InvalidTransition, Forbidden
from storefront.domain.status import (
    ALLOWED_TRANSITIONS,
    OrderStatus,
    STATUS_TIMESTAMPS,
    allowed_targets,
    can_transition,
)
from storefront.services.order_status_service import OrderStatusService, REFUND_NOTICE

from tests.helpers import make_user, make_address, make_product, make_order, make_payment

ALL_PAIRS = [(a, b) for a in OrderStatus for b in OrderStatus]


def test_terminal_statuses_have_no_targets():
    for status in (OrderStatus.DELIVERED, OrderStatus.CANCELLED, OrderStatus.REFUNDED):
        assert allowed_targets(status, system=True) == []


def test_manual_callers_cannot_confirm_pending_orders():
    assert can_transition(OrderStatus.PENDING, OrderStatus.CONFIRMED, system=True)
    assert not can_transition(OrderStatus.PENDING, OrderStatus.CONFIRMED)
    assert allowed_targets(OrderStatus.PENDING) == [OrderStatus.CANCELLED]


def test_refunded_is_not_reachable_through_the_table():
    for targets in ALLOWED_TRANSITIONS.values():
        assert OrderStatus.REFUNDED not in targets


@pytest.mark.parametrize("current, target", ALL_PAIRS)
def test_update_status_follows_transition_table(db, notifier, current, target):
    user = make_user(db)
    address = make_address(db, user)
    order = make_order(db, user, address, status=current.value)
    svc = OrderStatusService(db, notifier=notifier)

    if target in ALLOWED_TRANSITIONS[current]:
        result = svc.update_status(order.id, target, system=True)

        assert result["status"] == target.value
        field = STATUS_TIMESTAMPS.get(target)
        if field:
            assert result[field] is not None
        assert notifier.status_updates == [(order.id, target.value)]
    else:
        with pytest.raises(InvalidTransition):
            svc.update_status(order.id, target, system=True)

        db.expire_all()
        assert db.get(OrderModel, order.id).status == current.value
        assert notifier.status_updates == []


def test_error_message_lists_allowed_targets(db, notifier):
    user = make_user(db)
    order = make_order(db, user, make_address(db, user), status="SHIPPED")

    with pytest.raises(InvalidTransition) as exc:
        OrderStatusService(db, notifier=notifier).update_status(order.id, "CANCELLED")

    assert exc.value.message == "Cannot transition from SHIPPED to CANCELLED. Allowed: DELIVERED"


def test_shipping_records_tracking_and_appends_notes(db, notifier):
    user = make_user(db)
    order = make_order(db, user, make_address(db, user), status="PROCESSING")
    order.notes = "Leave at the door"
    db.commit()

    result = OrderStatusService(db, notifier=notifier).update_status(
        order.id,
        "SHIPPED",
        tracking_number="BD123456",
        tracking_url="https://track.example.com/BD123456",
        notes="Handed to courier",
    )

    assert result["tracking_number"] == "BD123456"
    assert result["tracking_url"] == "https://track.example.com/BD123456"
    assert result["shipped_at"] is not None
    assert result["notes"].startswith("Leave at the door\n\n[")
    assert result["notes"].endswith("] Handed to courier")


def test_admin_cancel_restores_stock(db, notifier):
    user = make_user(db)
    product = make_product(db, stock=5)
    order = make_order(db, user, make_address(db, user), status="PROCESSING", product=product, quantity=3)

    OrderStatusService(db, notifier=notifier).update_status(order.id, "CANCELLED")

    db.expire_all()
    assert db.get(ProductModel, product.id).stock_quantity == 8


def test_stale_expected_status_is_rejected(db, notifier, monkeypatch):
    user = make_user(db)
    order = make_order(db, user, make_address(db, user), status="CONFIRMED")
    svc = OrderStatusService(db, notifier=notifier)

    # another writer moved the order between the read and the conditional update
    monkeypatch.setattr(svc.repo, "update_status_if", lambda *args, **kwargs: 0)

    with pytest.raises(InvalidTransition):
        svc.update_status(order.id, "PROCESSING")
    assert notifier.status_updates == []


def test_customer_cancel_of_pending_order(db, notifier):
    user = make_user(db)
    product = make_product(db, stock=2)
    order = make_order(db, user, make_address(db, user), product=product, quantity=2)

    result = OrderStatusService(db, notifier=notifier).cancel_by_customer(order.id, user.id, "Changed my mind")

    assert result == {"order_id": order.id, "status": "CANCELLED", "refund_status": None}
    db.expire_all()
    cancelled = db.get(OrderModel, order.id)
    assert cancelled.cancelled_at is not None
    assert cancelled.notes.endswith("Cancellation reason: Changed my mind")
    assert db.get(ProductModel, product.id).stock_quantity == 4


def test_customer_cancel_of_paid_order_reports_refund(db, notifier):
    user = make_user(db)
    order = make_order(db, user, make_address(db, user), status="CONFIRMED")
    make_payment(db, order, status="SUCCESS", payment_id="pay_1")

    result = OrderStatusService(db, notifier=notifier).cancel_by_customer(order.id, user.id)

    assert result["refund_status"] == REFUND_NOTICE
    db.expire_all()
    assert db.get(OrderModel, order.id).notes.endswith("Cancellation reason: Customer requested cancellation")


@pytest.mark.parametrize("status", ["PROCESSING", "SHIPPED", "DELIVERED", "CANCELLED", "REFUNDED"])
def test_customer_cannot_cancel_after_confirmation(db, notifier, status):
    user = make_user(db)
    order = make_order(db, user, make_address(db, user), status=status)

    with pytest.raises(InvalidTransition) as exc:
        OrderStatusService(db, notifier=notifier).cancel_by_customer(order.id, user.id)

    assert exc.value.message == f"Order cannot be cancelled. Order is already {status.lower()}"


def test_customer_cannot_cancel_someone_elses_order(db, notifier):
    owner = make_user(db, name="Owner One")
    other = make_user(db, name="Other Two")
    order = make_order(db, owner, make_address(db, owner))

    with pytest.raises(Forbidden):
        OrderStatusService(db, notifier=notifier).cancel_by_customer(order.id, other.id)
