# storefront/api/routers/orders.py
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from storefront.api.deps import http_error, get_notifier
from storefront.data.database import get_db
from storefront.domain.errors import StoreError
from storefront.domain.schemas import (
    Envelope,
    OrderCreate,
    CheckoutOut,
    OrderOut,
    OrderListOut,
    OrderSort,
    CancelOrderIn,
    CancelOrderOut,
)
from storefront.domain.status import OrderStatus
from storefront.services.notification_service import NotificationService
from storefront.services.order_service import OrderService
from storefront.services.order_status_service import OrderStatusService

router = APIRouter(prefix="/api/orders", tags=["orders"])


def get_service(db: Session):
    return OrderService(db)


@router.post("", response_model=Envelope[CheckoutOut], status_code=201)
def create_order(
    payload: OrderCreate,
    user_id: int = Query(..., gt=0),
    db: Session = Depends(get_db),
):
    """
    Places an order from the caller's cart.
    Payment is started separately (POST /api/payments/create-order).
    """
    svc = get_service(db)
    try:
        result = svc.create_order_from_cart(user_id, payload.address_id, payload.notes)
    except StoreError as e:
        raise http_error(e)
    return {"success": True, "data": result, "message": "Order created successfully"}


@router.get("", response_model=Envelope[OrderListOut])
def list_orders(
    user_id: int = Query(..., gt=0),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=50),
    status: Optional[OrderStatus] = Query(None),
    sort: OrderSort = Query("newest"),
    db: Session = Depends(get_db),
):
    svc = get_service(db)
    result = svc.list_orders(
        user_id,
        page=page,
        limit=limit,
        status=status.value if status else None,
        sort=sort,
    )
    return {"success": True, "data": result}


@router.get("/{order_id}", response_model=Envelope[OrderOut])
def get_order(
    order_id: int,
    user_id: int = Query(..., gt=0),
    db: Session = Depends(get_db),
):
    svc = get_service(db)
    try:
        return {"success": True, "data": svc.get_order(order_id, user_id)}
    except StoreError as e:
        raise http_error(e)


@router.post("/{order_id}/cancel", response_model=Envelope[CancelOrderOut])
def cancel_order(
    order_id: int,
    payload: Optional[CancelOrderIn] = None,
    user_id: int = Query(..., gt=0),
    db: Session = Depends(get_db),
    notifier: NotificationService = Depends(get_notifier),
):
    svc = OrderStatusService(db, notifier=notifier)
    try:
        result = svc.cancel_by_customer(order_id, user_id, payload.reason if payload else None)
    except StoreError as e:
        raise http_error(e)
    return {"success": True, "data": result, "message": "Order cancelled successfully"}
