# storefront/api/routers/admin_orders.py
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from storefront.api.deps import http_error, get_notifier, require_admin
from storefront.data.database import get_db
from storefront.domain.errors import StoreError
from storefront.domain.schemas import Envelope, OrderOut, OrderListOut, AdminOrderSort, UpdateOrderStatusIn
from storefront.domain.status import OrderStatus, PaymentStatus
from storefront.services.notification_service import NotificationService
from storefront.services.order_service import OrderService
from storefront.services.order_status_service import OrderStatusService

router = APIRouter(
    prefix="/api/admin/orders",
    tags=["admin"],
    dependencies=[Depends(require_admin)],
)


@router.get("", response_model=Envelope[OrderListOut])
def list_orders(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    status: Optional[OrderStatus] = Query(None),
    payment_status: Optional[PaymentStatus] = Query(None),
    search: Optional[str] = Query(None, max_length=50),
    sort: AdminOrderSort = Query("newest"),
    db: Session = Depends(get_db),
):
    result = OrderService(db).admin_list_orders(
        page=page,
        limit=limit,
        status=status.value if status else None,
        payment_status=payment_status.value if payment_status else None,
        search=search,
        sort=sort,
    )
    return {"success": True, "data": result}


@router.get("/{order_id}", response_model=Envelope[OrderOut])
def get_order(order_id: int, db: Session = Depends(get_db)):
    try:
        return {"success": True, "data": OrderService(db).admin_get_order(order_id)}
    except StoreError as e:
        raise http_error(e)


@router.patch("/{order_id}", response_model=Envelope[OrderOut])
def update_order_status(
    order_id: int,
    payload: UpdateOrderStatusIn,
    db: Session = Depends(get_db),
    notifier: NotificationService = Depends(get_notifier),
):
    svc = OrderStatusService(db, notifier=notifier)
    try:
        order = svc.update_status(
            order_id,
            payload.status,
            tracking_number=payload.tracking_number,
            tracking_url=payload.tracking_url,
            notes=payload.notes,
        )
    except StoreError as e:
        raise http_error(e)
    return {"success": True, "data": order, "message": f"Order status updated to {payload.status.value}."}
