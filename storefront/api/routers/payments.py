# storefront/api/routers/payments.py
from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Query, Request
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from storefront.api.deps import http_error, get_gateway, get_notifier, get_event_guard
from storefront.data.database import get_db
from storefront.domain.errors import StoreError
from storefront.domain.schemas import (
    Envelope,
    CreatePaymentIn,
    GatewayOrderOut,
    VerifyPaymentIn,
    VerifyPaymentOut,
)
from storefront.services.gateway_client import GatewayClient
from storefront.services.notification_service import NotificationService
from storefront.services.payment_service import PaymentService
from storefront.services.webhook_guard import WebhookEventGuard
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/api/payments", tags=["payments"])


@router.post("/create-order", response_model=Envelope[GatewayOrderOut])
def create_gateway_order(
    payload: CreatePaymentIn,
    user_id: int = Query(..., gt=0),
    db: Session = Depends(get_db),
    gateway: GatewayClient = Depends(get_gateway),
):
    svc = PaymentService(db, gateway=gateway)
    try:
        return {"success": True, "data": svc.create_gateway_order(user_id, payload.order_id)}
    except StoreError as e:
        raise http_error(e)


@router.post("/verify", response_model=Envelope[VerifyPaymentOut])
def verify_payment(
    payload: VerifyPaymentIn,
    user_id: int = Query(..., gt=0),
    db: Session = Depends(get_db),
    gateway: GatewayClient = Depends(get_gateway),
    notifier: NotificationService = Depends(get_notifier),
):
    svc = PaymentService(db, gateway=gateway, notifier=notifier)
    try:
        result = svc.verify_payment(
            user_id,
            payload.razorpay_order_id,
            payload.razorpay_payment_id,
            payload.razorpay_signature,
        )
    except StoreError as e:
        raise http_error(e)
    return {"success": True, "data": result, "message": "Payment verified successfully"}


@router.post("/webhook", response_model=Envelope[dict])
async def payment_webhook(
    request: Request,
    x_razorpay_signature: Optional[str] = Header(None),
    x_razorpay_event_id: Optional[str] = Header(None),
    db: Session = Depends(get_db),
    notifier: NotificationService = Depends(get_notifier),
    event_guard: WebhookEventGuard = Depends(get_event_guard),
):
    """
    Server-to-server callback from the gateway, no user session.
    The signature covers the raw body, so it is read before any parsing.
    """
    raw_body = await request.body()
    svc = PaymentService(db, notifier=notifier, event_guard=event_guard)

    try:
        message = await run_in_threadpool(
            svc.handle_webhook, raw_body, x_razorpay_signature, x_razorpay_event_id
        )
    except StoreError as e:
        raise http_error(e)
    except Exception:
        # retrying is the gateway's job, it only needs to know this delivery failed
        logger.exception("Webhook processing failed")
        raise HTTPException(status_code=500, detail="Webhook processing failed")

    return {"success": True, "data": None, "message": message}
