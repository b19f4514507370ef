# storefront/services/notification_service.py
import smtplib
from email.message import EmailMessage

from storefront.celery_worker import celery_app
from storefront.data.database import SessionLocal
from storefront.repos.order_repo import OrderRepo
from storefront.domain.pricing import format_money
from storefront.utils import settings
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

STATUS_MESSAGES = {
    "PROCESSING": "is being prepared for shipment",
    "SHIPPED": "has been shipped",
    "DELIVERED": "has been delivered",
    "CANCELLED": "has been cancelled",
}


class NotificationService:
    """
    Queues customer emails on Celery.
    Delivery is best-effort: a broker outage is logged and never fails the caller.
    """

    def send_order_confirmation(self, order_id: int) -> bool:
        try:
            send_order_confirmation_task.delay(order_id)
        except Exception:
            logger.exception(f"Could not queue confirmation email for order {order_id}")
            return False
        return True

    def send_order_status_update(self, order_id: int, status: str) -> bool:
        if status not in STATUS_MESSAGES:
            return False
        try:
            send_order_status_task.delay(order_id, status)
        except Exception:
            logger.exception(f"Could not queue status email for order {order_id}")
            return False
        return True


def render_confirmation(order) -> tuple[str, str, str]:
    """Subject, plain text and html body of the order confirmation email."""
    subject = f"Order Confirmed - {order.order_number} - {settings.STORE_NAME}"

    lines = []
    rows = []
    for item in order.items:
        title = item.product_snapshot.get("title", "Item")
        price = format_money(item.price_at_purchase)
        lines.append(f"- {title} x {item.quantity} @ {price}")
        rows.append(
            f"<tr><td>{title}</td><td>{item.quantity}</td><td>{price}</td></tr>"
        )

    total = format_money(order.total_amount)
    name = order.user.name

    text = (
        f"Hello {name},\n\n"
        f"Thank you for your order {order.order_number}.\n\n"
        + "\n".join(lines)
        + f"\n\nTotal: {settings.PAYMENT_CURRENCY} {total}\n"
    )
    html = (
        f"<h2>Thank you for your order, {name}!</h2>"
        f"<p>Order number: <strong>{order.order_number}</strong></p>"
        "<table><tr><th>Item</th><th>Qty</th><th>Price</th></tr>"
        + "".join(rows)
        + "</table>"
        f"<p><strong>Total: {settings.PAYMENT_CURRENCY} {total}</strong></p>"
    )
    return subject, text, html


def render_status_update(order, status: str) -> tuple[str, str, str]:
    subject = f"Order {order.order_number} {STATUS_MESSAGES[status]} - {settings.STORE_NAME}"
    text = f"Hello {order.user.name},\n\nYour order {order.order_number} {STATUS_MESSAGES[status]}.\n"
    if status == "SHIPPED" and order.tracking_number:
        text += f"Tracking number: {order.tracking_number}\n"
        if order.tracking_url:
            text += f"Track it here: {order.tracking_url}\n"
    html = "<p>" + text.replace("\n\n", "</p><p>").replace("\n", "<br>") + "</p>"
    return subject, text, html


def deliver_email(to: str, subject: str, text: str, html: str):
    if not settings.SMTP_HOST:
        logger.info(f"[EMAIL] SMTP not configured, would send '{subject}' to {to}")
        return

    msg = EmailMessage()
    msg["From"] = f"{settings.STORE_NAME} <{settings.EMAIL_FROM}>"
    msg["To"] = to
    msg["Subject"] = subject
    msg.set_content(text)
    msg.add_alternative(html, subtype="html")

    with smtplib.SMTP(settings.SMTP_HOST, settings.SMTP_PORT, timeout=10) as smtp:
        smtp.starttls()
        if settings.SMTP_USER:
            smtp.login(settings.SMTP_USER, settings.SMTP_PASSWORD)
        smtp.send_message(msg)

    logger.info(f"[EMAIL] '{subject}' sent to {to}")


@celery_app.task(
    name="storefront.services.notification_service.send_order_confirmation_task",
    autoretry_for=(smtplib.SMTPException, OSError),
    retry_backoff=True,
    max_retries=3,
)
def send_order_confirmation_task(order_id: int):
    db = SessionLocal()
    try:
        order = OrderRepo(db).get_order_details(order_id)
        if not order:
            logger.warning(f"[EMAIL] order {order_id} not found, confirmation skipped")
            return {"order_id": order_id, "status": "skipped"}

        subject, text, html = render_confirmation(order)
        deliver_email(order.user.email, subject, text, html)
        return {"order_id": order_id, "status": "sent"}
    finally:
        db.close()


@celery_app.task(
    name="storefront.services.notification_service.send_order_status_task",
    autoretry_for=(smtplib.SMTPException, OSError),
    retry_backoff=True,
    max_retries=3,
)
def send_order_status_task(order_id: int, status: str):
    db = SessionLocal()
    try:
        order = OrderRepo(db).get_order(order_id)
        if not order:
            logger.warning(f"[EMAIL] order {order_id} not found, status email skipped")
            return {"order_id": order_id, "status": "skipped"}

        subject, text, html = render_status_update(order, status)
        deliver_email(order.user.email, subject, text, html)
        return {"order_id": order_id, "status": "sent"}
    finally:
        db.close()
