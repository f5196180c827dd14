# storefront/services/notification_service.py
import smtplib
from datetime import datetime, timezone
from decimal import Decimal
from email.message import EmailMessage
from html import escape
from typing import Any, Dict, List

from storefront.celery_worker import celery_app
from storefront.data.database import SessionLocal
from storefront.repos.order_repo import OrderRepo
from storefront.utils import settings
from storefront.utils.logging import get_logger
from storefront.utils.retry import db_retry, smtp_retry

logger = get_logger(__name__)

STATUS_MESSAGES = {
    "processing": "Your order is now being processed.",
    "shipped": "Great news! Your order has been shipped.",
    "completed": "Your order has been completed. Thank you for shopping with us!",
    "cancelled": "Your order has been cancelled.",
}


def _money(value) -> str:
    return f"NZD ${Decimal(value or 0):.2f}"


def _page(title: str, body: str) -> str:
    year = datetime.now(timezone.utc).year
    return (
        "<!DOCTYPE html><html><body style=\"font-family: Arial, sans-serif; color: #000;\">"
        f"<div style=\"background: #6495ED; color: white; padding: 20px; text-align: center;\"><h1>{escape(title)}</h1></div>"
        f"<div style=\"padding: 20px;\">{body}</div>"
        f"<div style=\"padding: 20px; text-align: center; color: #666;\">&copy; {year} {escape(settings.SHOP_NAME)}</div>"
        "</body></html>"
    )


def render_order_confirmation(order, items: List[Dict[str, Any]]) -> str:
    lines = []
    for item in items:
        name = escape(item.get("name") or "Item")
        set_name = f"<br><em>{escape(item['set_name'])}</em>" if item.get("set_name") else ""
        line_total = Decimal(item["price_nzd"]) * item["quantity"]
        lines.append(
            f"<div><strong>{name}</strong>{set_name}<br>"
            f"Quantity: {item['quantity']} x {_money(item['price_nzd'])} = {_money(line_total)}</div>"
        )

    discount = ""
    if Decimal(order.discount_amount or 0) > 0:
        discount = (
            f"<p><strong>Subtotal:</strong> {_money(order.subtotal_nzd)}</p>"
            f"<p><strong>Discount:</strong> -{_money(order.discount_amount)}</p>"
        )

    notes = f"<h3>Order Notes:</h3><p>{escape(order.notes)}</p>" if order.notes else ""
    address = escape(order.shipping_address or "").replace("\n", "<br>")

    body = (
        f"<p>Dear {escape(order.customer_name or 'customer')},</p>"
        "<p>Thank you for your order! We've received your order and will process it shortly.</p>"
        f"<h2>Order #{escape(order.order_number)}</h2>"
        + "".join(lines)
        + discount
        + f"<p><strong>Total: {_money(order.total_nzd)}</strong></p>"
        f"<h3>Shipping Address:</h3><p>{address}</p>"
        + notes
    )
    return _page("Order Confirmation", body)


def render_status_update(order, status: str) -> str:
    message = STATUS_MESSAGES.get(status, "Your order status has been updated.")
    body = (
        f"<p>Dear {escape(order.customer_name or 'customer')},</p>"
        f"<h2>Order #{escape(order.order_number)}</h2>"
        f"<p><strong>{message}</strong></p>"
        f"<p>Current Status: <strong>{escape(status.upper())}</strong></p>"
    )
    return _page("Order Status Update", body)


class EmailClient:
    """
    Wysyłka SMTP. Bez SMTP_HOST (dev) wiadomość jest tylko logowana.
    """

    def __init__(
        self,
        host: str | None = None,
        port: int | None = None,
        user: str | None = None,
        password: str | None = None,
        use_tls: bool | None = None,
        sender: str | None = None,
    ):
        self.host = host if host is not None else settings.SMTP_HOST
        self.port = port or settings.SMTP_PORT
        self.user = user if user is not None else settings.SMTP_USER
        self.password = password if password is not None else settings.SMTP_PASSWORD
        self.use_tls = settings.SMTP_USE_TLS if use_tls is None else use_tls
        self.sender = sender or settings.EMAIL_FROM

    @smtp_retry()
    def send(self, recipient: str, subject: str, html: str) -> bool:
        if not self.host:
            logger.info(f"[EMAIL] SMTP not configured, skipping send to {recipient}: {subject}")
            return False

        msg = EmailMessage()
        msg["From"] = self.sender
        msg["To"] = recipient
        msg["Subject"] = subject
        msg.set_content("This message requires an HTML capable mail client.")
        msg.add_alternative(html, subtype="html")

        with smtplib.SMTP(self.host, self.port, timeout=10) as smtp:
            if self.use_tls:
                smtp.starttls()
            if self.user:
                smtp.login(self.user, self.password)
            smtp.send_message(msg)

        logger.info(f"[EMAIL] Sent '{subject}' to {recipient}")
        return True


class NotificationService:
    """
    Serwis do wysyłania powiadomień o zamówieniach.
    Używa Celery do asynchronicznego przetwarzania.
    """

    @staticmethod
    def send_order_confirmation(order_id: int):
        send_order_confirmation_task.delay(order_id)

    @staticmethod
    def send_order_status_update(order_id: int, status: str):
        send_order_status_update_task.delay(order_id, status)


@db_retry()
def _load_order(db, order_id: int):
    repo = OrderRepo(db)
    order = repo.get_order(order_id)
    if not order:
        return None, []

    items = [
        {
            "name": row.card_name or row.product_name,
            "set_name": row.set_name,
            "quantity": row.OrderItemModel.quantity,
            "price_nzd": row.OrderItemModel.price_nzd,
        }
        for row in repo.get_items(order_id)
    ]
    return order, items


@celery_app.task(name="storefront.services.notification_service.send_order_confirmation_task")
def send_order_confirmation_task(order_id: int):
    db = SessionLocal()
    try:
        order, items = _load_order(db, order_id)
        if not order:
            logger.warning(f"[NOTIFICATION] Order {order_id} not found, confirmation not sent")
            return {"order_id": order_id, "status": "missing"}

        if not order.customer_email:
            logger.warning(f"[NOTIFICATION] Order {order_id} has no customer email")
            return {"order_id": order_id, "status": "skipped"}

        html = render_order_confirmation(order, items)
        EmailClient().send(
            order.customer_email,
            f"Order Confirmation - {order.order_number}",
            html,
        )
        return {"order_id": order_id, "status": "sent"}
    except Exception as e:
        logger.error(f"[NOTIFICATION] Failed to send order confirmation for {order_id}: {e}")
        return {"order_id": order_id, "status": "failed"}
    finally:
        db.close()


@celery_app.task(name="storefront.services.notification_service.send_order_status_update_task")
def send_order_status_update_task(order_id: int, status: str):
    db = SessionLocal()
    try:
        order, _ = _load_order(db, order_id)
        if not order or not order.customer_email:
            logger.warning(f"[NOTIFICATION] Order {order_id} missing or without email, status update not sent")
            return {"order_id": order_id, "status": "skipped"}

        html = render_status_update(order, status)
        EmailClient().send(
            order.customer_email,
            f"Order Status Update - {order.order_number}",
            html,
        )
        return {"order_id": order_id, "status": "sent"}
    except Exception as e:
        logger.error(f"[NOTIFICATION] Failed to send status update for {order_id}: {e}")
        return {"order_id": order_id, "status": "failed"}
    finally:
        db.close()
