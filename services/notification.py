"""
Transactional email for the order pipeline.

Delivery is best-effort: every public ``send_*`` function catches and logs
its own failures and returns a bool, so an order or status change never
depends on the mail provider being reachable.
"""
from email.message import EmailMessage
from email.utils import parseaddr, formataddr
from html import escape
from typing import Optional
import logging
import smtplib

import requests

from core.config import settings

logger = logging.getLogger(__name__)

STORE_NAME = "QioGems"
SUPPORT_EMAIL = "support@qiogems.com"


class EmailNotConfigured(Exception):
    """Raised when neither the Brevo API nor SMTP credentials are configured."""


class BrevoTransport:
    """Sends through the Brevo transactional email HTTP API."""

    def __init__(self, api_key: str, api_url: str, timeout: int):
        self.api_key = api_key
        self.api_url = api_url
        self.timeout = timeout

    def send(self, sender: str, to: str, subject: str, html: str, text: str):
        from_name, from_email = parseaddr(sender)
        payload = {
            "sender": {"email": from_email, "name": from_name or STORE_NAME},
            "to": [{"email": to}],
            "subject": subject,
            "htmlContent": html,
            "textContent": text,
        }
        response = requests.post(
            self.api_url,
            json=payload,
            headers={"api-key": self.api_key, "Content-Type": "application/json"},
            timeout=self.timeout,
        )
        if response.status_code >= 400:
            raise RuntimeError(f"Brevo API error {response.status_code}: {response.text}")


class SmtpTransport:
    """Sends through an SMTP relay; port 465 uses implicit TLS, others STARTTLS."""

    def __init__(self, host: str, port: int, user: str, password: str, timeout: int):
        self.host = host
        self.port = port
        self.user = user
        self.password = password
        self.timeout = timeout

    def send(self, sender: str, to: str, subject: str, html: str, text: str):
        message = EmailMessage()
        message["From"] = sender
        message["To"] = to
        message["Subject"] = subject
        message.set_content(text)
        message.add_alternative(html, subtype="html")

        if self.port == 465:
            with smtplib.SMTP_SSL(self.host, self.port, timeout=self.timeout) as server:
                server.login(self.user, self.password)
                server.send_message(message)
        else:
            with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as server:
                server.starttls()
                server.login(self.user, self.password)
                server.send_message(message)


def get_transport():
    if settings.BREVO_API_KEY:
        return BrevoTransport(settings.BREVO_API_KEY, settings.BREVO_API_URL, settings.EMAIL_TIMEOUT_SECONDS)
    if settings.SMTP_HOST and settings.SMTP_USER and settings.SMTP_PASS:
        return SmtpTransport(
            settings.SMTP_HOST,
            settings.SMTP_PORT,
            settings.SMTP_USER,
            settings.SMTP_PASS,
            settings.EMAIL_TIMEOUT_SECONDS,
        )
    raise EmailNotConfigured("Email transport is not configured")


def _sender() -> str:
    if settings.FROM_EMAIL:
        return settings.FROM_EMAIL
    return formataddr((STORE_NAME, settings.SMTP_USER or "no-reply@example.com"))


def deliver_email(to: str, subject: str, html: str, text: str) -> bool:
    try:
        transport = get_transport()
        transport.send(_sender(), to, subject, html, text)
        logger.info(f"Email sent to {to}: {subject}")
        return True
    except EmailNotConfigured:
        logger.warning(f"Email transport not configured; skipping '{subject}' to {to}")
        return False
    except Exception as e:
        logger.error(f"Failed to send email '{subject}' to {to}: {str(e)}")
        return False


def money(amount) -> str:
    return f"{settings.CURRENCY} {float(amount or 0):,.2f}"


def _items_table(order) -> str:
    rows = []
    for item in order.items:
        name = item.product.name if item.product else "Product"
        rows.append(
            "<tr>"
            f"<td>{escape(name)}</td>"
            f"<td style=\"text-align:center\">{item.quantity}</td>"
            f"<td style=\"text-align:right\">{escape(money(item.price * item.quantity))}</td>"
            "</tr>"
        )
    return (
        "<table style=\"width:100%;border-collapse:collapse\">"
        "<tr><th style=\"text-align:left\">Item</th><th>Qty</th><th style=\"text-align:right\">Amount</th></tr>"
        + "".join(rows) +
        "</table>"
    )


def _totals_lines(order):
    lines = [f"Subtotal: {money(order.subtotal)}"]
    if order.discount_amount:
        lines.append(f"Discount: -{money(order.discount_amount)}")
    lines.append(f"Shipping: {money(order.shipping_cost)}")
    lines.append(f"Tax: {money(order.tax)}")
    lines.append(f"Total: {money(order.total)}")
    return lines


def _items_lines(order):
    lines = []
    for item in order.items:
        name = item.product.name if item.product else "Product"
        lines.append(f"- {name} x{item.quantity} ({money(item.price * item.quantity)})")
    return lines


def _wrap_html(title: str, body: str) -> str:
    return (
        "<div style=\"font-family:Arial,sans-serif;max-width:600px;margin:0 auto\">"
        f"<h2>{escape(title)}</h2>{body}"
        f"<p style=\"color:#888\">Questions? Contact us at {SUPPORT_EMAIL}</p>"
        "</div>"
    )


def send_customer_order_confirmation(order, customer_email: Optional[str], customer_name: Optional[str] = None) -> bool:
    """Order confirmation for the customer who placed the order."""
    if not customer_email:
        logger.warning("Customer email not provided; skipping order confirmation email.")
        return False

    try:
        name = customer_name or "Valued Customer"
        subject = f"Order Confirmation - Thank you for your purchase! (Order #{order.order_number})"
        totals = _totals_lines(order)

        html = _wrap_html(
            f"{STORE_NAME} - Order Confirmation",
            f"<p>Dear {escape(name)},</p>"
            "<p>Thank you for your order! Here are your order details:</p>"
            f"<p><strong>Order Number:</strong> #{escape(order.order_number)}</p>"
            + _items_table(order)
            + "".join(f"<p style=\"margin:4px 0\">{escape(line)}</p>" for line in totals)
            + f"<p><strong>Shipping Address:</strong> {escape(order.shipping_address or '-')}</p>"
            f"<p><strong>Payment Method:</strong> {escape(order.payment_method or 'Cash on Delivery')}</p>"
            "<p>We'll send you tracking information once your order ships.</p>"
        )
        text = "\n\n".join([
            f"{STORE_NAME} - Order Confirmation",
            f"Dear {name},",
            "Thank you for your order! Here are your order details:",
            f"Order Number: #{order.order_number}",
            "\n".join(_items_lines(order)),
            "\n".join(totals),
            f"Shipping Address: {order.shipping_address or '-'}",
            f"Payment Method: {order.payment_method or 'Cash on Delivery'}",
            "We'll send you tracking information once your order ships.",
            f"Thank you for choosing {STORE_NAME}!",
        ])
    except Exception as e:
        logger.error(f"Failed to build order confirmation email for {order.id}: {str(e)}")
        return False

    return deliver_email(customer_email, subject, html, text)


def send_seller_order_notification(
    order,
    customer_email: Optional[str] = None,
    customer_name: Optional[str] = None,
    seller_email: Optional[str] = None
) -> bool:
    """New-order alert for the store operator."""
    to = seller_email or settings.SELLER_NOTIFICATION_EMAIL
    if not to:
        logger.warning("SELLER_NOTIFICATION_EMAIL not set; skipping order notification email.")
        return False

    try:
        subject = f"New Order Received: #{order.order_number} - {money(order.total)}"
        customer = customer_name or customer_email or "Unknown customer"

        html = _wrap_html(
            "New Order Received",
            f"<p><strong>Order Number:</strong> #{escape(order.order_number)}</p>"
            f"<p><strong>Customer:</strong> {escape(customer)}"
            + (f" &lt;{escape(customer_email)}&gt;" if customer_email else "") + "</p>"
            + _items_table(order)
            + f"<p><strong>Total:</strong> {escape(money(order.total))}</p>"
            f"<p><strong>Shipping Address:</strong> {escape(order.shipping_address or '-')}</p>"
            f"<p><strong>Payment Method:</strong> {escape(order.payment_method or '-')}</p>"
            + (f"<p><strong>Notes:</strong> {escape(order.notes)}</p>" if order.notes else "")
        )
        text = "\n\n".join(filter(None, [
            "New Order Received",
            f"Order Number: #{order.order_number}",
            f"Customer: {customer}" + (f" <{customer_email}>" if customer_email else ""),
            "\n".join(_items_lines(order)),
            f"Total: {money(order.total)}",
            f"Shipping Address: {order.shipping_address or '-'}",
            f"Payment Method: {order.payment_method or '-'}",
            f"Notes: {order.notes}" if order.notes else "",
        ]))
    except Exception as e:
        logger.error(f"Failed to build seller notification email for {order.id}: {str(e)}")
        return False

    return deliver_email(to, subject, html, text)


STATUS_MESSAGES = {
    "PENDING": "We have received your order.",
    "CONFIRMED": "Your order has been confirmed.",
    "PROCESSING": "Your order is being prepared.",
    "SHIPPED": "Your order is on its way.",
    "DELIVERED": "Your order has been delivered. Enjoy!",
    "CANCELLED": "Your order has been cancelled.",
}


def send_order_status_update(
    order,
    new_status: str,
    customer_email: Optional[str],
    customer_name: Optional[str] = None,
    tracking_number: Optional[str] = None
) -> bool:
    """Status change notice for the customer."""
    if not customer_email:
        logger.warning("Customer email not provided; skipping order status update email.")
        return False

    try:
        status_label = getattr(new_status, "value", new_status)
        tracking_number = tracking_number or order.tracking_number
        subject = f"Order Update: #{order.order_number} - {status_label}"
        status_message = STATUS_MESSAGES.get(status_label, f"Your order status is now {status_label}.")

        html = _wrap_html(
            "Order Status Update",
            f"<p>Hello {escape(customer_name or 'Customer')},</p>"
            f"<p>{escape(status_message)}</p>"
            f"<p style=\"margin:4px 0\"><strong>Order Number:</strong> #{escape(order.order_number)}</p>"
            f"<p style=\"margin:4px 0\"><strong>Status:</strong> {escape(status_label)}</p>"
            + (f"<p style=\"margin:4px 0\"><strong>Tracking Number:</strong> {escape(tracking_number)}</p>"
               if tracking_number else "")
            + f"<p style=\"margin:4px 0\"><strong>Total:</strong> {escape(money(order.total))}</p>"
        )
        text = "\n".join(filter(None, [
            "Order Status Update",
            f"Hello {customer_name or 'Customer'},",
            f"Your order #{order.order_number} status: {status_label}",
            status_message,
            f"Total: {money(order.total)}",
            f"Tracking: {tracking_number}" if tracking_number else "",
            f"Thank you for shopping with {STORE_NAME}!",
        ]))
    except Exception as e:
        logger.error(f"Failed to build status update email for {order.id}: {str(e)}")
        return False

    return deliver_email(customer_email, subject, html, text)
