"""Tests for services.notification."""

from datetime import datetime
from decimal import Decimal
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pytest
import requests

from core.config import settings
from services import notification
from services.notification import (
    BrevoTransport,
    EmailNotConfigured,
    SmtpTransport,
    deliver_email,
    get_transport,
    money,
)


def fake_order(**overrides):
    product = SimpleNamespace(id="p1", name="Sapphire Ring", primary_image=None)
    item = SimpleNamespace(id="i1", product=product, product_id="p1", quantity=2, price=Decimal("2499.99"))
    values = dict(
        id="o1",
        order_number="ORD-20261019-ABC123",
        items=[item],
        subtotal=Decimal("4999.98"),
        shipping_cost=Decimal("10.00"),
        tax=Decimal("0"),
        discount_amount=Decimal("0"),
        total=Decimal("5009.98"),
        shipping_address="12 Jalan Ampang",
        payment_method="COD",
        tracking_number=None,
        notes=None,
        created_at=datetime(2026, 10, 19),
    )
    values.update(overrides)
    return SimpleNamespace(**values)


# ------------------------------------------------------------------ #
#  Transport selection                                                 #
# ------------------------------------------------------------------ #


class TestGetTransport:
    def test_brevo_preferred(self, monkeypatch):
        monkeypatch.setattr(settings, "BREVO_API_KEY", "key")
        monkeypatch.setattr(settings, "SMTP_HOST", "smtp.example.com")
        assert isinstance(get_transport(), BrevoTransport)

    def test_smtp_fallback(self, monkeypatch):
        monkeypatch.setattr(settings, "BREVO_API_KEY", "")
        monkeypatch.setattr(settings, "SMTP_HOST", "smtp.example.com")
        monkeypatch.setattr(settings, "SMTP_USER", "user")
        monkeypatch.setattr(settings, "SMTP_PASS", "pass")
        assert isinstance(get_transport(), SmtpTransport)

    def test_not_configured(self, monkeypatch):
        monkeypatch.setattr(settings, "BREVO_API_KEY", "")
        monkeypatch.setattr(settings, "SMTP_HOST", "")
        with pytest.raises(EmailNotConfigured):
            get_transport()


class TestTransports:
    def test_brevo_payload(self):
        transport = BrevoTransport("secret", "https://api.example.com/email", 5)
        mock_resp = MagicMock(status_code=201)
        with patch("services.notification.requests.post", return_value=mock_resp) as mock_post:
            transport.send("QioGems <no-reply@qiogems.com>", "a@example.com", "Hi", "<p>Hi</p>", "Hi")

        kwargs = mock_post.call_args.kwargs
        assert kwargs["headers"]["api-key"] == "secret"
        assert kwargs["json"]["sender"] == {"email": "no-reply@qiogems.com", "name": "QioGems"}
        assert kwargs["json"]["to"] == [{"email": "a@example.com"}]
        assert kwargs["timeout"] == 5

    def test_brevo_error_raises(self):
        transport = BrevoTransport("secret", "https://api.example.com/email", 5)
        with patch("services.notification.requests.post", return_value=MagicMock(status_code=401, text="bad key")):
            with pytest.raises(RuntimeError, match="401"):
                transport.send("a@b.com", "c@d.com", "s", "h", "t")

    def test_smtp_starttls(self):
        transport = SmtpTransport("smtp.example.com", 587, "user", "pass", 5)
        with patch("services.notification.smtplib.SMTP") as mock_smtp:
            transport.send("a@b.com", "c@d.com", "Subject", "<p>h</p>", "t")
        server = mock_smtp.return_value.__enter__.return_value
        server.starttls.assert_called_once()
        server.login.assert_called_once_with("user", "pass")
        server.send_message.assert_called_once()

    def test_smtp_ssl_port(self):
        transport = SmtpTransport("smtp.example.com", 465, "user", "pass", 5)
        with patch("services.notification.smtplib.SMTP_SSL") as mock_ssl:
            transport.send("a@b.com", "c@d.com", "Subject", "<p>h</p>", "t")
        mock_ssl.return_value.__enter__.return_value.send_message.assert_called_once()


class TestDeliverEmail:
    def test_skips_when_not_configured(self, monkeypatch):
        monkeypatch.setattr(settings, "BREVO_API_KEY", "")
        monkeypatch.setattr(settings, "SMTP_HOST", "")
        assert deliver_email("a@example.com", "s", "h", "t") is False

    def test_swallows_transport_errors(self, monkeypatch):
        monkeypatch.setattr(settings, "BREVO_API_KEY", "key")
        with patch("services.notification.requests.post", side_effect=requests.ConnectionError("down")):
            assert deliver_email("a@example.com", "s", "h", "t") is False

    def test_success(self, monkeypatch):
        monkeypatch.setattr(settings, "BREVO_API_KEY", "key")
        with patch("services.notification.requests.post", return_value=MagicMock(status_code=201)):
            assert deliver_email("a@example.com", "s", "h", "t") is True


class TestSenders:
    def test_money(self):
        assert money(Decimal("1234")) == "RM 1,234.00"

    def test_customer_confirmation(self, sent_emails):
        assert notification.send_customer_order_confirmation(fake_order(), "a@example.com", "Aisha")
        to, subject, html, text = sent_emails.call_args[0]
        assert to == "a@example.com"
        assert "ORD-20261019-ABC123" in subject
        assert "Sapphire Ring" in html
        assert "RM 5,009.98" in text

    def test_customer_confirmation_without_email(self, sent_emails):
        assert notification.send_customer_order_confirmation(fake_order(), None) is False
        sent_emails.assert_not_called()

    def test_seller_notification_uses_configured_recipient(self, monkeypatch, sent_emails):
        monkeypatch.setattr(settings, "SELLER_NOTIFICATION_EMAIL", "owner@qiogems.com")
        assert notification.send_seller_order_notification(fake_order(notes="Gift wrap"), "a@example.com", "Aisha")
        to, subject, html, text = sent_emails.call_args[0]
        assert to == "owner@qiogems.com"
        assert subject == "New Order Received: #ORD-20261019-ABC123 - RM 5,009.98"
        assert "Gift wrap" in text

    def test_seller_notification_skipped_without_recipient(self, monkeypatch, sent_emails):
        monkeypatch.setattr(settings, "SELLER_NOTIFICATION_EMAIL", "")
        assert notification.send_seller_order_notification(fake_order()) is False
        sent_emails.assert_not_called()

    def test_status_update_includes_tracking(self, sent_emails):
        assert notification.send_order_status_update(fake_order(), "SHIPPED", "a@example.com", tracking_number="TRK9")
        to, subject, html, text = sent_emails.call_args[0]
        assert subject == "Order Update: #ORD-20261019-ABC123 - SHIPPED"
        assert "TRK9" in text
        assert "on its way" in html

    def test_builder_errors_are_swallowed(self, sent_emails):
        broken = fake_order(items=None)
        assert notification.send_customer_order_confirmation(broken, "a@example.com") is False
        sent_emails.assert_not_called()
