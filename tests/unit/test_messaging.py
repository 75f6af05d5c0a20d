"""Unit tests for messaging module - Email templating and delivery.

Tests cover:
- {{client_name}} / {{client_company_name}} substitution
- Message headers and attachments
- SMTP failures translated to DeliveryError
- Notifier reports delivery failures without raising
"""

from __future__ import annotations

import smtplib
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from logo_pipeline import messaging
from logo_pipeline.errors import DeliveryError
from logo_pipeline.records import ClientRecord
from tests.fakes import FakeMailer, make_png_bytes

CLIENT = ClientRecord(
    name="Acme Co",
    logo_url="https://logos.test/acme.png",
    email="buyer@acme.test",
    contact_name="Jane",
)


def _notifier(mailer) -> messaging.Notifier:
    return messaging.Notifier(
        mailer=mailer,
        from_name="Lids Inc",
        from_address="sender@lids.test",
        subject="Designs for {{client_company_name}}",
    )


@pytest.mark.unit
class TestRenderTemplate:
    """Unit tests for render_template function."""

    def test_substitutes_known_placeholders(self) -> None:
        text = messaging.render_template(
            "Hi {{client_name}} of {{client_company_name}}, from {{sender_name}}",
            CLIENT,
            sender_name="Lids Inc",
        )

        assert text == "Hi Jane of Acme Co, from Lids Inc"

    def test_missing_contact_uses_generic_salutation(self) -> None:
        client = ClientRecord(name="Globex", logo_url="https://logos.test/g.png")

        assert messaging.render_template("Dear {{client_name}}", client) == "Dear Valued Customer"

    def test_unknown_placeholders_are_kept(self) -> None:
        assert messaging.render_template("{{order_id}}", CLIENT) == "{{order_id}}"


@pytest.mark.unit
class TestNotifier:
    """Unit tests for Notifier.build_message and notify."""

    def test_build_message_headers_and_body(self, tmp_test_dir: Path) -> None:
        message = _notifier(FakeMailer()).build_message(CLIENT, [])

        assert message["To"] == "buyer@acme.test"
        assert message["From"] == "Lids Inc <sender@lids.test>"
        assert message["Subject"] == "Designs for Acme Co"
        body = message.get_body(preferencelist=("plain",)).get_content()
        assert "Dear Jane" in body
        assert "Acme Co" in body

    def test_attachments_keep_file_names(self, tmp_test_dir: Path) -> None:
        first = tmp_test_dir / "Acme_Co_mug_1.png"
        second = tmp_test_dir / "catalog_page.jpg"
        first.write_bytes(make_png_bytes())
        second.write_bytes(b"jpeg-bytes")

        message = _notifier(FakeMailer()).build_message(CLIENT, [first, second])

        attachments = list(message.iter_attachments())
        assert [part.get_filename() for part in attachments] == [
            "Acme_Co_mug_1.png",
            "catalog_page.jpg",
        ]
        assert attachments[0].get_content_type() == "image/png"
        assert attachments[1].get_content_type() == "image/jpeg"

    def test_custom_body_template(self) -> None:
        notifier = messaging.Notifier(
            mailer=FakeMailer(),
            from_name="Lids Inc",
            from_address="sender@lids.test",
            subject="Hello",
            body_template="Custom for {{client_company_name}}",
        )

        message = notifier.build_message(CLIENT, [])

        assert message.get_content().strip() == "Custom for Acme Co"

    def test_notify_sends_and_returns_true(self) -> None:
        mailer = FakeMailer()

        assert _notifier(mailer).notify(CLIENT, []) is True
        assert len(mailer.sent) == 1

    def test_notify_delivery_failure_returns_false(self) -> None:
        mailer = FakeMailer(failing_recipients={"buyer@acme.test"})

        assert _notifier(mailer).notify(CLIENT, []) is False
        assert mailer.sent == []

    def test_notify_invalid_address_header_returns_false(self) -> None:
        client = ClientRecord(
            name="Acme Co",
            logo_url="https://logos.test/acme.png",
            email="buyer@acme.test\nBcc: x@evil.test",
        )
        mailer = FakeMailer()

        assert _notifier(mailer).notify(client, []) is False
        assert mailer.sent == []

    def test_notify_missing_attachment_returns_false(self, tmp_test_dir: Path) -> None:
        mailer = FakeMailer()

        assert _notifier(mailer).notify(CLIENT, [tmp_test_dir / "gone.png"]) is False
        assert mailer.sent == []


@pytest.mark.unit
class TestSmtpMailer:
    """Unit tests for SmtpMailer.send."""

    def _mailer(self, factory, starttls: bool = True) -> messaging.SmtpMailer:
        return messaging.SmtpMailer(
            host="smtp.example.test",
            port=587,
            username="sender@lids.test",
            password="secret",
            use_starttls=starttls,
            timeout=10,
            smtp_factory=factory,
        )

    def test_sends_with_starttls_and_login(self) -> None:
        server = MagicMock()
        factory = MagicMock()
        factory.return_value.__enter__.return_value = server
        message = _notifier(FakeMailer()).build_message(CLIENT, [])

        self._mailer(factory).send(message)

        factory.assert_called_once_with("smtp.example.test", 587, timeout=10)
        server.starttls.assert_called_once()
        server.login.assert_called_once_with("sender@lids.test", "secret")
        server.send_message.assert_called_once_with(message)

    def test_skips_starttls_when_disabled(self) -> None:
        server = MagicMock()
        factory = MagicMock()
        factory.return_value.__enter__.return_value = server

        self._mailer(factory, starttls=False).send(_notifier(FakeMailer()).build_message(CLIENT, []))

        server.starttls.assert_not_called()

    def test_smtp_error_raises_delivery_error(self) -> None:
        server = MagicMock()
        server.login.side_effect = smtplib.SMTPAuthenticationError(535, b"bad credentials")
        factory = MagicMock()
        factory.return_value.__enter__.return_value = server

        with pytest.raises(DeliveryError, match="buyer@acme.test"):
            self._mailer(factory).send(_notifier(FakeMailer()).build_message(CLIENT, []))

    def test_connection_error_raises_delivery_error(self) -> None:
        factory = MagicMock(side_effect=ConnectionRefusedError("refused"))

        with pytest.raises(DeliveryError):
            self._mailer(factory).send(_notifier(FakeMailer()).build_message(CLIENT, []))
