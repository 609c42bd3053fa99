import asyncio
import smtplib
from unittest.mock import MagicMock, patch

from services.email_service import EmailService


def make_service(**overrides) -> EmailService:
    options = {
        "smtp_server": "smtp.example.com",
        "smtp_port": 587,
        "sender_email": "noreply@example.com",
        "sender_password": "app-password",
    }
    options.update(overrides)
    return EmailService(**options)


def test_not_configured_returns_false():
    service = make_service(sender_password="")
    with patch("services.email_service.smtplib.SMTP") as mock_smtp:
        assert asyncio.run(service.send_reset_link("ann@x.com", "https://app/reset-password/t")) is False
        mock_smtp.assert_not_called()


@patch("services.email_service.smtplib.SMTP")
def test_sends_reset_link(mock_smtp):
    server = MagicMock()
    mock_smtp.return_value.__enter__.return_value = server

    sent = asyncio.run(make_service().send_reset_link("ann@x.com", "https://app/reset-password/t"))

    assert sent is True
    mock_smtp.assert_called_once_with("smtp.example.com", 587, timeout=30)
    server.starttls.assert_called_once()
    server.login.assert_called_once_with("noreply@example.com", "app-password")
    message = server.send_message.call_args[0][0]
    assert message["To"] == "ann@x.com"
    assert "https://app/reset-password/t" in message.get_payload()[0].get_payload()


@patch("services.email_service.smtplib.SMTP")
def test_smtp_failure_returns_false(mock_smtp):
    server = MagicMock()
    server.login.side_effect = smtplib.SMTPAuthenticationError(535, b"bad credentials")
    mock_smtp.return_value.__enter__.return_value = server

    assert asyncio.run(make_service().send_reset_link("ann@x.com", "https://app/x")) is False
