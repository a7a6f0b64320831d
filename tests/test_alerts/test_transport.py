"""Tests for SMTPTransport — connection mode, STARTTLS and login."""

from __future__ import annotations

from email.message import EmailMessage
from unittest.mock import patch

import pytest

from heartbeat.alerts.transport import SMTPTransport
from heartbeat.core.config import SenderConfig


def _config(**kw: object) -> SenderConfig:
    defaults: dict[str, object] = {
        "server": "smtp.example.test",
        "port": 587,
        "username": "alerts@example.test",
        "password": "secret",
    }
    defaults.update(kw)
    return SenderConfig(**defaults)  # type: ignore[arg-type]


def _message() -> EmailMessage:
    msg = EmailMessage()
    msg["To"] = "ops@example.test"
    msg["Subject"] = "test"
    msg.set_content("body")
    return msg


class TestSMTPTransport:
    def test_starttls_and_login(self) -> None:
        with patch("heartbeat.alerts.transport.smtplib.SMTP") as mock_smtp:
            smtp = mock_smtp.return_value.__enter__.return_value
            SMTPTransport(_config(timeout_seconds=12)).send(_message())

        mock_smtp.assert_called_once_with("smtp.example.test", 587, timeout=12)
        smtp.starttls.assert_called_once()
        smtp.login.assert_called_once_with("alerts@example.test", "secret")
        smtp.send_message.assert_called_once()

    def test_implicit_tls(self) -> None:
        with (
            patch("heartbeat.alerts.transport.smtplib.SMTP_SSL") as mock_ssl,
            patch("heartbeat.alerts.transport.smtplib.SMTP") as mock_plain,
        ):
            smtp = mock_ssl.return_value.__enter__.return_value
            SMTPTransport(_config(port=465, security="ssl")).send(_message())

        mock_plain.assert_not_called()
        assert mock_ssl.call_args.args == ("smtp.example.test", 465)
        smtp.starttls.assert_not_called()
        smtp.login.assert_called_once()

    def test_plain_without_credentials(self) -> None:
        with patch("heartbeat.alerts.transport.smtplib.SMTP") as mock_smtp:
            smtp = mock_smtp.return_value.__enter__.return_value
            SMTPTransport(
                _config(port=25, security="none", username="", password=""),
            ).send(_message())

        smtp.starttls.assert_not_called()
        smtp.login.assert_not_called()
        smtp.send_message.assert_called_once()

    def test_send_failure_propagates(self) -> None:
        with patch("heartbeat.alerts.transport.smtplib.SMTP") as mock_smtp:
            smtp = mock_smtp.return_value.__enter__.return_value
            smtp.login.side_effect = OSError("auth failed")
            with pytest.raises(OSError, match="auth failed"):
                SMTPTransport(_config()).send(_message())

    def test_connect_failure_propagates(self) -> None:
        with patch(
            "heartbeat.alerts.transport.smtplib.SMTP",
            side_effect=ConnectionRefusedError("refused"),
        ):
            with pytest.raises(ConnectionRefusedError):
                SMTPTransport(_config()).send(_message())


def test_password_not_in_config_repr() -> None:
    assert "secret" not in repr(_config())
