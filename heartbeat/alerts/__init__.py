"""Alerting subsystem — alert events, email formatting and delivery."""

from heartbeat.alerts.formatters import format_alert_email, format_body, format_subject
from heartbeat.alerts.notifier import AlertNotifier
from heartbeat.alerts.transport import MailTransport, SMTPTransport
from heartbeat.alerts.types import AlertEvent, AlertKind

__all__ = [
    "AlertEvent",
    "AlertKind",
    "AlertNotifier",
    "MailTransport",
    "SMTPTransport",
    "format_alert_email",
    "format_body",
    "format_subject",
]
