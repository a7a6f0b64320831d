"""Pure formatting: AlertEvent → email message."""

from __future__ import annotations

import datetime
from email.message import EmailMessage
from email.utils import formatdate

from heartbeat.alerts.types import AlertEvent, AlertKind

_SUBJECTS: dict[AlertKind, str] = {
    AlertKind.DOWN: "ALERT : Server down : {server}",
    AlertKind.SLOW: "ALERT : Server slow : {server}",
}

_HEADLINES: dict[AlertKind, str] = {
    AlertKind.DOWN: "ERROR : Could not get heartbeat!",
    AlertKind.SLOW: "WARNING : Heartbeat is slow!",
}


def format_subject(event: AlertEvent) -> str:
    return _SUBJECTS[event.kind].format(server=event.server)


def format_body(event: AlertEvent) -> str:
    when = datetime.datetime.fromtimestamp(event.timestamp, datetime.UTC)
    lines = [
        _HEADLINES[event.kind],
        "",
        f"Server : {event.server}",
        f"Protocol : {event.protocol}",
        f"Reason : {event.reason}",
        f"Error : {event.error}",
        f"Time : {when.strftime('%Y-%m-%d %H:%M:%S')} UTC",
    ]
    return "\n".join(lines) + "\n"


def format_alert_email(event: AlertEvent, sender: str) -> EmailMessage:
    """Build the message sent to every recipient of *event*."""
    msg = EmailMessage()
    msg["From"] = sender
    msg["To"] = ", ".join(event.recipients)
    msg["Subject"] = format_subject(event)
    msg["Date"] = formatdate(event.timestamp, localtime=False)
    msg.set_content(format_body(event))
    return msg
