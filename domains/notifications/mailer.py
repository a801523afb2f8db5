"""
Mail dispatcher and SMTP transport.

The dispatcher renders a subject and an HTML body for a single deletion
(immediate mode) or a batch (digest mode) and hands them to a transport.
Transport failures are logged and reported as False, never raised: losing
a notification is an accepted outcome.
"""

from __future__ import annotations

import html
import re
import smtplib
import threading
from datetime import date, datetime
from email.header import Header
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import formataddr, formatdate
from typing import Protocol, Sequence

from loguru import logger

from app.models.schemas import DeletionEvent
from app.utils.errors import TransportError
from app.utils.helpers import format_timestamp, get_parent_dir, platform_label
from app.utils.templating import render_template
from domains.notifications.templates import DIGEST_TEMPLATE, EVENT_TEMPLATE

SENDER_NAME = "WhoReapedWhat"


class MailTransport(Protocol):
    """Delivers one rendered message; raises TransportError on failure."""

    def send(self, sender: str, recipient: str, subject: str, body_html: str) -> None:
        ...


def html_to_plaintext(body_html: str) -> str:
    """Crude HTML to text conversion for the multipart fallback."""
    text = re.sub(r"<style[^>]*>.*?</style>", "", body_html, flags=re.DOTALL)
    text = re.sub(r"<(br|hr|/p|/h[1-6]|/tr|/div)[^>]*>", "\n", text)
    text = re.sub(r"</t[dh]>", "\t", text)
    text = re.sub(r"<[^>]+>", "", text)
    text = html.unescape(text)
    text = re.sub(r"[ \t]*\n\s*\n+", "\n\n", text)
    return text.strip()


class SmtpTransport:
    """SMTP delivery with STARTTLS or implicit SSL."""

    def __init__(
        self,
        host: str,
        port: int = 587,
        username: str | None = None,
        password: str | None = None,
        use_ssl: bool = True,
        timeout: float = 30.0,
    ):
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.use_ssl = use_ssl
        self.timeout = timeout

    @property
    def server_label(self) -> str:
        return f"{self.host}:{self.port}"

    def build_message(self, sender: str, recipient: str, subject: str, body_html: str) -> MIMEMultipart:
        msg = MIMEMultipart("alternative")
        msg["Subject"] = Header(subject, "utf-8").encode()
        msg["From"] = formataddr((SENDER_NAME, sender))
        msg["To"] = recipient
        msg["Date"] = formatdate(localtime=True)
        msg.attach(MIMEText(html_to_plaintext(body_html), "plain", "utf-8"))
        msg.attach(MIMEText(body_html, "html", "utf-8"))
        return msg

    def _connect(self) -> smtplib.SMTP:
        if self.use_ssl and self.port == 465:
            return smtplib.SMTP_SSL(self.host, self.port, timeout=self.timeout)

        server = smtplib.SMTP(self.host, self.port, timeout=self.timeout)
        if self.use_ssl:
            server.starttls()
        return server

    def send(self, sender: str, recipient: str, subject: str, body_html: str) -> None:
        msg = self.build_message(sender, recipient, subject, body_html)
        logger.debug(f"Connecting to {self.server_label}")

        try:
            with self._connect() as server:
                if self.username and self.password:
                    server.login(self.username, self.password)
                server.send_message(msg)

        except (smtplib.SMTPException, OSError) as e:
            raise TransportError(
                str(e) or e.__class__.__name__,
                server=self.server_label,
                recipient=recipient,
                subject=subject,
            ) from e


class MailDispatcher:
    """Renders deletion notifications and submits them to a transport."""

    def __init__(
        self,
        transport: MailTransport,
        sender: str,
        recipient: str,
        server_label: str | None = None,
    ):
        """
        Initialize dispatcher.

        Args:
            transport: Mail transport used for delivery
            sender: From address
            recipient: Single recipient address
            server_label: Target server shown in failure logs
        """
        self.transport = transport
        self.sender = sender
        self.recipient = recipient
        self.server_label = server_label or getattr(transport, "server_label", "unknown")

        self.sent = 0
        self.failed = 0
        self._stats_lock = threading.Lock()

    def render_event(self, event: DeletionEvent) -> tuple[str, str]:
        """Subject and HTML body for a single deletion."""
        subject = f"🚨 Fichier supprimé - {event.name}"
        body = render_template(
            EVENT_TEMPLATE,
            {
                "event": event,
                "timestamp": format_timestamp(event.occurred_at),
                "parent": get_parent_dir(event.path),
                "platform": platform_label(),
            },
        )
        return subject, body

    def render_digest(self, events: Sequence[DeletionEvent], day: date) -> tuple[str, str]:
        """Subject and HTML body for a batch, one row per event in the given order."""
        day_label = day.strftime("%Y-%m-%d")
        subject = f"🗑️ Résumé des suppressions du {day_label} - {len(events)} fichier(s)"
        rows = [
            {
                "name": event.name,
                "path": event.path,
                "actor": event.actor,
                "time": format_timestamp(event.occurred_at),
            }
            for event in events
        ]
        body = render_template(
            DIGEST_TEMPLATE,
            {"count": len(events), "day": day_label, "rows": rows},
        )
        return subject, body

    def deliver(self, subject: str, body_html: str) -> bool:
        """
        Send a rendered message.

        Returns:
            True if the transport accepted it, False otherwise
        """
        try:
            self.transport.send(self.sender, self.recipient, subject, body_html)

        except TransportError as e:
            with self._stats_lock:
                self.failed += 1
            logger.error(
                f"Mail delivery failed via {e.server or self.server_label} "
                f"to {self.recipient} (subject: {subject!r}): {e}"
            )
            return False

        with self._stats_lock:
            self.sent += 1
        logger.success(f"Email sent: {subject}")
        return True

    def send_event(self, event: DeletionEvent) -> bool:
        subject, body = self.render_event(event)
        return self.deliver(subject, body)

    def send_digest(self, events: Sequence[DeletionEvent], day: date | None = None) -> bool:
        if not events:
            return False
        subject, body = self.render_digest(events, day or datetime.now().date())
        return self.deliver(subject, body)
