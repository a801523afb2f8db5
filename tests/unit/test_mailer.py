import smtplib
from datetime import date, datetime

import pytest
from conftest import make_event

from app.utils.errors import TransportError
from domains.notifications import mailer
from domains.notifications.mailer import MailDispatcher, SmtpTransport, html_to_plaintext


class RecordingSMTP:
    instances: list["RecordingSMTP"] = []

    def __init__(self, host, port, timeout=None):
        self.host = host
        self.port = port
        self.timeout = timeout
        self.calls = []
        self.messages = []
        RecordingSMTP.instances.append(self)

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.calls.append("quit")
        return False

    def starttls(self):
        self.calls.append("starttls")

    def login(self, user, password):
        self.calls.append(("login", user, password))

    def send_message(self, msg):
        self.calls.append("send_message")
        self.messages.append(msg)


@pytest.fixture(autouse=True)
def reset_smtp():
    RecordingSMTP.instances = []


def test_render_event_subject_and_body():
    dispatcher = MailDispatcher(None, sender="watcher@test", recipient="admin@test")
    event = make_event("/srv/media/films/movie.mp4", actor="bob", occurred_at=datetime(2024, 1, 1, 14, 5))

    subject, body = dispatcher.render_event(event)

    assert subject == "🚨 Fichier supprimé - movie.mp4"
    assert "/srv/media/films/movie.mp4" in body
    assert "/srv/media/films</p>" in body
    assert "bob" in body
    assert "2024-01-01 14:05:00" in body


def test_render_escapes_html():
    dispatcher = MailDispatcher(None, sender="watcher@test", recipient="admin@test")
    event = make_event("/srv/media/<script>.pdf", actor="eve & co")

    _, body = dispatcher.render_event(event)

    assert "<script>" not in body
    assert "&lt;script&gt;.pdf" in body
    assert "eve &amp; co" in body


def test_render_digest_keeps_given_order():
    dispatcher = MailDispatcher(None, sender="watcher@test", recipient="admin@test")
    events = [
        make_event("/m/zeta.pdf", actor="alice"),
        make_event("/m/alpha.pdf", actor="bob"),
    ]

    subject, body = dispatcher.render_digest(events, date(2024, 3, 9))

    assert "2024-03-09" in subject
    assert "2 fichier(s)" in subject
    assert body.index("zeta.pdf") < body.index("alpha.pdf")


def test_send_event_reports_success(transport):
    dispatcher = MailDispatcher(transport, sender="watcher@test", recipient="admin@test")

    assert dispatcher.send_event(make_event("/srv/media/report.pdf")) is True

    assert transport.sent[0]["recipient"] == "admin@test"
    assert transport.sent[0]["sender"] == "watcher@test"
    assert dispatcher.sent == 1


def test_transport_error_is_logged_not_raised(failing_transport, log_records):
    dispatcher = MailDispatcher(failing_transport, sender="watcher@test", recipient="admin@test")

    assert dispatcher.send_event(make_event("/srv/media/report.pdf")) is False

    assert dispatcher.failed == 1
    error = next(r for r in log_records if r["level"] == "ERROR")
    assert "smtp.test:587" in error["message"]
    assert "admin@test" in error["message"]
    assert "Connection refused" in error["message"]


def test_send_digest_with_no_events_is_noop(transport):
    dispatcher = MailDispatcher(transport, sender="watcher@test", recipient="admin@test")

    assert dispatcher.send_digest([]) is False
    assert transport.sent == []


def test_smtp_transport_uses_starttls_and_login(monkeypatch):
    monkeypatch.setattr(mailer.smtplib, "SMTP", RecordingSMTP)
    transport = SmtpTransport("smtp.test", 587, username="watcher@test", password="secret")

    transport.send("watcher@test", "admin@test", "Subject", "<p>Hello</p>")

    server = RecordingSMTP.instances[0]
    assert (server.host, server.port) == ("smtp.test", 587)
    assert server.calls == ["starttls", ("login", "watcher@test", "secret"), "send_message", "quit"]
    msg = server.messages[0]
    assert msg["To"] == "admin@test"
    assert "WhoReapedWhat" in msg["From"]
    assert [part.get_content_type() for part in msg.get_payload()] == ["text/plain", "text/html"]


def test_smtp_transport_without_ssl_skips_starttls(monkeypatch):
    monkeypatch.setattr(mailer.smtplib, "SMTP", RecordingSMTP)
    transport = SmtpTransport("localhost", 25, use_ssl=False)

    transport.send("watcher@test", "admin@test", "Subject", "<p>Hello</p>")

    assert RecordingSMTP.instances[0].calls == ["send_message", "quit"]


def test_smtp_transport_uses_implicit_ssl_on_465(monkeypatch):
    monkeypatch.setattr(mailer.smtplib, "SMTP_SSL", RecordingSMTP)
    transport = SmtpTransport("smtp.test", 465, username="u", password="p")

    transport.send("watcher@test", "admin@test", "Subject", "<p>Hello</p>")

    assert "starttls" not in RecordingSMTP.instances[0].calls


@pytest.mark.parametrize(
    "error",
    [
        ConnectionRefusedError("connection refused"),
        smtplib.SMTPAuthenticationError(535, b"bad credentials"),
        TimeoutError("timed out"),
    ],
)
def test_smtp_errors_become_transport_errors(monkeypatch, error):
    def refuse(*args, **kwargs):
        raise error

    monkeypatch.setattr(mailer.smtplib, "SMTP", refuse)
    transport = SmtpTransport("smtp.test", 587)

    with pytest.raises(TransportError) as excinfo:
        transport.send("watcher@test", "admin@test", "Subject", "<p>Hello</p>")

    assert excinfo.value.server == "smtp.test:587"
    assert excinfo.value.recipient == "admin@test"
    assert excinfo.value.subject == "Subject"


def test_html_to_plaintext():
    text = html_to_plaintext("<html><body><h2>Title</h2><p>a &amp; b</p></body></html>")

    assert "Title" in text
    assert "a & b" in text
    assert "<" not in text
