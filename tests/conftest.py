import threading
import time
from datetime import datetime

import pytest
from loguru import logger

from app.models.schemas import DeletionEvent
from app.utils.errors import TransportError


class FakeTransport:
    """Records every message instead of talking to an SMTP server."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.sent: list[dict] = []
        self.attempts = 0
        self.lock = threading.Lock()

    def send(self, sender, recipient, subject, body_html):
        with self.lock:
            self.attempts += 1
            if self.fail:
                raise TransportError(
                    "Connection refused",
                    server="smtp.test:587",
                    recipient=recipient,
                    subject=subject,
                )
            self.sent.append(
                {
                    "sender": sender,
                    "recipient": recipient,
                    "subject": subject,
                    "body": body_html,
                    "at": time.monotonic(),
                }
            )


def make_event(path: str, actor: str = "alice", occurred_at: datetime | None = None) -> DeletionEvent:
    return DeletionEvent(
        path=path,
        name=path.rsplit("/", 1)[-1],
        actor=actor,
        occurred_at=occurred_at or datetime(2024, 1, 1, 9, 0),
    )


def wait_for(predicate, timeout: float = 5.0, interval: float = 0.01) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(interval)
    return predicate()


@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture
def failing_transport():
    return FakeTransport(fail=True)


@pytest.fixture
def log_records():
    """Collect loguru records emitted during the test."""
    records: list[dict] = []
    sink_id = logger.add(
        lambda message: records.append(
            {"level": message.record["level"].name, "message": message.record["message"]}
        ),
        level="DEBUG",
    )
    yield records
    logger.remove(sink_id)
