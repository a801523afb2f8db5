"""
Daily digest of deletions.

Events accumulate in a lock-guarded buffer; once a day, at the configured
hour, the scheduler swaps the buffer out and mails the whole batch grouped
by actor. The lock is only held for the append or the swap, never while
rendering or talking to the SMTP server.

Scheduler states: idle -> scheduled -> firing -> scheduled -> ...
"""

import threading
from datetime import date, datetime, timedelta
from typing import Callable, List, Optional, Sequence

from loguru import logger

from app.models.schemas import DeletionEvent
from app.utils.errors import SchedulingError
from domains.notifications.mailer import MailDispatcher

DAY = timedelta(days=1)

IDLE = "idle"
SCHEDULED = "scheduled"
FIRING = "firing"


def compute_next_fire(now: datetime, digest_hour: int) -> datetime:
    """
    Next instant at digest_hour:00:00 strictly after now.

    Args:
        now: Current local time
        digest_hour: Hour of day (0-23)

    Returns:
        Today at digest_hour if still ahead, otherwise tomorrow
    """
    if not 0 <= digest_hour <= 23:
        raise ValueError(f"digest_hour must be between 0 and 23, got {digest_hour}")

    fire = now.replace(hour=digest_hour, minute=0, second=0, microsecond=0)
    if fire <= now:
        fire += DAY
    return fire


def group_by_actor(events: Sequence[DeletionEvent]) -> List[DeletionEvent]:
    """Order events by actor (alphabetical), then by time within each actor."""
    return sorted(events, key=lambda e: (e.actor.casefold(), e.actor, e.occurred_at))


class PendingDigestBuffer:
    """Thread-safe list of events awaiting the next digest."""

    def __init__(self):
        self._events: List[DeletionEvent] = []
        self._lock = threading.Lock()

    def append(self, event: DeletionEvent):
        with self._lock:
            self._events.append(event)

    def drain(self) -> List[DeletionEvent]:
        """Take every buffered event, leaving the buffer empty."""
        with self._lock:
            if not self._events:
                return []
            batch = self._events
            self._events = []
        return batch

    def __len__(self) -> int:
        with self._lock:
            return len(self._events)


class DigestScheduler:
    """Fires one digest flush per day at a fixed local hour."""

    def __init__(
        self,
        dispatcher: MailDispatcher,
        digest_hour: int,
        buffer: Optional[PendingDigestBuffer] = None,
        clock: Callable[[], datetime] = datetime.now,
        max_sleep: float = 60.0,
    ):
        """
        Initialize digest scheduler.

        Args:
            dispatcher: Mail dispatcher for the daily batch
            digest_hour: Local hour of the daily flush
            buffer: Pending events buffer (a fresh one by default)
            clock: Wall clock
            max_sleep: Longest uninterrupted sleep, so clock jumps get noticed
        """
        self.dispatcher = dispatcher
        self.digest_hour = digest_hour
        self.buffer = buffer if buffer is not None else PendingDigestBuffer()
        self.clock = clock
        self.max_sleep = max_sleep

        self.state = IDLE
        self.next_fire = compute_next_fire(self.clock(), digest_hour)

        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

        logger.info(f"Next digest scheduled at {self.next_fire:%Y-%m-%d %H:%M:%S}")

    @property
    def pending(self) -> int:
        return len(self.buffer)

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def record_deletion(self, event: DeletionEvent):
        """Buffer an event for the next digest."""
        self.buffer.append(event)

    def flush(self, day: Optional[date] = None) -> bool:
        """
        Send everything buffered so far as one digest.

        An empty buffer is a no-op. A failed send discards the batch.

        Returns:
            True if a digest was sent
        """
        batch = self.buffer.drain()
        if not batch:
            logger.debug("Digest buffer empty, nothing to send")
            return False

        ordered = group_by_actor(batch)
        try:
            ok = self.dispatcher.send_digest(ordered, day or self.clock().date())
        except Exception as e:
            logger.exception(f"Unexpected error while sending digest: {e}")
            ok = False

        if not ok:
            logger.error(f"Digest of {len(ordered)} deletion(s) discarded")
        return ok

    def _reschedule(self, now: datetime, reason: str):
        error = SchedulingError(reason)
        self.next_fire = compute_next_fire(now, self.digest_hour)
        logger.warning(f"{error}; next digest rescheduled at {self.next_fire:%Y-%m-%d %H:%M:%S}")

    def run_pending(self, now: Optional[datetime] = None) -> bool:
        """
        Fire the digest if its time has come.

        Returns:
            True if the scheduled instant was reached and a flush attempted
        """
        now = now or self.clock()

        if self.next_fire - now > DAY:
            self._reschedule(now, "clock moved backwards")
            return False

        if now < self.next_fire:
            return False

        fired_at = self.next_fire
        self.state = FIRING
        try:
            self.flush(fired_at.date())
        finally:
            self.next_fire = fired_at + DAY
            if self.next_fire <= now:
                self._reschedule(now, "clock jumped forward past the next digest")
            self.state = SCHEDULED
        return True

    def seconds_until_next_fire(self) -> float:
        return (self.next_fire - self.clock()).total_seconds()

    def run(self):
        """Scheduler loop: sleep until the next fire, flush, repeat."""
        logger.info("Digest scheduler started")

        while not self._stop_event.is_set():
            try:
                self.run_pending()
            except Exception as e:
                logger.exception(f"Digest scheduler error: {e}")

            delay = min(max(self.seconds_until_next_fire(), 0.1), self.max_sleep)
            self._stop_event.wait(delay)

        logger.info("Digest scheduler stopped")

    def start(self):
        """Start the scheduler thread."""
        if self.running:
            return
        self._stop_event.clear()
        self.state = SCHEDULED
        self._thread = threading.Thread(target=self.run, name="digest-scheduler", daemon=True)
        self._thread.start()

    def stop(self, timeout: float = 5.0):
        """
        Stop the scheduler thread.

        Buffered events are not flushed.
        """
        if self._thread is None:
            return
        self._stop_event.set()
        self._thread.join(timeout=timeout)
        self._thread = None
        self.state = IDLE
