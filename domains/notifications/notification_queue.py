"""
Immediate-mode notification queue.

Producers (watchdog callbacks, one per watched root) submit deletion
events without ever blocking. A single consumer thread drains the queue
in FIFO order and enforces a minimum interval between two sends so a mass
deletion does not hammer the SMTP server.
"""

import queue
import threading
import time
from typing import Callable, Optional

from loguru import logger

from app.models.schemas import DeletionEvent
from domains.notifications.mailer import MailDispatcher

_STOP = object()


class NotificationQueue:
    """Unbounded FIFO of deletion events with a cooldown consumer."""

    def __init__(
        self,
        dispatcher: MailDispatcher,
        cooldown: float = 5.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize notification queue.

        Args:
            dispatcher: Mail dispatcher used for each item
            cooldown: Minimum seconds between two consecutive sends
            clock: Monotonic clock
        """
        self.dispatcher = dispatcher
        self.cooldown = cooldown
        self.clock = clock

        self.items: "queue.Queue[object]" = queue.Queue()
        self.last_send: Optional[float] = None
        self.processed = 0
        self.failed = 0

        self._held: Optional[DeletionEvent] = None
        self._held_lock = threading.Lock()
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def pending(self) -> int:
        """Approximate number of items waiting for the consumer."""
        with self._held_lock:
            held = 1 if self._held is not None else 0
        return self.items.qsize() + held

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def submit(self, event: DeletionEvent):
        """Enqueue an event for immediate delivery. Never blocks."""
        self.items.put_nowait(event)

    def remaining_cooldown(self) -> float:
        """Seconds the consumer still has to wait before the next send."""
        if self.last_send is None:
            return 0.0
        return max(0.0, self.cooldown - (self.clock() - self.last_send))

    def process(self, event: DeletionEvent, stop_event: Optional[threading.Event] = None) -> Optional[bool]:
        """
        Deliver one event, honouring the cooldown.

        The send time is recorded even when delivery fails.

        Returns:
            True if the dispatcher reported success, False if it did not,
            None if stop was requested during the cooldown (nothing sent)
        """
        stop_event = stop_event or self._stop_event
        remaining = self.remaining_cooldown()
        if remaining > 0:
            logger.debug(f"Cooldown: waiting {remaining:.2f}s before next send")
            if stop_event.wait(remaining):
                return None

        ok = False
        try:
            ok = self.dispatcher.send_event(event)
        except Exception as e:
            logger.exception(f"Unexpected error while sending notification for {event.path}: {e}")
        finally:
            self.last_send = self.clock()

        if not ok:
            self.failed += 1
            logger.warning(f"Notification for {event.path} dropped")
        self.processed += 1
        return ok

    def _next_item(self) -> object:
        with self._held_lock:
            if self._held is not None:
                item, self._held = self._held, None
                return item
        return self.items.get()

    def run(self, stop_event: Optional[threading.Event] = None):
        """Consumer loop: block until an item arrives, deliver it, repeat."""
        stop_event = stop_event or self._stop_event
        logger.info("Notification queue consumer started")

        while not stop_event.is_set():
            item = self._next_item()
            if item is _STOP:
                # Sentinels only wake the consumer; the stop event decides
                continue
            if self.process(item, stop_event) is None:
                with self._held_lock:
                    self._held = item

        logger.info("Notification queue consumer stopped")

    def start(self):
        """Start the consumer thread."""
        if self.running:
            return
        self._stop_event = threading.Event()
        self._thread = threading.Thread(
            target=self.run,
            args=(self._stop_event,),
            name="notification-queue",
            daemon=True,
        )
        self._thread.start()

    def stop(self, timeout: float = 5.0):
        """
        Stop the consumer thread.

        Items still queued are not delivered until the queue is started again.
        """
        if self._thread is None:
            return
        self._stop_event.set()
        self.items.put_nowait(_STOP)
        self._thread.join(timeout=timeout)
        self._thread = None
