"""
Deletion pipeline: filter -> builder -> sinks.

Receives raw paths from the watch source (possibly from several observer
threads at once) and routes accepted deletions to the immediate queue,
the daily digest, or both. Nothing raised here reaches the watch source.
"""

import threading
from typing import Optional

from loguru import logger

from app.models.schemas import DeletionEvent, WatchPolicy
from app.utils.errors import FilterError
from app.utils.helpers import normalize_path
from domains.deletion_watch.builder import DeletionEventBuilder
from domains.deletion_watch.deletion_log import DeletionLog
from domains.deletion_watch.filters import should_process
from domains.notifications.digest import DigestScheduler
from domains.notifications.notification_queue import NotificationQueue


class DeletionPipeline:
    """Routes accepted deletions to the configured notification sinks."""

    def __init__(
        self,
        policy: WatchPolicy,
        builder: DeletionEventBuilder,
        queue: Optional[NotificationQueue] = None,
        digest: Optional[DigestScheduler] = None,
        deletion_log: Optional[DeletionLog] = None,
    ):
        if queue is None and digest is None:
            raise ValueError("at least one notification sink is required")

        self.policy = policy
        self.builder = builder
        self.queue = queue
        self.digest = digest
        self.deletion_log = deletion_log

        self.accepted = 0
        self.ignored = 0
        self._stats_lock = threading.Lock()

    def _count(self, accepted: bool):
        with self._stats_lock:
            if accepted:
                self.accepted += 1
            else:
                self.ignored += 1

    def handle_deletion(self, path: str) -> Optional[DeletionEvent]:
        """
        Process one deletion reported by the watch source.

        Returns:
            The event routed to the sinks, or None if the path was ignored
        """
        path = normalize_path(path)

        if not should_process(path, self.policy):
            self._count(accepted=False)
            logger.debug(f"Ignored deletion: {path}")
            return None

        try:
            event = self.builder.build(path)
        except FilterError as e:
            self._count(accepted=False)
            logger.debug(f"Dropped deletion {path!r}: {e}")
            return None
        except Exception as e:
            self._count(accepted=False)
            logger.exception(f"Could not build deletion event for {path!r}: {e}")
            return None

        self._count(accepted=True)
        logger.warning(f"Deleted: {event.path} (by {event.actor})")

        if self.deletion_log is not None:
            self.deletion_log.append(event)

        if self.queue is not None:
            self.queue.submit(event)
        if self.digest is not None:
            self.digest.record_deletion(event)

        return event
