"""
Append-only deletion log.

One line per accepted deletion, independent of mail delivery:

    [2024-01-01 09:00:00] SUPPRIMÉ (.pdf): /srv/media/report.pdf - PAR: alice
"""

import threading
from pathlib import Path

from loguru import logger

from app.models.schemas import DeletionEvent
from app.utils.helpers import format_timestamp, get_file_extension


def format_log_line(event: DeletionEvent) -> str:
    """Render one deletion log line (with trailing newline)."""
    extension = get_file_extension(event.path)
    return (
        f"[{format_timestamp(event.occurred_at)}] SUPPRIMÉ (.{extension}): "
        f"{event.path} - PAR: {event.actor}\n"
    )


class DeletionLog:
    """Line-oriented deletion log writer."""

    def __init__(self, path: Path):
        self.path = Path(path)
        self.lock = threading.Lock()

    def append(self, event: DeletionEvent) -> bool:
        """
        Append an event to the log.

        Returns:
            True if written, False if the write failed (failure is logged)
        """
        line = format_log_line(event)
        try:
            with self.lock:
                with self.path.open("a", encoding="utf-8") as handle:
                    handle.write(line)
            return True

        except OSError as e:
            logger.error(f"Failed to write deletion log {self.path}: {e}")
            return False
