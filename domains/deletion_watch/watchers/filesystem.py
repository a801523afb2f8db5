"""
File system watcher for the Deletion Watch domain.

Monitors configured directories for file deletions and feeds every
deleted path to the deletion pipeline.
Uses watchdog library for cross-platform file system event monitoring.
"""

from pathlib import Path
from typing import Callable, Iterable

from loguru import logger
from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from app.utils.helpers import normalize_path


class DeletionEventHandler(FileSystemEventHandler):
    """Forwards file deletions to a callback."""

    def __init__(self, on_deletion: Callable[[str], object]):
        """
        Initialize event handler.

        Args:
            on_deletion: Called with the deleted path
        """
        super().__init__()
        self.on_deletion = on_deletion

    def on_deleted(self, event: FileSystemEvent):
        """Handle file deletion."""
        if event.is_directory:
            return

        path = normalize_path(event.src_path)

        try:
            self.on_deletion(path)
        except Exception as e:
            logger.exception(f"Deletion callback failed for {path}: {e}")


class DeletionWatcher:
    """File system monitoring orchestrator, one observer per watched root."""

    def __init__(self, roots: Iterable[Path], on_deletion: Callable[[str], object]):
        """Initialize deletion watcher."""
        self.roots = [Path(root) for root in roots]
        self.event_handler = DeletionEventHandler(on_deletion)
        self.observers: list[Observer] = []
        self.watched: list[Path] = []

    def start_watching(self) -> int:
        """
        Start watching every existing root.

        Returns:
            Number of roots actually watched
        """
        for root in self.roots:
            if not root.is_dir():
                logger.warning(f"Path does not exist or is not a directory: {root}")
                continue

            try:
                observer = Observer()
                observer.schedule(self.event_handler, str(root), recursive=True)
                observer.daemon = True
                observer.start()

            except Exception as e:
                logger.error(f"Failed to watch {root}: {e}")
                continue

            self.observers.append(observer)
            self.watched.append(root)
            logger.success(f"Started watching: {root}")

        return len(self.watched)

    def stop_watching(self):
        """Stop watching."""
        for observer in self.observers:
            observer.stop()
        for observer in self.observers:
            observer.join(timeout=5)

        self.observers = []
        self.watched = []
        logger.info("File system observers stopped")
