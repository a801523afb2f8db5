"""
Actor resolution for deletion events.

Best-effort guess of who removed a file: the current OS user, optionally
cross-referenced with a handful of running processes known to delete
files (media servers, shells, container runtimes). This is a heuristic,
not forensic attribution.
"""

from __future__ import annotations

import getpass
import os
import sys
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import Iterable, Protocol

import psutil
from loguru import logger

from app.utils.errors import ResolverError

UNKNOWN_ACTOR = "unknown"
MAX_REPORTED_PROCESSES = 3


class ActorResolver(Protocol):
    """Strategy returning a label for whoever probably deleted *path*."""

    def resolve(self, path: str) -> str:
        ...


def current_user() -> str:
    """Current OS user name, or "unknown" when it cannot be determined."""
    try:
        return getpass.getuser()
    except (OSError, KeyError, ImportError):
        return UNKNOWN_ACTOR


class CurrentUserResolver:
    """Attributes every deletion to the user running the watcher."""

    def resolve(self, path: str) -> str:
        return current_user()


class ProcessScanResolver:
    """Current user plus up to three suspicious running processes."""

    def __init__(self, process_names: Iterable[str], windows: bool | None = None):
        self.process_names = [name.lower() for name in process_names if name]
        self.windows = sys.platform.startswith("win") if windows is None else windows

    def find_processes(self) -> list[str]:
        """Names of running processes matching the suspicious list."""
        found: list[str] = []
        for proc in psutil.process_iter(["name"]):
            try:
                name = proc.info.get("name") or ""
            except (psutil.NoSuchProcess, psutil.AccessDenied, psutil.ZombieProcess):
                continue
            lowered = name.lower()
            if name and any(pattern in lowered for pattern in self.process_names):
                found.append(name)
                if len(found) >= MAX_REPORTED_PROCESSES:
                    break
        return found

    def resolve(self, path: str) -> str:
        user = current_user()
        processes = self.find_processes()

        if self.windows:
            domain = os.environ.get("USERDOMAIN", "")
            label = f"{domain}\\{user}" if domain else user
            if processes:
                label += f" - Processus actifs: {', '.join(processes)}"
            return label

        if processes:
            return f"{user} - Processus: {', '.join(processes)}"
        return f"{user} (processus inconnus)"


class BoundedActorResolver:
    """
    Runs another resolver with a hard time budget.

    Raises ResolverError when the wrapped strategy fails or does not
    answer within *timeout* seconds. A stalled strategy keeps its pool
    thread busy, so the pool has a few workers to absorb it.
    """

    def __init__(self, strategy: ActorResolver, timeout: float = 0.2, max_workers: int = 2):
        self.strategy = strategy
        self.timeout = timeout
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="actor-resolver"
        )

    def resolve(self, path: str) -> str:
        future = self._executor.submit(self.strategy.resolve, path)
        try:
            return future.result(timeout=self.timeout)
        except FutureTimeoutError as e:
            future.cancel()
            raise ResolverError(f"actor resolution exceeded {self.timeout:.3f}s") from e
        except Exception as e:
            raise ResolverError(f"actor resolution failed: {e}") from e

    def close(self):
        """Release the worker threads."""
        self._executor.shutdown(wait=False, cancel_futures=True)
        logger.debug("Actor resolver pool shut down")
