"""
Deletion event builder.

Turns an accepted path into an immutable DeletionEvent. Actor resolution
is best effort: any resolver failure is logged and replaced by a fallback
label, event construction itself never fails because of it.
"""

from datetime import datetime
from typing import Callable, Optional

from loguru import logger

from app.models.schemas import DeletionEvent
from app.utils.errors import FilterError
from app.utils.helpers import get_file_name
from domains.deletion_watch.actors import ActorResolver, current_user


class DeletionEventBuilder:
    """Builds DeletionEvent records for accepted paths."""

    def __init__(
        self,
        resolver: ActorResolver,
        clock: Callable[[], datetime] = datetime.now,
        fallback: Optional[Callable[[], str]] = None,
    ):
        """
        Initialize event builder.

        Args:
            resolver: Actor resolution strategy
            clock: Wall clock used to stamp events
            fallback: Label provider used when the resolver fails
        """
        self.resolver = resolver
        self.clock = clock
        self.fallback = fallback or current_user

    def resolve_actor(self, path: str) -> str:
        try:
            actor = self.resolver.resolve(path)
        except Exception as e:
            logger.warning(f"Actor resolution failed for {path}: {e}")
            return self.fallback()

        return actor or self.fallback()

    def build(self, path: str) -> DeletionEvent:
        """
        Build the event for a deleted path.

        Raises:
            FilterError: if the path is empty
        """
        if not path or not path.strip():
            raise FilterError("empty path")

        name = get_file_name(path)
        if not name:
            raise FilterError(f"no file name in path: {path!r}")

        return DeletionEvent(
            path=path,
            name=name,
            actor=self.resolve_actor(path),
            occurred_at=self.clock(),
        )
