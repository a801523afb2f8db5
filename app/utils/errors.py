"""
Error taxonomy for WhoReapedWhat.

Every error is caught at the boundary of the operation that raised it and
turned into a log record; none of them is meant to stop the process.
"""

from typing import Optional


class WatchError(Exception):
    """Base class for deletion watch errors."""


class FilterError(WatchError):
    """Malformed or empty path handed over by the watch source."""


class ResolverError(WatchError):
    """Actor resolution failed or exceeded its time budget."""


class TransportError(WatchError):
    """The mail transport could not deliver a message."""

    def __init__(
        self,
        message: str,
        server: Optional[str] = None,
        recipient: Optional[str] = None,
        subject: Optional[str] = None,
    ):
        super().__init__(message)
        self.server = server
        self.recipient = recipient
        self.subject = subject


class SchedulingError(WatchError):
    """Clock anomaly detected while computing the next digest fire time."""
