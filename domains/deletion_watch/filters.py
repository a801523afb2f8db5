"""
Event filter for the deletion watch.

Decides from the watch policy alone whether a deleted path is worth a
notification. Pure, no side effects.
"""

from app.models.schemas import WatchPolicy
from app.utils.helpers import get_file_extension


def should_process(path: str, policy: WatchPolicy) -> bool:
    """
    Check if a deleted path should be processed.

    Args:
        path: Raw path reported by the watch source
        policy: Active watch policy

    Returns:
        True if the deletion should be notified, False otherwise
    """
    if not path or not path.strip():
        return False

    if policy.watch_all:
        return True

    extension = get_file_extension(path)
    if not extension:
        return False

    return extension in policy.extensions
