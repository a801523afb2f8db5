"""
Helper utilities for WhoReapedWhat.

Common functions used across domains.
"""

import platform
import re
import sys
from datetime import datetime
from typing import Union

from loguru import logger

LOG_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan> - <level>{message}</level>"
)
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"

_SEPARATORS = re.compile(r"[\\/]")


def configure_logging(level: str = "INFO"):
    """Replace loguru's default sink with the application stdout sink."""
    logger.remove()
    logger.add(sys.stdout, format=LOG_FORMAT, level=level.upper())


def normalize_path(path: Union[str, bytes]) -> str:
    """
    Make a watch source path safe to store and mail.

    Undecodable bytes (raw bytes, or lone surrogates produced by the
    surrogateescape file system encoding) become U+FFFD.
    """
    if isinstance(path, bytes):
        return path.decode("utf-8", errors="replace")
    try:
        raw = path.encode("utf-8", errors="surrogateescape")
    except UnicodeEncodeError:
        raw = path.encode("utf-8", errors="replace")
    return raw.decode("utf-8", errors="replace")


def get_file_name(path: str) -> str:
    """Final path segment, for both POSIX and Windows separators."""
    return _SEPARATORS.split(path.rstrip("/\\"))[-1]


def get_parent_dir(path: str) -> str:
    """Everything before the final path segment."""
    stripped = path.rstrip("/\\")
    name = get_file_name(stripped)
    return stripped[: len(stripped) - len(name)].rstrip("/\\")


def get_file_extension(path: str) -> str:
    """
    Get lower-cased file extension without dot.

    The extension is whatever follows the last dot of the final segment, so
    ".bashrc" has extension "bashrc". Names without a dot or ending with a
    dot yield an empty string.
    """
    name = get_file_name(path)
    _, dot, ext = name.rpartition(".")
    if not dot:
        return ""
    return ext.lower()


def format_timestamp(ts: datetime) -> str:
    """Format timestamp the way deletion logs and mails show it."""
    return ts.strftime(TIMESTAMP_FORMAT)


def platform_label() -> str:
    """Human-readable platform name."""
    system = platform.system()
    if system == "Darwin":
        return "macOS"
    return system or "Unknown"
