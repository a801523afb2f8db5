"""
Pydantic models for WhoReapedWhat.

Shared data models across the application.
"""

from datetime import datetime
from typing import FrozenSet, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


# =====================================================
# Watch Models
# =====================================================

class WatchPolicy(BaseModel):
    """Immutable snapshot of which deletions are processed."""
    model_config = ConfigDict(frozen=True)

    extensions: FrozenSet[str] = frozenset()
    watch_all: bool = False
    digest_hour: int = Field(default=18, ge=0, le=23)

    @field_validator("extensions", mode="before")
    @classmethod
    def normalise_extensions(cls, value):
        # Lowercase, no leading dot
        return frozenset(
            str(ext).strip().lstrip(".").lower()
            for ext in value
            if str(ext).strip().lstrip(".")
        )


class DeletionEvent(BaseModel):
    """A single accepted deletion, never mutated once built."""
    model_config = ConfigDict(frozen=True)

    path: str = Field(min_length=1)
    name: str
    actor: str = "unknown"
    occurred_at: datetime


# =====================================================
# Response Models
# =====================================================

class HealthResponse(BaseModel):
    """Health check response model."""
    status: str
    timestamp: datetime
    mode: str
    version: str


class StatusResponse(BaseModel):
    """Pipeline status snapshot."""
    mode: str
    running: bool
    watched_roots: List[str] = []
    queue_pending: int = 0
    digest_pending: int = 0
    next_digest_at: Optional[datetime] = None
    accepted: int = 0
    ignored: int = 0
    sent: int = 0
    failed: int = 0
