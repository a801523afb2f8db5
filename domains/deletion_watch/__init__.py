"""
Deletion Watch Domain

Turns file deletions reported by the watch source into structured events:
- Event filter (extension allow-list / watch-all policy)
- Actor resolution (best-effort "who did it")
- Routing to immediate notifications and/or the daily digest
"""

__all__ = ["actors", "builder", "deletion_log", "filters", "pipeline", "service", "watchers"]
