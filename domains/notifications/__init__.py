"""
Notifications Domain

Delivers deletion events by email:
- Immediate mode: FIFO queue with a send cooldown
- Digest mode: buffered events flushed once a day
"""

__all__ = ["digest", "mailer", "notification_queue", "templates"]
