"""
Deletion watch service.

Wires every component explicitly from the settings: watch policy, actor
resolver, event builder, mail dispatcher, notification sinks, deletion
log and file system observers. Nothing is shared through module globals.
"""

from typing import Optional

from loguru import logger

from app.models.schemas import StatusResponse
from app.utils.config import Settings
from domains.deletion_watch.actors import BoundedActorResolver, ProcessScanResolver
from domains.deletion_watch.builder import DeletionEventBuilder
from domains.deletion_watch.deletion_log import DeletionLog
from domains.deletion_watch.pipeline import DeletionPipeline
from domains.deletion_watch.watchers.filesystem import DeletionWatcher
from domains.notifications.digest import DigestScheduler
from domains.notifications.mailer import MailDispatcher, MailTransport, SmtpTransport
from domains.notifications.notification_queue import NotificationQueue


class DeletionWatchService:
    """Owns the deletion pipeline and its background threads."""

    def __init__(
        self,
        settings: Settings,
        pipeline: DeletionPipeline,
        dispatcher: MailDispatcher,
        watcher: DeletionWatcher,
        resolver: Optional[BoundedActorResolver] = None,
    ):
        self.settings = settings
        self.pipeline = pipeline
        self.dispatcher = dispatcher
        self.watcher = watcher
        self.resolver = resolver
        self.running = False

    @property
    def queue(self) -> Optional[NotificationQueue]:
        return self.pipeline.queue

    @property
    def digest(self) -> Optional[DigestScheduler]:
        return self.pipeline.digest

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        transport: Optional[MailTransport] = None,
    ) -> "DeletionWatchService":
        """
        Build the full service from settings.

        Args:
            settings: Loaded application settings
            transport: Mail transport override (SMTP from settings by default)
        """
        policy = settings.get_watch_policy()

        resolver = BoundedActorResolver(
            ProcessScanResolver(settings.actor_process_names),
            timeout=settings.actor_timeout_seconds,
        )
        builder = DeletionEventBuilder(resolver)

        if transport is None:
            transport = SmtpTransport(
                host=settings.smtp_server,
                port=settings.smtp_port,
                username=settings.email_from,
                password=settings.email_password,
                use_ssl=settings.enable_ssl,
                timeout=settings.smtp_timeout,
            )
        dispatcher = MailDispatcher(
            transport,
            sender=settings.email_from,
            recipient=settings.email_to,
            server_label=f"{settings.smtp_server}:{settings.smtp_port}",
        )

        queue = None
        digest = None
        if settings.notification_mode in ("immediate", "both"):
            queue = NotificationQueue(dispatcher, cooldown=settings.send_cooldown_seconds)
        if settings.notification_mode in ("digest", "both"):
            digest = DigestScheduler(dispatcher, digest_hour=policy.digest_hour)

        log_path = settings.get_deletion_log_path()
        deletion_log = DeletionLog(log_path) if log_path is not None else None

        pipeline = DeletionPipeline(
            policy,
            builder,
            queue=queue,
            digest=digest,
            deletion_log=deletion_log,
        )
        watcher = DeletionWatcher(settings.get_watch_roots(), pipeline.handle_deletion)

        return cls(settings, pipeline, dispatcher, watcher, resolver=resolver)

    def start(self, watch: bool = True) -> int:
        """
        Start sinks, then observers.

        Args:
            watch: Also start the file system observers

        Returns:
            Number of watched roots
        """
        if self.running:
            return len(self.watcher.watched)

        if self.queue is not None:
            self.queue.start()
        if self.digest is not None:
            self.digest.start()

        watched = self.watcher.start_watching() if watch else 0
        self.running = True
        logger.info(
            f"Deletion watch started: mode={self.settings.notification_mode}, "
            f"roots={watched}, recipient={self.settings.email_to}"
        )
        return watched

    def stop(self):
        """Stop observers first, then sinks. Pending notifications are not flushed."""
        if not self.running:
            return

        self.watcher.stop_watching()
        if self.queue is not None:
            self.queue.stop()
        if self.digest is not None:
            self.digest.stop()
        if self.resolver is not None:
            self.resolver.close()

        self.running = False
        logger.info("Deletion watch stopped")

    def status(self) -> StatusResponse:
        """Snapshot of the pipeline for the status API."""
        return StatusResponse(
            mode=self.settings.notification_mode,
            running=self.running,
            watched_roots=[str(root) for root in self.watcher.watched],
            queue_pending=self.queue.pending if self.queue is not None else 0,
            digest_pending=self.digest.pending if self.digest is not None else 0,
            next_digest_at=self.digest.next_fire if self.digest is not None else None,
            accepted=self.pipeline.accepted,
            ignored=self.pipeline.ignored,
            sent=self.dispatcher.sent,
            failed=self.dispatcher.failed,
        )
