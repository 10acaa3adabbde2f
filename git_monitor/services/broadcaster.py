"""
Event Broadcaster component.

Drains the File Watcher's event stream and offers every event to each
registered session's outbound queue.
"""

import asyncio
from typing import Optional

from git_monitor.models.file_watch_event import FileWatchEvent
from git_monitor.services.connection_registry import ConnectionRegistry
from git_monitor.services.file_watcher import FileWatcher
from git_monitor.utils.logging import get_logger, log_error_with_context


logger = get_logger(__name__)


class EventBroadcaster:
    """Fans watcher events out to all connected sessions."""

    def __init__(self, watcher: FileWatcher, registry: ConnectionRegistry):
        """
        Initialize Event Broadcaster.

        Args:
            watcher: Source of FileWatchEvents
            registry: Sessions to deliver to
        """
        self.watcher = watcher
        self.registry = registry
        self.events_published = 0
        self._task: Optional[asyncio.Task] = None

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Start the broadcast loop on the running event loop."""
        if self.is_running:
            return
        self._task = asyncio.create_task(self._run())
        logger.info("Event broadcaster started")

    async def stop(self) -> None:
        """Cancel the broadcast loop and wait for it to finish."""
        if self._task is None:
            return

        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Event broadcaster stopped")

    def publish(self, event: FileWatchEvent) -> int:
        """
        Offer one event to every registered session.

        A session that cannot take the event is skipped; it is reaped by its
        own read loop.

        Args:
            event: Event to deliver

        Returns:
            Number of sessions that accepted the event
        """
        payload = event.model_dump_json()
        delivered = 0

        for session in self.registry.sessions():
            try:
                if session.enqueue(payload):
                    delivered += 1
            except Exception as e:
                log_error_with_context(
                    logger,
                    f"Failed to deliver event to session {session.session_id}",
                    e,
                    session_id=session.session_id,
                )

        self.events_published += 1
        logger.debug(
            f"Broadcast {event.type.value} {event.path} to {delivered} session(s)",
            extra={"event_type": event.type.value},
        )
        return delivered

    async def _run(self) -> None:
        try:
            async for event in self.watcher.events():
                try:
                    self.publish(event)
                except Exception as e:
                    log_error_with_context(logger, "Error broadcasting file event", e)
        except Exception as e:
            log_error_with_context(
                logger,
                "File event stream failed; live updates stopped",
                e,
                events_published=self.events_published,
            )
