"""
File Watcher component.

Observes a working tree with watchdog and turns create / modify / delete
notifications into FileWatchEvents on an asyncio queue. Anything under the
git metadata directory is ignored.
"""

import asyncio
from pathlib import Path, PurePath
from typing import AsyncIterator, Optional, Union

from watchdog.events import (
    DirCreatedEvent,
    DirDeletedEvent,
    DirModifiedEvent,
    DirMovedEvent,
    FileCreatedEvent,
    FileDeletedEvent,
    FileModifiedEvent,
    FileMovedEvent,
    FileSystemEventHandler,
)
from watchdog.observers import Observer
from watchdog.observers.api import BaseObserver

from git_monitor.models.file_watch_event import FileWatchEvent, FileWatchEventType
from git_monitor.utils.logging import get_logger, log_error_with_context


logger = get_logger(__name__)

GIT_DIR_NAME = ".git"


def _to_path(src_path: Union[bytes, str]) -> Path:
    """Convert watchdog src_path to Path, handling bytes case."""
    if isinstance(src_path, bytes):
        return Path(src_path.decode())
    return Path(src_path)


def is_excluded(relative_path: Union[str, PurePath], excluded_dir: str = GIT_DIR_NAME) -> bool:
    """True if any segment of the path is the git metadata directory."""
    return excluded_dir in PurePath(relative_path).parts


class _WatchHandler(FileSystemEventHandler):
    """Forwards watchdog callbacks to the owning FileWatcher."""

    def __init__(self, watcher: "FileWatcher"):
        self.watcher = watcher

    def on_created(self, event: Union[DirCreatedEvent, FileCreatedEvent]) -> None:
        self.watcher.submit(FileWatchEventType.CREATED, event.src_path)

    def on_modified(self, event: Union[DirModifiedEvent, FileModifiedEvent]) -> None:
        # Directory mtime changes only echo changes to their children
        if event.is_directory:
            return
        self.watcher.submit(FileWatchEventType.MODIFIED, event.src_path)

    def on_deleted(self, event: Union[DirDeletedEvent, FileDeletedEvent]) -> None:
        self.watcher.submit(FileWatchEventType.DELETED, event.src_path)

    def on_moved(self, event: Union[DirMovedEvent, FileMovedEvent]) -> None:
        self.watcher.submit(FileWatchEventType.DELETED, event.src_path)
        self.watcher.submit(FileWatchEventType.CREATED, event.dest_path)


class FileWatcher:
    """
    Recursive watcher for a working tree.

    watchdog delivers callbacks on its own observer thread; they are handed to
    the event loop with ``call_soon_threadsafe`` and queued without blocking.
    When the queue is full the event is dropped.
    """

    def __init__(
        self,
        root: Union[str, Path],
        queue_size: int = 1000,
        excluded_dir: str = GIT_DIR_NAME,
    ):
        """
        Initialize File Watcher.

        Args:
            root: Directory to watch recursively
            queue_size: Maximum number of undelivered events (0 for unbounded)
            excluded_dir: Directory name whose contents never produce events
        """
        self.root = Path(root).resolve()
        self.excluded_dir = excluded_dir
        self.queue_size = queue_size
        self._queue: asyncio.Queue[FileWatchEvent] = asyncio.Queue(maxsize=queue_size)
        self._observer: Optional[BaseObserver] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self.dropped_events = 0

    @property
    def is_running(self) -> bool:
        return self._observer is not None and self._observer.is_alive()

    def start(self) -> bool:
        """
        Start watching. Must be called from the event loop that consumes events().

        A setup failure is logged and leaves the watcher stopped.

        Returns:
            True if the observer is running
        """
        if self._observer is not None:
            return self.is_running

        try:
            self._loop = asyncio.get_running_loop()
            # Fresh queue per start so a restarted app consumes on its own loop
            self._queue = asyncio.Queue(maxsize=self.queue_size)
            observer = Observer()
            observer.schedule(_WatchHandler(self), str(self.root), recursive=True)
            observer.start()
        except Exception as e:
            log_error_with_context(
                logger,
                f"Failed to start file watcher for {self.root}; live updates disabled",
                e,
                root=str(self.root),
            )
            return False

        self._observer = observer
        logger.info(f"Watching {self.root} for changes")
        return True

    async def stop(self) -> None:
        """Stop the observer thread and wait for it to exit off the event loop."""
        if self._observer is None:
            return

        observer = self._observer
        self._observer = None
        observer.stop()
        await asyncio.to_thread(observer.join, 5)
        logger.info(f"Stopped watching {self.root}")

    def to_event(
        self,
        event_type: FileWatchEventType,
        src_path: Union[bytes, str],
    ) -> Optional[FileWatchEvent]:
        """
        Build a FileWatchEvent for a raw watchdog path.

        Args:
            event_type: Kind of change
            src_path: Absolute path reported by watchdog

        Returns:
            The event, or None if the path is excluded
        """
        path = _to_path(src_path)
        try:
            relative = path.relative_to(self.root)
        except ValueError:
            relative = path

        if is_excluded(relative, self.excluded_dir):
            return None

        return FileWatchEvent(type=event_type, path=relative.as_posix())

    def submit(self, event_type: FileWatchEventType, src_path: Union[bytes, str]) -> None:
        """Queue an event from any thread without blocking."""
        event = self.to_event(event_type, src_path)
        if event is None or self._loop is None:
            return

        try:
            self._loop.call_soon_threadsafe(self._enqueue, event)
        except RuntimeError:
            # Loop already closed during shutdown
            logger.debug(f"Dropping {event.type.value} event for {event.path}: loop closed")

    def _enqueue(self, event: FileWatchEvent) -> None:
        try:
            self._queue.put_nowait(event)
        except asyncio.QueueFull:
            self.dropped_events += 1
            logger.warning(
                f"Event queue full, dropping {event.type.value} event for {event.path}",
                extra={"event_type": event.type.value, "dropped_events": self.dropped_events},
            )

    async def events(self) -> AsyncIterator[FileWatchEvent]:
        """Yield events as they arrive, forever."""
        while True:
            event = await self._queue.get()
            yield event
