"""Business logic services package."""

from git_monitor.services.command_runner import (
    CommandResult,
    CommandRunner,
)
from git_monitor.services.git_repository import GitRepository
from git_monitor.services.file_watcher import FileWatcher
from git_monitor.services.connection_registry import (
    ConnectionRegistry,
    Session,
)
from git_monitor.services.broadcaster import EventBroadcaster

__all__ = [
    'CommandResult',
    'CommandRunner',
    'GitRepository',
    'FileWatcher',
    'ConnectionRegistry',
    'Session',
    'EventBroadcaster',
]
