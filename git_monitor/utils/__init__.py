"""
Utility modules for Git Monitor.
"""

from git_monitor.utils.logging import (
    get_logger,
    setup_logging,
    log_command,
    log_session_event,
    log_error_with_context,
)
from git_monitor.utils.metrics import (
    CommandMetrics,
    track_command,
    emit_metric,
)

__all__ = [
    "get_logger",
    "setup_logging",
    "log_command",
    "log_session_event",
    "log_error_with_context",
    "CommandMetrics",
    "track_command",
    "emit_metric",
]
