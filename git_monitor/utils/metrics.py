"""
Metrics collection and emission for observability.

This module provides metrics tracking for:
- git invocation counts per command
- git invocation failures (non-zero exit or spawn failure)
- git invocation latency
"""

import threading
import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from git_monitor.utils.logging import get_logger, log_command

logger = get_logger(__name__)


class CommandMetrics:
    """
    Collects metrics about git invocations made by the Command Runner.

    Tracks:
    - Invocation counts per git subcommand
    - Failure counts per git subcommand
    - Latency aggregates (count, min, max, average) per git subcommand
    """

    def __init__(self):
        self.started_at: datetime = datetime.now(timezone.utc)
        self.calls: Dict[str, int] = {}
        self.failures: Dict[str, int] = {}
        # Running aggregates per command: count, total_ms, min_ms, max_ms
        self.latencies: Dict[str, Dict[str, float]] = {}
        self._lock = threading.Lock()

    def record_command(self, command: str, duration_ms: float, exit_code: int) -> None:
        """
        Record a git invocation and its latency.

        Args:
            command: git subcommand (e.g., 'status', 'add')
            duration_ms: Invocation duration in milliseconds
            exit_code: Process exit code
        """
        with self._lock:
            self.calls[command] = self.calls.get(command, 0) + 1
            if exit_code != 0:
                self.failures[command] = self.failures.get(command, 0) + 1
            stats = self.latencies.get(command)
            if stats is None:
                self.latencies[command] = {
                    "count": 1,
                    "total_ms": duration_ms,
                    "min_ms": duration_ms,
                    "max_ms": duration_ms,
                }
            else:
                stats["count"] += 1
                stats["total_ms"] += duration_ms
                stats["min_ms"] = min(stats["min_ms"], duration_ms)
                stats["max_ms"] = max(stats["max_ms"], duration_ms)

    def get_metrics_summary(self) -> Dict[str, Any]:
        """
        Get summary of collected metrics.

        Returns:
            Dictionary of metrics
        """
        with self._lock:
            summary: Dict[str, Any] = {
                "started_at": self.started_at.isoformat(),
                "total_calls": sum(self.calls.values()),
                "calls": dict(self.calls),
                "failures": dict(self.failures),
            }

            latency_stats = {}
            for command, stats in self.latencies.items():
                latency_stats[command] = {
                    "count": int(stats["count"]),
                    "min_ms": round(stats["min_ms"], 2),
                    "max_ms": round(stats["max_ms"], 2),
                    "avg_ms": round(stats["total_ms"] / stats["count"], 2),
                }
            summary["latencies"] = latency_stats

        return summary


@asynccontextmanager
async def track_command(
    metrics: Optional[CommandMetrics],
    args: List[str],
    logger_adapter
):
    """
    Context manager to time a git invocation.

    The body sets ``outcome["exit_code"]`` (and optionally ``outcome["error"]``)
    so the invocation can be recorded once it finishes.

    Usage:
        async with track_command(metrics, ["status"], logger) as outcome:
            outcome["exit_code"] = await run_git(...)

    Args:
        metrics: Metrics collector (optional)
        args: git arguments
        logger_adapter: Logger for logging the invocation

    Yields:
        Mutable outcome dictionary
    """
    start_time = time.monotonic()
    outcome: Dict[str, Any] = {"exit_code": -1, "error": None}

    try:
        yield outcome
    finally:
        duration_ms = (time.monotonic() - start_time) * 1000
        command = args[0] if args else ""

        if metrics:
            metrics.record_command(command, duration_ms, outcome["exit_code"])

        log_command(
            logger_adapter,
            args=args,
            exit_code=outcome["exit_code"],
            duration_ms=duration_ms,
            error=outcome["error"],
        )


def emit_metric(metric_name: str, value: float, **tags: Any) -> None:
    """
    Emit a metric.

    Metrics are written to the structured log; a log shipper can turn them
    into time series.

    Args:
        metric_name: Metric name
        value: Metric value
        **tags: Metric tags/labels
    """
    logger.info(
        f"Metric: {metric_name}",
        extra={
            "metric_name": metric_name,
            "metric_value": value,
            "metric_tags": tags,
        }
    )
