"""Pluggable log dispatch and latency percentile reporting for load generators."""

__all__ = [
    "cli",
    "config",
    "errors",
    "formatting",
    "handlers",
    "histogram",
    "logger",
    "messages",
    "report",
]
