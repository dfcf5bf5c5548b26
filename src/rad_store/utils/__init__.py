"""Utility functions for the telemetry store."""

from .log_utils import DEFAULT_LOG_FORMAT, setup_logging

__all__ = [
    "DEFAULT_LOG_FORMAT",
    "setup_logging",
]
