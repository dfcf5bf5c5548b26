"""Logging setup shared by the scripts."""

import logging

DEFAULT_LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(level: int = logging.INFO, fmt: str = DEFAULT_LOG_FORMAT) -> None:
    """
    Configure root logging for command-line use.

    Args:
        level: Root log level (logging.DEBUG under --verbose)
        fmt: Log record format
    """
    logging.basicConfig(level=level, format=fmt, force=True)
