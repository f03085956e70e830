"""Logging setup shared by the CLI and the TUI."""

import logging


def setup_logging(level: str = "WARNING") -> logging.Logger:
    """
    Configure process-wide logging to stderr.

    Args:
        level: Log level string (e.g. 'INFO', 'DEBUG').

    Returns:
        The package logger.
    """
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        format="%(asctime)s  %(name)-32s  %(levelname)-7s  %(message)s",
    )
    return logging.getLogger("dep_inspector")
