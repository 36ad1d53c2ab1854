"""
Logging configuration for the Attendance Terminal.

Provides structured logging with terminal ID context.
"""

import logging
import sys


class TerminalContextFilter(logging.Filter):
    """Add terminal context to log records."""

    def __init__(self, terminal_id: str):
        super().__init__()
        self.terminal_id = terminal_id

    def filter(self, record: logging.LogRecord) -> bool:
        record.terminal_id = self.terminal_id
        return True


def setup_logging(terminal_id: str, debug: bool = False) -> None:
    """
    Configure logging for the service.

    Args:
        terminal_id: Terminal identifier for log context
        debug: Enable debug level logging
    """
    level = logging.DEBUG if debug else logging.INFO

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    # Drop handlers left over from a previous setup
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)

    formatter = logging.Formatter(
        '[%(levelname)s] [terminal=%(terminal_id)s] %(name)s: %(message)s'
    )
    console_handler.setFormatter(formatter)
    console_handler.addFilter(TerminalContextFilter(terminal_id))

    root_logger.addHandler(console_handler)


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance.

    Args:
        name: Logger name (usually __name__)

    Returns:
        Logger instance
    """
    return logging.getLogger(name)
