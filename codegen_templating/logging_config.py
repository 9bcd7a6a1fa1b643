"""Logging setup for the template worker.

Every module obtains its logger through :func:`get_logger`. The worker entry
point calls :func:`configure_logging` once; records then go to a rich console
handler on stderr and, when a host channel is available, are forwarded to the
host as ``log`` messages.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from rich.console import Console
from rich.logging import RichHandler

from .messages import LogLevel, ProcessMessage

if TYPE_CHECKING:
    from .channel import MessageChannel

ROOT_LOGGER_NAME = "codegen_templating"


def get_logger(name: str) -> logging.Logger:
    """Return a logger below the package root logger."""
    if name != ROOT_LOGGER_NAME and not name.startswith(ROOT_LOGGER_NAME + "."):
        name = f"{ROOT_LOGGER_NAME}.{name}"
    return logging.getLogger(name)


def to_log_level(levelno: int) -> LogLevel:
    """Map a ``logging`` level number onto the host's log levels."""
    if levelno >= logging.ERROR:
        return LogLevel.ERROR
    if levelno >= logging.WARNING:
        return LogLevel.WARNING
    if levelno >= logging.INFO:
        return LogLevel.INFO
    return LogLevel.VERBOSE


class HostLogHandler(logging.Handler):
    """Forwards log records to the host process over the message channel."""

    def __init__(self, channel: "MessageChannel", level: int = logging.NOTSET) -> None:
        super().__init__(level)
        self.channel = channel

    def emit(self, record: logging.LogRecord) -> None:
        try:
            message = ProcessMessage.log_message(
                to_log_level(record.levelno), self.format(record)
            )
            self.channel.send(message)
        except Exception:
            self.handleError(record)


def configure_logging(
    level: int = logging.INFO,
    channel: "MessageChannel | None" = None,
) -> logging.Logger:
    """Configure the package root logger.

    Args:
        level: Minimum level for all handlers.
        channel: Optional host channel; when given, records are also sent to
            the host.

    Returns:
        The configured root logger of the package.
    """
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(level)

    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    console_handler = RichHandler(
        console=Console(stderr=True),
        show_path=False,
        rich_tracebacks=True,
    )
    console_handler.setLevel(level)
    logger.addHandler(console_handler)

    if channel is not None:
        host_handler = HostLogHandler(channel, level)
        host_handler.setFormatter(logging.Formatter("%(message)s"))
        logger.addHandler(host_handler)

    logger.propagate = False
    return logger
