"""
Logging utilities for streaming toolkit logs into a host application's
console (or any consumer reading from a queue).
"""
from __future__ import annotations

import logging
from contextlib import contextmanager
from queue import Queue
from typing import Generator, Optional

PACKAGE_LOGGER = "latex_toolkit"


class QueueLogHandler(logging.Handler):
    """
    A logging handler that puts ``(message, level_name)`` tuples on a queue.

    Render workers log from background threads; the queue lets a UI thread
    drain messages at its own pace.
    """

    def __init__(self, log_queue: Queue, level: int = logging.INFO):
        super().__init__(level)
        self.log_queue = log_queue
        self.setFormatter(logging.Formatter("%(name)s: %(message)s"))

    def emit(self, record: logging.LogRecord) -> None:
        try:
            self.log_queue.put((self.format(record), record.levelname))
        except Exception:
            self.handleError(record)


def attach_queue_handler(
    log_queue: Queue,
    logger_name: Optional[str] = PACKAGE_LOGGER,
    level: int = logging.INFO,
) -> QueueLogHandler:
    """
    Attach a QueueLogHandler to the toolkit logger (or ``logger_name``).

    Args:
        log_queue: Queue to send log messages to.
        logger_name: Logger to attach to. None = root logger.
        level: Minimum level forwarded to the queue.

    Returns:
        The attached handler (for later removal).
    """
    logger = logging.getLogger(logger_name)
    handler = QueueLogHandler(log_queue, level)
    logger.addHandler(handler)
    return handler


def detach_queue_handler(
    handler: QueueLogHandler,
    logger_name: Optional[str] = PACKAGE_LOGGER,
) -> None:
    """Remove a handler added by :func:`attach_queue_handler`."""
    logging.getLogger(logger_name).removeHandler(handler)


@contextmanager
def captured_logs(
    log_queue: Queue,
    logger_name: Optional[str] = PACKAGE_LOGGER,
    level: int = logging.INFO,
) -> Generator[QueueLogHandler, None, None]:
    """
    Forward toolkit logs to ``log_queue`` for the duration of the block.

    Example:
        >>> messages = Queue()
        >>> with captured_logs(messages, level=logging.DEBUG):
        ...     pipeline.render_blocks(blocks, options)
    """
    logger = logging.getLogger(logger_name)
    previous_level = logger.level
    if logger.getEffectiveLevel() > level:
        logger.setLevel(level)
    handler = attach_queue_handler(log_queue, logger_name, level)
    try:
        yield handler
    finally:
        detach_queue_handler(handler, logger_name)
        logger.setLevel(previous_level)
