"""Shared helpers for host applications embedding the toolkit."""

from .logging_utils import (
    QueueLogHandler,
    attach_queue_handler,
    captured_logs,
    detach_queue_handler,
)

__all__ = [
    "QueueLogHandler",
    "attach_queue_handler",
    "captured_logs",
    "detach_queue_handler",
]
