"""
Correlation IDs for tracing one operation across log lines.

The caller (HTTP layer, worker, script) opens a correlation scope; every
log record emitted inside it carries the same request_id.
"""

import uuid
from collections.abc import Generator
from contextlib import contextmanager
from contextvars import ContextVar

# Context variable for request ID (thread-safe)
request_id_var: ContextVar[str] = ContextVar("request_id", default="")


def get_request_id() -> str:
    """Get the current request ID."""
    return request_id_var.get()


@contextmanager
def correlation_scope(request_id: str | None = None) -> Generator[str, None, None]:
    """
    Bind a request ID for the duration of the block.

    Usage:
        with correlation_scope(request.headers.get("X-Request-ID")):
            service.create_order(request_data)
    """
    token = request_id_var.set(request_id or str(uuid.uuid4()))
    try:
        yield request_id_var.get()
    finally:
        request_id_var.reset(token)


class CorrelationIdFilter:
    """
    Logging filter that adds request_id to log records.

    Usage:
        import logging
        handler = logging.StreamHandler()
        handler.addFilter(CorrelationIdFilter())
    """

    def filter(self, record) -> bool:
        record.request_id = request_id_var.get() or "-"
        return True
