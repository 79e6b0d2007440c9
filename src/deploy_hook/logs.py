"""Per-request capture of log records, returned to the caller on errors."""

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any

PACKAGE_LOGGER = "deploy_hook"

_records: ContextVar[list[dict[str, Any]] | None] = ContextVar("deploy_hook_records", default=None)


class RequestLogHandler(logging.Handler):
    """Appends records to the list of the request being handled, if any."""

    def emit(self, record: logging.LogRecord) -> None:
        records = _records.get()
        if records is None:
            return
        records.append(
            {
                "level": record.levelname.lower(),
                "logger": record.name,
                "message": record.getMessage(),
            }
        )


_handler = RequestLogHandler(level=logging.DEBUG)


def install() -> None:
    """Attach the capture handler to the package logger once."""
    logger = logging.getLogger(PACKAGE_LOGGER)
    if _handler not in logger.handlers:
        logger.addHandler(_handler)


@contextmanager
def capture_logs() -> Iterator[list[dict[str, Any]]]:
    """
    Collect the package's log records emitted inside the block.

    Collection is scoped to the current context, so concurrent requests
    each see only their own records.
    """
    install()
    records: list[dict[str, Any]] = []
    token = _records.set(records)
    try:
        yield records
    finally:
        _records.reset(token)
