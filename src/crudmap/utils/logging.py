"""Structured logging helpers for crudmap."""

from __future__ import annotations

import logging
import os
import time
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any, Iterable, Iterator

SLOW_QUERY_ENV = "CRUDMAP_SLOW_QUERY_MS"

_tx_id: ContextVar[str] = ContextVar("crudmap_tx_id", default="")


class TransactionIdFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        record.tx_id = get_tx_id() or "-"
        return True


def configure_logging(level: int = logging.INFO) -> None:
    logger = logging.getLogger("crudmap")
    if logger.handlers:
        return
    handler = logging.StreamHandler()
    formatter = logging.Formatter(
        "%(asctime)s | %(levelname)s | tx=%(tx_id)s | %(name)s | %(message)s"
    )
    handler.setFormatter(formatter)
    handler.addFilter(TransactionIdFilter())
    logger.addHandler(handler)
    logger.setLevel(level)


def get_logger(name: str) -> logging.Logger:
    configure_logging()
    return logging.getLogger(f"crudmap.{name}")


def get_tx_id() -> str:
    return _tx_id.get()


@contextmanager
def transaction_scope(tx_id: str) -> Iterator[str]:
    """
    Tag every record logged inside the block with ``tx_id``.
    """
    token = _tx_id.set(tx_id)
    try:
        yield tx_id
    finally:
        _tx_id.reset(token)


def resolve_slow_query_ms(*, default: int, override: int | None = None) -> int:
    if override is not None:
        return override
    raw = os.getenv(SLOW_QUERY_ENV)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        logging.getLogger("crudmap.config").warning(
            "Ignoring non-integer %s=%r; using %sms", SLOW_QUERY_ENV, raw, default
        )
        return default


def time_call(
    name: str,
    logger: logging.Logger,
    *,
    sql: str | None = None,
    params: Iterable[Any] | None = None,
    threshold_ms: int = 100,
):
    start = time.monotonic()

    class Timer:
        def __enter__(self):
            return self

        def __exit__(self, exc_type, exc, tb):
            elapsed_ms = (time.monotonic() - start) * 1000
            level = logging.WARNING if elapsed_ms >= threshold_ms else logging.DEBUG
            extra = {"sql": sql, "params": params, "elapsed_ms": elapsed_ms}
            logger.log(level, "%s took %.2fms", name, elapsed_ms, extra=extra)

    return Timer()
