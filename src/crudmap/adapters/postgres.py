"""
PostgreSQL database adapter implementation.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Sequence
from urllib.parse import urlsplit, urlunsplit

from ..dialects.postgres import PostgresDialect
from ..security.redaction import redact_params
from ..utils import get_logger, time_call
from ..utils.logging import resolve_slow_query_ms
from .base import (
    AdapterConfigurationError,
    AdapterConnectionError,
    AdapterExecutionError,
    ConnectionConfig,
    DatabaseAdapter,
    validate_param_count,
)

_NUMBERED_RE = re.compile(r"\$(\d+)")


def _load_driver():
    try:
        import psycopg

        return psycopg
    except ImportError:
        return None


def _isolation_level(driver, name: str):
    try:
        return driver.IsolationLevel[name.strip().upper().replace(" ", "_")]
    except KeyError:
        raise AdapterConfigurationError(f"Unknown isolation level {name!r}") from None


def _conninfo(url: str) -> str:
    """
    Strip the ``+driver`` suffix and the query string; query options reach the
    driver as keyword arguments through ``ConnectionConfig.options``.
    """
    parts = urlsplit(url)
    scheme = parts.scheme.split("+", 1)[0]
    return urlunsplit((scheme, parts.netloc, parts.path, "", ""))


def to_driver_sql(sql: str) -> str:
    """
    Rewrite ``$n`` placeholders into psycopg's ``%s`` form.

    Statement builders number placeholders left to right, so the rewrite is
    positional; anything else is rejected rather than silently reordered.
    """
    positions = [int(number) for number in _NUMBERED_RE.findall(sql)]
    if positions != list(range(1, len(positions) + 1)):
        raise AdapterExecutionError(
            f"Numbered placeholders must appear in order $1..$n, found {positions}"
        )
    return _NUMBERED_RE.sub("%s", sql.replace("%", "%%"))


@dataclass
class PostgresConnectionState:
    connection: Any
    config: ConnectionConfig
    driver: Any


class PostgresAdapter(DatabaseAdapter):
    """
    Adapter wrapping the psycopg PostgreSQL driver.
    """

    def __init__(self, slow_query_ms: int | None = None) -> None:
        self.dialect = PostgresDialect()
        self._state: PostgresConnectionState | None = None
        self.logger = get_logger("adapters.postgres")
        self.slow_query_ms = resolve_slow_query_ms(default=100, override=slow_query_ms)

    def connect(self, config: ConnectionConfig) -> Any:
        driver = _load_driver()
        if driver is None:
            raise AdapterConfigurationError("psycopg is required to use PostgresAdapter.")

        isolation = None
        if config.isolation_level:
            isolation = _isolation_level(driver, config.isolation_level)

        options = dict(config.options or {})
        if config.timeout and "connect_timeout" not in options:
            options["connect_timeout"] = int(config.timeout)

        self.logger.info(
            "Connecting to PostgreSQL %s (autocommit=%s)",
            config.descriptive_label(),
            config.autocommit,
        )

        try:
            connection = driver.connect(_conninfo(config.url), **options)
        except Exception as exc:
            raise AdapterConnectionError("Failed to connect to PostgreSQL.") from exc
        connection.autocommit = bool(config.autocommit)
        if isolation is not None:
            connection.isolation_level = isolation

        self._state = PostgresConnectionState(connection, config, driver)
        return connection

    def close(self) -> None:
        if self._state:
            try:
                self._state.connection.close()
            finally:
                self._state = None

    def _ensure_connection(self):
        if not self._state:
            raise AdapterConnectionError("PostgresAdapter is not connected.")
        conn = self._state.connection
        if getattr(conn, "closed", False):
            self.logger.warning("PostgreSQL connection closed; reconnecting.")
            conn = self.connect(self._state.config)
        return conn

    def execute(self, sql: str, params: Sequence[Any] | None = None):
        connection = self._ensure_connection()
        params = list(params or ())
        validate_param_count(self.dialect, sql, params)
        driver_sql = to_driver_sql(sql)
        cursor = connection.cursor()
        with time_call(
            "postgres.execute",
            self.logger,
            sql=sql,
            params=redact_params(params),
            threshold_ms=self.slow_query_ms,
        ):
            cursor.execute(driver_sql, params)
        return cursor

    def begin(self) -> None:
        if self._state and getattr(self._state.connection, "autocommit", False):
            return
        connection = self._ensure_connection()
        cursor = connection.cursor()
        cursor.execute("BEGIN")

    def commit(self) -> None:
        connection = self._ensure_connection()
        connection.commit()

    def rollback(self) -> None:
        connection = self._ensure_connection()
        connection.rollback()
