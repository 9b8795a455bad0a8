"""
Adapter protocol and connection configuration.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any, Protocol, Sequence

from ..dialects.base import Dialect
from ..errors import ExecutionError
from ..security.dsns import DSNConfig, parse_dsn


class AdapterError(ExecutionError):
    """Base error for adapter-related failures."""


class AdapterConfigurationError(AdapterError):
    """Raised when configuration or required dependencies are invalid."""


class AdapterConnectionError(AdapterError):
    """Raised when establishing or using a connection fails."""


class AdapterExecutionError(AdapterError):
    """Raised when SQL execution or parameter validation fails."""


_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


def _parse_bool(value: str, *, key: str) -> bool:
    normalized = value.strip().lower()
    if normalized in _TRUE_VALUES:
        return True
    if normalized in _FALSE_VALUES:
        return False
    raise AdapterConfigurationError(f"Invalid boolean value for '{key}': {value!r}")


def _parse_number(value: str, *, key: str, kind: type) -> Any:
    try:
        return kind(value)
    except ValueError as exc:
        raise AdapterConfigurationError(
            f"Invalid {kind.__name__} value for '{key}': {value!r}"
        ) from exc


@dataclass
class ConnectionConfig:
    """
    Normalized connection configuration for adapters.
    """

    url: str
    autocommit: bool = False
    isolation_level: str | None = None
    timeout: float | None = None
    options: dict[str, Any] | None = None
    dsn: DSNConfig | None = None
    source: str | None = None

    @classmethod
    def from_dsn(cls, dsn: str, **kwargs: Any) -> "ConnectionConfig":
        """
        Build a config from a DSN; explicit keyword arguments win over query
        string values.
        """
        parsed = parse_dsn(dsn)
        query = dict(parsed.query)

        autocommit = None
        if "autocommit" in query:
            autocommit = _parse_bool(query.pop("autocommit"), key="autocommit")
        timeout = None
        if "timeout" in query:
            timeout = _parse_number(query.pop("timeout"), key="timeout", kind=float)
        isolation_level = query.pop("isolation_level", None)

        options: dict[str, Any] = {}
        for key, value in query.items():
            if key == "connect_timeout":
                options[key] = _parse_number(value, key=key, kind=int)
            else:
                options[key] = value
        options.update(kwargs.pop("options", None) or {})

        return cls(
            url=dsn,
            dsn=parsed,
            autocommit=bool(kwargs.pop("autocommit", autocommit)),
            isolation_level=kwargs.pop("isolation_level", isolation_level),
            timeout=kwargs.pop("timeout", timeout),
            options=options or None,
            **kwargs,
        )

    @classmethod
    def from_env(cls, env_var: str, **kwargs: Any) -> "ConnectionConfig":
        value = os.getenv(env_var)
        if not value:
            raise AdapterConfigurationError(f"Environment variable {env_var} is not set")
        return cls.from_dsn(value, source=env_var, **kwargs)

    @property
    def scheme(self) -> str:
        """
        Backend name from the DSN scheme, without a ``+driver`` suffix.
        """
        dsn = self.dsn or parse_dsn(self.url)
        return dsn.driver.split("+", 1)[0].lower()

    def redacted_dsn(self) -> str:
        if self.dsn:
            return self.dsn.redacted()
        return self.url

    def descriptive_label(self) -> str:
        redacted = self.redacted_dsn()
        if self.source:
            return f"{self.source} ({redacted})"
        return redacted


class DatabaseAdapter(Protocol):
    """
    Blocking DB-API wrapper driven by :class:`AdapterExecutor`.
    """

    dialect: Dialect

    def connect(self, config: ConnectionConfig) -> Any:
        """
        Establish a connection handle using the supplied configuration.
        """

    def close(self) -> None:
        """
        Close underlying resources. Implementations should be idempotent.
        """

    def execute(self, sql: str, params: Sequence[Any] | None = None) -> Any:
        """
        Execute one statement written in ``dialect``'s placeholder style and
        return a DB-API cursor.
        """

    def begin(self) -> None:
        """
        Start a transaction.
        """

    def commit(self) -> None:
        """
        Commit the current transaction.
        """

    def rollback(self) -> None:
        """
        Roll back the current transaction.
        """


def validate_param_count(dialect: Dialect, sql: str, params: Sequence[Any]) -> None:
    placeholder_count = dialect.count_placeholders(sql)
    if placeholder_count != len(params):
        raise AdapterExecutionError(
            f"Parameter count mismatch: expected {placeholder_count}, received {len(params)}."
        )
