"""
DSN-driven construction of ready-to-use sessions.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, Optional

from .adapters.base import AdapterConfigurationError, ConnectionConfig, DatabaseAdapter
from .adapters.mysql import MySQLAdapter
from .adapters.postgres import PostgresAdapter
from .adapters.sqlite import SQLiteAdapter
from .persistence.executor import AdapterExecutor
from .persistence.session import Session
from .plugins.soft_delete import LogicDeletePolicy
from .utils import get_logger

logger = get_logger("connection")

ADAPTERS: Dict[str, Callable[..., DatabaseAdapter]] = {
    "sqlite": SQLiteAdapter,
    "postgresql": PostgresAdapter,
    "postgres": PostgresAdapter,
    "mysql": MySQLAdapter,
}


def adapter_factory_for(
    config: ConnectionConfig, *, slow_query_ms: int | None = None
) -> Callable[[], DatabaseAdapter]:
    try:
        adapter_cls = ADAPTERS[config.scheme]
    except KeyError:
        raise AdapterConfigurationError(
            f"No adapter registered for scheme '{config.scheme}' ({config.redacted_dsn()})"
        ) from None
    return lambda: adapter_cls(slow_query_ms=slow_query_ms)


def connect(
    dsn: Optional[str] = None,
    *,
    env_var: Optional[str] = None,
    soft_delete: Optional[LogicDeletePolicy] = None,
    slow_query_ms: int | None = None,
    **overrides: Any,
) -> Session:
    """
    Open a :class:`Session` for ``dsn``, or for the DSN stored in ``env_var``.

    Keyword overrides (``autocommit``, ``timeout``, ``isolation_level``,
    ``options``) win over DSN query parameters.
    """
    if dsn and env_var:
        raise AdapterConfigurationError("Pass either a DSN or an environment variable, not both.")
    if dsn:
        config = ConnectionConfig.from_dsn(dsn, **overrides)
    elif env_var:
        config = ConnectionConfig.from_env(env_var, **overrides)
    else:
        raise AdapterConfigurationError("A DSN or an environment variable name is required.")

    factory = adapter_factory_for(config, slow_query_ms=slow_query_ms)
    logger.info("Opening %s session for %s", config.scheme, config.descriptive_label())
    executor = AdapterExecutor(factory, config)
    return Session(executor, soft_delete=soft_delete, slow_query_ms=slow_query_ms)
