"""
Utility helpers shared across crudmap packages.
"""

from .logging import configure_logging, get_logger, get_tx_id, time_call, transaction_scope
from .naming import camel_to_snake

__all__ = [
    "camel_to_snake",
    "configure_logging",
    "get_logger",
    "get_tx_id",
    "time_call",
    "transaction_scope",
]
