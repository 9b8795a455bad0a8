"""
Persistence layer components: statements, sessions and executors.
"""

from .executor import AdapterExecutor, Executor
from .page import Page, PageRequest
from .session import Session
from .statements import Statement

__all__ = ["AdapterExecutor", "Executor", "Page", "PageRequest", "Session", "Statement"]
