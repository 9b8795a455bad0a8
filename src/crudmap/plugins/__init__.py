"""
Pluggable statement interceptors.
"""

from .soft_delete import LogicDeletePolicy, SoftDelete

__all__ = ["LogicDeletePolicy", "SoftDelete"]
