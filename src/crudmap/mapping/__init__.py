"""
Entity-to-SQL value mapping.
"""

from .codec import (
    ValueMap,
    columns,
    from_row,
    is_temporal,
    is_temporal_column,
    placeholders_and_args,
    to_value_map,
)
from .params import ParameterBuilder

__all__ = [
    "ParameterBuilder",
    "ValueMap",
    "columns",
    "from_row",
    "is_temporal",
    "is_temporal_column",
    "placeholders_and_args",
    "to_value_map",
]
