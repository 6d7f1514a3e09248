"""Batch call aggregation.

Key Components:
- Aggregator: sequential batch execution with per-call success requirements,
  plus read-only accessors for block context
- AccessorRegistry: maps accessor wire names to Aggregator methods
"""

from .executor import Aggregator
from .registry import AccessorRegistry
from .registry import execute_accessor_call
from .registry import get_accessor_registry
from .registry import register_accessor

__all__ = [
    "Aggregator",
    "AccessorRegistry",
    "execute_accessor_call",
    "get_accessor_registry",
    "register_accessor",
]
