"""Execution environments the aggregator dispatches calls to.

Usage:
    from call_aggregator.environment import get_environment

    environment = get_environment()
    success, return_data = environment.invoke(target, payload)
"""

from .base import BlockContext
from .base import ExecutionEnvironment
from .factory import create_environment
from .factory import get_environment
from .factory import reset_environment
from .factory import set_environment
from .memory import CallContext
from .memory import InMemoryEnvironment

__all__ = [
    "BlockContext",
    "CallContext",
    "ExecutionEnvironment",
    "InMemoryEnvironment",
    "create_environment",
    "get_environment",
    "reset_environment",
    "set_environment",
]
