"""
Registry for environment accessors.

This module maps the wire names used in accessor call payloads to the
Aggregator methods that answer them.
"""

from typing import Any

from ..codec import AccessorCall
from ..exceptions import UnknownAccessorError


class AccessorRegistry:
    """Simple registry for accessors callable through a payload."""

    def __init__(self):
        self._accessors: dict[str, str] = {}  # wire name -> method name

    def register_accessor(self, wire_name: str, method_name: str):
        """Register a method as callable under ``wire_name``."""
        self._accessors[wire_name] = method_name

    def get_method_name(self, wire_name: str) -> str | None:
        return self._accessors.get(wire_name)

    def is_valid_accessor(self, wire_name: str) -> bool:
        return wire_name in self._accessors

    def get_accessors(self) -> list[str]:
        """Return list of all registered wire names."""
        return list(self._accessors.keys())


# Global registry instance
_accessor_registry = AccessorRegistry()


def get_accessor_registry() -> AccessorRegistry:
    """Get the global accessor registry."""
    return _accessor_registry


def register_accessor(wire_name: str):
    """Decorator to expose an Aggregator method under ``wire_name``."""

    def decorator(func):
        _accessor_registry.register_accessor(wire_name, func.__name__)
        return func

    return decorator


def execute_accessor_call(aggregator, call: AccessorCall) -> Any:
    """Run a decoded accessor call against ``aggregator``.

    Raises:
        UnknownAccessorError: If the method is not registered
    """
    method_name = _accessor_registry.get_method_name(call.method)
    if method_name is None:
        raise UnknownAccessorError(call.method)
    return getattr(aggregator, method_name)(*call.args)
