"""Execution Environment Factory.

Holds the process-wide environment an Aggregator uses when none is given.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .base import ExecutionEnvironment


def create_environment(**kwargs) -> ExecutionEnvironment:
    """Create an in-memory environment configured from settings.

    Args:
        **kwargs: Overrides passed to ``InMemoryEnvironment``

    Returns:
        A new ExecutionEnvironment instance
    """
    from .memory import InMemoryEnvironment

    return InMemoryEnvironment(**kwargs)


# Singleton instance for the application
_environment_instance: ExecutionEnvironment | None = None


def get_environment(**kwargs) -> ExecutionEnvironment:
    """Get the global environment instance.

    Creates the instance on first call. Subsequent calls return the same
    instance and ignore ``kwargs``.
    """
    global _environment_instance

    if _environment_instance is None:
        _environment_instance = create_environment(**kwargs)

    return _environment_instance


def set_environment(environment: ExecutionEnvironment) -> None:
    """Install ``environment`` as the global instance."""
    global _environment_instance
    _environment_instance = environment


def reset_environment() -> None:
    """Reset the global environment instance (for testing)."""
    global _environment_instance
    _environment_instance = None
