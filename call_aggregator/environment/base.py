"""Abstract Base Class for Execution Environments.

Defines the interface the aggregator dispatches calls through and reads
ambient block context from.
"""
from __future__ import annotations


from abc import ABC
from abc import abstractmethod
from contextlib import AbstractContextManager
from dataclasses import dataclass


@dataclass(frozen=True)
class BlockContext:
    """Header fields of a block, as observed by calls executing in it."""

    number: int
    hash: bytes
    parent_hash: bytes
    timestamp: int
    coinbase: str
    difficulty: int
    gas_limit: int
    base_fee: int = 0


class ExecutionEnvironment(ABC):
    """Abstract base class for execution environments.

    An environment owns the targets calls are dispatched to, the state they
    mutate and the chain of blocks ambient reads come from. It is also the
    transactional boundary batches rely on for all-or-nothing semantics.
    """

    @property
    @abstractmethod
    def backend_type(self) -> str:
        """Return the environment type identifier (e.g., 'memory')."""
        pass

    # === Invocation ===

    @abstractmethod
    def invoke(self, target: str, payload: bytes) -> tuple[bool, bytes]:
        """Invoke a target with an opaque payload.

        A failed invocation leaves no state changes of its own behind.

        Args:
            target: Normalized address of the target
            payload: Opaque invocation payload

        Returns:
            Tuple of (success, return_data)
        """
        pass

    @abstractmethod
    def transaction(self) -> AbstractContextManager:
        """Open a transactional boundary.

        Any exception propagating out of the context rolls back every state
        change made inside it, then re-raises.
        """
        pass

    # === Block Context ===

    @property
    @abstractmethod
    def current_block(self) -> BlockContext:
        """Return the block currently being executed."""
        pass

    @property
    def block_number(self) -> int:
        """Return the current block number."""
        return self.current_block.number

    @abstractmethod
    def block_hash(self, number: int) -> bytes:
        """Return the hash of block ``number``.

        Returns:
            The 32-byte hash, or ``ZERO_HASH`` if the block is outside the
            retained history window
        """
        pass

    @property
    @abstractmethod
    def chain_id(self) -> int:
        """Return the chain identifier."""
        pass

    # === Accounts ===

    @abstractmethod
    def balance(self, account: str) -> int:
        """Return the balance of ``account``, zero for unknown accounts."""
        pass
