"""In-Memory Execution Environment.

Implements the ExecutionEnvironment interface with Python callables as call
targets and dictionaries as state. This is the default environment for local
development and testing.
"""

from __future__ import annotations

import copy
import hashlib
import json
import time
from collections.abc import Callable
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any

from ..config import get_settings
from ..exceptions import CallReverted
from ..logger_config import ErrorCategory
from ..logger_config import call_logger
from ..logger_config import safe_operation
from ..models import ZERO_HASH
from ..models import normalize_address
from .base import BlockContext
from .base import ExecutionEnvironment


@dataclass
class CallContext:
    """What a target handler sees while it runs."""

    environment: InMemoryEnvironment
    target: str
    storage: dict[str, Any]


Handler = Callable[[CallContext, bytes], bytes]


def _run_handler(handler: Handler, context: CallContext, payload: bytes) -> bytes:
    result = handler(context, payload)
    if result is None:
        return b""
    if not isinstance(result, (bytes, bytearray, memoryview)):
        raise TypeError(
            f"handler for {context.target} returned {type(result).__name__}, expected bytes"
        )
    return bytes(result)


def _hash_header(
    number: int,
    parent_hash: bytes,
    timestamp: int,
    coinbase: str,
    difficulty: int,
    gas_limit: int,
    base_fee: int,
) -> bytes:
    header = {
        "number": number,
        "parent_hash": parent_hash.hex(),
        "timestamp": timestamp,
        "coinbase": coinbase,
        "difficulty": difficulty,
        "gas_limit": gas_limit,
        "base_fee": base_fee,
    }
    return hashlib.sha256(json.dumps(header, sort_keys=True).encode("utf-8")).digest()


class InMemoryEnvironment(ExecutionEnvironment):
    """Execution environment backed by process memory.

    Args:
        chain_id: Chain identifier. Defaults to the ``chain_id`` setting.
        gas_limit: Gas limit of produced blocks.
        history_window: Number of past block hashes retained.
        coinbase: Operator address of produced blocks.
        difficulty: Difficulty reported for produced blocks.
        base_fee: Base fee reported for produced blocks.
        timestamp: Timestamp of the genesis block. Defaults to now.
    """

    def __init__(
        self,
        chain_id: int | None = None,
        gas_limit: int | None = None,
        history_window: int | None = None,
        coinbase: str | None = None,
        difficulty: int | None = None,
        base_fee: int | None = None,
        timestamp: int | None = None,
    ):
        settings = get_settings()
        self._chain_id = settings.chain_id if chain_id is None else chain_id
        self._history_window = (
            settings.block_hash_history if history_window is None else history_window
        )

        self._handlers: dict[str, Handler] = {}
        self._storage: dict[str, dict[str, Any]] = {}
        self._balances: dict[str, int] = {}
        self._blocks: list[BlockContext] = []

        if timestamp is None:
            timestamp = (
                settings.genesis_timestamp
                if settings.genesis_timestamp is not None
                else int(time.time())
            )
        self._append_block(
            timestamp=timestamp,
            coinbase=normalize_address(coinbase or settings.coinbase),
            difficulty=settings.difficulty if difficulty is None else difficulty,
            gas_limit=settings.block_gas_limit if gas_limit is None else gas_limit,
            base_fee=settings.base_fee if base_fee is None else base_fee,
        )

    @property
    def backend_type(self) -> str:
        return "memory"

    # === Target Registry ===

    def register(self, target: str, handler: Handler) -> str:
        """Register a handler as the code behind ``target``.

        Returns:
            The normalized target address
        """
        target = normalize_address(target)
        self._handlers[target] = handler
        self._storage.setdefault(target, {})
        return target

    def unregister(self, target: str) -> bool:
        """Remove the handler at ``target``; its storage is kept."""
        return self._handlers.pop(normalize_address(target), None) is not None

    def is_registered(self, target: str) -> bool:
        return normalize_address(target) in self._handlers

    def storage(self, target: str) -> dict[str, Any]:
        """Return a copy of the storage of ``target``."""
        return copy.deepcopy(self._storage.get(normalize_address(target), {}))

    # === Invocation ===

    def invoke(self, target: str, payload: bytes) -> tuple[bool, bytes]:
        target = normalize_address(target)
        handler = self._handlers.get(target)
        if handler is None:
            call_logger.warning(f"Invocation of unregistered target {target}")
            return False, b""

        snapshot = self._snapshot()
        context = CallContext(
            environment=self,
            target=target,
            storage=self._storage.setdefault(target, {}),
        )
        success, result, error = safe_operation(
            f"invoke:{target}",
            _run_handler,
            handler,
            context,
            bytes(payload),
            error_category=ErrorCategory.WARNING,
            context={"target": target, "payload_size": len(payload)},
        )
        if success:
            return True, result

        self._restore(snapshot)
        if isinstance(error, CallReverted):
            return False, error.return_data
        return False, b""

    @contextmanager
    def transaction(self):
        snapshot = self._snapshot()
        try:
            yield self
        except BaseException:
            self._restore(snapshot)
            call_logger.info(f"Transaction rolled back in {self.backend_type} environment")
            raise

    def _snapshot(self) -> tuple[dict, dict, dict, int]:
        return (
            copy.deepcopy(self._storage),
            dict(self._balances),
            dict(self._handlers),
            len(self._blocks),
        )

    def _restore(self, snapshot: tuple[dict, dict, dict, int]):
        storage, balances, handlers, block_count = snapshot
        # Restore in place so CallContext.storage references stay valid.
        for target in list(self._storage):
            if target not in storage:
                del self._storage[target]
        for target, values in storage.items():
            live = self._storage.setdefault(target, {})
            live.clear()
            live.update(values)
        self._balances.clear()
        self._balances.update(balances)
        self._handlers.clear()
        self._handlers.update(handlers)
        del self._blocks[block_count:]

    # === Block Context ===

    @property
    def current_block(self) -> BlockContext:
        return self._blocks[-1]

    def block_hash(self, number: int) -> bytes:
        current = self.current_block.number
        if number < 0 or number > current or number < current - self._history_window:
            return ZERO_HASH
        return self._blocks[number].hash

    @property
    def chain_id(self) -> int:
        return self._chain_id

    def mine_block(
        self,
        timestamp: int | None = None,
        coinbase: str | None = None,
        difficulty: int | None = None,
        gas_limit: int | None = None,
        base_fee: int | None = None,
    ) -> BlockContext:
        """Advance the chain by one block.

        Unspecified header fields are carried over from the current block;
        the timestamp defaults to one second after it.
        """
        parent = self.current_block
        return self._append_block(
            timestamp=parent.timestamp + 1 if timestamp is None else timestamp,
            coinbase=parent.coinbase if coinbase is None else normalize_address(coinbase),
            difficulty=parent.difficulty if difficulty is None else difficulty,
            gas_limit=parent.gas_limit if gas_limit is None else gas_limit,
            base_fee=parent.base_fee if base_fee is None else base_fee,
        )

    def _append_block(self, **header) -> BlockContext:
        number = len(self._blocks)
        parent_hash = self._blocks[-1].hash if self._blocks else ZERO_HASH
        block = BlockContext(
            number=number,
            hash=_hash_header(number=number, parent_hash=parent_hash, **header),
            parent_hash=parent_hash,
            **header,
        )
        self._blocks.append(block)
        return block

    # === Accounts ===

    def balance(self, account: str) -> int:
        return self._balances.get(normalize_address(account), 0)

    def set_balance(self, account: str, amount: int):
        if amount < 0:
            raise ValueError("balance cannot be negative")
        self._balances[normalize_address(account)] = amount

    def transfer(self, sender: str, recipient: str, amount: int):
        """Move ``amount`` between accounts; reverts if the sender is short."""
        sender = normalize_address(sender)
        recipient = normalize_address(recipient)
        if self.balance(sender) < amount:
            raise CallReverted(reason=f"insufficient balance in {sender}")
        self._balances[sender] = self.balance(sender) - amount
        self._balances[recipient] = self.balance(recipient) + amount
