"""Batch call aggregation over an execution environment.

This module provides sequential execution of call batches with a per-call
success requirement, plus read-only accessors for ambient block context.
"""

from collections.abc import Iterable
from typing import Any

from ..codec import decode_accessor_call
from ..codec import encode_accessor_return
from ..environment import ExecutionEnvironment
from ..environment import get_environment
from ..exceptions import UnsuccessfulCall
from ..logger_config import log_aggregator_call
from ..metrics_config import ensure_metrics_initialized
from ..models import ZERO_HASH
from ..models import AggregateResult
from ..models import BlockAndAggregateResult
from ..models import CallDescriptor
from ..models import CallResult
from ..models import normalize_address
from .registry import execute_accessor_call
from .registry import register_accessor


def _coerce_calls(calls: Iterable[CallDescriptor | dict[str, Any]]) -> tuple[CallDescriptor, ...]:
    return tuple(
        call if isinstance(call, CallDescriptor) else CallDescriptor.model_validate(call)
        for call in calls
    )


class Aggregator:
    """Executes batches of calls against an environment.

    Args:
        environment: Environment to dispatch calls to. Defaults to the
            process-wide environment.
    """

    def __init__(self, environment: ExecutionEnvironment | None = None):
        self._environment = environment if environment is not None else get_environment()
        ensure_metrics_initialized()

    @property
    def environment(self) -> ExecutionEnvironment:
        return self._environment

    # === Batch Operations ===

    @log_aggregator_call
    def aggregate(self, calls: Iterable[CallDescriptor | dict[str, Any]]) -> AggregateResult:
        """Execute calls in order and return their raw return data.

        Args:
            calls: Calls to execute, in order

        Returns:
            AggregateResult: block snapshot and one return payload per call

        Raises:
            UnsuccessfulCall: If a call with ``require_success`` fails. No
                effects of the batch remain in the environment.
        """
        block_number, block_hash, results = self._execute(_coerce_calls(calls))
        return AggregateResult(
            block_number=block_number,
            block_hash=block_hash,
            return_data=[result.return_data for result in results],
        )

    @log_aggregator_call
    def try_aggregate(
        self,
        calls: Iterable[CallDescriptor | dict[str, Any]],
        require_success: bool | None = None,
    ) -> list[CallResult]:
        """Execute calls in order and return each outcome.

        Args:
            calls: Calls to execute, in order
            require_success: If given, overrides every call's own
                ``require_success`` flag

        Raises:
            UnsuccessfulCall: If a call required to succeed fails
        """
        _, _, results = self._execute(_coerce_calls(calls), require_success)
        return results

    @log_aggregator_call
    def try_block_and_aggregate(
        self,
        calls: Iterable[CallDescriptor | dict[str, Any]],
        require_success: bool | None = None,
    ) -> BlockAndAggregateResult:
        """Like ``try_aggregate``, with the block snapshot attached."""
        block_number, block_hash, results = self._execute(_coerce_calls(calls), require_success)
        return BlockAndAggregateResult(
            block_number=block_number, block_hash=block_hash, results=results
        )

    def block_and_aggregate(
        self, calls: Iterable[CallDescriptor | dict[str, Any]]
    ) -> BlockAndAggregateResult:
        """Execute calls that must all succeed, keeping success flags."""
        return self.try_block_and_aggregate(calls, require_success=True)

    def _execute(
        self,
        calls: tuple[CallDescriptor, ...],
        require_success: bool | None = None,
    ) -> tuple[int, bytes, list[CallResult]]:
        environment = self._environment
        results = []

        with environment.transaction():
            # Snapshot is taken once for the whole batch, not per call.
            block_number = environment.block_number
            block_hash = environment.block_hash(block_number)

            for index, call in enumerate(calls):
                success, return_data = environment.invoke(call.target, call.payload)
                required = call.require_success if require_success is None else require_success
                if required and not success:
                    raise UnsuccessfulCall(index, call.target)
                results.append(CallResult(success=success, return_data=return_data))

        return block_number, block_hash, results

    # === Environment Accessors ===

    @register_accessor("getBlockHash")
    def get_block_hash(self, block_number: int) -> bytes:
        """Hash of ``block_number``; ``ZERO_HASH`` outside retained history."""
        return self._environment.block_hash(block_number)

    @register_accessor("getBlockNumber")
    def get_block_number(self) -> int:
        return self._environment.block_number

    @register_accessor("getCurrentBlockCoinbase")
    def get_current_block_coinbase(self) -> str:
        return self._environment.current_block.coinbase

    @register_accessor("getCurrentBlockDifficulty")
    def get_current_block_difficulty(self) -> int:
        return self._environment.current_block.difficulty

    @register_accessor("getCurrentBlockGasLimit")
    def get_current_block_gas_limit(self) -> int:
        return self._environment.current_block.gas_limit

    @register_accessor("getCurrentBlockTimestamp")
    def get_current_block_timestamp(self) -> int:
        return self._environment.current_block.timestamp

    @register_accessor("getEthBalance")
    def get_eth_balance(self, account: str) -> int:
        return self._environment.balance(normalize_address(account))

    @register_accessor("getLastBlockHash")
    def get_last_block_hash(self) -> bytes:
        """Hash of the previous block; ``ZERO_HASH`` at genesis."""
        block_number = self._environment.block_number
        if block_number == 0:
            return ZERO_HASH
        return self._environment.block_hash(block_number - 1)

    @register_accessor("getChainId")
    def get_chain_id(self) -> int:
        return self._environment.chain_id

    @register_accessor("getBasefee")
    def get_basefee(self) -> int:
        return self._environment.current_block.base_fee

    # === Self Dispatch ===

    def as_handler(self):
        """Return an environment handler answering encoded accessor calls.

        Register it at an address to read block context from inside a batch.
        """

        def handler(ctx, payload: bytes) -> bytes:
            call = decode_accessor_call(payload)
            return encode_accessor_return(execute_accessor_call(self, call))

        return handler
