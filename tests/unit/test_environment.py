"""Unit tests for the in-memory execution environment."""

import pytest

from call_aggregator import CallReverted
from call_aggregator import ZERO_HASH
from call_aggregator.environment import InMemoryEnvironment
from call_aggregator.environment import create_environment
from call_aggregator.environment import get_environment
from call_aggregator.environment import reset_environment
from call_aggregator.environment import set_environment


class TestInvoke:
    """Tests for invocation of registered targets."""

    def test_successful_invoke(self, environment, targets):
        assert environment.invoke(targets.echo, b"hello") == (True, b"hello")

    def test_reverted_invoke_returns_revert_data(self, environment, targets):
        assert environment.invoke(targets.reverter, b"x") == (False, b"revert:x")

    def test_crashing_handler_fails_with_empty_data(self, environment, targets):
        assert environment.invoke(targets.broken, b"x") == (False, b"")

    def test_crashing_handler_is_logged(self, environment, targets, mocker):
        mock_log_error = mocker.patch("call_aggregator.logger_config.log_structured_error")

        environment.invoke(targets.broken, b"")

        mock_log_error.assert_called_once()
        assert mock_log_error.call_args[1]["context"]["target"] == targets.broken

    def test_unregistered_target_fails(self, environment, targets):
        assert environment.invoke(targets.undeployed, b"x") == (False, b"")

    def test_handler_returning_none_yields_empty_data(self, environment):
        address = environment.register("0x" + "77" * 20, lambda ctx, payload: None)

        assert environment.invoke(address, b"") == (True, b"")

    def test_target_address_is_normalized(self, environment):
        environment.register("0x" + "cd" * 20, lambda ctx, payload: payload)

        assert environment.invoke("0x" + "CD" * 20, b"a") == (True, b"a")

    def test_unregister(self, environment, targets):
        assert environment.unregister(targets.echo) is True
        assert environment.unregister(targets.echo) is False
        assert not environment.is_registered(targets.echo)

    def test_failed_invoke_undoes_its_writes(self, environment):
        def write_then_revert(ctx, payload):
            ctx.storage["key"] = "value"
            raise CallReverted(b"", reason="changed my mind")

        address = environment.register("0x" + "88" * 20, write_then_revert)

        environment.invoke(address, b"")

        assert environment.storage(address) == {}

    def test_failed_invoke_undoes_mined_block(self, environment):
        def mine_then_revert(ctx, payload):
            ctx.environment.mine_block()
            raise CallReverted(b"")

        address = environment.register("0x" + "89" * 20, mine_then_revert)

        assert environment.invoke(address, b"") == (False, b"")
        assert environment.block_number == 0

    def test_handler_returning_bytearray_yields_bytes(self, environment):
        address = environment.register("0x" + "78" * 20, lambda ctx, payload: bytearray(b"ab"))

        assert environment.invoke(address, b"") == (True, b"ab")

    @pytest.mark.parametrize("value", ["text", 3, [1, 2]])
    def test_handler_returning_non_bytes_fails(self, environment, value):
        def write_then_return(ctx, payload):
            ctx.storage["key"] = "value"
            return value

        address = environment.register("0x" + "79" * 20, write_then_return)

        assert environment.invoke(address, b"") == (False, b"")
        assert environment.storage(address) == {}

    def test_storage_returns_copy(self, environment, targets):
        environment.invoke(targets.counter, b"")

        snapshot = environment.storage(targets.counter)
        snapshot["count"] = 100

        assert environment.storage(targets.counter) == {"count": 1}


class TestTransaction:
    """Tests for the transactional boundary."""

    def test_commit_on_clean_exit(self, environment, targets):
        with environment.transaction():
            environment.invoke(targets.counter, b"")

        assert environment.storage(targets.counter) == {"count": 1}

    def test_rollback_on_exception(self, environment, targets):
        with pytest.raises(RuntimeError):
            with environment.transaction():
                environment.invoke(targets.counter, b"")
                environment.set_balance("0x" + "01" * 20, 50)
                raise RuntimeError("abort")

        assert environment.storage(targets.counter) == {}
        assert environment.balance("0x" + "01" * 20) == 0

    def test_nested_rollback_keeps_outer_changes(self, environment, targets):
        with environment.transaction():
            environment.invoke(targets.counter, b"")
            with pytest.raises(RuntimeError):
                with environment.transaction():
                    environment.invoke(targets.counter, b"")
                    raise RuntimeError("inner abort")

        assert environment.storage(targets.counter) == {"count": 1}

    def test_counter_continues_after_rollback(self, environment, targets):
        """Handlers keep working against live storage after a restore."""
        with pytest.raises(RuntimeError):
            with environment.transaction():
                environment.invoke(targets.counter, b"")
                raise RuntimeError("abort")

        assert environment.invoke(targets.counter, b"") == (True, b"1")

    def test_rollback_on_keyboard_interrupt(self, environment, targets):
        with pytest.raises(KeyboardInterrupt):
            with environment.transaction():
                environment.invoke(targets.counter, b"")
                raise KeyboardInterrupt

        assert environment.storage(targets.counter) == {}

    def test_rollback_is_logged_with_backend_type(self, environment, mocker):
        mock_logger = mocker.patch("call_aggregator.environment.memory.call_logger")

        with pytest.raises(RuntimeError):
            with environment.transaction():
                raise RuntimeError("abort")

        mock_logger.info.assert_called_once_with("Transaction rolled back in memory environment")


class TestChain:
    """Tests for block production."""

    def test_genesis_block(self, environment, genesis_timestamp):
        block = environment.current_block

        assert block.number == 0
        assert block.parent_hash == ZERO_HASH
        assert block.timestamp == genesis_timestamp

    def test_mine_block_carries_header_fields(self, environment):
        environment.mine_block(difficulty=3, gas_limit=100)
        block = environment.mine_block()

        assert block.number == 2
        assert block.difficulty == 3
        assert block.gas_limit == 100

    def test_block_hash_is_deterministic(self):
        a = InMemoryEnvironment(timestamp=1)
        b = InMemoryEnvironment(timestamp=1)

        assert a.block_hash(0) == b.block_hash(0)

    def test_current_block_hash_is_known(self, environment):
        assert environment.block_hash(environment.block_number) == environment.current_block.hash


class TestBalances:
    """Tests for account balances."""

    def test_transfer(self, environment):
        alice, bob = "0x" + "0a" * 20, "0x" + "0b" * 20
        environment.set_balance(alice, 10)

        environment.transfer(alice, bob, 4)

        assert environment.balance(alice) == 6
        assert environment.balance(bob) == 4

    def test_transfer_with_insufficient_balance_reverts(self, environment):
        with pytest.raises(CallReverted):
            environment.transfer("0x" + "0a" * 20, "0x" + "0b" * 20, 1)

    def test_negative_balance_rejected(self, environment):
        with pytest.raises(ValueError):
            environment.set_balance("0x" + "0a" * 20, -1)


class TestEnvironmentFactory:
    """Tests for the process-wide environment."""

    def test_get_environment_is_singleton(self):
        assert get_environment() is get_environment()

    def test_reset_environment(self):
        first = get_environment()
        reset_environment()

        assert get_environment() is not first

    def test_set_environment(self, environment):
        set_environment(environment)

        assert get_environment() is environment

    def test_create_environment_passes_overrides(self):
        env = create_environment(chain_id=5)

        assert env.backend_type == "memory"
        assert env.chain_id == 5
