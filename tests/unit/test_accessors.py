"""Unit tests for the Aggregator's environment accessors."""

from call_aggregator import ZERO_HASH
from call_aggregator import Aggregator
from call_aggregator import InMemoryEnvironment


class TestBlockAccessors:
    """Tests for block number and hash reads."""

    def test_block_number_starts_at_genesis(self, aggregator):
        assert aggregator.get_block_number() == 0

    def test_block_number_is_idempotent(self, aggregator):
        assert aggregator.get_block_number() == aggregator.get_block_number()

    def test_block_number_follows_mining(self, aggregator, environment):
        environment.mine_block()
        environment.mine_block()

        assert aggregator.get_block_number() == 2

    def test_block_hash_of_known_block(self, aggregator, environment):
        first = environment.current_block
        environment.mine_block()

        assert aggregator.get_block_hash(0) == first.hash
        assert len(aggregator.get_block_hash(1)) == 32

    def test_block_hash_of_future_block_is_zero(self, aggregator):
        assert aggregator.get_block_hash(10) == ZERO_HASH

    def test_block_hash_of_negative_block_is_zero(self, aggregator):
        assert aggregator.get_block_hash(-1) == ZERO_HASH

    def test_block_hash_outside_history_window_is_zero(self):
        env = InMemoryEnvironment(history_window=2)
        aggregator = Aggregator(env)
        for _ in range(4):
            env.mine_block()

        assert aggregator.get_block_hash(1) == ZERO_HASH
        assert aggregator.get_block_hash(2) != ZERO_HASH

    def test_last_block_hash_matches_previous_block(self, aggregator, environment):
        for _ in range(3):
            environment.mine_block()

        number = aggregator.get_block_number()
        assert aggregator.get_last_block_hash() == aggregator.get_block_hash(number - 1)

    def test_last_block_hash_at_genesis_is_zero(self, aggregator):
        assert aggregator.get_last_block_hash() == ZERO_HASH

    def test_blocks_chain_to_parent(self, environment):
        parent = environment.current_block
        child = environment.mine_block()

        assert child.parent_hash == parent.hash
        assert child.hash != parent.hash


class TestCurrentBlockAccessors:
    """Tests for current block header reads."""

    def test_timestamp(self, aggregator, environment, genesis_timestamp):
        assert aggregator.get_current_block_timestamp() == genesis_timestamp

        environment.mine_block()
        assert aggregator.get_current_block_timestamp() == genesis_timestamp + 1

    def test_coinbase(self, aggregator, environment):
        operator = "0x" + "AB" * 20
        environment.mine_block(coinbase=operator)

        assert aggregator.get_current_block_coinbase() == operator.lower()

    def test_difficulty_and_gas_limit(self, aggregator, environment):
        environment.mine_block(difficulty=7, gas_limit=15_000_000)

        assert aggregator.get_current_block_difficulty() == 7
        assert aggregator.get_current_block_gas_limit() == 15_000_000

    def test_gas_limit_defaults_from_settings(self, aggregator):
        assert aggregator.get_current_block_gas_limit() == 30_000_000

    def test_chain_id_and_basefee(self, aggregator, environment):
        environment.mine_block(base_fee=12)

        assert aggregator.get_chain_id() == 31337
        assert aggregator.get_basefee() == 12


class TestBalanceAccessor:
    """Tests for account balance reads."""

    def test_unknown_account_has_zero_balance(self, aggregator):
        assert aggregator.get_eth_balance("0x" + "01" * 20) == 0

    def test_known_account_balance(self, aggregator, environment):
        account = "0x" + "02" * 20
        environment.set_balance(account, 1_000)

        assert aggregator.get_eth_balance(account) == 1_000

    def test_balance_accepts_raw_bytes(self, aggregator, environment):
        environment.set_balance("0x" + "03" * 20, 5)

        assert aggregator.get_eth_balance(bytes([3]) * 20) == 5
