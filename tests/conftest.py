"""The pytest configuration for call aggregator testing.

Provides an in-memory environment with a handful of deployed targets and an
aggregator bound to it.
"""

import os
import tempfile
from types import SimpleNamespace

# Must be set before the package reads its settings at import time.
os.environ.setdefault("ENABLE_METRICS", "false")
os.environ.setdefault("LOG_DIR", tempfile.mkdtemp(prefix="call_aggregator_logs_"))

import pytest

from call_aggregator import Aggregator
from call_aggregator import CallReverted
from call_aggregator import InMemoryEnvironment
from call_aggregator.environment import reset_environment

ECHO = "0x" + "11" * 20
COUNTER = "0x" + "22" * 20
REVERTER = "0x" + "33" * 20
BROKEN = "0x" + "44" * 20
AGGREGATOR = "0x" + "aa" * 20
UNDEPLOYED = "0x" + "ff" * 20

GENESIS_TIMESTAMP = 1_700_000_000


def echo_handler(ctx, payload):
    return payload


def counter_handler(ctx, payload):
    ctx.storage["count"] = ctx.storage.get("count", 0) + 1
    return str(ctx.storage["count"]).encode()


def reverter_handler(ctx, payload):
    raise CallReverted(b"revert:" + payload, reason="always reverts")


def broken_handler(ctx, payload):
    raise RuntimeError("handler crashed")


@pytest.fixture(autouse=True)
def isolated_environment():
    """Make sure no test leaks a global environment into another."""
    reset_environment()
    yield
    reset_environment()


@pytest.fixture
def environment():
    """Provide an in-memory environment with test targets deployed."""
    env = InMemoryEnvironment(chain_id=31337, timestamp=GENESIS_TIMESTAMP)
    env.register(ECHO, echo_handler)
    env.register(COUNTER, counter_handler)
    env.register(REVERTER, reverter_handler)
    env.register(BROKEN, broken_handler)
    return env


@pytest.fixture
def aggregator(environment):
    """Provide an aggregator bound to the test environment and deployed at AGGREGATOR."""
    agg = Aggregator(environment)
    environment.register(AGGREGATOR, agg.as_handler())
    return agg


@pytest.fixture
def genesis_timestamp():
    return GENESIS_TIMESTAMP


@pytest.fixture
def targets():
    """Addresses of the deployed test targets."""
    return SimpleNamespace(
        echo=ECHO,
        counter=COUNTER,
        reverter=REVERTER,
        broken=BROKEN,
        aggregator=AGGREGATOR,
        undeployed=UNDEPLOYED,
    )
