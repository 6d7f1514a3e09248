"""Batched call aggregation over a pluggable execution environment.

Run an ordered list of calls in one round trip, failing the whole batch
atomically when a call that requires success fails, and read block context
alongside.
"""

from .aggregator import Aggregator
from .codec import decode_accessor_return
from .codec import encode_accessor_call
from .environment import ExecutionEnvironment
from .environment import InMemoryEnvironment
from .exceptions import CallAggregatorError
from .exceptions import CallReverted
from .exceptions import UnknownAccessorError
from .exceptions import UnsuccessfulCall
from .exceptions import ValidationError
from .models import ZERO_ADDRESS
from .models import ZERO_HASH
from .models import AggregateResult
from .models import BlockAndAggregateResult
from .models import CallDescriptor
from .models import CallResult

__all__ = [
    # Models
    "CallDescriptor",
    "CallResult",
    "AggregateResult",
    "BlockAndAggregateResult",
    "ZERO_ADDRESS",
    "ZERO_HASH",
    # Core Components
    "Aggregator",
    "ExecutionEnvironment",
    "InMemoryEnvironment",
    # Codec
    "encode_accessor_call",
    "decode_accessor_return",
    # Errors
    "CallAggregatorError",
    "CallReverted",
    "UnknownAccessorError",
    "UnsuccessfulCall",
    "ValidationError",
]

__version__ = "1.0.0"
