"""Pydantic models for the call aggregator.

This module contains the data structures that flow through a batch: the
caller-supplied call descriptors, the per-call results, and the combined
results returned by the aggregate operations.
"""

from typing import Annotated
from typing import Any

from pydantic import BaseModel
from pydantic import BeforeValidator
from pydantic import ConfigDict
from pydantic import Field

ADDRESS_LENGTH = 20
HASH_LENGTH = 32

ZERO_HASH = bytes(HASH_LENGTH)
ZERO_ADDRESS = "0x" + "00" * ADDRESS_LENGTH


def normalize_address(value: Any) -> str:
    """Normalize an address to lowercase ``0x``-prefixed hex.

    Accepts either 20 raw bytes or a hex string of 40 digits, with or
    without the ``0x`` prefix.
    """
    if isinstance(value, (bytes, bytearray)):
        if len(value) != ADDRESS_LENGTH:
            raise ValueError(f"address must be {ADDRESS_LENGTH} bytes, got {len(value)}")
        return "0x" + bytes(value).hex()

    if not isinstance(value, str):
        raise ValueError(f"address must be str or bytes, got {type(value).__name__}")

    digits = value[2:] if value[:2].lower() == "0x" else value
    if len(digits) != ADDRESS_LENGTH * 2:
        raise ValueError(f"address must have {ADDRESS_LENGTH * 2} hex digits: {value!r}")
    try:
        bytes.fromhex(digits)
    except ValueError as e:
        raise ValueError(f"address is not valid hex: {value!r}") from e
    return "0x" + digits.lower()


Address = Annotated[str, BeforeValidator(normalize_address)]


# === Batch Input ===


class CallDescriptor(BaseModel):
    """A single call in a batch.

    The payload is opaque to the aggregator; its encoding is defined by
    whatever environment receives it.
    """

    model_config = ConfigDict(frozen=True, ser_json_bytes="base64")

    target: Address = Field(..., description="Address of the target to invoke")
    payload: bytes = Field(default=b"", description="Opaque invocation payload")
    require_success: bool = Field(
        default=True, description="Abort the whole batch if this call fails"
    )


# === Batch Output ===


class CallResult(BaseModel):
    """Outcome of one invocation."""

    model_config = ConfigDict(frozen=True, ser_json_bytes="base64")

    success: bool
    return_data: bytes = b""


class AggregateResult(BaseModel):
    """Result of ``aggregate``: block snapshot plus raw return data.

    Success flags are dropped; this is the legacy v1 result shape.
    """

    model_config = ConfigDict(ser_json_bytes="base64")

    block_number: int
    block_hash: bytes
    return_data: list[bytes] = Field(default_factory=list)

    def as_tuple(self) -> tuple[int, bytes, list[bytes]]:
        return self.block_number, self.block_hash, list(self.return_data)


class BlockAndAggregateResult(BaseModel):
    """Block snapshot plus the full per-call results."""

    model_config = ConfigDict(ser_json_bytes="base64")

    block_number: int
    block_hash: bytes
    results: list[CallResult] = Field(default_factory=list)
