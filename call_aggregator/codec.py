"""Payload encoding for accessor calls aimed at the aggregator itself.

Accessor calls travel as JSON: ``{"method": "getBlockNumber", "args": []}``.
Return values are ``{"value": ...}`` where byte strings are ``0x`` hex.
"""

from typing import Any

import pydantic
from pydantic import BaseModel
from pydantic import Field

from .exceptions import ValidationError


class AccessorCall(BaseModel):
    """Decoded accessor call payload."""

    method: str = Field(..., min_length=1)
    args: list[Any] = Field(default_factory=list)


class AccessorReturn(BaseModel):
    """Decoded accessor return payload."""

    value: int | str


def _to_wire(value: Any) -> Any:
    if isinstance(value, (bytes, bytearray)):
        return "0x" + bytes(value).hex()
    return value


def encode_accessor_call(method: str, *args: Any) -> bytes:
    """Build the payload of an accessor call."""
    call = AccessorCall(method=method, args=[_to_wire(arg) for arg in args])
    return call.model_dump_json().encode("utf-8")


def decode_accessor_call(payload: bytes) -> AccessorCall:
    """Parse an accessor call payload.

    Raises:
        ValidationError: If the payload is not a well-formed accessor call
    """
    try:
        return AccessorCall.model_validate_json(payload)
    except pydantic.ValidationError as e:
        raise ValidationError(f"malformed accessor call: {e}", field="payload") from e


def encode_accessor_return(value: int | str | bytes) -> bytes:
    return AccessorReturn(value=_to_wire(value)).model_dump_json().encode("utf-8")


def decode_accessor_return(data: bytes, as_bytes: bool = False) -> int | str | bytes:
    """Parse the return data of an accessor call.

    Args:
        data: Return data of a successful accessor call
        as_bytes: Decode a hex string value into raw bytes

    Raises:
        ValidationError: If the data is not a well-formed accessor return
    """
    try:
        value = AccessorReturn.model_validate_json(data).value
    except pydantic.ValidationError as e:
        raise ValidationError(f"malformed accessor return: {e}", field="return_data") from e

    if as_bytes:
        if not isinstance(value, str) or not value.startswith("0x"):
            raise ValidationError("accessor return is not hex", field="return_data", value=value)
        return bytes.fromhex(value[2:])
    return value
