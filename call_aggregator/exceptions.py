"""Exception hierarchy for the call aggregator.

Every error carries a technical message, a stable error code, structured
details and a user-facing message so callers can report failures uniformly.
"""

from __future__ import annotations

from typing import Any


class CallAggregatorError(Exception):
    """Base class for all call aggregator errors."""

    def __init__(
        self,
        message: str,
        error_code: str = "UNKNOWN_ERROR",
        details: dict[str, Any] | None = None,
        user_message: str | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        self.user_message = user_message or message

    def to_dict(self) -> dict[str, Any]:
        """Convert the error to a serializable dictionary."""
        return {
            "error_type": self.__class__.__name__,
            "error_code": self.error_code,
            "message": self.message,
            "user_message": self.user_message,
            "details": self.details,
        }


class ValidationError(CallAggregatorError):
    """Raised when input fails validation."""

    def __init__(
        self,
        message: str,
        field: str | None = None,
        value: Any = None,
        details: dict[str, Any] | None = None,
    ):
        details = dict(details or {})
        if field is not None:
            details["field"] = field
        if value is not None:
            details["invalid_value"] = value
        super().__init__(
            message=message,
            error_code="VALIDATION_ERROR",
            details=details,
            user_message=f"Invalid input: {message}",
        )


class UnsuccessfulCall(CallAggregatorError):
    """Raised when a call that requires success fails inside a batch.

    The batch is aborted as a whole; no partial result is produced.
    """

    def __init__(self, call_index: int, target: str, details: dict[str, Any] | None = None):
        details = dict(details or {})
        details["call_index"] = call_index
        details["target"] = target
        super().__init__(
            message=f"Call {call_index} to {target} failed",
            error_code="UNSUCCESSFUL_CALL",
            details=details,
            user_message="A required call in the batch failed; no changes were applied.",
        )

    @property
    def call_index(self) -> int:
        return self.details["call_index"]

    @property
    def target(self) -> str:
        return self.details["target"]


class CallReverted(CallAggregatorError):
    """Raised by a target handler to fail an invocation with return data."""

    def __init__(self, return_data: bytes = b"", reason: str | None = None):
        self.return_data = bytes(return_data)
        message = f"Call reverted: {reason}" if reason else "Call reverted"
        super().__init__(
            message=message,
            error_code="CALL_REVERTED",
            details={"return_data": "0x" + self.return_data.hex()},
        )


class UnknownAccessorError(CallAggregatorError):
    """Raised when an accessor call names a method that is not registered."""

    def __init__(self, method: str):
        super().__init__(
            message=f"Unknown accessor method: {method}",
            error_code="UNKNOWN_ACCESSOR",
            details={"method": method},
            user_message=f"The accessor '{method}' does not exist.",
        )
