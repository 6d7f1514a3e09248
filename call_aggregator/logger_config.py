import functools
import json
import logging
import traceback
from datetime import datetime
from datetime import timezone
from enum import Enum
from logging.handlers import RotatingFileHandler

from .config import get_settings
from .metrics_config import record_call_error
from .metrics_config import record_call_start
from .metrics_config import record_call_success

_settings = get_settings()

# Attributes every LogRecord carries; anything else was passed via ``extra``.
_RESERVED_RECORD_ATTRS = set(
    logging.LogRecord("", 0, "", 0, "", (), None).__dict__
) | {"message", "asctime"}


class ErrorCategory(Enum):
    """Severity categories for structured error logging."""

    CRITICAL = "CRITICAL"
    ERROR = "ERROR"
    WARNING = "WARNING"
    INFO = "INFO"


_CATEGORY_LEVELS = {
    ErrorCategory.CRITICAL: logging.CRITICAL,
    ErrorCategory.ERROR: logging.ERROR,
    ErrorCategory.WARNING: logging.WARNING,
    ErrorCategory.INFO: logging.INFO,
}


class StructuredLogFormatter(logging.Formatter):
    """Formats log records as single-line JSON objects."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        if record.exc_info and record.exc_info[0] is not None:
            exc_type, exc_value, exc_tb = record.exc_info
            log_entry["exception"] = {
                "type": exc_type.__name__,
                "message": str(exc_value),
                "traceback": traceback.format_exception(exc_type, exc_value, exc_tb),
            }

        for key, value in record.__dict__.items():
            if key not in _RESERVED_RECORD_ATTRS and not key.startswith("_"):
                log_entry[key] = value

        return json.dumps(log_entry, default=str)


# --- Logging Setup ---
call_logger = logging.getLogger("aggregator_call_logger")
call_logger.setLevel(_settings.log_level.upper())

# Use RotatingFileHandler for log rotation
# maxBytes: 10MB per file, backupCount: 5 files (total ~50MB)
file_handler = RotatingFileHandler(
    _settings.log_path / "aggregator_calls.log", maxBytes=10 * 1024 * 1024, backupCount=5
)
file_handler.setFormatter(
    logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
)
call_logger.addHandler(file_handler)
call_logger.propagate = False

error_logger = logging.getLogger("error_logger")
error_logger.setLevel(logging.INFO)

error_file_handler = RotatingFileHandler(
    _settings.log_path / "errors.log", maxBytes=10 * 1024 * 1024, backupCount=5
)
if _settings.structured_logging:
    error_file_handler.setFormatter(StructuredLogFormatter())
else:
    error_file_handler.setFormatter(
        logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    )
error_logger.addHandler(error_file_handler)
error_logger.propagate = False


def log_structured_error(
    category: ErrorCategory,
    message: str,
    exception: Exception | None = None,
    context: dict | None = None,
    operation: str | None = None,
    **kwargs,
):
    """Log an error with category, operation and context as structured fields."""
    extra = {"error_category": category.value}
    if operation:
        extra["operation"] = operation
    if context:
        extra.update(context)
    extra.update(kwargs)

    error_logger.log(
        _CATEGORY_LEVELS[category],
        message,
        exc_info=exception is not None,
        extra=extra,
    )


def safe_operation(
    operation_name: str,
    operation_func,
    *args,
    error_category: ErrorCategory = ErrorCategory.ERROR,
    context: dict | None = None,
    **kwargs,
):
    """Run ``operation_func`` and report the outcome instead of raising.

    Returns:
        tuple: ``(success, result, error)`` where ``error`` is the raised
        exception or None.
    """
    try:
        return True, operation_func(*args, **kwargs), None
    except Exception as e:
        log_structured_error(
            category=error_category,
            message=f"Operation {operation_name} failed: {e}",
            exception=e,
            context=context,
            operation=operation_name,
        )
        return False, None, e


def _describe(value) -> str:
    if hasattr(value, "model_dump_json"):
        return value.model_dump_json(exclude_none=True)
    if isinstance(value, (list, tuple)) and value and hasattr(value[0], "model_dump_json"):
        return "[" + ", ".join(item.model_dump_json(exclude_none=True) for item in value) + "]"
    return repr(value)


# --- Decorator for Logging Aggregator Calls with Metrics ---
def log_aggregator_call(func):
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        func_name = getattr(func, "__name__", "unknown_function")
        start_time = record_call_start(func_name)

        # Skip ``self`` for bound methods.
        logged_args = [_describe(arg) for arg in args[1:]]
        logged_kwargs = {k: _describe(v) for k, v in kwargs.items()}
        call_logger.info(f"Calling {func_name} with args={logged_args}, kwargs={logged_kwargs}")

        try:
            result = func(*args, **kwargs)
        except Exception as e:
            record_call_error(func_name, start_time, e)
            call_logger.error(f"{func_name} raised exception: {e}", exc_info=True)
            log_structured_error(
                category=ErrorCategory.ERROR,
                message=f"Aggregator operation {func_name} failed",
                exception=e,
                operation="aggregator_call",
                operation_function=func_name,
            )
            raise

        record_call_success(func_name, start_time)
        call_logger.info(f"{func_name} returned: {_describe(result)}")
        return result

    return wrapper
