"""Call aggregator metrics configuration.

Local-only metrics collection using OpenTelemetry with a Prometheus reader.
Counts aggregator operations by name and outcome.
"""
from __future__ import annotations


import os
import socket
import time
from typing import Any

from opentelemetry import metrics
from opentelemetry.exporter.prometheus import PrometheusMetricReader
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.resources import Resource
from prometheus_client import CONTENT_TYPE_LATEST
from prometheus_client import generate_latest

from .config import get_settings

# =============================================================================
# SERVICE CONFIGURATION
# =============================================================================

SERVICE_NAME = os.getenv("OTEL_SERVICE_NAME", "call-aggregator")
SERVICE_VERSION = os.getenv("OTEL_SERVICE_VERSION", "1.0.0")
DEPLOYMENT_ENVIRONMENT = os.getenv("DEPLOYMENT_ENVIRONMENT", "local")

METRICS_ENABLED = get_settings().metrics_enabled

# Metrics instances
meter = None
calls_counter = None
prometheus_reader = None

# Global state
_active_operations: dict[str, float] = {}
_metrics_initialized = False


def get_resource() -> Resource:
    """Create OpenTelemetry resource with service information."""
    return Resource.create(
        {
            "service.name": SERVICE_NAME,
            "service.version": SERVICE_VERSION,
            "deployment.environment": DEPLOYMENT_ENVIRONMENT,
            "host.name": socket.gethostname(),
        }
    )


def initialize_metrics():
    """Initialize local metrics collection with a Prometheus reader."""
    global meter, calls_counter, prometheus_reader

    if not METRICS_ENABLED:
        return

    prometheus_reader = PrometheusMetricReader()
    meter_provider = MeterProvider(
        resource=get_resource(),
        metric_readers=[prometheus_reader],
    )
    metrics.set_meter_provider(meter_provider)
    meter = metrics.get_meter(__name__)

    calls_counter = meter.create_counter(
        name="aggregator_calls_total",
        description="Total number of aggregator operations",
        unit="1",
    )


def is_metrics_enabled() -> bool:
    """Check if metrics collection is enabled."""
    return METRICS_ENABLED and meter is not None


def record_call_start(operation_name: str) -> float | None:
    """Record start of an operation, return start time."""
    if not is_metrics_enabled():
        return None

    start_time = time.time()
    _active_operations[f"{operation_name}_{start_time}"] = start_time
    return start_time


def _record_outcome(operation_name: str, start_time: float | None, status: str):
    if calls_counter:
        calls_counter.add(
            1,
            {"operation": operation_name, "status": status, "environment": DEPLOYMENT_ENVIRONMENT},
        )
    if start_time:
        _active_operations.pop(f"{operation_name}_{start_time}", None)


def record_call_success(operation_name: str, start_time: float | None):
    """Record a successful operation."""
    if not is_metrics_enabled():
        return
    _record_outcome(operation_name, start_time, "success")


def record_call_error(operation_name: str, start_time: float | None, error: Exception):
    """Record a failed operation."""
    if not is_metrics_enabled():
        return
    _record_outcome(operation_name, start_time, "error")


def get_metrics_export() -> tuple[str, str]:
    """Export metrics in Prometheus format."""
    if not is_metrics_enabled() or not prometheus_reader:
        return "# Metrics not available\n", "text/plain"

    return generate_latest().decode("utf-8"), CONTENT_TYPE_LATEST


def get_metrics_summary() -> dict[str, Any]:
    """Get metrics summary for debugging."""
    if not is_metrics_enabled():
        return {"status": "disabled"}

    return {
        "status": "active",
        "service_name": SERVICE_NAME,
        "service_version": SERVICE_VERSION,
        "environment": DEPLOYMENT_ENVIRONMENT,
        "active_operations": len(_active_operations),
        "prometheus_enabled": prometheus_reader is not None,
    }


def ensure_metrics_initialized():
    """Initialize metrics once per process."""
    global _metrics_initialized
    if _metrics_initialized:
        return

    initialize_metrics()
    _metrics_initialized = True
