"""Shared telemetry: logging setup, OpenTelemetry config, and tracing helpers."""

from tripzi.shared.telemetry.logging import setup_logging
from tripzi.shared.telemetry.tracing import (
    add_span_attributes,
    add_span_event,
    traced,
)

__all__ = [
    "setup_logging",
    "traced",
    "add_span_attributes",
    "add_span_event",
]
