"""acona observability module.

Provides OpenTelemetry tracing configuration for store operations.
"""

from acona.observability.tracing import configure_tracing, is_tracing_enabled

__all__ = ["configure_tracing", "is_tracing_enabled"]
