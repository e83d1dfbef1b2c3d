"""OpenTelemetry provider setup for acona.

Store operations only emit spans when ``ACONA_OTEL_ENABLED`` is set; the
global tracer provider is installed at most once per process.

Environment Variables:
    ACONA_OTEL_ENABLED: "1" enables tracing (default: disabled)
    ACONA_REQUIRE_OTEL: "1" makes a failed setup raise instead of logging
    ACONA_OTEL_SERVICE_NAME: ``service.name`` resource attribute (default: "acona")
    ACONA_OTEL_EXPORTER: "otlp" or "console" (default: "otlp")
    ACONA_OTEL_EXPORTER_OTLP_ENDPOINT: Collector endpoint (optional)
    ACONA_OTEL_EXPORTER_OTLP_PROTOCOL: "grpc" or "http" (default: "grpc")
    ACONA_OTEL_RESOURCE_ATTRS: Extra resource attributes as ``k=v,k2=v2``
    ACONA_OTEL_TEST_CAPTURE: "1" keeps finished spans in memory for tests
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from opentelemetry.sdk.trace import ReadableSpan, TracerProvider

logger = logging.getLogger(__name__)

ACONA_OTEL_ENABLED_ENV = "ACONA_OTEL_ENABLED"
ACONA_REQUIRE_OTEL_ENV = "ACONA_REQUIRE_OTEL"
ACONA_OTEL_TEST_CAPTURE_ENV = "ACONA_OTEL_TEST_CAPTURE"

_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})

_provider: TracerProvider | None = None
_memory_exporter: Any = None


class TracingConfigError(Exception):
    """Tracing was required (ACONA_REQUIRE_OTEL=1) but could not be set up."""


def _env_flag(key: str) -> bool:
    return os.environ.get(key, "").strip().lower() in _TRUE_VALUES


def _env(key: str, default: str = "") -> str:
    return os.environ.get(key, "").strip() or default


def _split_pairs(raw: str) -> dict[str, str]:
    """Parse ``k=v,k2=v2``; items without ``=`` are skipped."""
    pairs: dict[str, str] = {}
    for item in raw.split(","):
        key, sep, value = item.partition("=")
        if sep and key.strip():
            pairs[key.strip()] = value.strip()
    return pairs


@dataclass(frozen=True)
class TracingSettings:
    """Tracing options read from ``ACONA_OTEL_*`` variables."""

    enabled: bool = False
    required: bool = False
    test_capture: bool = False
    service_name: str = "acona"
    exporter: str = "otlp"
    otlp_endpoint: str = ""
    otlp_protocol: str = "grpc"
    resource_attrs: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_env(cls) -> TracingSettings:
        return cls(
            enabled=_env_flag(ACONA_OTEL_ENABLED_ENV),
            required=_env_flag(ACONA_REQUIRE_OTEL_ENV),
            test_capture=_env_flag(ACONA_OTEL_TEST_CAPTURE_ENV),
            service_name=_env("ACONA_OTEL_SERVICE_NAME", "acona"),
            exporter=_env("ACONA_OTEL_EXPORTER", "otlp").lower(),
            otlp_endpoint=_env("ACONA_OTEL_EXPORTER_OTLP_ENDPOINT"),
            otlp_protocol=_env("ACONA_OTEL_EXPORTER_OTLP_PROTOCOL", "grpc").lower(),
            resource_attrs=_split_pairs(_env("ACONA_OTEL_RESOURCE_ATTRS")),
        )


def is_tracing_enabled() -> bool:
    """Return True when store operations should emit spans."""
    return _env_flag(ACONA_OTEL_ENABLED_ENV)


def _span_processor(settings: TracingSettings) -> Any:
    """Build the span processor for the configured exporter."""
    from opentelemetry.sdk.trace.export import (
        BatchSpanProcessor,
        ConsoleSpanExporter,
        SimpleSpanProcessor,
    )

    global _memory_exporter

    if settings.test_capture:
        from opentelemetry.sdk.trace.export.in_memory_span_exporter import (
            InMemorySpanExporter,
        )

        _memory_exporter = InMemorySpanExporter()
        return SimpleSpanProcessor(_memory_exporter)

    if settings.exporter == "console":
        return SimpleSpanProcessor(ConsoleSpanExporter())

    kwargs: dict[str, Any] = {}
    if settings.otlp_endpoint:
        kwargs["endpoint"] = settings.otlp_endpoint
    if settings.otlp_protocol == "http":
        from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
    else:
        from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
    return BatchSpanProcessor(OTLPSpanExporter(**kwargs))


def configure_tracing(settings: TracingSettings | None = None) -> bool:
    """Install the acona tracer provider if tracing is enabled.

    Safe to call repeatedly; the provider is only created once.

    Args:
        settings: Tracing options. If None, read from the environment.

    Returns:
        True if spans will be exported, False otherwise.

    Raises:
        TracingConfigError: If setup fails and tracing is required.
    """
    global _provider

    if settings is None:
        settings = TracingSettings.from_env()

    if not settings.enabled:
        logger.debug("Tracing disabled (%s not set)", ACONA_OTEL_ENABLED_ENV)
        return False

    if _provider is not None:
        return True

    try:
        from opentelemetry import trace
        from opentelemetry.sdk.resources import Resource
        from opentelemetry.sdk.trace import TracerProvider

        resource = Resource.create({"service.name": settings.service_name, **settings.resource_attrs})
        provider = TracerProvider(resource=resource)
        provider.add_span_processor(_span_processor(settings))
        trace.set_tracer_provider(provider)
    except Exception as e:
        logger.error("Failed to configure OpenTelemetry tracing: %s", e)
        if settings.required:
            raise TracingConfigError(f"tracing required but setup failed: {e}") from e
        return False

    _provider = provider
    logger.info(
        "Tracing configured: service=%s exporter=%s",
        settings.service_name,
        "in-memory" if settings.test_capture else settings.exporter,
    )
    return True


def get_test_spans() -> list[ReadableSpan]:
    """Return spans kept by the in-memory exporter, oldest first."""
    if _memory_exporter is None:
        return []
    return list(_memory_exporter.get_finished_spans())


def clear_test_spans() -> None:
    if _memory_exporter is not None:
        _memory_exporter.clear()


def reset_tracing() -> None:
    """Drop captured spans between tests.

    The global provider cannot be replaced once installed, so it and its
    in-memory exporter stay in place.
    """
    clear_test_spans()
