"""acona store OpenTelemetry tracing integration.

Provides the tracing decorator applied to every public store operation.

Span attributes never carry raw virtual paths or physical filesystem paths;
paths are exported as SHA256 hashes for correlation only.
"""

from __future__ import annotations

import functools
import hashlib
import logging
from collections.abc import Callable
from typing import Any, TypeVar, cast

from acona.observability.tracing import is_tracing_enabled

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])


def _path_sha256(path: Any) -> str:
    return hashlib.sha256(str(path).encode("utf-8", errors="surrogateescape")).hexdigest()


def traced_store_operation(operation: str) -> Callable[[F], F]:
    """Decorator to trace store operations with OpenTelemetry.

    The first positional argument after ``self`` that is a string is taken
    as the operation's path.

    Args:
        operation: Operation name (e.g., "put_object", "examine", "rename").

    Returns:
        Decorated function that emits OTel spans when tracing is enabled.
    """

    def decorator(func: F) -> F:
        @functools.wraps(func)
        def wrapper(self: Any, *args: Any, **kwargs: Any) -> Any:
            if not is_tracing_enabled():
                return func(self, *args, **kwargs)

            try:
                from opentelemetry import trace
            except ImportError:
                return func(self, *args, **kwargs)

            tracer = trace.get_tracer("acona.store")
            with tracer.start_as_current_span(f"acona.store.{operation}") as span:
                span.set_attribute("acona.store_name", getattr(self, "name", "unknown"))
                span.set_attribute("storage.backend", getattr(self, "backend_name", "unknown"))

                paths = [a for a in args if isinstance(a, str)]
                if paths:
                    span.set_attribute("acona.path_sha256", _path_sha256(paths[0]))
                if operation == "rename" and len(paths) > 1:
                    span.set_attribute("acona.target_path_sha256", _path_sha256(paths[1]))

                try:
                    result = func(self, *args, **kwargs)
                except Exception as e:
                    span.set_attribute("error", True)
                    span.set_attribute("error.type", type(e).__name__)
                    kind = getattr(e, "kind", None)
                    if kind is not None:
                        span.set_attribute("acona.error_kind", str(kind))
                    raise

                if result is not None:
                    _add_result_attributes(span, result, operation)
                return result

        return cast(F, wrapper)

    return decorator


def _add_result_attributes(span: Any, result: Any, operation: str) -> None:
    """Add result-based attributes to span safely.

    Only adds size, directory flag and counts. Never adds paths.
    """
    try:
        from acona.storage.models import StoreObject

        if isinstance(result, StoreObject):
            span.set_attribute("acona.object_size_bytes", result.size)
            span.set_attribute("acona.object_is_dir", result.is_dir)

        if operation == "list_tree" and isinstance(result, list):
            span.set_attribute("acona.object_count", len(result))

    except Exception as e:
        logger.debug("Failed to add result attributes to span: %s", e)
