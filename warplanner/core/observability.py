"""Observability for the war planner.

Structured logging via structlog plus the ``traced`` decorator used on
service and adapter boundaries (entry, duration, result, exceptions).
"""

from __future__ import annotations

import functools
import inspect
import json
import logging
import re
import sys
import time
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any, TypeVar, cast

import structlog
from pydantic import BaseModel, Field
from structlog.contextvars import bind_contextvars, unbind_contextvars

_SHARED_PROCESSORS: list[Any] = [
    structlog.contextvars.merge_contextvars,
    structlog.stdlib.add_logger_name,
    structlog.stdlib.add_log_level,
    structlog.stdlib.PositionalArgumentsFormatter(),
    structlog.processors.TimeStamper(fmt="iso"),
    structlog.processors.StackInfoRenderer(),
    structlog.processors.format_exc_info,
    structlog.processors.UnicodeDecoder(),
]

structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        *_SHARED_PROCESSORS,
        structlog.processors.dict_tracebacks,
        (
            structlog.dev.ConsoleRenderer()
            if sys.stderr.isatty()
            else structlog.processors.JSONRenderer()
        ),
    ],
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=False,
)

logger = structlog.get_logger()

F = TypeVar("F", bound=Callable[..., Any])

_SENSITIVE_KEY_RE = re.compile(r"(token|key|secret|password|dsn|authorization)", re.IGNORECASE)


def configure_stdlib_json_logging(level: str = "INFO", file_target: str | None = None) -> None:
    """Route stdlib ``logging`` records through structlog's JSON renderer.

    Used by worker processes so ``logging.getLogger(__name__)`` calls with
    ``extra={...}`` come out as one JSON object per line.
    """
    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=_SHARED_PROCESSORS,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            structlog.processors.JSONRenderer(),
        ],
    )
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if file_target:
        handlers.append(logging.FileHandler(file_target, encoding="utf-8"))

    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)
    for handler in handlers:
        handler.setFormatter(formatter)
        root.addHandler(handler)
    root.setLevel(level.upper())


def set_correlation_id(correlation_id: str) -> None:
    bind_contextvars(correlation_id=correlation_id)


def clear_correlation_id() -> None:
    unbind_contextvars("correlation_id")


class CallTrace(BaseModel):
    """One traced call."""

    function_name: str
    execution_id: str
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))
    duration_ms: float | None = None
    args: list[Any] = Field(default_factory=list)
    kwargs: dict[str, Any] = Field(default_factory=dict)
    result: Any | None = None
    is_success: bool = True
    error_type: str | None = None
    error_message: str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)


def _mask(value: Any) -> Any:
    if value is None:
        return None
    text = str(value)
    if len(text) <= 8:
        return "***"
    return f"{text[:4]}...{text[-3:]}"


def _redact(obj: Any) -> Any:
    if isinstance(obj, dict):
        return {
            k: (_mask(v) if _SENSITIVE_KEY_RE.search(str(k)) else _redact(v))
            for k, v in obj.items()
        }
    if isinstance(obj, list):
        return [_redact(i) for i in obj]
    return obj


def _serialize(value: Any, max_length: int = 1000) -> Any:
    """Best-effort JSON-safe rendering, truncated to ``max_length``."""
    try:
        if isinstance(value, BaseModel):
            return value.model_dump(mode="json", exclude_unset=True)
        if isinstance(value, list) and value and isinstance(value[0], BaseModel):
            return f"[{len(value)} x {type(value[0]).__name__}]"
        rendered = json.dumps(value, default=str)
        if len(rendered) > max_length:
            return rendered[:max_length] + "..."
        return json.loads(rendered)
    except (TypeError, ValueError):
        text = str(value)
        return text[:max_length] + "..." if len(text) > max_length else text


def traced(
    *,
    capture_args: bool = True,
    capture_result: bool = True,
    max_arg_length: int = 1000,
    log_level: str = "INFO",
    add_metadata: dict[str, Any] | None = None,
) -> Callable[[F], F]:
    """Trace a sync or async callable.

    Logs entry and exit with duration, optionally the (redacted) arguments
    and result, and on failure the exception type and message before
    re-raising.

    Example:
        >>> @traced(capture_result=False)
        ... async def recompute(group_id: str) -> int:
        ...     return 0
    """

    def decorator(func: F) -> F:
        name = f"{func.__module__}.{func.__qualname__}"
        level = log_level.lower()

        def _start(args: tuple[Any, ...], kwargs: dict[str, Any]) -> CallTrace:
            trace = CallTrace(
                function_name=name,
                execution_id=f"{name}_{time.time_ns()}",
                metadata=add_metadata or {},
            )
            if capture_args:
                trace.args = [_redact(_serialize(a, max_arg_length)) for a in args]
                trace.kwargs = {
                    k: _mask(v) if _SENSITIVE_KEY_RE.search(k) else _serialize(v, max_arg_length)
                    for k, v in kwargs.items()
                }
            bind_contextvars(execution_id=trace.execution_id)
            logger.log(
                getattr(logging, level.upper(), logging.INFO),
                f"call_started: {name}",
                execution_id=trace.execution_id,
                args=trace.args if capture_args else None,
                kwargs=trace.kwargs if capture_args else None,
                **trace.metadata,
            )
            return trace

        def _finish(trace: CallTrace, started: float, result: Any) -> None:
            trace.duration_ms = (time.perf_counter() - started) * 1000
            if capture_result:
                trace.result = _redact(_serialize(result, max_arg_length))
            logger.log(
                getattr(logging, level.upper(), logging.INFO),
                f"call_finished: {name}",
                execution_id=trace.execution_id,
                duration_ms=trace.duration_ms,
                result=trace.result if capture_result else None,
            )

        def _fail(trace: CallTrace, started: float, exc: Exception) -> None:
            trace.duration_ms = (time.perf_counter() - started) * 1000
            trace.is_success = False
            trace.error_type = type(exc).__name__
            trace.error_message = str(exc)
            logger.error(
                f"call_failed: {name}",
                execution_id=trace.execution_id,
                duration_ms=trace.duration_ms,
                error_type=trace.error_type,
                error_message=trace.error_message,
            )

        if inspect.iscoroutinefunction(func):

            @functools.wraps(func)
            async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
                trace = _start(args, kwargs)
                started = time.perf_counter()
                try:
                    result = await func(*args, **kwargs)
                    _finish(trace, started, result)
                    return result
                except Exception as exc:
                    _fail(trace, started, exc)
                    raise
                finally:
                    unbind_contextvars("execution_id")

            return cast(F, async_wrapper)

        @functools.wraps(func)
        def sync_wrapper(*args: Any, **kwargs: Any) -> Any:
            trace = _start(args, kwargs)
            started = time.perf_counter()
            try:
                result = func(*args, **kwargs)
                _finish(trace, started, result)
                return result
            except Exception as exc:
                _fail(trace, started, exc)
                raise
            finally:
                unbind_contextvars("execution_id")

        return cast(F, sync_wrapper)

    return decorator


def trace_service(func: F) -> F:
    """Service entry points: arguments and results at INFO."""
    return traced(add_metadata={"layer": "service"})(func)


def trace_adapter(func: F) -> F:
    """Adapter calls: arguments only, results can be large row sets."""
    return traced(capture_result=False, add_metadata={"layer": "adapter"})(func)
