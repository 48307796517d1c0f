"""
Observability

Structured logging for the proving pipeline. Every component logs through a
VcLogger bound to its layer; events carry a correlation id so the setup,
prove and verify phases of one run can be joined.

    logger.info("msg", operation="prove", constraints=n)
                    │
                    ▼
    VcLogger ── stdlib logging ("vcdisclose.<layer>.<name>")
                    │
                    ▼
    StructuredHandler  (json | text, attached once to "vcdisclose")

Attribute values and witness assignments are never passed to the logger.

Copyright (c) 2026 Momentum. All rights reserved.
"""

from __future__ import annotations

import contextvars
import functools
import json
import logging
import sys
import time
import traceback
import uuid
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Dict, Optional, TypeVar

ROOT_LOGGER = "vcdisclose"

correlation_id_var: contextvars.ContextVar[str] = contextvars.ContextVar(
    "correlation_id", default=""
)


class LogLevel(Enum):
    """Log severity levels."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class LogFormat(Enum):
    JSON = "json"
    TEXT = "text"


class Layer(Enum):
    """Pipeline layers for categorization."""
    FIELD = "field"
    SPONGE = "sponge"
    R1CS = "r1cs"
    CIRCUIT = "circuit"
    GROTH16 = "groth16"
    PROTOCOL = "protocol"
    CONFIG = "config"
    CLI = "cli"


@dataclass
class LogEvent:
    """Structured log event."""
    timestamp: str
    level: str
    logger: str
    message: str
    correlation_id: str = ""
    layer: str = ""
    operation: str = ""
    duration_ms: Optional[float] = None
    error_code: str = ""
    context: Dict[str, Any] = field(default_factory=dict)
    exception: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary, excluding empty values."""
        d = asdict(self)
        return {k: v for k, v in d.items() if v is not None and v != "" and v != {}}

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), default=str)

    def to_text(self) -> str:
        parts = [self.timestamp, self.level.upper()]
        if self.layer:
            parts.append(f"[{self.layer}]")
        parts.append(self.message)
        if self.duration_ms is not None:
            parts.append(f"duration_ms={self.duration_ms:.2f}")
        parts.extend(f"{k}={v}" for k, v in sorted(self.context.items()))
        if self.exception:
            parts.append("\n" + self.exception)
        return " ".join(parts)


class StructuredHandler(logging.Handler):
    """Logging handler that writes one event per line."""

    def __init__(self, stream: Any = None, log_format: LogFormat = LogFormat.JSON):
        super().__init__()
        self._stream = stream
        self.log_format = log_format

    @property
    def stream(self) -> Any:
        # Resolved per write so redirected stderr is honoured
        return self._stream or sys.stderr

    def emit(self, record: logging.LogRecord) -> None:
        try:
            event = LogEvent(
                timestamp=datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
                level=record.levelname.lower(),
                logger=record.name,
                message=record.getMessage(),
                correlation_id=correlation_id_var.get(),
                layer=getattr(record, "layer", ""),
                operation=getattr(record, "operation", ""),
                duration_ms=getattr(record, "duration_ms", None),
                error_code=getattr(record, "error_code", ""),
                context=getattr(record, "context", {}),
            )

            if record.exc_info:
                event.exception = "".join(traceback.format_exception(*record.exc_info))

            if self.log_format is LogFormat.TEXT:
                line = event.to_text()
            else:
                line = event.to_json()
            self.stream.write(line + "\n")
            self.stream.flush()
        except Exception:
            self.handleError(record)


def _root_handler() -> StructuredHandler:
    root = logging.getLogger(ROOT_LOGGER)
    root.propagate = False
    for handler in root.handlers:
        if isinstance(handler, StructuredHandler):
            return handler
    handler = StructuredHandler()
    root.addHandler(handler)
    root.setLevel(logging.WARNING)
    return handler


def configure_logging(
    level: str = LogLevel.WARNING.value,
    log_format: str = LogFormat.JSON.value,
    stream: Any = None,
) -> StructuredHandler:
    """Set level and output format for every vcdisclose logger."""
    handler = _root_handler()
    handler.log_format = LogFormat(log_format)
    if stream is not None:
        handler._stream = stream
    logging.getLogger(ROOT_LOGGER).setLevel(getattr(logging, LogLevel(level).value.upper()))
    return handler


class VcLogger:
    """
    Structured logger for one pipeline component.

    Adds layer, operation and correlation id to every event. Keyword
    arguments become the event's context.
    """

    def __init__(self, name: str, layer: Layer):
        self.name = name
        self.layer = layer
        self._logger = logging.getLogger(f"{ROOT_LOGGER}.{layer.value}.{name}")
        _root_handler()

    def _log(
        self,
        level: int,
        message: str,
        operation: str = "",
        error_code: str = "",
        duration_ms: Optional[float] = None,
        exc_info: bool = False,
        **context: Any,
    ) -> None:
        extra = {
            "layer": self.layer.value,
            "operation": operation,
            "error_code": error_code,
            "duration_ms": duration_ms,
            "context": context,
        }
        self._logger.log(level, message, extra=extra, exc_info=exc_info)

    def isEnabledFor(self, level: int) -> bool:
        return self._logger.isEnabledFor(level)

    def debug(self, message: str, **context: Any) -> None:
        self._log(logging.DEBUG, message, **context)

    def info(self, message: str, **context: Any) -> None:
        self._log(logging.INFO, message, **context)

    def warning(self, message: str, **context: Any) -> None:
        self._log(logging.WARNING, message, **context)

    def error(
        self,
        message: str,
        error_code: str = "",
        exc_info: bool = False,
        **context: Any,
    ) -> None:
        self._log(logging.ERROR, message, error_code=error_code, exc_info=exc_info, **context)

    def operation(
        self,
        name: str,
        duration_ms: float,
        success: bool = True,
        **context: Any,
    ) -> None:
        """Log an operation completion."""
        level = logging.INFO if success else logging.WARNING
        status = "completed" if success else "failed"
        self._log(
            level,
            f"Operation {name} {status}",
            operation=name,
            duration_ms=duration_ms,
            **context,
        )


def generate_correlation_id() -> str:
    return f"corr-{uuid.uuid4().hex[:12]}"


def set_correlation_id(correlation_id: str) -> contextvars.Token:
    return correlation_id_var.set(correlation_id)


def get_correlation_id() -> str:
    """Current correlation id, created on first use."""
    cid = correlation_id_var.get()
    if not cid:
        cid = generate_correlation_id()
        correlation_id_var.set(cid)
    return cid


def get_logger(name: str, layer: Layer) -> VcLogger:
    return VcLogger(name, layer)


T = TypeVar("T")


def timed_operation(
    logger: VcLogger,
    operation_name: str,
) -> Callable[[Callable[..., T]], Callable[..., T]]:
    """Decorator for timing and logging a pipeline phase."""
    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> T:
            start = time.monotonic()
            success = True
            try:
                return func(*args, **kwargs)
            except Exception:
                success = False
                raise
            finally:
                duration_ms = (time.monotonic() - start) * 1000
                get_correlation_id()
                logger.operation(operation_name, duration_ms, success)
        return wrapper
    return decorator
