"""
Observability for fieldwarden.

Features:
- Structured JSON logging with context
- Prometheus metrics for mediated operations
"""

from typing import Optional, Dict, Any
from contextlib import contextmanager
from enum import Enum
import logging
import threading
import time

import structlog
from prometheus_client import CollectorRegistry, Counter, Histogram


class LogLevel(str, Enum):
    """Log levels."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


_PROCESSORS = [
    structlog.stdlib.filter_by_level,
    structlog.stdlib.add_logger_name,
    structlog.stdlib.add_log_level,
    structlog.processors.TimeStamper(fmt="iso", utc=True),
    structlog.processors.JSONRenderer(sort_keys=True),
]


class StructuredLogger:
    """
    Structured logger.

    Features:
    - JSON formatting through structlog
    - Per-thread context fields
    - Standard ``logging`` handlers and levels
    """

    def __init__(self, name: str, level: LogLevel = LogLevel.INFO):
        """
        Initialize structured logger.

        Args:
            name: Logger name
            level: Logging level
        """
        self.logger = logging.getLogger(f"fieldwarden.{name}")
        self.logger.setLevel(getattr(logging, level.value))
        self._bound = structlog.wrap_logger(
            self.logger,
            processors=_PROCESSORS,
            wrapper_class=structlog.stdlib.BoundLogger,
        )
        self._context = threading.local()

    def _fields(self, kwargs: Dict[str, Any]) -> Dict[str, Any]:
        context = getattr(self._context, "data", None)
        if context:
            return {**context, **kwargs}
        return kwargs

    def debug(self, message: str, **kwargs):
        """Log debug message."""
        self._bound.debug(message, **self._fields(kwargs))

    def info(self, message: str, **kwargs):
        """Log info message."""
        self._bound.info(message, **self._fields(kwargs))

    def warning(self, message: str, **kwargs):
        """Log warning message."""
        self._bound.warning(message, **self._fields(kwargs))

    def error(self, message: str, **kwargs):
        """Log error message."""
        self._bound.error(message, **self._fields(kwargs))

    def critical(self, message: str, **kwargs):
        """Log critical message."""
        self._bound.critical(message, **self._fields(kwargs))

    def set_context(self, **kwargs):
        """Set logging context for the current thread."""
        if not hasattr(self._context, "data"):
            self._context.data = {}
        self._context.data.update(kwargs)

    def clear_context(self):
        """Clear logging context for the current thread."""
        if hasattr(self._context, "data"):
            self._context.data = {}


class MetricsCollector:
    """
    Prometheus metrics for mediated operations.

    Each collector owns its registry so several engines (and tests) can
    coexist in one process.
    """

    def __init__(self, enabled: bool = True, registry: Optional[CollectorRegistry] = None):
        """
        Initialize metrics collector.

        Args:
            enabled: Enable metrics collection
            registry: Registry to publish into (default: a private one)
        """
        self.enabled = enabled
        self.registry = registry or CollectorRegistry()

        self.operations = Counter(
            "fieldwarden_operations_total",
            "Mediated operations",
            ["scope", "operation", "status"],
            registry=self.registry,
        )
        self.operation_duration = Histogram(
            "fieldwarden_operation_duration_seconds",
            "Mediated operation duration",
            ["scope", "operation"],
            registry=self.registry,
        )
        self.violations = Counter(
            "fieldwarden_violations_total",
            "Access violations raised",
            ["kind", "permission"],
            registry=self.registry,
        )

    def record_operation(self, scope: str, operation: str, duration: float, status: str = "success"):
        """Record one mediated operation."""
        if not self.enabled:
            return
        self.operations.labels(scope=scope, operation=operation, status=status).inc()
        self.operation_duration.labels(scope=scope, operation=operation).observe(duration)

    def record_violation(self, kind: str, permission: str):
        """Record an access violation."""
        if not self.enabled:
            return
        self.violations.labels(kind=kind, permission=permission).inc()

    def get_value(self, name: str, labels: Dict[str, str]) -> float:
        """Read a sample value from this collector's registry (0.0 if absent)."""
        value = self.registry.get_sample_value(name, labels)
        return value if value is not None else 0.0

    @contextmanager
    def track(self, scope: str, operation: str):
        """
        Time a block and record it as one operation.

        The status is "success" unless the block raises, in which case the
        exception class name is used.
        """
        start = time.perf_counter()
        status = "success"
        try:
            yield
        except Exception as e:
            status = type(e).__name__
            raise
        finally:
            self.record_operation(scope, operation, time.perf_counter() - start, status)


# Global metrics instance
_metrics: Optional[MetricsCollector] = None
_metrics_lock = threading.Lock()


def get_metrics() -> MetricsCollector:
    """
    Get global metrics collector.

    Returns:
        MetricsCollector instance
    """
    global _metrics

    if _metrics is None:
        with _metrics_lock:
            if _metrics is None:
                _metrics = MetricsCollector()

    return _metrics
