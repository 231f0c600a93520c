"""
fieldwarden Core - Shared infrastructure.

This module provides:
- Exception hierarchy with error codes
- Configuration management with validation
- Structured logging and Prometheus metrics
"""

from fieldwarden.core.exceptions import (
    FieldWardenError,
    ErrorCode,
    ConfigurationError,
    InvalidArgumentError,
    AccessViolationError,
    NotFoundError,
    OperationFailedError,
)

from fieldwarden.core.config import (
    AccessControlConfig,
    coerce_setting,
    get_config,
    reset_config,
)

from fieldwarden.core.observability import (
    StructuredLogger,
    MetricsCollector,
    LogLevel,
    get_metrics,
)

__all__ = [
    # Exceptions
    "FieldWardenError",
    "ErrorCode",
    "ConfigurationError",
    "InvalidArgumentError",
    "AccessViolationError",
    "NotFoundError",
    "OperationFailedError",

    # Configuration
    "AccessControlConfig",
    "coerce_setting",
    "get_config",
    "reset_config",

    # Observability
    "StructuredLogger",
    "MetricsCollector",
    "LogLevel",
    "get_metrics",
]
