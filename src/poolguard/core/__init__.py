"""poolguard core -- errors, logging and configuration.

Architecture::

    errors.py          Structured error hierarchy (PoolguardError, ActivationError)
    logging.py         structlog configuration + get_logger()
    config/            PoolguardSettings (pydantic-settings) + get_settings()
"""

from poolguard.core.errors import (
    ActivationError,
    ConfigError,
    ConstructionError,
    ContextCancelledError,
    DeadlineExceededError,
    ErrorCategory,
    ErrorContext,
    LifecycleError,
    PoolguardError,
    ReleaseError,
    RetryExhaustedError,
)
from poolguard.core.logging import configure_logging, get_logger

__all__ = [
    "ActivationError",
    "ConfigError",
    "ConstructionError",
    "ContextCancelledError",
    "DeadlineExceededError",
    "ErrorCategory",
    "ErrorContext",
    "LifecycleError",
    "PoolguardError",
    "ReleaseError",
    "RetryExhaustedError",
    "configure_logging",
    "get_logger",
]
