"""
Structured error types for poolguard.

Provides a small hierarchy of typed errors carrying the metadata needed to
decide whether a failure is worth retrying and to log it with context.

Manifesto:
    - **Typed Error Hierarchy:** Construction, activation, release and
      lifecycle failures are different things and are raised as such
    - **Explicit Retry Semantics:** Each error knows if it's retryable
    - **Rich Context:** Errors carry the resource, hook and attempt they
      belong to
    - **Error Chaining:** The underlying driver exception is preserved as
      ``cause`` / ``__cause__``

Architecture:
    ::

        ┌─────────────────────────────────────────────────────────────────┐
        │                       PoolguardError                             │
        │  (category, retryable, context, cause)                           │
        ├─────────────────────────────────────────────────────────────────┤
        │                                                                  │
        │  ConfigError          ConstructionError     ReleaseError         │
        │  (CONFIG)             (RESOURCE)            (RESOURCE)           │
        │                                                                  │
        │  RetryExhaustedError  ActivationError       LifecycleError       │
        │  (RESOURCE)           (DATABASE)            (LIFECYCLE)          │
        │                                                                  │
        │  ContextError (CANCELLED, retryable)                             │
        │       │                                                          │
        │  ContextCancelledError   DeadlineExceededError                   │
        └─────────────────────────────────────────────────────────────────┘

Examples:
    Wrapping a driver failure:

    >>> try:
    ...     raise OSError("connection refused")
    ... except OSError as e:
    ...     error = ConstructionError("postgres: init pool", cause=e)
    >>> error.retryable
    False
    >>> error.cause
    OSError('connection refused')

    Adding context fluently:

    >>> error = ActivationError("probe failed", attempts=5)
    >>> error.with_context(resource="postgres").context.resource
    'postgres'

Guardrails:
    ❌ DON'T: Retry ConfigError or ConstructionError
    ✅ DO: Let them propagate to whoever called the constructor

    ❌ DON'T: Propagate ReleaseError out of a stop hook
    ✅ DO: Log it and carry on shutting down

Tags:
    error-handling, exception-hierarchy, retry-logic, error-context, poolguard
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Standard error categories for classification and routing."""

    CONFIG = "CONFIG"             # Unparseable configuration
    RESOURCE = "RESOURCE"         # Handle allocation / teardown
    DATABASE = "DATABASE"         # Database not reachable
    LIFECYCLE = "LIFECYCLE"       # Host lifecycle misuse or hook failure
    CANCELLED = "CANCELLED"       # Context cancelled or deadline passed
    INTERNAL = "INTERNAL"         # Bugs, unexpected state


@dataclass
class ErrorContext:
    """
    Structured metadata attached to an error.

    Only non-``None`` fields are emitted by ``to_dict()``, so the dict can
    be passed straight into a structured log call.

    Attributes:
        resource: Name of the managed resource (e.g. ``"postgres"``)
        hook: Name of the lifecycle hook that was running
        attempt: 1-based attempt index the error belongs to
        attempts: Total attempt budget
        metadata: Additional key-value pairs
    """

    resource: str | None = None
    hook: str | None = None
    attempt: int | None = None
    attempts: int | None = None

    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result = {}
        for key in ["resource", "hook", "attempt", "attempts"]:
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.metadata:
            result.update(self.metadata)
        return result


class PoolguardError(Exception):
    """
    Base exception for all poolguard errors.

    Every instance carries:
    - **category:** ErrorCategory for classification
    - **retryable:** Whether the failed operation may succeed if repeated
    - **context:** ErrorContext with structured metadata
    - **cause:** Optional underlying exception, also set as ``__cause__``

    Subclasses set ``default_category`` and ``default_retryable``.
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL
    default_retryable: bool = False

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        retryable: bool | None = None,
        context: ErrorContext | None = None,
        cause: BaseException | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.retryable = retryable if retryable is not None else self.default_retryable
        self.context = context or ErrorContext()
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> PoolguardError:
        """
        Add context to this error (fluent API).

        Usage:
            raise ConstructionError("init failed").with_context(resource="postgres")
        """
        for key, value in kwargs.items():
            if hasattr(self.context, key) and key != "metadata":
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
            "retryable": self.retryable,
        }
        context_dict = self.context.to_dict()
        if context_dict:
            result["context"] = context_dict
        if self.cause is not None:
            result["cause"] = str(self.cause)
        return result

    def __str__(self) -> str:
        if self.cause is not None:
            return f"{self.message}: {self.cause}"
        return self.message

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# CONSTRUCTION ERRORS (Never Retryable)
# =============================================================================


class ConfigError(PoolguardError):
    """Configuration cannot be parsed into a usable resource descriptor."""

    default_category = ErrorCategory.CONFIG


class ConstructionError(PoolguardError):
    """The resource's underlying handle cannot be allocated."""

    default_category = ErrorCategory.RESOURCE


# =============================================================================
# ACTIVATION ERRORS
# =============================================================================


class RetryExhaustedError(PoolguardError):
    """
    Every attempt allowed by a retry policy failed.

    Only the error of the *last* attempt is kept (``last_error``); earlier
    failures are reported through the executor's warning observations.
    """

    default_category = ErrorCategory.RESOURCE

    def __init__(
        self,
        message: str = "all attempts failed",
        *,
        attempts: int,
        last_error: BaseException,
        **kwargs: Any,
    ):
        super().__init__(message, cause=last_error, **kwargs)
        self.attempts = attempts
        self.last_error = last_error
        self.context.attempts = attempts


class ActivationError(PoolguardError):
    """The readiness probe kept failing until the attempt budget ran out."""

    default_category = ErrorCategory.DATABASE

    def __init__(self, message: str, *, attempts: int | None = None, **kwargs: Any):
        super().__init__(message, **kwargs)
        self.attempts = attempts
        if attempts is not None:
            self.context.attempts = attempts


class ReleaseError(PoolguardError):
    """Teardown of a resource failed. Logged, never propagated."""

    default_category = ErrorCategory.RESOURCE


class LifecycleError(PoolguardError):
    """A lifecycle host was misused, or one or more of its hooks failed."""

    default_category = ErrorCategory.LIFECYCLE

    def __init__(self, message: str, *, errors: list[BaseException] | None = None, **kwargs: Any):
        super().__init__(message, **kwargs)
        self.errors = list(errors or [])


# =============================================================================
# CONTEXT SIGNALS (Retryable)
# =============================================================================


class ContextError(PoolguardError):
    """The context handed to an operation is no longer live."""

    default_category = ErrorCategory.CANCELLED
    default_retryable = True


class ContextCancelledError(ContextError):
    """The context was cancelled."""

    def __init__(self, message: str = "context cancelled", **kwargs: Any):
        super().__init__(message, **kwargs)


class DeadlineExceededError(ContextError):
    """The context deadline has passed."""

    def __init__(self, message: str = "context deadline exceeded", **kwargs: Any):
        super().__init__(message, **kwargs)


# =============================================================================
# UTILITY FUNCTIONS
# =============================================================================


def is_retryable(error: BaseException) -> bool:
    """Check whether an error is marked retryable.

    Non-poolguard exceptions are treated as retryable: the executor makes no
    per-error decisions, so anything it sees might be transient.
    """
    if isinstance(error, PoolguardError):
        return error.retryable
    return True


__all__ = [
    "ErrorCategory",
    "ErrorContext",
    "PoolguardError",
    "ConfigError",
    "ConstructionError",
    "RetryExhaustedError",
    "ActivationError",
    "ReleaseError",
    "LifecycleError",
    "ContextError",
    "ContextCancelledError",
    "DeadlineExceededError",
    "is_retryable",
]
