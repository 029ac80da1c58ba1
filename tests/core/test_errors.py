"""Tests for the poolguard error hierarchy."""

import pytest

from poolguard.core.errors import (
    ActivationError,
    ConfigError,
    ConstructionError,
    ContextCancelledError,
    ContextError,
    DeadlineExceededError,
    ErrorCategory,
    LifecycleError,
    PoolguardError,
    ReleaseError,
    RetryExhaustedError,
    is_retryable,
)


class TestPoolguardError:
    def test_defaults(self):
        error = PoolguardError("boom")
        assert error.message == "boom"
        assert error.category is ErrorCategory.INTERNAL
        assert error.retryable is False
        assert error.cause is None
        assert str(error) == "boom"

    def test_cause_is_chained(self):
        cause = OSError("connection refused")
        error = ConstructionError("postgres: init pool", cause=cause)
        assert error.__cause__ is cause
        assert str(error) == "postgres: init pool: connection refused"

    def test_with_context_sets_known_fields_and_metadata(self):
        error = ConfigError("bad").with_context(resource="postgres", dsn_form="url")
        assert error.context.resource == "postgres"
        assert error.context.metadata == {"dsn_form": "url"}

    def test_to_dict(self):
        error = ActivationError("unreachable", attempts=5, cause=OSError("refused"))
        error.with_context(resource="postgres")
        assert error.to_dict() == {
            "error_type": "ActivationError",
            "message": "unreachable",
            "category": "DATABASE",
            "retryable": False,
            "context": {"resource": "postgres", "attempts": 5},
            "cause": "refused",
        }

    def test_repr(self):
        assert repr(ConfigError("bad uri")) == "ConfigError('bad uri', category=CONFIG)"


class TestSubclasses:
    @pytest.mark.parametrize(
        "cls, category",
        [
            (ConfigError, ErrorCategory.CONFIG),
            (ConstructionError, ErrorCategory.RESOURCE),
            (ReleaseError, ErrorCategory.RESOURCE),
            (LifecycleError, ErrorCategory.LIFECYCLE),
        ],
    )
    def test_categories(self, cls, category):
        error = cls("x")
        assert error.category is category
        assert isinstance(error, PoolguardError)

    def test_retry_exhausted_keeps_last_error(self):
        last = TimeoutError("ping timed out")
        error = RetryExhaustedError(attempts=3, last_error=last)
        assert error.attempts == 3
        assert error.last_error is last
        assert error.cause is last
        assert error.context.attempts == 3

    def test_lifecycle_error_collects_errors(self):
        errors = [RuntimeError("a"), RuntimeError("b")]
        error = LifecycleError("2 stop hook(s) failed", errors=errors)
        assert error.errors == errors
        assert LifecycleError("x").errors == []

    def test_context_errors(self):
        assert ContextCancelledError().message == "context cancelled"
        assert DeadlineExceededError().message == "context deadline exceeded"
        assert isinstance(DeadlineExceededError(), ContextError)
        assert ContextCancelledError().category is ErrorCategory.CANCELLED


class TestIsRetryable:
    def test_poolguard_errors_follow_flag(self):
        assert is_retryable(ConfigError("x")) is False
        assert is_retryable(ContextCancelledError()) is True
        assert is_retryable(ConstructionError("x", retryable=True)) is True

    def test_foreign_errors_are_retryable(self):
        assert is_retryable(OSError("refused")) is True
