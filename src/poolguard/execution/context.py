"""Cancellation and deadline signal handed to lifecycle hooks.

A :class:`HookContext` is what a lifecycle host passes into ``on_start`` and
``on_stop``. It carries an optional deadline (monotonic clock) and a
cancellation flag. Nothing here enforces anything: operations that want to
honour the signal call :meth:`HookContext.check` or bound their own I/O
with :meth:`HookContext.timeout`.

Examples:
    >>> ctx = HookContext.with_timeout(30.0)
    >>> ctx.err() is None
    True
    >>> ctx.cancel()
    >>> ctx.done()
    True
    >>> ctx.check()
    Traceback (most recent call last):
    ...
    poolguard.core.errors.ContextCancelledError: context cancelled

Tags:
    context, cancellation, deadline, timeout, poolguard
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field

from poolguard.core.errors import ContextCancelledError, ContextError, DeadlineExceededError


@dataclass
class HookContext:
    """Cancellation/deadline signal.

    Attributes:
        deadline: Absolute deadline timestamp (monotonic clock), or None
        timeout_seconds: Original timeout value in seconds, or None
        start_time: When the context was created
    """

    deadline: float | None = None
    timeout_seconds: float | None = None
    start_time: float = field(default_factory=time.monotonic)
    _cancelled: bool = field(default=False, repr=False)

    @classmethod
    def background(cls) -> HookContext:
        """A context that is never cancelled and has no deadline."""
        return cls()

    @classmethod
    def with_timeout(cls, seconds: float) -> HookContext:
        """A context whose deadline is ``seconds`` from now."""
        if seconds < 0:
            raise ValueError(f"Timeout must be non-negative, got {seconds}")
        now = time.monotonic()
        return cls(deadline=now + seconds, timeout_seconds=seconds, start_time=now)

    def cancel(self) -> None:
        """Cancel the context. Idempotent."""
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def elapsed(self) -> float:
        """Elapsed time since creation in seconds."""
        return time.monotonic() - self.start_time

    def remaining(self) -> float | None:
        """Seconds until the deadline (negative once expired), or None."""
        if self.deadline is None:
            return None
        return self.deadline - time.monotonic()

    def expired(self) -> bool:
        """True if the deadline has passed."""
        return self.deadline is not None and time.monotonic() >= self.deadline

    def done(self) -> bool:
        """True once the context is cancelled or expired."""
        return self._cancelled or self.expired()

    def err(self) -> ContextError | None:
        """The error describing why the context is done, or None while live.

        Cancellation wins over expiry.
        """
        if self._cancelled:
            return ContextCancelledError()
        if self.expired():
            return DeadlineExceededError(
                f"context deadline exceeded after {self.timeout_seconds}s"
            )
        return None

    def check(self) -> None:
        """Raise if the context is done.

        Raises:
            ContextCancelledError: If cancelled
            DeadlineExceededError: If the deadline has passed
        """
        error = self.err()
        if error is not None:
            raise error

    def timeout(self, default: float) -> float:
        """Bound ``default`` by the time left until the deadline, never below zero."""
        remaining = self.remaining()
        if remaining is None:
            return default
        return max(0.0, min(default, remaining))


__all__ = ["HookContext"]
