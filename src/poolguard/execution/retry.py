"""Bounded fixed-delay retry.

Runs an operation up to ``attempts`` times with a constant ``delay``
between attempts, returning on the first success and raising
:class:`~poolguard.core.errors.RetryExhaustedError` wrapping the last
error once the budget is spent.

Manifesto:
    Startup probes need the simplest retry that can possibly work:
    - **Fixed attempts:** ``attempts`` invocations at most, never fewer than one
    - **Fixed delay:** no backoff, no jitter, so timing is predictable
    - **No trailing sleep:** the delay only separates attempts
    - **Observable:** every failed attempt is logged before the delay

Architecture:
    ::

        attempt 1 ──fail──▶ warn(1) ──sleep(delay)──▶ attempt 2 ──fail──▶ warn(2) ─ ...
            │                                             │
          success ──▶ return                           success ──▶ return

        attempt N ──fail──▶ warn(N) ──▶ raise RetryExhaustedError(last_error)

Examples:
    >>> from poolguard.execution.retry import RetryExecutor, RetryPolicy
    >>>
    >>> executor = RetryExecutor(RetryPolicy(attempts=5, delay=3.0))
    >>> executor.run(lambda: call_api())

    Context-aware, inside a lifecycle start hook:

    >>> await executor.run_ctx_async(ctx, pool.ping)

Guardrails:
    - The context passed to ``run_ctx*`` is never polled by the executor.
      Cancellation takes effect only when the operation itself observes it;
      a cancelled context does not cut an inter-attempt delay short.
    - ``asyncio.CancelledError`` and other non-``Exception`` errors are not
      retried.

Tags:
    retry, resilience, fixed-delay, execution, poolguard
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, TypeVar

from poolguard.core.errors import RetryExhaustedError
from poolguard.core.logging import get_logger
from poolguard.execution.context import HookContext

T = TypeVar("T")

RETRY_ATTEMPTS = 5
RETRY_DELAY = 3.0

_logger = get_logger(__name__)


@dataclass(frozen=True)
class RetryPolicy:
    """How many times to try, and how long to wait in between.

    ``attempts=0`` is accepted and behaves like ``attempts=1``: the operation
    always runs at least once.

    Attributes:
        attempts: Maximum number of invocations
        delay: Seconds to wait between two attempts
    """

    attempts: int = RETRY_ATTEMPTS
    delay: float = RETRY_DELAY

    def __post_init__(self) -> None:
        if self.attempts < 0:
            raise ValueError(f"attempts must be non-negative, got {self.attempts}")
        if self.delay < 0:
            raise ValueError(f"delay must be non-negative, got {self.delay}")

    @property
    def max_invocations(self) -> int:
        return max(self.attempts, 1)


DEFAULT_POLICY = RetryPolicy(RETRY_ATTEMPTS, RETRY_DELAY)


@dataclass(frozen=True)
class AttemptFailure:
    """A failed attempt: 1-based index plus the error it raised."""

    attempt: int
    error: Exception


class RetryExecutor:
    """Executes operations under a :class:`RetryPolicy`.

    Args:
        policy: Attempt budget and delay (default: 5 attempts, 3 seconds)
        logger: Receives one ``warning`` per failed attempt
        sleep: Blocking sleep used by :meth:`run` / :meth:`run_ctx`
        async_sleep: Awaitable sleep used by the async variants
        on_failure: Optional callback called with each :class:`AttemptFailure`
    """

    def __init__(
        self,
        policy: RetryPolicy | None = None,
        *,
        logger: Any = None,
        sleep: Callable[[float], None] = time.sleep,
        async_sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        on_failure: Callable[[AttemptFailure], None] | None = None,
    ):
        self.policy = policy or DEFAULT_POLICY
        self._logger = logger if logger is not None else _logger
        self._sleep = sleep
        self._async_sleep = async_sleep
        self._on_failure = on_failure

    def _record(self, attempt: int, error: Exception) -> None:
        failure = AttemptFailure(attempt=attempt, error=error)
        self._logger.warning(
            "retry_attempt_failed",
            attempt=attempt,
            attempts=self.policy.max_invocations,
            error=str(error),
            error_type=type(error).__name__,
        )
        if self._on_failure is not None:
            self._on_failure(failure)

    def _exhausted(self, error: Exception) -> RetryExhaustedError:
        attempts = self.policy.max_invocations
        return RetryExhaustedError(
            f"all {attempts} attempts failed",
            attempts=attempts,
            last_error=error,
        )

    def run(self, op: Callable[[], T]) -> T:
        """Run ``op`` until it succeeds or the policy is exhausted.

        Returns:
            Whatever the successful call returned

        Raises:
            RetryExhaustedError: With ``last_error`` set to the final attempt's error
        """
        attempts = self.policy.max_invocations
        for attempt in range(1, attempts + 1):
            try:
                return op()
            except Exception as e:
                self._record(attempt, e)
                if attempt == attempts:
                    raise self._exhausted(e)
            self._sleep(self.policy.delay)
        raise AssertionError("unreachable")  # pragma: no cover

    def run_ctx(self, ctx: HookContext, op: Callable[[HookContext], T]) -> T:
        """Like :meth:`run`, passing ``ctx`` to ``op`` on every attempt."""
        return self.run(lambda: op(ctx))

    async def run_async(self, op: Callable[[], Awaitable[T]]) -> T:
        """Async :meth:`run`. Only the calling task waits during the delay."""
        attempts = self.policy.max_invocations
        for attempt in range(1, attempts + 1):
            try:
                return await op()
            except Exception as e:
                self._record(attempt, e)
                if attempt == attempts:
                    raise self._exhausted(e)
            await self._async_sleep(self.policy.delay)
        raise AssertionError("unreachable")  # pragma: no cover

    async def run_ctx_async(
        self, ctx: HookContext, op: Callable[[HookContext], Awaitable[T]]
    ) -> T:
        """Like :meth:`run_async`, passing ``ctx`` to ``op`` on every attempt."""
        return await self.run_async(lambda: op(ctx))


# ── Module-level helpers ─────────────────────────────────────────────────


def try_with_attempts(
    op: Callable[[], T],
    attempts: int = RETRY_ATTEMPTS,
    delay: float = RETRY_DELAY,
    *,
    logger: Any = None,
) -> T:
    """Call ``op`` up to ``attempts`` times, ``delay`` seconds apart."""
    return RetryExecutor(RetryPolicy(attempts, delay), logger=logger).run(op)


def try_with_attempts_ctx(
    ctx: HookContext,
    op: Callable[[HookContext], T],
    attempts: int = RETRY_ATTEMPTS,
    delay: float = RETRY_DELAY,
    *,
    logger: Any = None,
) -> T:
    """:func:`try_with_attempts` for an operation that takes a context."""
    return RetryExecutor(RetryPolicy(attempts, delay), logger=logger).run_ctx(ctx, op)


async def try_with_attempts_async(
    op: Callable[[], Awaitable[T]],
    attempts: int = RETRY_ATTEMPTS,
    delay: float = RETRY_DELAY,
    *,
    logger: Any = None,
) -> T:
    """Async :func:`try_with_attempts`."""
    return await RetryExecutor(RetryPolicy(attempts, delay), logger=logger).run_async(op)


async def try_with_attempts_ctx_async(
    ctx: HookContext,
    op: Callable[[HookContext], Awaitable[T]],
    attempts: int = RETRY_ATTEMPTS,
    delay: float = RETRY_DELAY,
    *,
    logger: Any = None,
) -> T:
    """Async :func:`try_with_attempts_ctx`."""
    return await RetryExecutor(RetryPolicy(attempts, delay), logger=logger).run_ctx_async(
        ctx, op
    )


__all__ = [
    "RETRY_ATTEMPTS",
    "RETRY_DELAY",
    "DEFAULT_POLICY",
    "RetryPolicy",
    "AttemptFailure",
    "RetryExecutor",
    "try_with_attempts",
    "try_with_attempts_ctx",
    "try_with_attempts_async",
    "try_with_attempts_ctx_async",
]
