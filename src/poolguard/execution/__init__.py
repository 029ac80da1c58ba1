"""poolguard execution -- bounded retry and the context it runs under.

ARCHITECTURE
────────────
::

    HookContext      ─ cancellation flag + optional deadline
    RetryPolicy      ─ {attempts, delay}
    RetryExecutor    ─ run / run_ctx / run_async / run_ctx_async
"""

from poolguard.execution.context import HookContext
from poolguard.execution.retry import (
    DEFAULT_POLICY,
    RETRY_ATTEMPTS,
    RETRY_DELAY,
    AttemptFailure,
    RetryExecutor,
    RetryPolicy,
    try_with_attempts,
    try_with_attempts_async,
    try_with_attempts_ctx,
    try_with_attempts_ctx_async,
)

__all__ = [
    "DEFAULT_POLICY",
    "RETRY_ATTEMPTS",
    "RETRY_DELAY",
    "AttemptFailure",
    "HookContext",
    "RetryExecutor",
    "RetryPolicy",
    "try_with_attempts",
    "try_with_attempts_async",
    "try_with_attempts_ctx",
    "try_with_attempts_ctx_async",
]
