"""
poolguard - lifecycle-gated resource initialization with bounded retry.

Build a resource eagerly, register it with a start/stop lifecycle, and only
declare it ready once a fixed-delay retry of its readiness probe succeeds.
"""

__version__ = "0.1.0"

from poolguard.core.errors import (  # noqa: E402
    ActivationError,
    ConfigError,
    ConstructionError,
    PoolguardError,
    RetryExhaustedError,
)
from poolguard.execution import HookContext, RetryExecutor, RetryPolicy  # noqa: E402
from poolguard.lifecycle import Hook, Lifecycle  # noqa: E402
from poolguard.resources import ManagedResource, PostgresPool, manage, new_postgres_pool  # noqa: E402

__all__ = [
    "__version__",
    "ActivationError",
    "ConfigError",
    "ConstructionError",
    "Hook",
    "HookContext",
    "Lifecycle",
    "ManagedResource",
    "PoolguardError",
    "PostgresPool",
    "RetryExecutor",
    "RetryExhaustedError",
    "RetryPolicy",
    "manage",
    "new_postgres_pool",
]
