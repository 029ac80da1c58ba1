"""Lifecycle-gated resource initialization.

A resource is built eagerly and synchronously, then bound to a host
:class:`~poolguard.lifecycle.hooks.Lifecycle`: the start hook probes it
through a :class:`~poolguard.execution.retry.RetryExecutor` and the stop
hook releases it.

Manifesto:
    - **Construct eagerly:** configuration and allocation errors surface
      right away and are never retried
    - **Activate lazily:** reachability is checked when the host starts,
      with a bounded fixed-delay retry so a database that is still booting
      does not kill the process
    - **Release quietly:** teardown never fails the host's shutdown

State machine::

    CONSTRUCTED ──activate──▶ ACTIVATING ──ok──▶ ACTIVE ──release──▶ RELEASED
                                   │
                                   └──budget spent──▶ ACTIVATION_FAILED

Examples:
    >>> lifecycle = Lifecycle()
    >>> pool = manage(lifecycle, lambda: PostgresPool(dsn), name="postgres")
    >>> await lifecycle.start(HookContext.with_timeout(60))   # pings up to 5x, 3s apart
    >>> ...
    >>> await lifecycle.stop()                                 # closes the pool

Tags:
    lifecycle, resource, activation, retry, poolguard
"""

from __future__ import annotations

from collections.abc import Callable
from enum import Enum
from typing import Any, Generic, Protocol, TypeVar, runtime_checkable

from poolguard.core.errors import (
    ActivationError,
    ConfigError,
    ConstructionError,
    LifecycleError,
    ReleaseError,
    RetryExhaustedError,
)
from poolguard.core.logging import get_logger
from poolguard.execution.context import HookContext
from poolguard.execution.retry import DEFAULT_POLICY, RetryExecutor, RetryPolicy
from poolguard.lifecycle.hooks import Hook, Lifecycle

_logger = get_logger(__name__)


@runtime_checkable
class Resource(Protocol):
    """What a managed resource must offer: a probe and a release."""

    async def ping(self, ctx: HookContext) -> None:
        """Raise if the resource is not reachable right now."""
        ...

    async def close(self) -> None:
        """Release the resource."""
        ...


R = TypeVar("R", bound=Resource)


class ResourceState(str, Enum):
    """Where a managed resource is in its lifecycle."""

    CONSTRUCTED = "constructed"
    ACTIVATING = "activating"
    ACTIVE = "active"
    ACTIVATION_FAILED = "activation_failed"
    RELEASED = "released"


class ManagedResource(Generic[R]):
    """Owns a constructed resource handle and its activate/release pair.

    Args:
        resource: The constructed handle
        name: Name used in logs and errors
        policy: Activation retry policy (default: 5 attempts, 3 seconds)
        logger: Structured logger; also handed to the retry executor
        executor: Override the retry executor (tests)
    """

    def __init__(
        self,
        resource: R,
        *,
        name: str = "resource",
        policy: RetryPolicy | None = None,
        logger: Any = None,
        executor: RetryExecutor | None = None,
    ):
        self._resource = resource
        self.name = name
        self._logger = logger if logger is not None else _logger
        self.policy = policy or DEFAULT_POLICY
        self._executor = executor or RetryExecutor(self.policy, logger=self._logger)
        self._state = ResourceState.CONSTRUCTED
        self._closed = False

    @property
    def resource(self) -> R:
        return self._resource

    @property
    def state(self) -> ResourceState:
        return self._state

    @property
    def is_active(self) -> bool:
        return self._state is ResourceState.ACTIVE

    async def activate(self, ctx: HookContext) -> None:
        """Start hook: probe the resource until it answers or the budget runs out.

        A resource whose probe budget is spent is closed before the error
        propagates: the lifecycle never runs the stop hook of a hook that
        failed to start.

        Raises:
            ActivationError: After the last failed probe; chained to its error
            LifecycleError: If activation was already attempted
        """
        if self._state is not ResourceState.CONSTRUCTED:
            raise LifecycleError(
                f"cannot activate {self.name!r} in state {self._state.value}"
            ).with_context(resource=self.name)

        self._state = ResourceState.ACTIVATING
        try:
            await self._executor.run_ctx_async(ctx, self._resource.ping)
        except RetryExhaustedError as e:
            self._state = ResourceState.ACTIVATION_FAILED
            self._logger.error(
                "resource_activation_failed",
                resource=self.name,
                attempts=e.attempts,
                error=str(e.last_error),
            )
            await self._close()
            raise ActivationError(
                f"{self.name}: not reachable after {e.attempts} attempt(s)",
                attempts=e.attempts,
                cause=e.last_error,
            ).with_context(resource=self.name)
        except BaseException:
            self._state = ResourceState.ACTIVATION_FAILED
            raise

        self._state = ResourceState.ACTIVE
        self._logger.info("resource_activated", resource=self.name)

    async def release(self, ctx: HookContext | None = None) -> None:
        """Stop hook: close the resource. Never raises; idempotent."""
        if self._state is ResourceState.RELEASED:
            return
        self._state = ResourceState.RELEASED
        await self._close()

    async def _close(self) -> None:
        # the handle is closed at most once, whichever path gets here first
        if self._closed:
            return
        self._closed = True
        try:
            await self._resource.close()
        except Exception as e:
            error = ReleaseError(f"{self.name}: release failed", cause=e)
            self._logger.warning(
                "resource_release_failed", resource=self.name, error=str(error)
            )
            return
        self._logger.info("resource_released", resource=self.name)

    def hook(self) -> Hook:
        return Hook(on_start=self.activate, on_stop=self.release, name=self.name)

    def register(self, lifecycle: Lifecycle) -> None:
        """Append exactly one start/stop hook pair to ``lifecycle``."""
        lifecycle.append(self.hook())

    def __repr__(self) -> str:
        return f"ManagedResource(name={self.name!r}, state={self._state.value})"


def manage_resource(
    lifecycle: Lifecycle,
    factory: Callable[[], R],
    *,
    name: str = "resource",
    policy: RetryPolicy | None = None,
    logger: Any = None,
) -> ManagedResource[R]:
    """Construct a resource and register its hooks; return the owner.

    ``factory`` runs once, synchronously. :class:`ConfigError` and
    :class:`ConstructionError` propagate as-is; any other exception is
    wrapped in :class:`ConstructionError`. On failure nothing is
    registered with ``lifecycle``.
    """
    logger = logger if logger is not None else _logger
    try:
        resource = factory()
    except (ConfigError, ConstructionError):
        raise
    except Exception as e:
        raise ConstructionError(f"{name}: construction failed", cause=e).with_context(
            resource=name
        )

    managed = ManagedResource(resource, name=name, policy=policy, logger=logger)
    managed.register(lifecycle)
    logger.info("resource_created", resource=name)
    return managed


def manage(
    lifecycle: Lifecycle,
    factory: Callable[[], R],
    *,
    name: str = "resource",
    policy: RetryPolicy | None = None,
    logger: Any = None,
) -> R:
    """Like :func:`manage_resource` but hand back the resource handle itself."""
    return manage_resource(lifecycle, factory, name=name, policy=policy, logger=logger).resource


__all__ = [
    "Resource",
    "ResourceState",
    "ManagedResource",
    "manage",
    "manage_resource",
]
