"""Ordered start/stop lifecycle host.

Infrastructure that owns connections or pools registers a :class:`Hook`
with a :class:`Lifecycle`. The host runs every ``on_start`` in
registration order at boot and every ``on_stop`` in reverse order at
shutdown.

Manifesto:
    - **Fail fast:** a failing start hook aborts startup; hooks that had
      already started are rolled back in reverse order
    - **Best-effort shutdown:** every stop hook runs even if an earlier one
      failed; failures are reported together at the end
    - **One shot:** a lifecycle starts once and stops once
    - **Correlated:** events logged while a hook runs carry ``hook=<name>``

Examples:
    >>> lifecycle = Lifecycle()
    >>> lifecycle.append(Hook(on_start=pool_up, on_stop=pool_down, name="postgres"))
    >>> await lifecycle.start(HookContext.with_timeout(60))
    >>> ...
    >>> await lifecycle.stop(HookContext.with_timeout(15))

Tags:
    lifecycle, startup, shutdown, hooks, poolguard
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

from poolguard.core.errors import LifecycleError
from poolguard.core.logging import LogContext, get_logger
from poolguard.execution.context import HookContext

HookFunc = Callable[[HookContext], Awaitable[None]]

_logger = get_logger(__name__)


@dataclass(frozen=True)
class Hook:
    """A pair of lifecycle callbacks. Either slot may be empty."""

    on_start: HookFunc | None = None
    on_stop: HookFunc | None = None
    name: str = ""


class Lifecycle:
    """Runs registered hooks on start (in order) and stop (in reverse)."""

    def __init__(self, *, logger: Any = None):
        self._logger = logger if logger is not None else _logger
        self._hooks: list[Hook] = []
        self._started_hooks: list[Hook] = []
        self._started = False
        self._stopped = False

    @property
    def hooks(self) -> tuple[Hook, ...]:
        return tuple(self._hooks)

    @property
    def started(self) -> bool:
        return self._started

    def append(self, hook: Hook) -> None:
        """Register a hook. Must happen before :meth:`start`."""
        if self._started:
            raise LifecycleError(f"cannot append hook {hook.name!r}: lifecycle already started")
        self._hooks.append(hook)

    async def start(self, ctx: HookContext | None = None) -> None:
        """Run every ``on_start`` in registration order.

        Raises:
            LifecycleError: If already started, or if a hook failed (the
                hook's error is the ``cause``). Hooks that started before
                the failure have been stopped by then.
        """
        if self._started:
            raise LifecycleError("lifecycle already started")
        self._started = True
        ctx = ctx or HookContext.background()

        for hook in self._hooks:
            if hook.on_start is not None:
                self._logger.debug("lifecycle_hook_starting", hook=hook.name)
                try:
                    async with LogContext(hook=hook.name):
                        await hook.on_start(ctx)
                except Exception as e:
                    self._logger.error("lifecycle_hook_start_failed", hook=hook.name, error=str(e))
                    await self._rollback(ctx)
                    raise LifecycleError(
                        f"start hook {hook.name!r} failed", errors=[e], cause=e
                    ).with_context(hook=hook.name)
            self._started_hooks.append(hook)

        self._logger.info("lifecycle_started", hooks=len(self._started_hooks))

    async def stop(self, ctx: HookContext | None = None) -> None:
        """Run ``on_stop`` of every started hook, in reverse order.

        Raises:
            LifecycleError: If never started, or after all hooks ran when
                at least one of them failed (``errors`` lists every failure)
        """
        if not self._started:
            raise LifecycleError("lifecycle was never started")
        if self._stopped:
            return
        self._stopped = True
        ctx = ctx or HookContext.background()

        errors = await self._stop_started(ctx)
        if errors:
            raise LifecycleError(
                f"{len(errors)} stop hook(s) failed", errors=errors, cause=errors[0]
            )
        self._logger.info("lifecycle_stopped")

    async def _rollback(self, ctx: HookContext) -> None:
        self._stopped = True
        await self._stop_started(ctx)

    async def _stop_started(self, ctx: HookContext) -> list[Exception]:
        errors: list[Exception] = []
        while self._started_hooks:
            hook = self._started_hooks.pop()
            if hook.on_stop is None:
                continue
            self._logger.debug("lifecycle_hook_stopping", hook=hook.name)
            try:
                async with LogContext(hook=hook.name):
                    await hook.on_stop(ctx)
            except Exception as e:
                self._logger.error("lifecycle_hook_stop_failed", hook=hook.name, error=str(e))
                errors.append(e)
        return errors


__all__ = ["Hook", "HookFunc", "Lifecycle"]
