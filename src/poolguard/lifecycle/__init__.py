"""Host lifecycle: ordered start hooks, reverse-order stop hooks."""

from poolguard.lifecycle.hooks import Hook, HookFunc, Lifecycle

__all__ = ["Hook", "HookFunc", "Lifecycle"]
