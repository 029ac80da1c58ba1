"""Centralized configuration.

Quick start::

    from poolguard.core.config import get_settings

    settings = get_settings()
    policy = settings.retry_policy()

Guardrails:
    ❌ Parsing env vars ad-hoc in each module
    ✅ ``get_settings().database_url`` from the cached singleton
"""

from .settings import PoolguardSettings, clear_settings_cache, get_settings

__all__ = [
    "PoolguardSettings",
    "get_settings",
    "clear_settings_cache",
]
