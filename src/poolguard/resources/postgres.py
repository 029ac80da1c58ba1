"""
PostgreSQL connection pool managed by a lifecycle.

This module wires a ``psycopg_pool.AsyncConnectionPool`` into the
construct-eagerly / activate-on-start / release-on-stop pattern of
:mod:`poolguard.resources.managed`.

Manifesto:
    Database connections are expensive and the database may come up after
    the application. The pool object is therefore created without touching
    the network; the first connection is only attempted by the start hook,
    which retries a ``SELECT 1`` probe on a fixed schedule.

Architecture:
    ::

        new_postgres_pool(lifecycle, dsn)
            │
            ├─ parse_config(dsn)            ConfigError on bad DSN
            ├─ AsyncConnectionPool(open=False)  ConstructionError on failure
            ├─ lifecycle.append(Hook)
            │     on_start ─▶ RetryExecutor ─▶ PostgresPool.ping(ctx)
            │     on_stop  ─▶ PostgresPool.close()   (errors swallowed)
            └─ return PostgresPool

Examples:
    >>> lifecycle = Lifecycle()
    >>> pool = new_postgres_pool(lifecycle, "postgresql://app:pw@db:5432/app")
    >>> await lifecycle.start(HookContext.with_timeout(60))
    >>> async with pool.connection() as conn:
    ...     rows = await (await conn.execute("SELECT * FROM users")).fetchall()
    >>> await lifecycle.stop()

Guardrails:
    - ALWAYS use ``async with pool.connection()``
    - NEVER hold connections longer than necessary

Tags:
    postgres, psycopg, connection-pool, lifecycle, poolguard
"""

from __future__ import annotations

import re
from collections.abc import Awaitable, Callable
from contextlib import AbstractAsyncContextManager
from typing import Any
from urllib.parse import urlsplit, urlunsplit

import psycopg
from psycopg.conninfo import conninfo_to_dict
from psycopg.rows import dict_row
from psycopg_pool import AsyncConnectionPool

from poolguard.core.errors import ConfigError, ConstructionError
from poolguard.core.logging import get_logger
from poolguard.execution.context import HookContext
from poolguard.execution.retry import RetryPolicy
from poolguard.lifecycle.hooks import Lifecycle
from poolguard.resources.managed import ManagedResource, manage_resource

logger = get_logger(__name__)

ConfigureFunc = Callable[[psycopg.AsyncConnection], Awaitable[None]]

_DRIVER_SUFFIX = re.compile(r"^(postgres(?:ql)?)\+[a-z0-9_]+://", re.IGNORECASE)


def normalize_database_url(url: str) -> str:
    """Strip a SQLAlchemy driver suffix (``postgresql+psycopg://``).

    Examples:
        >>> normalize_database_url("postgresql+asyncpg://localhost/db")
        'postgresql://localhost/db'
    """
    return _DRIVER_SUFFIX.sub(r"\1://", url)


def parse_config(dsn: str) -> dict[str, Any]:
    """Parse a DSN (URL or ``key=value`` form) into connection parameters.

    Raises:
        ConfigError: If the DSN cannot be parsed
    """
    try:
        return conninfo_to_dict(normalize_database_url(dsn))
    except psycopg.Error as e:
        raise ConfigError("error while parsing db uri", cause=e).with_context(
            resource="postgres"
        )


def redact_dsn(dsn: str) -> str:
    """Replace the password in a DSN with ``***``."""
    if "://" in dsn:
        parts = urlsplit(dsn)
        if parts.password is None:
            return dsn
        netloc = parts.netloc.replace(f":{parts.password}@", ":***@", 1)
        return urlunsplit(parts._replace(netloc=netloc))
    return re.sub(r"(password\s*=\s*)(?:'[^']*'|\S+)", r"\1***", dsn)


class PostgresPool:
    """A lazily-connected async PostgreSQL pool.

    Construction parses the DSN and allocates the pool object; no
    connection is made until :meth:`ping` (or the first
    :meth:`connection`) opens it.

    Args:
        dsn: Connection URL or ``key=value`` string
        min_size: Connections kept open once the pool is running
        max_size: Upper bound on connections
        ping_timeout: Upper bound, in seconds, on one probe
        configure: Coroutine run on every new connection (type adapters etc.)
    """

    def __init__(
        self,
        dsn: str,
        *,
        min_size: int = 1,
        max_size: int = 10,
        ping_timeout: float = 5.0,
        configure: ConfigureFunc | None = None,
    ):
        params = parse_config(dsn)
        self.dsn = normalize_database_url(dsn)
        self.database = params.get("dbname")
        self.host = params.get("host")
        self.ping_timeout = ping_timeout
        try:
            self._pool = AsyncConnectionPool(
                self.dsn,
                min_size=min_size,
                max_size=max_size,
                kwargs={"row_factory": dict_row},
                configure=configure,
                open=False,
                name="poolguard",
            )
        except Exception as e:
            raise ConstructionError("postgres: init pool", cause=e).with_context(
                resource="postgres"
            )

    @property
    def pool(self) -> AsyncConnectionPool:
        return self._pool

    async def ping(self, ctx: HookContext) -> None:
        """Check the database answers ``SELECT 1``.

        Honours ``ctx``: raises immediately if it is done, and never waits
        for a connection past its deadline.
        """
        ctx.check()
        await self._pool.open(wait=False)
        async with self._pool.connection(timeout=ctx.timeout(self.ping_timeout)) as conn:
            await conn.execute("SELECT 1")

    async def close(self) -> None:
        await self._pool.close()

    def connection(self, timeout: float | None = None) -> AbstractAsyncContextManager[Any]:
        """Borrow a connection: ``async with pool.connection() as conn``."""
        return self._pool.connection(timeout=timeout)

    def stats(self) -> dict[str, int]:
        """Pool counters (``pool_size``, ``pool_available``, ...)."""
        return self._pool.get_stats()

    def __repr__(self) -> str:
        return f"PostgresPool(host={self.host!r}, database={self.database!r})"


def new_postgres_managed(
    lifecycle: Lifecycle,
    dsn: str,
    *,
    logger: Any = None,
    policy: RetryPolicy | None = None,
    min_size: int = 1,
    max_size: int = 10,
    ping_timeout: float = 5.0,
    configure: ConfigureFunc | None = None,
) -> ManagedResource[PostgresPool]:
    """Build a :class:`PostgresPool`, register its hooks, return the owner."""
    return manage_resource(
        lifecycle,
        lambda: PostgresPool(
            dsn,
            min_size=min_size,
            max_size=max_size,
            ping_timeout=ping_timeout,
            configure=configure,
        ),
        name="postgres",
        policy=policy,
        logger=logger,
    )


def new_postgres_pool(
    lifecycle: Lifecycle,
    dsn: str,
    *,
    logger: Any = None,
    policy: RetryPolicy | None = None,
    min_size: int = 1,
    max_size: int = 10,
    ping_timeout: float = 5.0,
    configure: ConfigureFunc | None = None,
) -> PostgresPool:
    """Open a PostgreSQL pool bound to ``lifecycle`` and return it.

    The pool is usable once ``lifecycle.start()`` has returned.

    Raises:
        ConfigError: Malformed DSN
        ConstructionError: The pool object could not be allocated
    """
    return new_postgres_managed(
        lifecycle,
        dsn,
        logger=logger,
        policy=policy,
        min_size=min_size,
        max_size=max_size,
        ping_timeout=ping_timeout,
        configure=configure,
    ).resource


__all__ = [
    "PostgresPool",
    "normalize_database_url",
    "parse_config",
    "redact_dsn",
    "new_postgres_managed",
    "new_postgres_pool",
]
