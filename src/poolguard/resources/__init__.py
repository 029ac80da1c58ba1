"""Managed resources.

Architecture::

    managed.py     Resource protocol, ManagedResource owner, manage()
    postgres.py    PostgresPool (psycopg_pool) + new_postgres_pool()
"""

from poolguard.resources.managed import (
    ManagedResource,
    Resource,
    ResourceState,
    manage,
    manage_resource,
)
from poolguard.resources.postgres import PostgresPool, new_postgres_managed, new_postgres_pool

__all__ = [
    "ManagedResource",
    "PostgresPool",
    "Resource",
    "ResourceState",
    "manage",
    "manage_resource",
    "new_postgres_managed",
    "new_postgres_pool",
]
