"""Resilient access to the backing store: pooled handles and a query cache."""

from __future__ import annotations

from .cache import CacheEntry, QueryCache
from .errors import BackingStoreError, ClientError, TransientError, error_status, is_client_error
from .pool import ConnectionPool, PoolConfig, RetryPolicy

__all__ = [
    "BackingStoreError",
    "CacheEntry",
    "ClientError",
    "ConnectionPool",
    "PoolConfig",
    "QueryCache",
    "RetryPolicy",
    "TransientError",
    "error_status",
    "is_client_error",
]
