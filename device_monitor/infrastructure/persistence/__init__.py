"""Store implementations for the devices and alerts collections."""

from .factory import create_store
from .memory_store import InMemoryMonitorStore
from .retry import RetryConfig, RetryExecutor
from .schema import ensure_schema
from .sql_store import SqlMonitorStore
from .subscriptions import SubscriberHub

__all__ = [
    "create_store",
    "InMemoryMonitorStore",
    "RetryConfig",
    "RetryExecutor",
    "ensure_schema",
    "SqlMonitorStore",
    "SubscriberHub",
]
