from .data_locker import DataLocker
from .database import DatabaseManager
from .store import SqliteSubscriptionStore, StoreError, SubscriptionStore

__all__ = [
    "DataLocker",
    "DatabaseManager",
    "SqliteSubscriptionStore",
    "StoreError",
    "SubscriptionStore",
]
