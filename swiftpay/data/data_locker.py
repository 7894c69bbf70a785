"""
Module: DataLocker
Description:
    Composes the DL*Manager classes over one SQLite database: subscriptions
    (read-only for the notifier) and the delivery log.
"""

from __future__ import annotations

from typing import Optional

from swiftpay.core.core_constants import DEFAULT_DB_PATH
from swiftpay.core.logging import log

from .database import DatabaseManager
from .dl_notification_logs import DLNotificationLogManager
from .dl_subscriptions import DLSubscriptionManager


class DataLocker:
    def __init__(self, db_path: Optional[str] = None) -> None:
        self.db = DatabaseManager(db_path or DEFAULT_DB_PATH)
        self.subscriptions = DLSubscriptionManager(self.db)
        self.notification_logs = DLNotificationLogManager(self.db)
        log.debug(f"DataLocker ready at {self.db.db_path}", source="DataLocker")

    def close(self) -> None:
        self.db.close()


__all__ = ["DataLocker"]
