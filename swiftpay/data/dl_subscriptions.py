from __future__ import annotations

import json
from typing import Any, Dict, List

from swiftpay.core.logging import log
from swiftpay.models.subscription import Subscription


class DLSubscriptionManager:
    """Read access to *user_subscriptions*.

    Rows are created by the onboarding flow; the table is only created here
    so a fresh database is usable.
    """

    def __init__(self, db) -> None:
        self.db = db
        self._ensure_schema()

    def _ensure_schema(self) -> None:
        cur = self.db.get_cursor()
        cur.execute(
            """
            CREATE TABLE IF NOT EXISTS user_subscriptions (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                wallet_address TEXT NOT NULL,
                target_id TEXT NOT NULL,
                channel_id TEXT,
                notification_preferences TEXT DEFAULT '{}',
                created_at TEXT DEFAULT (strftime('%Y-%m-%dT%H:%M:%f+00:00', 'now')),
                updated_at TEXT DEFAULT (strftime('%Y-%m-%dT%H:%M:%f+00:00', 'now'))
            )
            """
        )
        cur.execute(
            "CREATE INDEX IF NOT EXISTS idx_user_subscriptions_wallet "
            "ON user_subscriptions (wallet_address)"
        )
        cur.execute(
            "CREATE INDEX IF NOT EXISTS idx_user_subscriptions_target "
            "ON user_subscriptions (target_id)"
        )
        self.db.commit()

    @staticmethod
    def _row_to_subscription(row: Any) -> Subscription:
        data: Dict[str, Any] = dict(row)
        raw_prefs = data.get("notification_preferences") or "{}"
        try:
            prefs = json.loads(raw_prefs)
        except (TypeError, ValueError):
            log.warning(
                f"Unreadable preferences for subscription {data.get('id')}; treating as defaults",
                source="DLSubscriptionManager",
            )
            prefs = {}
        data["notification_preferences"] = prefs if isinstance(prefs, dict) else {}
        return Subscription(**{k: v for k, v in data.items() if v is not None})

    def find_by_address(self, wallet_address: str) -> List[Subscription]:
        cur = self.db.get_cursor()
        cur.execute(
            "SELECT * FROM user_subscriptions WHERE wallet_address = ? ORDER BY id",
            (wallet_address,),
        )
        return [self._row_to_subscription(r) for r in cur.fetchall()]

    def find_by_target(self, target_id: str) -> List[Subscription]:
        cur = self.db.get_cursor()
        cur.execute(
            "SELECT * FROM user_subscriptions WHERE target_id = ? ORDER BY id",
            (target_id,),
        )
        return [self._row_to_subscription(r) for r in cur.fetchall()]


__all__ = ["DLSubscriptionManager"]
