from __future__ import annotations

from datetime import datetime, timezone
from typing import List

from swiftpay.models.subscription import DeliveryAttempt


def _iso(ts: datetime) -> str:
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc).isoformat()


class DLNotificationLogManager:
    """Append-only delivery outcomes in *notification_logs*."""

    def __init__(self, db) -> None:
        self.db = db
        self._ensure_schema()

    # ------------------------------------------------------------------ #
    # Schema
    # ------------------------------------------------------------------ #
    def _ensure_schema(self) -> None:
        cur = self.db.get_cursor()
        cur.execute(
            """
            CREATE TABLE IF NOT EXISTS notification_logs (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                user_subscription_id INTEGER NOT NULL,
                event_type TEXT NOT NULL,
                notification_sent INTEGER NOT NULL,
                error_message TEXT,
                attempts INTEGER DEFAULT 1,
                created_at TEXT NOT NULL
            )
            """
        )
        cur.execute(
            "CREATE INDEX IF NOT EXISTS idx_notification_logs_created "
            "ON notification_logs (created_at)"
        )
        self.db.commit()

    # ------------------------------------------------------------------ #
    # Writes
    # ------------------------------------------------------------------ #
    def insert(self, attempt: DeliveryAttempt) -> None:
        with self.db.lock:
            cur = self.db.get_cursor()
            cur.execute(
                """INSERT INTO notification_logs
                        (user_subscription_id, event_type, notification_sent,
                         error_message, attempts, created_at)
                     VALUES (?, ?, ?, ?, ?, ?)""",
                (
                    attempt.subscription_id,
                    attempt.event_type,
                    1 if attempt.success else 0,
                    attempt.error_message,
                    attempt.attempts,
                    _iso(attempt.created_at),
                ),
            )
            self.db.commit()

    def delete_before(self, cutoff: datetime) -> int:
        with self.db.lock:
            cur = self.db.get_cursor()
            cur.execute(
                "DELETE FROM notification_logs WHERE created_at < ?", (_iso(cutoff),)
            )
            self.db.commit()
            return cur.rowcount

    # ------------------------------------------------------------------ #
    # Reads
    # ------------------------------------------------------------------ #
    def list_since(self, since: datetime) -> List[DeliveryAttempt]:
        cur = self.db.get_cursor()
        cur.execute(
            """SELECT user_subscription_id, event_type, notification_sent,
                      error_message, attempts, created_at
                 FROM notification_logs
                WHERE created_at >= ?
             ORDER BY id""",
            (_iso(since),),
        )
        return [
            DeliveryAttempt(
                subscription_id=row["user_subscription_id"],
                event_type=row["event_type"],
                success=bool(row["notification_sent"]),
                error_message=row["error_message"],
                attempts=row["attempts"] or 1,
                created_at=datetime.fromisoformat(row["created_at"]),
            )
            for row in cur.fetchall()
        ]

    def count(self) -> int:
        cur = self.db.get_cursor()
        cur.execute("SELECT COUNT(*) FROM notification_logs")
        return cur.fetchone()[0]


__all__ = ["DLNotificationLogManager"]
