from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Subscription(BaseModel):
    """
    A wallet address registered for notifications.

    Rows are written by the onboarding flow; the notifier only reads them.
    ``notification_preferences`` maps preference keys such as
    ``instant_payment_reserved`` to on/off. A key that is missing means on.
    """

    id: int
    wallet_address: str
    target_id: str  # Discord user id or E.164 phone number
    channel_id: Optional[str] = None  # Discord channel, when not delivering by DM
    notification_preferences: Dict[str, bool] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)

    def is_enabled(self, preference_key: str) -> bool:
        return self.notification_preferences.get(preference_key) is not False


class DeliveryAttempt(BaseModel):
    """Final outcome of one retried delivery to one subscription."""

    subscription_id: int
    event_type: str
    success: bool
    error_message: Optional[str] = None
    attempts: int = 1
    created_at: datetime = Field(default_factory=_utcnow)

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump()


class OutcomeCounts(BaseModel):
    total: int = 0
    successful: int = 0
    failed: int = 0

    def add(self, success: bool) -> None:
        self.total += 1
        if success:
            self.successful += 1
        else:
            self.failed += 1


class NotificationStats(OutcomeCounts):
    hours: int
    by_event_type: Dict[str, OutcomeCounts] = Field(default_factory=dict)

    @property
    def success_rate(self) -> float:
        return (self.successful / self.total * 100.0) if self.total else 0.0


__all__ = ["Subscription", "DeliveryAttempt", "OutcomeCounts", "NotificationStats"]
