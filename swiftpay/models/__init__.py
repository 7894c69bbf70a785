from .events import (
    EventType,
    DecodedEvent,
    PriceUpdated,
    BuyOrderCreated,
    BuyOrderReduced,
    BuyOrderCancelled,
    InstantPaymentReserved,
    InstantPaymentPayoutResult,
    LogContext,
    ParsedEvent,
)
from .message import Message, MessageField, MessageRenderer
from .subscription import DeliveryAttempt, NotificationStats, Subscription

__all__ = [
    "EventType",
    "DecodedEvent",
    "PriceUpdated",
    "BuyOrderCreated",
    "BuyOrderReduced",
    "BuyOrderCancelled",
    "InstantPaymentReserved",
    "InstantPaymentPayoutResult",
    "LogContext",
    "ParsedEvent",
    "Message",
    "MessageField",
    "MessageRenderer",
    "DeliveryAttempt",
    "NotificationStats",
    "Subscription",
]
