"""Which preference toggle governs a given (event, role) notification."""

from __future__ import annotations

from typing import Dict, Tuple

from swiftpay.core.core_constants import KNOWN_ROLES

ROLE_PREFERENCE_KEYS: Dict[str, Dict[str, str]] = {
    "BuyOrderCreatedEvent": {"buyer": "buy_order_created", "seller": "buy_order_created"},
    "BuyOrderCancelledEvent": {"buyer": "buy_order_cancelled"},
    "BuyOrderReducedEvent": {"buyer": "buy_order_reduced"},
    "PriceUpdatedEvent": {"buyer": "price_updated", "seller": "price_updated"},
    "InstantPaymentReservedEvent": {
        "taker": "instant_payment_reserved",
        "user": "instant_payment_reserved",
        "maker": "instant_payment_reserved",
    },
    "InstantPaymentPayoutResultEvent": {
        "taker": "instant_payment_payout_result",
        "user": "instant_payment_payout_result",
        "maker": "instant_payment_payout_result",
    },
    "ReservationCancelledEvent": {
        "buyer": "reservation_cancelled",
        "seller": "reservation_cancelled",
    },
}


def is_known_role(role: str) -> bool:
    return role in KNOWN_ROLES


def preference_key_for(event_type: str, role: str) -> str:
    """``InstantPaymentReservedEvent`` + ``taker`` -> ``instant_payment_reserved``.

    Unmapped pairs fall back to the lower-cased event name without ``event``.
    """
    key = ROLE_PREFERENCE_KEYS.get(event_type, {}).get(role)
    if key:
        return key
    return event_type.lower().replace("event", "")


def notifiable_event_types() -> Tuple[str, ...]:
    return tuple(ROLE_PREFERENCE_KEYS)


__all__ = [
    "KNOWN_ROLES",
    "ROLE_PREFERENCE_KEYS",
    "is_known_role",
    "preference_key_for",
    "notifiable_event_types",
]
