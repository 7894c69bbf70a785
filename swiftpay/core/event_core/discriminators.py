"""8-byte Anchor event tags emitted by the SwiftPay program."""

from __future__ import annotations

import hashlib
from typing import Dict, Optional

from swiftpay.models.events import EventType

DISCRIMINATOR_LEN = 8

EVENT_DISCRIMINATORS: Dict[EventType, bytes] = {
    EventType.PRICE_UPDATED: bytes([217, 171, 222, 24, 64, 152, 217, 36]),
    EventType.BUY_ORDER_REDUCED: bytes([250, 72, 155, 121, 173, 162, 112, 178]),
    EventType.BUY_ORDER_CANCELLED: bytes([118, 145, 69, 220, 68, 112, 48, 144]),
    EventType.BUY_ORDER_CREATED: bytes([158, 4, 42, 74, 250, 125, 66, 173]),
    EventType.INSTANT_PAYMENT_RESERVED: bytes([1, 110, 251, 231, 168, 10, 216, 190]),
    EventType.INSTANT_PAYMENT_PAYOUT_RESULT: bytes([114, 61, 126, 78, 83, 230, 103, 231]),
}


def event_discriminator(name: str) -> bytes:
    """
    Anchor event discriminator = first 8 bytes of sha256(b"event:" + name).
    """
    return hashlib.sha256(f"event:{name}".encode("utf-8")).digest()[:DISCRIMINATOR_LEN]


def identify_event_type(buffer: bytes) -> Optional[EventType]:
    if len(buffer) < DISCRIMINATOR_LEN:
        return None
    head = bytes(buffer[:DISCRIMINATOR_LEN])
    for event_type, tag in EVENT_DISCRIMINATORS.items():
        if head == tag:
            return event_type
    return None


def _check_table() -> None:
    missing = [t.value for t in EventType if t not in EVENT_DISCRIMINATORS]
    if missing:
        raise RuntimeError(f"event types without discriminator: {missing}")
    tags = list(EVENT_DISCRIMINATORS.values())
    if len(set(tags)) != len(tags):
        raise RuntimeError("duplicate event discriminators")
    if any(len(tag) != DISCRIMINATOR_LEN for tag in tags):
        raise RuntimeError("event discriminators must be 8 bytes")


_check_table()

__all__ = [
    "DISCRIMINATOR_LEN",
    "EVENT_DISCRIMINATORS",
    "event_discriminator",
    "identify_event_type",
]
