"""Typed SwiftPay program events.

``DecodedEvent`` is the closed union of the events the on-chain program emits
through ``emit!``. Each variant is immutable and holds raw on-chain values:
addresses as base58 strings and amounts as integer base units. Display
strings are derived on demand through :meth:`display_fields` and never feed
back into arithmetic.

``ParsedEvent`` is the normalised record handed to the notification layer,
whether it came from a decoded payload or from the log-text fallback.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar, Dict, Optional, Tuple, Union

from swiftpay.utils.formatting import (
    format_fiat_amount,
    format_price,
    format_token_amount,
)


class EventType(str, Enum):
    PRICE_UPDATED = "PriceUpdatedEvent"
    BUY_ORDER_CREATED = "BuyOrderCreatedEvent"
    BUY_ORDER_REDUCED = "BuyOrderReducedEvent"
    BUY_ORDER_CANCELLED = "BuyOrderCancelledEvent"
    INSTANT_PAYMENT_RESERVED = "InstantPaymentReservedEvent"
    INSTANT_PAYMENT_PAYOUT_RESULT = "InstantPaymentPayoutResultEvent"


class _EventBase:
    event_type: ClassVar[EventType]

    def participants(self) -> Dict[str, str]:
        raise NotImplementedError

    def display_fields(self, decimals: int | None = None) -> Dict[str, str]:
        return {}

    def to_data(self, decimals: int | None = None) -> Dict[str, Any]:
        """Flatten into the free-form payload carried by :class:`ParsedEvent`."""
        data: Dict[str, Any] = {"event_type": self.event_type.value}
        data.update(dataclasses.asdict(self))
        data.update(self.display_fields(decimals))
        return data


@dataclass(frozen=True)
class PriceUpdated(_EventBase):
    event_type: ClassVar[EventType] = EventType.PRICE_UPDATED

    swift_pay: str
    maker: str
    old_price: int
    new_price: int
    currency: str

    def participants(self) -> Dict[str, str]:
        return {"seller": self.maker}

    def display_fields(self, decimals: int | None = None) -> Dict[str, str]:
        return {
            "old_price_formatted": format_token_amount(self.old_price, decimals),
            "new_price_formatted": format_token_amount(self.new_price, decimals),
        }


@dataclass(frozen=True)
class BuyOrderCreated(_EventBase):
    event_type: ClassVar[EventType] = EventType.BUY_ORDER_CREATED

    swift_pay: str
    buyer: str
    mint: str
    amount: int
    price_per_token: int
    currency: str
    payment_instructions: str

    def participants(self) -> Dict[str, str]:
        return {"buyer": self.buyer}

    def display_fields(self, decimals: int | None = None) -> Dict[str, str]:
        return {
            "amount_formatted": format_token_amount(self.amount, decimals),
            "price_per_token_formatted": format_price(self.price_per_token),
        }


@dataclass(frozen=True)
class BuyOrderReduced(_EventBase):
    event_type: ClassVar[EventType] = EventType.BUY_ORDER_REDUCED

    swift_pay: str
    buyer: str
    original_amount: int
    new_amount: int
    timestamp: int

    def participants(self) -> Dict[str, str]:
        return {"buyer": self.buyer}

    def display_fields(self, decimals: int | None = None) -> Dict[str, str]:
        return {
            "original_amount_formatted": format_token_amount(self.original_amount, decimals),
            "new_amount_formatted": format_token_amount(self.new_amount, decimals),
        }


@dataclass(frozen=True)
class BuyOrderCancelled(_EventBase):
    event_type: ClassVar[EventType] = EventType.BUY_ORDER_CANCELLED

    swift_pay: str
    buyer: str
    original_amount: int
    timestamp: int

    def participants(self) -> Dict[str, str]:
        return {"buyer": self.buyer}

    def display_fields(self, decimals: int | None = None) -> Dict[str, str]:
        return {"original_amount_formatted": format_token_amount(self.original_amount, decimals)}


@dataclass(frozen=True)
class InstantPaymentReserved(_EventBase):
    event_type: ClassVar[EventType] = EventType.INSTANT_PAYMENT_RESERVED

    swift_pay: str
    taker: str
    amount: int
    fiat_amount: int
    currency: str
    payout_details: Optional[str] = None
    payout_reference: Optional[str] = None

    def participants(self) -> Dict[str, str]:
        return {"taker": self.taker, "user": self.taker}

    def display_fields(self, decimals: int | None = None) -> Dict[str, str]:
        return {
            "amount_formatted": format_token_amount(self.amount, decimals),
            "fiat_amount_formatted": format_fiat_amount(self.fiat_amount),
        }


@dataclass(frozen=True)
class InstantPaymentPayoutResult(_EventBase):
    event_type: ClassVar[EventType] = EventType.INSTANT_PAYMENT_PAYOUT_RESULT

    swift_pay: str
    taker: str
    amount: int
    fiat_amount: int
    currency: str
    payout_reference: str
    success: bool
    message: str

    def participants(self) -> Dict[str, str]:
        return {"taker": self.taker, "user": self.taker}

    def display_fields(self, decimals: int | None = None) -> Dict[str, str]:
        return {
            "amount_formatted": format_token_amount(self.amount, decimals),
            "fiat_amount_formatted": format_fiat_amount(self.fiat_amount),
        }


DecodedEvent = Union[
    PriceUpdated,
    BuyOrderCreated,
    BuyOrderReduced,
    BuyOrderCancelled,
    InstantPaymentReserved,
    InstantPaymentPayoutResult,
]

EVENT_CLASSES: Dict[EventType, type] = {
    cls.event_type: cls
    for cls in (
        PriceUpdated,
        BuyOrderCreated,
        BuyOrderReduced,
        BuyOrderCancelled,
        InstantPaymentReserved,
        InstantPaymentPayoutResult,
    )
}


@dataclass(frozen=True)
class LogContext:
    """Transaction context delivered alongside a batch of program logs."""

    signature: Optional[str] = None
    accounts: Tuple[str, ...] = ()
    program_id: Optional[str] = None
    block_time: Optional[int] = None


@dataclass(frozen=True)
class ParsedEvent:
    event_type: str
    signature: str
    participants: Dict[str, str] = field(default_factory=dict)
    data: Dict[str, Any] = field(default_factory=dict)
    vault: str = "unknown"
    source: str = "binary"
    block_time: Optional[int] = None

    @property
    def has_participants(self) -> bool:
        return bool(self.participants)


__all__ = [
    "EventType",
    "DecodedEvent",
    "PriceUpdated",
    "BuyOrderCreated",
    "BuyOrderReduced",
    "BuyOrderCancelled",
    "InstantPaymentReserved",
    "InstantPaymentPayoutResult",
    "EVENT_CLASSES",
    "LogContext",
    "ParsedEvent",
]
