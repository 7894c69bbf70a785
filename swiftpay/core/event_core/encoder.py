"""Serialise typed events back into program-data payloads.

Mirror of :mod:`decoder`; used to simulate program output when exercising
the notification pipeline without a validator.
"""

from __future__ import annotations

import base64
from typing import Optional

from solders.pubkey import Pubkey

from swiftpay.models.events import (
    BuyOrderCancelled,
    BuyOrderCreated,
    BuyOrderReduced,
    DecodedEvent,
    InstantPaymentPayoutResult,
    InstantPaymentReserved,
    PriceUpdated,
)

from .discriminators import EVENT_DISCRIMINATORS


class _Writer:
    def __init__(self) -> None:
        self.out = bytearray()

    def pubkey(self, address: str) -> "_Writer":
        self.out += bytes(Pubkey.from_string(address))
        return self

    def u8(self, value: int) -> "_Writer":
        self.out += int(value).to_bytes(1, "little")
        return self

    def u64(self, value: int) -> "_Writer":
        self.out += int(value).to_bytes(8, "little")
        return self

    def i64(self, value: int) -> "_Writer":
        self.out += int(value).to_bytes(8, "little", signed=True)
        return self

    def string(self, value: str) -> "_Writer":
        raw = value.encode("utf-8")
        self.out += len(raw).to_bytes(4, "little") + raw
        return self

    def option_string(self, value: Optional[str]) -> "_Writer":
        if value is None:
            return self.u8(0)
        return self.u8(1).string(value)


def encode_event(event: DecodedEvent) -> bytes:
    w = _Writer()
    w.out += EVENT_DISCRIMINATORS[event.event_type]
    if isinstance(event, PriceUpdated):
        w.pubkey(event.swift_pay).pubkey(event.maker)
        w.u64(event.old_price).u64(event.new_price).string(event.currency)
    elif isinstance(event, BuyOrderCreated):
        w.pubkey(event.swift_pay).pubkey(event.buyer).pubkey(event.mint)
        w.u64(event.amount).u64(event.price_per_token)
        w.string(event.currency).string(event.payment_instructions)
    elif isinstance(event, BuyOrderReduced):
        w.pubkey(event.swift_pay).pubkey(event.buyer)
        w.u64(event.original_amount).u64(event.new_amount).i64(event.timestamp)
    elif isinstance(event, BuyOrderCancelled):
        w.pubkey(event.swift_pay).pubkey(event.buyer)
        w.u64(event.original_amount).i64(event.timestamp)
    elif isinstance(event, InstantPaymentReserved):
        w.pubkey(event.swift_pay).pubkey(event.taker)
        w.u64(event.amount).u64(event.fiat_amount).string(event.currency)
        w.option_string(event.payout_details).string(event.payout_reference or "")
    elif isinstance(event, InstantPaymentPayoutResult):
        w.pubkey(event.swift_pay).pubkey(event.taker)
        w.u64(event.amount).u64(event.fiat_amount).string(event.currency)
        w.string(event.payout_reference).u8(1 if event.success else 0).string(event.message)
    else:
        raise TypeError(f"cannot encode {type(event).__name__}")
    return bytes(w.out)


def encode_program_data(event: DecodedEvent) -> str:
    """Return the ``Program data:`` log line body for ``event``."""
    return base64.b64encode(encode_event(event)).decode("ascii")


__all__ = ["encode_event", "encode_program_data"]
