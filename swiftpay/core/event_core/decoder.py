"""Decode ``emit!`` payloads of the SwiftPay program into typed events.

Every reader consumes fields in the order the program declares them,
starting right after the 8-byte discriminator. A short or malformed payload
is a *miss*, not an error: :func:`decode` returns ``None`` and the caller
moves on (usually to the log-text fallback).
"""

from __future__ import annotations

import base64
import binascii
from typing import Callable, Dict, Optional

from swiftpay.core.logging import log
from swiftpay.models.events import (
    BuyOrderCancelled,
    BuyOrderCreated,
    BuyOrderReduced,
    DecodedEvent,
    EventType,
    InstantPaymentPayoutResult,
    InstantPaymentReserved,
    PriceUpdated,
)

from .byte_reader import ByteReader, DecodeMiss
from .discriminators import DISCRIMINATOR_LEN, identify_event_type


def _read_price_updated(r: ByteReader) -> PriceUpdated:
    return PriceUpdated(
        swift_pay=r.pubkey(),
        maker=r.pubkey(),
        old_price=r.u64(),
        new_price=r.u64(),
        currency=r.string(),
    )


def _read_buy_order_created(r: ByteReader) -> BuyOrderCreated:
    return BuyOrderCreated(
        swift_pay=r.pubkey(),
        buyer=r.pubkey(),
        mint=r.pubkey(),
        amount=r.u64(),
        price_per_token=r.u64(),
        currency=r.string(),
        payment_instructions=r.string(),
    )


def _read_buy_order_reduced(r: ByteReader) -> BuyOrderReduced:
    return BuyOrderReduced(
        swift_pay=r.pubkey(),
        buyer=r.pubkey(),
        original_amount=r.u64(),
        new_amount=r.u64(),
        timestamp=r.i64(),
    )


def _read_buy_order_cancelled(r: ByteReader) -> BuyOrderCancelled:
    return BuyOrderCancelled(
        swift_pay=r.pubkey(),
        buyer=r.pubkey(),
        original_amount=r.u64(),
        timestamp=r.i64(),
    )


def _read_instant_payment_reserved(r: ByteReader) -> InstantPaymentReserved:
    swift_pay = r.pubkey()
    taker = r.pubkey()
    amount = r.u64()
    fiat_amount = r.u64()
    currency = r.string()
    payout_details = None
    payout_reference = None
    # Older program builds stopped after ``currency``.
    if not r.at_end():
        payout_details = r.option_string()
        payout_reference = r.string() or None
    return InstantPaymentReserved(
        swift_pay=swift_pay,
        taker=taker,
        amount=amount,
        fiat_amount=fiat_amount,
        currency=currency,
        payout_details=payout_details,
        payout_reference=payout_reference,
    )


def _read_instant_payment_payout_result(r: ByteReader) -> InstantPaymentPayoutResult:
    return InstantPaymentPayoutResult(
        swift_pay=r.pubkey(),
        taker=r.pubkey(),
        amount=r.u64(),
        fiat_amount=r.u64(),
        currency=r.string(),
        payout_reference=r.string(),
        success=r.bool(),
        message=r.string(),
    )


EVENT_READERS: Dict[EventType, Callable[[ByteReader], DecodedEvent]] = {
    EventType.PRICE_UPDATED: _read_price_updated,
    EventType.BUY_ORDER_CREATED: _read_buy_order_created,
    EventType.BUY_ORDER_REDUCED: _read_buy_order_reduced,
    EventType.BUY_ORDER_CANCELLED: _read_buy_order_cancelled,
    EventType.INSTANT_PAYMENT_RESERVED: _read_instant_payment_reserved,
    EventType.INSTANT_PAYMENT_PAYOUT_RESULT: _read_instant_payment_payout_result,
}

_unhandled = [t.value for t in EventType if t not in EVENT_READERS]
if _unhandled:
    raise RuntimeError(f"event types without a reader: {_unhandled}")


def decode(buffer: bytes) -> Optional[DecodedEvent]:
    """Return the typed event held in ``buffer`` or ``None``."""
    event_type = identify_event_type(buffer)
    if event_type is None:
        return None
    reader = ByteReader(buffer, offset=DISCRIMINATOR_LEN)
    try:
        return EVENT_READERS[event_type](reader)
    except DecodeMiss as exc:
        log.debug(f"{event_type.value} payload rejected: {exc}", source="EventDecoder")
        return None


def decode_program_data(encoded: str) -> Optional[DecodedEvent]:
    """Decode the base64 body of a ``Program data:`` log line."""
    try:
        raw = base64.b64decode(encoded.strip(), validate=True)
    except (binascii.Error, ValueError):
        return None
    return decode(raw)


__all__ = ["EVENT_READERS", "decode", "decode_program_data"]
