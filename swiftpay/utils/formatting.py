"""Display helpers for on-chain integer amounts.

Presentation only: the results are strings and must never be parsed back
for balance arithmetic.
"""

from __future__ import annotations

from decimal import Decimal

from swiftpay.core.core_constants import DEFAULT_TOKEN_DECIMALS


def scale_amount(raw: int, decimals: int | None = None) -> Decimal:
    places = DEFAULT_TOKEN_DECIMALS if decimals is None else int(decimals)
    return Decimal(int(raw)).scaleb(-places)


def format_token_amount(raw: int, decimals: int | None = None, places: int = 2) -> str:
    """``1_500_000_000`` base units at 9 decimals → ``"1.50"``."""
    quant = Decimal(1).scaleb(-places)
    return str(scale_amount(raw, decimals).quantize(quant))


def format_price(raw: int, decimals: int | None = None) -> str:
    """Thousands-separated price, trailing zeros trimmed."""
    value = scale_amount(raw, decimals).normalize()
    if value == value.to_integral_value():
        return f"{int(value):,}"
    return f"{value:,f}"


def format_fiat_amount(raw: int) -> str:
    return f"{int(raw):,}"


__all__ = ["scale_amount", "format_token_amount", "format_price", "format_fiat_amount"]
