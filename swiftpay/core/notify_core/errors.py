"""Delivery failures, classified so the retry loop knows when to stop."""

from __future__ import annotations

from enum import IntEnum
from typing import List, Optional, Sequence


class DiscordErrorCode(IntEnum):
    UNKNOWN_CHANNEL = 10003
    UNKNOWN_USER = 10013
    MISSING_ACCESS = 50001
    CANNOT_SEND_DM = 50007


NON_RETRYABLE_DISCORD_CODES = frozenset(int(c) for c in DiscordErrorCode)

# Invalid number, unsubscribed recipient, not a mobile number, region disabled.
NON_RETRYABLE_TWILIO_CODES = frozenset({21211, 21610, 21614, 21408})


class DeliveryError(RuntimeError):
    """A channel could not deliver a message."""

    def __init__(
        self,
        message: str,
        *,
        retryable: bool = True,
        code: Optional[int] = None,
        status: Optional[int] = None,
        retry_after: Optional[float] = None,
    ) -> None:
        super().__init__(message)
        self.retryable = retryable
        self.code = code
        self.status = status
        self.retry_after = retry_after


class NonRetryableDeliveryError(DeliveryError):
    """Target permanently unreachable; retrying cannot help."""

    def __init__(self, message: str, **kwargs) -> None:
        kwargs["retryable"] = False
        super().__init__(message, **kwargs)


class DispatchError(RuntimeError):
    """Raised after a multi-address dispatch finished with persistence faults.

    ``delivered`` still lists every target that did receive the message.
    """

    def __init__(self, delivered: Sequence[str], errors: Sequence[BaseException]) -> None:
        self.delivered: List[str] = list(delivered)
        self.errors: List[BaseException] = list(errors)
        super().__init__(
            f"{len(self.errors)} address(es) failed during dispatch; "
            f"{len(self.delivered)} target(s) delivered"
        )


def is_retryable(exc: BaseException) -> bool:
    """Unclassified exceptions count as transient."""
    return getattr(exc, "retryable", True) is not False


__all__ = [
    "DiscordErrorCode",
    "NON_RETRYABLE_DISCORD_CODES",
    "NON_RETRYABLE_TWILIO_CODES",
    "DeliveryError",
    "NonRetryableDeliveryError",
    "DispatchError",
    "is_retryable",
]
