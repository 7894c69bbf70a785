"""Bounded retry with exponential backoff for a single delivery."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional

from swiftpay.core.logging import log

from .errors import is_retryable


@dataclass(frozen=True)
class RetryPolicy:
    max_attempts: int = 3
    base_delay: float = 1.0
    multiplier: float = 2.0
    max_delay: float = 30.0

    def delay_for(self, attempt: int, retry_after: Optional[float] = None) -> float:
        """Sleep before attempt ``attempt + 1``; ``attempt`` counts from 1."""
        delay = self.base_delay * (self.multiplier ** max(attempt - 1, 0))
        if retry_after is not None:
            delay = max(delay, float(retry_after))
        return min(delay, self.max_delay)


@dataclass
class DeliveryOutcome:
    success: bool
    attempts: int
    error: Optional[BaseException] = None

    @property
    def error_message(self) -> Optional[str]:
        if self.error is None:
            return None
        return str(self.error) or type(self.error).__name__


async def deliver_with_retry(
    send: Callable[[], Awaitable[Any]],
    policy: Optional[RetryPolicy] = None,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    label: str = "delivery",
) -> DeliveryOutcome:
    """Call ``send`` until it succeeds, fails permanently, or the cap is hit.

    Never raises for delivery faults; the outcome says what happened.
    Cancellation propagates untouched.
    """
    policy = policy or RetryPolicy()
    attempt = 0
    while True:
        attempt += 1
        try:
            await send()
            return DeliveryOutcome(success=True, attempts=attempt)
        except asyncio.CancelledError:
            raise
        except Exception as exc:  # noqa: BLE001
            if not is_retryable(exc):
                log.warning(f"{label} failed permanently: {exc}", source="Retry")
                return DeliveryOutcome(success=False, attempts=attempt, error=exc)
            if attempt >= policy.max_attempts:
                log.warning(
                    f"{label} failed after {attempt} attempts: {exc}", source="Retry"
                )
                return DeliveryOutcome(success=False, attempts=attempt, error=exc)
            delay = policy.delay_for(attempt, getattr(exc, "retry_after", None))
            log.info(
                f"{label} attempt {attempt}/{policy.max_attempts} failed; retrying in {delay:.2f}s",
                source="Retry",
            )
            await sleep(delay)


__all__ = ["RetryPolicy", "DeliveryOutcome", "deliver_with_retry"]
