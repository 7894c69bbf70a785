import asyncio

import pytest

from swiftpay.core.notify_core.errors import DeliveryError, NonRetryableDeliveryError
from swiftpay.core.notify_core.retry import RetryPolicy, deliver_with_retry


def _failing(*errors):
    calls = []
    queue = list(errors)

    async def send():
        calls.append(1)
        if queue:
            raise queue.pop(0)

    return send, calls


@pytest.mark.asyncio
async def test_non_retryable_is_attempted_once(no_sleep):
    send, calls = _failing(NonRetryableDeliveryError("dm closed", code=50007), DeliveryError("x"))
    outcome = await deliver_with_retry(send, RetryPolicy(), sleep=no_sleep)
    assert not outcome.success
    assert outcome.attempts == 1
    assert len(calls) == 1
    assert no_sleep.delays == []


@pytest.mark.asyncio
async def test_retryable_is_attempted_three_times_with_growing_delay(no_sleep):
    send, calls = _failing(*(DeliveryError("timeout") for _ in range(5)))
    outcome = await deliver_with_retry(send, RetryPolicy(base_delay=1.0), sleep=no_sleep)
    assert not outcome.success
    assert outcome.attempts == 3
    assert len(calls) == 3
    assert no_sleep.delays == [1.0, 2.0]
    assert outcome.error_message == "timeout"


@pytest.mark.asyncio
async def test_unclassified_exception_is_retried_then_succeeds(no_sleep):
    send, calls = _failing(ConnectionResetError("reset"))
    outcome = await deliver_with_retry(send, sleep=no_sleep)
    assert outcome.success
    assert outcome.attempts == 2
    assert outcome.error is None


@pytest.mark.asyncio
async def test_retry_after_hint_raises_delay(no_sleep):
    send, _ = _failing(DeliveryError("429", status=429, retry_after=7.5))
    await deliver_with_retry(send, RetryPolicy(base_delay=0.5), sleep=no_sleep)
    assert no_sleep.delays == [7.5]


def test_delay_is_capped():
    policy = RetryPolicy(base_delay=10, multiplier=4, max_delay=30)
    assert [policy.delay_for(n) for n in (1, 2, 3)] == [10, 30, 30]


@pytest.mark.asyncio
async def test_cancellation_is_not_swallowed():
    async def send():
        raise asyncio.CancelledError()

    with pytest.raises(asyncio.CancelledError):
        await deliver_with_retry(send)
