"""Route parsed events to subscribers and record how each delivery ended."""

from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Mapping, Optional, Set, Tuple

from swiftpay.core.core_constants import NOTIFICATION_LOG_RETENTION_DAYS
from swiftpay.core.event_core.addresses import is_valid_address
from swiftpay.core.logging import log
from swiftpay.data.store import StoreError, SubscriptionStore
from swiftpay.models.events import ParsedEvent
from swiftpay.models.message import Message
from swiftpay.models.subscription import (
    DeliveryAttempt,
    NotificationStats,
    OutcomeCounts,
    Subscription,
)

from .channels import DeliveryChannel
from .errors import DispatchError
from .retry import DeliveryOutcome, RetryPolicy, deliver_with_retry
from .roles import is_known_role, preference_key_for

DEFAULT_CONCURRENCY = 5
TEST_PREFERENCE_KEY = "test_notification"

_Job = Tuple[str, str, Message]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class NotificationManager:
    """Fan a rendered message out to every subscription behind an address.

    Holds no per-dispatch state; everything durable goes through ``store``.
    A :class:`DeliveryAttempt` is written once per subscription, after its
    retry sequence has finished.
    """

    def __init__(
        self,
        store: SubscriptionStore,
        channel: DeliveryChannel,
        policy: Optional[RetryPolicy] = None,
        concurrency: int = DEFAULT_CONCURRENCY,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        if concurrency < 1:
            raise ValueError("concurrency must be >= 1")
        self.store = store
        self.channel = channel
        self.policy = policy or RetryPolicy()
        self.concurrency = concurrency
        self._sleep = sleep
        self._clock = clock

    # ------------------------------------------------------------------
    # Event dispatch
    # ------------------------------------------------------------------
    async def dispatch(
        self, event: ParsedEvent, messages_by_role: Mapping[str, Message]
    ) -> List[str]:
        """Deliver each role's message to that role's subscribers.

        Returns the target ids that received a message. Raises
        :class:`DispatchError` once every address has been processed if
        any of them hit a persistence fault.
        """
        jobs: List[_Job] = []
        seen: Set[Tuple[str, str]] = set()
        for role, address in event.participants.items():
            if not is_known_role(role):
                log.warning(f"Skipping unknown role {role!r}", source="NotificationManager")
                continue
            if not is_valid_address(address):
                log.info(
                    f"Skipping {role}: {address!r} is not a wallet address",
                    source="NotificationManager",
                )
                continue
            message = messages_by_role.get(role)
            if message is None:
                log.debug(f"No message rendered for {role}", source="NotificationManager")
                continue
            preference_key = preference_key_for(event.event_type, role)
            # taker and user name the same wallet on instant-payment events
            if (address, preference_key) in seen:
                log.debug(f"{role} duplicates an earlier role for {address}", source="NotificationManager")
                continue
            seen.add((address, preference_key))
            jobs.append((address, preference_key, message))
        return await self._run_batches(jobs, self.concurrency)

    async def send_bulk_notifications(
        self,
        wallet_addresses: Iterable[str],
        preference_key: str,
        message: Message,
        concurrency: Optional[int] = None,
    ) -> List[str]:
        jobs = [(address, preference_key, message) for address in dict.fromkeys(wallet_addresses)]
        return await self._run_batches(jobs, concurrency or self.concurrency)

    async def _run_batches(self, jobs: List[_Job], concurrency: int) -> List[str]:
        delivered: List[str] = []
        errors: List[BaseException] = []
        for start in range(0, len(jobs), concurrency):
            batch = jobs[start : start + concurrency]
            results = await asyncio.gather(
                *(self.send_notification_to_wallet(*job) for job in batch),
                return_exceptions=True,
            )
            for (address, _, _), result in zip(batch, results):
                if isinstance(result, asyncio.CancelledError):
                    raise result
                if isinstance(result, DispatchError):
                    delivered.extend(result.delivered)
                    errors.extend(result.errors)
                elif isinstance(result, BaseException):
                    log.error(f"Dispatch to {address} failed: {result}", source="NotificationManager")
                    errors.append(result)
                else:
                    delivered.extend(result)
        if errors:
            raise DispatchError(delivered, errors)
        return delivered

    # ------------------------------------------------------------------
    # Per-wallet delivery
    # ------------------------------------------------------------------
    async def send_notification_to_wallet(
        self, wallet_address: str, preference_key: str, message: Message
    ) -> List[str]:
        if not is_valid_address(wallet_address):
            log.warning(f"Invalid wallet address: {wallet_address}", source="NotificationManager")
            return []

        subscriptions = await self.store.find_by_address(wallet_address)
        if not subscriptions:
            log.debug(f"No subscriptions for {wallet_address}", source="NotificationManager")
            return []

        enabled: List[Subscription] = []
        for sub in subscriptions:
            if sub.is_enabled(preference_key):
                enabled.append(sub)
            else:
                log.debug(
                    f"{preference_key} disabled for subscription {sub.id}",
                    source="NotificationManager",
                )

        results = await asyncio.gather(
            *(self._deliver(sub, preference_key, message) for sub in enabled),
            return_exceptions=True,
        )
        delivered: List[str] = []
        errors: List[BaseException] = []
        for sub, result in zip(enabled, results):
            if isinstance(result, asyncio.CancelledError):
                raise result
            if isinstance(result, BaseException):
                log.error(
                    f"Delivery to subscription {sub.id} failed: {result}",
                    source="NotificationManager",
                )
                errors.append(result)
            else:
                success, log_error = result
                if success:
                    delivered.append(sub.target_id)
                if log_error is not None:
                    log.error(
                        f"Recording delivery for subscription {sub.id} failed: {log_error}",
                        source="NotificationManager",
                    )
                    errors.append(log_error)
        if errors:
            raise DispatchError(delivered, errors)
        return delivered

    async def _attempt(self, sub: Subscription, message: Message) -> DeliveryOutcome:
        return await deliver_with_retry(
            lambda: self.channel.send_to_target(sub.target_id, message, sub.channel_id),
            self.policy,
            sleep=self._sleep,
            label=f"{self.channel.name} delivery to {sub.target_id}",
        )

    async def _deliver(
        self, sub: Subscription, preference_key: str, message: Message
    ) -> Tuple[bool, Optional[StoreError]]:
        """Send, then record the outcome.

        A failed log write is returned next to the outcome so a message that
        did go out is still reported as delivered.
        """
        outcome = await self._attempt(sub, message)
        if outcome.success:
            log.success(
                f"{preference_key} delivered to {sub.target_id}", source="NotificationManager"
            )
        try:
            await self.store.insert_delivery_log(
                DeliveryAttempt(
                    subscription_id=sub.id,
                    event_type=preference_key,
                    success=outcome.success,
                    error_message=outcome.error_message,
                    attempts=outcome.attempts,
                    created_at=self._clock(),
                )
            )
        except StoreError as exc:
            return outcome.success, exc
        return outcome.success, None

    # ------------------------------------------------------------------
    # Maintenance
    # ------------------------------------------------------------------
    async def send_test_notification(
        self, target_id: str, text: str = "Test notification from Swift Pay bot"
    ) -> bool:
        subscriptions = await self.store.find_by_target(target_id)
        if not subscriptions:
            log.warning(f"No subscription found for target {target_id}", source="NotificationManager")
            return False
        message = Message(
            title="Test Notification",
            description=text,
            color=0x00FF00,
            footer="Swift Pay Test Notification",
        )
        success, log_error = await self._deliver(subscriptions[0], TEST_PREFERENCE_KEY, message)
        if log_error is not None:
            raise DispatchError([subscriptions[0].target_id] if success else [], [log_error])
        return success

    async def get_notification_stats(self, hours: int = 24) -> NotificationStats:
        since = self._clock() - timedelta(hours=hours)
        stats = NotificationStats(hours=hours)
        for attempt in await self.store.list_delivery_logs(since):
            stats.add(attempt.success)
            stats.by_event_type.setdefault(attempt.event_type, OutcomeCounts()).add(attempt.success)
        return stats

    async def cleanup_old_logs(self, days_to_keep: int = NOTIFICATION_LOG_RETENTION_DAYS) -> int:
        cutoff = self._clock() - timedelta(days=days_to_keep)
        removed = await self.store.delete_delivery_logs_before(cutoff)
        log.info(f"Removed {removed} notification log(s) older than {days_to_keep} days", source="NotificationManager")
        return removed


__all__ = ["NotificationManager", "DEFAULT_CONCURRENCY", "TEST_PREFERENCE_KEY"]
