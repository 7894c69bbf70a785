"""Async persistence contract used by the notification manager."""

from __future__ import annotations

import asyncio
import sqlite3
from datetime import datetime
from typing import Any, Callable, List, Protocol, TypeVar

from pydantic import ValidationError

from swiftpay.models.subscription import DeliveryAttempt, Subscription

from .data_locker import DataLocker

T = TypeVar("T")


class StoreError(RuntimeError):
    """The subscription store could not complete a read or write."""


class SubscriptionStore(Protocol):
    async def find_by_address(self, wallet_address: str) -> List[Subscription]: ...

    async def find_by_target(self, target_id: str) -> List[Subscription]: ...

    async def insert_delivery_log(self, attempt: DeliveryAttempt) -> None: ...

    async def list_delivery_logs(self, since: datetime) -> List[DeliveryAttempt]: ...

    async def delete_delivery_logs_before(self, cutoff: datetime) -> int: ...


class SqliteSubscriptionStore:
    """:class:`SubscriptionStore` over a :class:`DataLocker`.

    Each call runs in a worker thread under the database lock.
    """

    def __init__(self, locker: DataLocker) -> None:
        self.locker = locker

    async def _run(self, fn: Callable[..., T], *args: Any) -> T:
        def call() -> T:
            with self.locker.db.lock:
                return fn(*args)

        try:
            return await asyncio.to_thread(call)
        except (sqlite3.Error, ValidationError) as exc:
            raise StoreError(f"{getattr(fn, '__name__', 'store call')} failed: {exc}") from exc

    async def find_by_address(self, wallet_address: str) -> List[Subscription]:
        return await self._run(self.locker.subscriptions.find_by_address, wallet_address)

    async def find_by_target(self, target_id: str) -> List[Subscription]:
        return await self._run(self.locker.subscriptions.find_by_target, target_id)

    async def insert_delivery_log(self, attempt: DeliveryAttempt) -> None:
        await self._run(self.locker.notification_logs.insert, attempt)

    async def list_delivery_logs(self, since: datetime) -> List[DeliveryAttempt]:
        return await self._run(self.locker.notification_logs.list_since, since)

    async def delete_delivery_logs_before(self, cutoff: datetime) -> int:
        return await self._run(self.locker.notification_logs.delete_before, cutoff)


__all__ = ["StoreError", "SubscriptionStore", "SqliteSubscriptionStore"]
