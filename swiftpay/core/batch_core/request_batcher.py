"""Coalesce lookups that arrive close together into one bulk fetch.

Each :class:`RequestBatcher` owns its timer and pending map, so two callers
never see each other's requests. Requests for a key already pending share
one future.
"""

from __future__ import annotations

import asyncio
from typing import (
    Awaitable,
    Callable,
    Dict,
    Generic,
    Hashable,
    List,
    Optional,
    Sequence,
    Set,
    TypeVar,
)

from swiftpay.core.logging import log

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")


class BatcherClosed(RuntimeError):
    pass


class RequestBatcher(Generic[K, V]):
    """Debounced bulk loader.

    ``fetch_many(keys)`` must return one value per key, in order. Keys are
    split by ``group_of(key)`` and each group is fetched separately; a
    failure fails only the waiters in that group.
    """

    def __init__(
        self,
        fetch_many: Callable[[List[K]], Awaitable[Sequence[V]]],
        delay: float = 0.05,
        group_of: Optional[Callable[[K], Hashable]] = None,
    ) -> None:
        self._fetch_many = fetch_many
        self.delay = delay
        self._group_of = group_of or (lambda _key: None)
        self._pending: Dict[K, asyncio.Future] = {}
        self._timer: Optional[asyncio.TimerHandle] = None
        self._tasks: Set[asyncio.Task] = set()
        self._closed = False

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    async def request(self, key: K) -> V:
        if self._closed:
            raise BatcherClosed("batcher is closed")
        loop = asyncio.get_running_loop()
        fut = self._pending.get(key)
        if fut is None:
            fut = loop.create_future()
            self._pending[key] = fut
        if self._timer is not None:
            self._timer.cancel()
        self._timer = loop.call_later(self.delay, self._on_timer)
        return await asyncio.shield(fut)

    def _take_pending(self) -> Dict[K, asyncio.Future]:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        batch, self._pending = self._pending, {}
        return batch

    def _on_timer(self) -> None:
        self._timer = None
        batch = self._take_pending()
        if not batch:
            return
        task = asyncio.get_running_loop().create_task(self._run(batch))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _run(self, batch: Dict[K, asyncio.Future]) -> None:
        groups: Dict[Hashable, List[K]] = {}
        for key in batch:
            groups.setdefault(self._group_of(key), []).append(key)

        for group, keys in groups.items():
            try:
                values = list(await self._fetch_many(keys))
                if len(values) != len(keys):
                    raise ValueError(
                        f"fetch_many returned {len(values)} values for {len(keys)} keys"
                    )
            except asyncio.CancelledError:
                for key in keys:
                    if not batch[key].done():
                        batch[key].cancel()
                raise
            except Exception as exc:  # noqa: BLE001
                log.warning(f"Batched fetch for group {group!r} failed: {exc}", source="RequestBatcher")
                for key in keys:
                    if not batch[key].done():
                        batch[key].set_exception(exc)
                continue
            for key, value in zip(keys, values):
                if not batch[key].done():
                    batch[key].set_result(value)

    async def flush(self) -> None:
        """Fetch everything pending now instead of waiting for the timer."""
        batch = self._take_pending()
        if batch:
            await self._run(batch)
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def close(self) -> None:
        """Cancel the timer and fail anyone still waiting."""
        self._closed = True
        batch = self._take_pending()
        for fut in batch.values():
            if not fut.done():
                fut.set_exception(BatcherClosed("batcher closed before the request ran"))


__all__ = ["RequestBatcher", "BatcherClosed"]
