"""
Live queries over a Store.

A subscription wraps a side-effect-free read. Any write to the Store marks
every subscription dirty and schedules a single flush on the running event
loop; the flush re-runs each query once against the latest state and
re-delivers only results that differ from the previous delivery.
"""
from typing import Any, Awaitable, Callable, List, Optional, Union
import asyncio
import inspect

from chatterhub.utils.logging_utils import logger
from .backend import Store

QueryFn = Callable[[Store], Union[Any, Awaitable[Any]]]
ChangeCallback = Callable[[Any], Union[None, Awaitable[None]]]


async def _resolve(value):
    if inspect.isawaitable(value):
        return await value
    return value


class Subscription:
    """Handle returned by :meth:`LiveQueryEngine.subscribe`."""

    def __init__(self, engine: "LiveQueryEngine", query_fn: QueryFn, on_change: Optional[ChangeCallback] = None):
        self._engine = engine
        self.query_fn = query_fn
        self.on_change = on_change
        self.value: Any = None
        self.version = 0
        self.active = True
        self._changed = asyncio.Event()

    async def _deliver(self, value: Any) -> None:
        self.value = value
        self.version += 1
        event, self._changed = self._changed, asyncio.Event()
        event.set()
        if self.on_change is not None:
            try:
                await _resolve(self.on_change(value))
            except Exception as e:
                logger.error(f"Live query callback failed: {e}")

    async def wait_for_update(self, timeout: Optional[float] = None) -> Any:
        """Wait for the next delivery (or unsubscribe) and return the value."""
        if not self.active:
            return self.value
        await asyncio.wait_for(self._changed.wait(), timeout)
        return self.value

    async def __aiter__(self):
        # Yields the current value, then each later delivery. A slow consumer
        # sees the latest value rather than every intermediate one.
        seen = 0
        while self.active:
            if self.version > seen:
                seen = self.version
                yield self.value
                continue
            await self.wait_for_update()

    def unsubscribe(self) -> None:
        if not self.active:
            return
        self.active = False
        self._engine._remove(self)
        self._changed.set()


class LiveQueryEngine:
    """Re-evaluates subscriptions after Store writes, coalesced per loop tick."""

    def __init__(self, store: Store):
        self.store = store
        self._subscriptions: List[Subscription] = []
        self._flush_task: Optional[asyncio.Task] = None
        self._dirty = False
        self.evaluations = 0
        store.add_listener(self._on_write)

    @property
    def subscriptions(self) -> List[Subscription]:
        return list(self._subscriptions)

    async def subscribe(self, query_fn: QueryFn, on_change: Optional[ChangeCallback] = None) -> Subscription:
        """
        Evaluate ``query_fn`` now, deliver the result and keep it live.

        Errors raised by the first evaluation propagate to the caller; later
        failures are logged and keep the previously delivered value.
        """
        subscription = Subscription(self, query_fn, on_change)
        value = await self._evaluate(subscription)
        self._subscriptions.append(subscription)
        await subscription._deliver(value)
        return subscription

    async def _evaluate(self, subscription: Subscription) -> Any:
        self.evaluations += 1
        return await _resolve(subscription.query_fn(self.store))

    def _remove(self, subscription: Subscription) -> None:
        if subscription in self._subscriptions:
            self._subscriptions.remove(subscription)

    def _on_write(self, collection: str, record_id: Optional[str]) -> None:
        if not self._subscriptions:
            return
        self._dirty = True
        self._schedule_flush()

    def _schedule_flush(self) -> None:
        if self._flush_task is not None and not self._flush_task.done():
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("No running event loop, live queries stay dirty until flush()")
            return
        self._flush_task = loop.create_task(self._flush())

    async def _flush(self) -> None:
        while self._dirty:
            self._dirty = False
            for subscription in list(self._subscriptions):
                if not subscription.active:
                    continue
                try:
                    value = await self._evaluate(subscription)
                except Exception as e:
                    logger.error(f"Live query re-evaluation failed: {e}")
                    continue
                # Unsubscribed while the query was suspended
                if not subscription.active:
                    continue
                if value != subscription.value:
                    logger.debug(f"Live query changed, delivering version {subscription.version + 1}")
                    await subscription._deliver(value)

    async def flush(self) -> None:
        """Re-evaluate pending subscriptions immediately."""
        if self._flush_task is not None and not self._flush_task.done():
            await self._flush_task
        await self._flush()

    async def settle(self) -> None:
        """Wait until scheduled re-evaluation has finished."""
        while self._flush_task is not None and not self._flush_task.done():
            await asyncio.shield(self._flush_task)

    def close(self) -> None:
        for subscription in list(self._subscriptions):
            subscription.unsubscribe()
        self.store.remove_listener(self._on_write)
        if self._flush_task is not None and not self._flush_task.done():
            self._flush_task.cancel()


def collection_query(collection: str, **query_kwargs) -> QueryFn:
    """Build a query function returning ``store.query(collection, ...)``."""
    def run(store: Store):
        return store.query(collection, **query_kwargs)
    return run
