"""Live request updates pushed to browsers as server-sent events.

Every committed write publishes a small change notice to the process-wide
``broker``. Each open stream owns a bounded queue on the event loop that
serves it; when a notice arrives the stream reloads its scope and sends a
fresh, newest-first snapshot, so clients only ever render whole result sets.

Idle streams wait on the event loop, not in a worker thread. Only the
snapshot query runs in the threadpool, so open streams never starve the
sync routes of threads.

Notices are only delivered inside this process. Running several workers
needs a shared channel instead of the in-memory broker.
"""

import asyncio
import json
import logging
from dataclasses import dataclass, field
from threading import Lock
from typing import AsyncIterator, Callable

from fastapi.concurrency import run_in_threadpool

from backend.core import config

logger = logging.getLogger(__name__)

HEARTBEAT = ': heartbeat\n\n'


@dataclass(frozen=True)
class ChangeNotice:
    collection: str
    record_id: int
    owner_id: int | None


@dataclass(eq=False)
class Subscription:
    # None watches every owner (admin console).
    owner_id: int | None
    loop: asyncio.AbstractEventLoop
    notices: asyncio.Queue = field(default_factory=lambda: asyncio.Queue(maxsize=config.STREAM_QUEUE_SIZE))

    def matches(self, notice: ChangeNotice) -> bool:
        return self.owner_id is None or self.owner_id == notice.owner_id

    def offer(self, notice: ChangeNotice) -> None:
        """Queue a notice. Must run on the subscription's loop."""
        try:
            self.notices.put_nowait(notice)
        except asyncio.QueueFull:
            # A full queue already holds a pending refresh.
            logger.debug('Dropped %s notice for a saturated stream', notice.collection)


class ChangeBroker:
    def __init__(self) -> None:
        self._subscriptions: list[Subscription] = []
        self._lock = Lock()

    def subscribe(self, owner_id: int | None = None) -> Subscription:
        """Register a stream on the running event loop."""
        subscription = Subscription(owner_id=owner_id, loop=asyncio.get_running_loop())
        with self._lock:
            self._subscriptions.append(subscription)
            open_streams = len(self._subscriptions)
        logger.debug('Stream subscribed (owner=%s, open=%d)', owner_id, open_streams)
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        with self._lock:
            if subscription in self._subscriptions:
                self._subscriptions.remove(subscription)
        logger.debug('Stream unsubscribed (owner=%s)', subscription.owner_id)

    def publish(self, collection: str, record_id: int, owner_id: int | None) -> int:
        """Hand a notice to every matching stream and return how many were signalled.

        Safe to call from worker threads: delivery is scheduled on each
        subscription's own loop.
        """
        notice = ChangeNotice(collection=collection, record_id=record_id, owner_id=owner_id)
        signalled = 0
        with self._lock:
            subscriptions = list(self._subscriptions)
        for subscription in subscriptions:
            if not subscription.matches(notice):
                continue
            try:
                subscription.loop.call_soon_threadsafe(subscription.offer, notice)
            except RuntimeError:
                # The loop that served this stream is closed.
                self.unsubscribe(subscription)
                continue
            signalled += 1
        return signalled

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscriptions)


broker = ChangeBroker()


def format_event(event: str, data: dict) -> str:
    return f'event: {event}\ndata: {json.dumps(data)}\n\n'


def _drain(subscription: Subscription) -> None:
    while True:
        try:
            subscription.notices.get_nowait()
        except asyncio.QueueEmpty:
            return


async def _snapshot_event(load_snapshot: Callable[[], dict]) -> str:
    try:
        return format_event('snapshot', await run_in_threadpool(load_snapshot))
    except Exception:
        logger.warning('Failed to load stream snapshot', exc_info=True)
        return format_event('error', {'appointments': [], 'help_requests': []})


async def snapshot_stream(
    owner_id: int | None,
    load_snapshot: Callable[[], dict],
    change_broker: ChangeBroker = broker,
    heartbeat_seconds: float | None = None,
) -> AsyncIterator[str]:
    """Yield an initial snapshot, then a new one after every burst of change notices.

    The subscription is only opened once the stream is first iterated, so a
    response that is never sent leaves nothing behind.
    """
    timeout = heartbeat_seconds or config.STREAM_HEARTBEAT_SECONDS
    subscription = change_broker.subscribe(owner_id)
    try:
        yield await _snapshot_event(load_snapshot)
        while True:
            try:
                await asyncio.wait_for(subscription.notices.get(), timeout)
            except asyncio.TimeoutError:
                yield HEARTBEAT
                continue
            _drain(subscription)
            yield await _snapshot_event(load_snapshot)
    finally:
        change_broker.unsubscribe(subscription)
