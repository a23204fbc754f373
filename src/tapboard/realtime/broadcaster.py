"""Broadcaster — fan-out of rating frames to connected subscribers.

Learn: Pub/sub is fire-and-forget. There is no backlog: a browser that
connects after a rate event only learns about it through the snapshot
it receives on connect. Delivery order across subscribers is not
guaranteed, but each subscriber sees its own frames in publish order
because everything goes through its queue.
"""

import asyncio
from typing import AsyncIterator

import structlog

from tapboard.events.types import RATINGS_UPDATE
from tapboard.schemas.rating import RateEvent
from tapboard.services.rating_cache import RatingCache

logger = structlog.get_logger()


class Subscription:
    """One subscriber's outbound frame queue."""

    def __init__(self, broadcaster: "Broadcaster", maxsize: int = 0):
        self._broadcaster = broadcaster
        self._queue: asyncio.Queue[dict] = asyncio.Queue(maxsize=maxsize)
        self.closed = False

    def offer(self, frame: dict) -> bool:
        """Queue a frame; False if the subscriber is too far behind."""
        try:
            self._queue.put_nowait(frame)
            return True
        except asyncio.QueueFull:
            return False

    async def next_frame(self) -> dict:
        return await self._queue.get()

    def pending(self) -> list[dict]:
        """Drain whatever is queued right now, without waiting."""
        frames = []
        while not self._queue.empty():
            frames.append(self._queue.get_nowait())
        return frames

    async def __aiter__(self) -> AsyncIterator[dict]:
        while not self.closed:
            yield await self.next_frame()

    def close(self) -> None:
        if not self.closed:
            self.closed = True
            self._broadcaster.unsubscribe(self)


class Broadcaster:
    """Delivers rating snapshots on connect and rate frames to everyone."""

    def __init__(self, ratings: RatingCache, queue_size: int = 1000):
        self.ratings = ratings
        self.queue_size = queue_size
        self._subscribers: set[Subscription] = set()

    def __len__(self) -> int:
        return len(self._subscribers)

    def subscribe(self) -> Subscription:
        """Register a subscriber; its first frame is the full rating mapping."""
        sub = Subscription(self, maxsize=self.queue_size)
        sub.offer({"type": RATINGS_UPDATE, "ratings": self.ratings.snapshot()})
        self._subscribers.add(sub)
        logger.info("realtime.subscribed", subscribers=len(self._subscribers))
        return sub

    def unsubscribe(self, sub: Subscription) -> None:
        self._subscribers.discard(sub)
        logger.info("realtime.unsubscribed", subscribers=len(self._subscribers))

    def publish(self, event: RateEvent) -> int:
        """Send a rate frame to every subscriber. Returns how many got it."""
        frame = event.frame()
        delivered = 0
        for sub in list(self._subscribers):
            if sub.offer(frame):
                delivered += 1
            else:
                logger.warning("realtime.subscriber_dropped", reason="queue_full")
                sub.close()
        return delivered
