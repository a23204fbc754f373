"""Broadcaster tests — snapshot on subscribe, fan-out, no backlog."""

import pytest

from tapboard.realtime.broadcaster import Broadcaster
from tapboard.services.rating_cache import RatingCache


@pytest.mark.asyncio
async def test_subscribe_sends_snapshot_to_new_subscriber_only():
    ratings = RatingCache()
    ratings.submit(1, 4.0, True)
    hub = Broadcaster(ratings)

    first = hub.subscribe()
    first.pending()
    second = hub.subscribe()

    assert first.pending() == []
    assert second.pending() == [
        {"type": "update", "ratings": {"1": {"rating": 4.0, "count": 1}}}
    ]


@pytest.mark.asyncio
async def test_publish_reaches_every_subscriber():
    ratings = RatingCache()
    hub = Broadcaster(ratings)
    subs = [hub.subscribe() for _ in range(3)]

    delivered = hub.publish(ratings.submit(8, 3.5, True))

    assert delivered == 3
    for sub in subs:
        frames = sub.pending()
        assert frames[-1] == {"type": "rate", "beer": 8, "rating": 3.5, "count": 1}


@pytest.mark.asyncio
async def test_late_subscriber_sees_event_only_through_snapshot():
    ratings = RatingCache()
    hub = Broadcaster(ratings)
    hub.publish(ratings.submit(2, 5.0, True))

    late = hub.subscribe()
    frames = late.pending()

    assert len(frames) == 1
    assert frames[0]["type"] == "update"
    assert frames[0]["ratings"] == {"2": {"rating": 5.0, "count": 1}}


@pytest.mark.asyncio
async def test_next_frame_preserves_publish_order():
    ratings = RatingCache()
    hub = Broadcaster(ratings)
    sub = hub.subscribe()
    hub.publish(ratings.submit(1, 2.0, True))
    hub.publish(ratings.submit(1, 4.0, True))

    assert (await sub.next_frame())["type"] == "update"
    assert (await sub.next_frame())["rating"] == 2.0
    assert (await sub.next_frame())["rating"] == 3.0


@pytest.mark.asyncio
async def test_closed_subscription_stops_receiving():
    ratings = RatingCache()
    hub = Broadcaster(ratings)
    sub = hub.subscribe()
    sub.close()

    assert len(hub) == 0
    assert hub.publish(ratings.submit(1, 2.0, True)) == 0


@pytest.mark.asyncio
async def test_full_queue_drops_the_subscriber():
    ratings = RatingCache()
    hub = Broadcaster(ratings, queue_size=2)
    slow = hub.subscribe()  # snapshot takes one slot
    hub.publish(ratings.submit(1, 2.0, True))
    hub.publish(ratings.submit(1, 3.0, True))

    assert slow.closed
    assert len(hub) == 0
