"""Rating cache tests — incremental means, amends, resync from redis."""

import pytest

from conftest import FakeKeyValueStore, RATING_KEYS
from tapboard.exceptions import BackingStoreError, ValidationError
from tapboard.services.rating_cache import RatingCache, parse_beer_id, parse_rating


# ═══════════════════════════════════════════════════════════
# Votes
# ═══════════════════════════════════════════════════════════


def test_new_votes_keep_arithmetic_mean():
    """Every new-voter submission moves the mean and bumps the count."""
    cache = RatingCache()
    values = [4.0, 3.0, 5.0, 2.5, 3.75]
    for v in values:
        event = cache.submit(7, v, is_new_voter=True)

    assert event.count == len(values)
    assert event.rating == pytest.approx(sum(values) / len(values))
    assert cache.get(7).count == len(values)


def test_first_vote_creates_entry_even_when_amending():
    """An amend on an unknown beer still starts it at count 1."""
    cache = RatingCache()
    event = cache.submit(3, 2.0, is_new_voter=False)
    assert (event.rating, event.count) == (2.0, 1)


def test_amend_reweights_without_changing_count():
    cache = RatingCache()
    cache.submit(1, 4.0, True)
    cache.submit(1, 2.0, True)  # mean 3.0 over 2
    event = cache.submit(1, 5.0, False)

    assert event.count == 2
    # (3.0 * 1 + 5.0) / 2
    assert event.rating == pytest.approx(4.0)


def test_amend_never_changes_count_over_many_calls():
    cache = RatingCache()
    cache.submit(9, 3.0, True)
    for v in (1.0, 5.0, 2.0):
        assert cache.submit(9, v, False).count == 1


@pytest.mark.parametrize("beer_id,value", [
    ("1", 3.0),
    (1.5, 3.0),
    (True, 3.0),
    (1, "4"),
    (1, float("nan")),
    (1, float("inf")),
])
def test_submit_rejects_bad_input(beer_id, value):
    cache = RatingCache()
    with pytest.raises(ValidationError):
        cache.submit(beer_id, value, True)
    assert len(cache) == 0


def test_snapshot_is_json_ready():
    cache = RatingCache()
    cache.submit(12, 4.0, True)
    assert cache.snapshot() == {"12": {"rating": 4.0, "count": 1}}


# ═══════════════════════════════════════════════════════════
# Resync
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_refresh_reproduces_store_and_drops_unflushed_votes():
    """Full overwrite: votes not in redis disappear, redis values win."""
    kv = FakeKeyValueStore(RATING_KEYS)
    cache = RatingCache()
    cache.submit(1, 1.0, True)
    cache.submit(99, 5.0, True)

    await cache.refresh(kv)

    assert cache.snapshot() == {
        "1": {"rating": 4.5, "count": 2},
        "3": {"rating": 2.0, "count": 1},
    }
    assert 99 not in cache


@pytest.mark.asyncio
async def test_refresh_ignores_foreign_and_broken_keys():
    kv = FakeKeyValueStore({
        "_br5_rating": "3.5",          # count missing → 1
        "_br6_rating": "4",
        "_br6_count": "0",             # clamped so amends can't divide by zero
        "_br7_count": "3",             # no rating → skipped
        "_brx_rating": "1",
        "_br8_rating": "not-a-number",
        "_snapshot_someone": "{}",
    })
    cache = RatingCache()
    await cache.refresh(kv)

    assert cache.snapshot() == {
        "5": {"rating": 3.5, "count": 1},
        "6": {"rating": 4.0, "count": 1},
    }


@pytest.mark.asyncio
async def test_refresh_failure_keeps_previous_mapping():
    kv = FakeKeyValueStore(RATING_KEYS)
    kv.fail = True
    cache = RatingCache()
    cache.submit(2, 3.0, True)

    with pytest.raises(BackingStoreError):
        await cache.refresh(kv)
    assert cache.get(2).rating == 3.0


@pytest.mark.asyncio
async def test_custom_key_prefix():
    kv = FakeKeyValueStore({"fest:4_rating": "2.5", "fest:4_count": "4", "_br1_rating": "5"})
    cache = RatingCache(key_prefix="fest:")
    await cache.refresh(kv)
    assert cache.snapshot() == {"4": {"rating": 2.5, "count": 4}}


# ═══════════════════════════════════════════════════════════
# Parsing request input
# ═══════════════════════════════════════════════════════════


def test_parse_beer_id():
    assert parse_beer_id("42") == 42
    assert parse_beer_id(" 7 ") == 7
    for bad in ("", "abc", "4.2", "-1", "1e3", "²"):
        with pytest.raises(ValidationError):
            parse_beer_id(bad)


def test_parse_rating():
    assert parse_rating("4.25") == 4.25
    assert parse_rating(" 3\n") == 3.0
    for bad in ("", "four", "nan", "inf"):
        with pytest.raises(ValidationError):
            parse_rating(bad)
