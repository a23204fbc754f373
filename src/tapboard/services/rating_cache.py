"""Rating cache — live on-site ratings, mirrored from redis.

Learn: The cache maps beer id → (running mean, vote count). Two things
touch it:

1. refresh() — full resync from redis. Every `<prefix><id>_rating` and
   `<prefix><id>_count` key is read and the mapping is rebuilt from
   scratch. Anything submitted since the last external write to redis
   is discarded; last refresh wins.
2. submit() — one vote. The mean is updated incrementally:

       new_count  = count + 1 if new voter else count
       new_rating = (rating * (new_count - 1) + value) / new_count

   An amend (new voter = False) reweights the latest contribution
   without changing the count.

Nothing is written back to redis from here. Persisting votes is someone
else's job, so a restart loses ratings submitted since the last
external write.

The cache is owned by AppState and injected into the routes, the
dataset service and the broadcaster.
"""

import math
import re
from dataclasses import dataclass
from numbers import Real
from typing import Optional

import structlog

from tapboard.exceptions import ValidationError
from tapboard.schemas.rating import RateEvent
from tapboard.store.kv import KeyValueStore

logger = structlog.get_logger()


@dataclass
class RatingEntry:
    rating: float
    count: int

    def to_json(self) -> dict:
        return {"rating": self.rating, "count": self.count}


class RatingCache:
    """Process-scoped mapping of beer id to live rating."""

    def __init__(self, key_prefix: str = "_br"):
        self.key_prefix = key_prefix
        self._entries: dict[int, RatingEntry] = {}
        self._key_re = re.compile(rf"^{re.escape(key_prefix)}(\d+)_(rating|count)$")

    # ─── Reads ────────────────────────────────────────────

    def get(self, beer_id: int) -> Optional[RatingEntry]:
        return self._entries.get(beer_id)

    def __contains__(self, beer_id: int) -> bool:
        return beer_id in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def snapshot(self) -> dict[str, dict]:
        """JSON-ready copy of the whole mapping (keys are strings)."""
        return {str(beer_id): e.to_json() for beer_id, e in self._entries.items()}

    # ─── Resync ───────────────────────────────────────────

    async def refresh(self, store: KeyValueStore) -> None:
        """Rebuild the mapping from redis. Raises BackingStoreError."""
        keys = await store.keys(f"{self.key_prefix}*")
        values = await store.mget(keys)

        fields: dict[int, dict[str, float]] = {}
        for key, raw in zip(keys, values):
            match = self._key_re.match(key)
            if not match or raw is None:
                continue
            try:
                value = float(raw)
            except ValueError:
                logger.warning("ratings.bad_value", key=key, value=raw)
                continue
            fields.setdefault(int(match.group(1)), {})[match.group(2)] = value

        entries: dict[int, RatingEntry] = {}
        for beer_id, f in fields.items():
            if "rating" not in f:
                continue
            # A stored count of 0 would make the next amend divide by zero
            count = max(1, int(f.get("count", 1)))
            entries[beer_id] = RatingEntry(rating=f["rating"], count=count)

        self._entries = entries
        logger.info("ratings.refreshed", beers=len(entries))

    # ─── Votes ────────────────────────────────────────────

    def submit(self, beer_id: int, value: float, is_new_voter: bool) -> RateEvent:
        """Apply one vote and return the event to broadcast."""
        if isinstance(beer_id, bool) or not isinstance(beer_id, int):
            raise ValidationError(f"beer id must be an integer, got {beer_id!r}")
        if isinstance(value, bool) or not isinstance(value, Real) or not math.isfinite(value):
            raise ValidationError(f"rating must be a number, got {value!r}")

        entry = self._entries.get(beer_id)
        if entry is None:
            entry = self._entries[beer_id] = RatingEntry(rating=float(value), count=1)
        else:
            new_count = entry.count + 1 if is_new_voter else entry.count
            entry.rating = (entry.rating * (new_count - 1) + value) / new_count
            entry.count = new_count

        logger.info(
            "ratings.submitted",
            beer=beer_id,
            rating=entry.rating,
            count=entry.count,
            new_voter=is_new_voter,
        )
        return RateEvent(beer=beer_id, rating=entry.rating, count=entry.count)


def parse_beer_id(raw: str) -> int:
    """Parse a beer id from a URL segment. Raises ValidationError."""
    text = raw.strip()
    if not (text.isascii() and text.isdigit()):
        raise ValidationError(f"beer id must be an integer, got {raw!r}")
    return int(text)


def parse_rating(raw: str) -> float:
    """Parse a rating from a raw request body. Raises ValidationError."""
    try:
        value = float(raw.strip())
    except ValueError:
        raise ValidationError(f"rating must be a number, got {raw!r}") from None
    if not math.isfinite(value):
        raise ValidationError(f"rating must be finite, got {raw!r}")
    return value
