"""Dataset service — assembles beers, breweries and styles for the dashboard.

Learn: One dataset fetch is:

1. Resync the rating cache from redis.
2. Fan out the four graph queries (beers, breweries, superstyles,
   metastyles) concurrently. If any of them fails the whole fetch fails
   and the other results are thrown away: no partial datasets.
3. Build Beer rows, then overlay live ratings by beer id. This happens
   after step 1 so live numbers are never older than the fetch itself.

The result is memoized for dataset_ttl_seconds (at least 120s) so
/latest.json and the CSV export don't hammer the graph. Live ratings
between refreshes reach browsers over the realtime channel instead.

Two supplementary sources:
- disk: the beer list comes from a JSON file written by an earlier
  --persist run (or `tapboard dump`), and only live ratings are refreshed.
- persist: every graph fetch is also written to that file.
"""

import asyncio
import json
import time
from pathlib import Path
from typing import Any, Callable, Optional

import structlog

from tapboard.exceptions import BackingStoreError
from tapboard.schemas.beer import Beer, Dataset
from tapboard.services.memo import Memo
from tapboard.services.rating_cache import RatingCache
from tapboard.store import queries
from tapboard.store.graph import GraphClient
from tapboard.store.kv import KeyValueStore

logger = structlog.get_logger()


def _names(rows: list[dict[str, Any]], column: str) -> list[str]:
    """Project the name property off each node row."""
    return [row[column]["name"] for row in rows]


def overlay_live_ratings(beers: list[Beer], ratings: RatingCache) -> list[Beer]:
    out = []
    for beer in beers:
        entry = ratings.get(beer.id)
        out.append(beer.with_live_rating(entry.rating, entry.count) if entry else beer)
    return out


def load_dataset_file(path: str | Path) -> Dataset:
    """Read a dataset JSON file and normalize its beer rows."""
    raw = json.loads(Path(path).read_text(encoding="utf-8"))
    beers = []
    for row in raw["beers"]:
        # Live numbers in an old dump are stale; the cache supplies fresh ones
        for stale in ("live_rating", "live_rating_clamped", "live_rating_count"):
            row.pop(stale, None)
        beers.append(Beer.from_node(row))
    return Dataset(
        beers=beers,
        breweries=raw.get("breweries", []),
        superstyles=raw.get("superstyles", []),
        metastyles=raw.get("metastyles", []),
    )


def write_dataset_file(path: str | Path, dataset: Dataset) -> None:
    Path(path).write_text(json.dumps(dataset.to_json()), encoding="utf-8")


class DatasetService:
    """Builds and memoizes the Dataset."""

    def __init__(
        self,
        graph: Optional[GraphClient],
        kv: KeyValueStore,
        ratings: RatingCache,
        *,
        ttl_seconds: float = 120,
        source: str = "graph",
        dataset_file: Optional[str] = None,
        persist: bool = False,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.graph = graph
        self.kv = kv
        self.ratings = ratings
        self.source = source
        self.dataset_file = dataset_file
        self.persist = persist
        self._memo: Memo[Dataset] = Memo(ttl_seconds=ttl_seconds, clock=clock)
        self._disk: Optional[Dataset] = None

    async def get_dataset(self, force: bool = False) -> Dataset:
        """Return the memoized dataset, fetching if stale. Raises BackingStoreError."""
        if not force:
            cached = self._memo.get()
            if cached is not None:
                return cached
        return self._memo.put(await self.fetch())

    def invalidate(self) -> None:
        """Drop the memo so the next get_dataset() refetches."""
        self._memo.clear()

    async def fetch(self) -> Dataset:
        """Build a fresh dataset, bypassing the memo."""
        log = logger.bind(source=self.source)
        try:
            await self.ratings.refresh(self.kv)
            if self.source == "disk":
                base = self._load_disk()
            else:
                base = await self._query_graph()
        except BackingStoreError as e:
            log.error("dataset.refresh_failed", error=str(e), store=e.store)
            raise

        dataset = base.model_copy(
            update={"beers": overlay_live_ratings(base.beers, self.ratings)}
        )
        log.info("dataset.refreshed", beers=len(dataset.beers), live=len(self.ratings))

        if self.persist and self.source == "graph" and self.dataset_file:
            write_dataset_file(self.dataset_file, dataset)
            log.info("dataset.persisted", path=self.dataset_file, beers=len(dataset.beers))
        return dataset

    def _load_disk(self) -> Dataset:
        if self._disk is None:
            self._disk = load_dataset_file(self.dataset_file)
        return self._disk

    async def _query_graph(self) -> Dataset:
        if self.graph is None:
            raise BackingStoreError("no graph store configured", store="graph")

        tasks = [
            asyncio.ensure_future(self.graph.run_query(q))
            for q in (queries.BEERS, queries.BREWERIES, queries.SUPERSTYLES, queries.METASTYLES)
        ]
        try:
            beer_rows, brewery_rows, superstyle_rows, metastyle_rows = await asyncio.gather(*tasks)
        except BaseException:
            # First error wins; the siblings' results are discarded
            for task in tasks:
                task.cancel()
            raise

        return Dataset(
            beers=[Beer.from_row(row) for row in beer_rows],
            breweries=_names(brewery_rows, "brewery"),
            superstyles=_names(superstyle_rows, "superstyle"),
            metastyles=_names(metastyle_rows, "metastyle"),
        )
