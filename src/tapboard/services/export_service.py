"""CSV export of the full beer list.

Learn: Rows go brewery by brewery (alphabetical), and within a brewery
by festival session order (yellow, blue, red, green). The rendered CSV
text is memoized on its own clock, separate from the dataset memo, so
a burst of downloads costs one render.
"""

import csv
import io
import time
from typing import Callable

from tapboard.schemas.beer import Dataset, brewery_sort_key, session_rank
from tapboard.services.dataset_service import DatasetService
from tapboard.services.memo import Memo

CSV_HEADER = [
    "brewery",
    "session",
    "beer",
    "abv",
    "supplied style",
    "untappd style",
    "metastyle",
    "untappd rating",
    "description",
    "untappd link",
]

UNTAPPD_BEER_URL = "https://untappd.com/b/_/{bid}"


def _cell(value) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        # 8.0 prints as "8", the way the browser shows it
        return str(int(value))
    return str(value)


def export_rows(dataset: Dataset) -> list[list[str]]:
    rows = []
    for brewery in sorted(dataset.breweries, key=brewery_sort_key):
        beers = [b for b in dataset.beers if b.brewery == brewery]
        beers.sort(key=lambda b: session_rank(b.session))
        for beer in beers:
            rows.append([
                _cell(beer.brewery),
                _cell(beer.session),
                beer.name,
                _cell(beer.percent),
                _cell(beer.mbcc_desc),
                _cell(beer.superstyle),
                _cell(beer.metastyle),
                _cell(beer.ut_rating),
                _cell(beer.desc),
                UNTAPPD_BEER_URL.format(bid=_cell(beer.ut_bid)),
            ])
    return rows


def render_csv(dataset: Dataset) -> str:
    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n")
    writer.writerow(CSV_HEADER)
    writer.writerows(export_rows(dataset))
    return buf.getvalue()


class ExportService:
    """Serves the CSV export with its own short-lived memo."""

    def __init__(
        self,
        datasets: DatasetService,
        *,
        ttl_seconds: float = 120,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.datasets = datasets
        self._memo: Memo[str] = Memo(ttl_seconds=ttl_seconds, clock=clock)

    async def csv(self) -> str:
        """Raises BackingStoreError when a refetch is needed and fails."""
        cached = self._memo.get()
        if cached is not None:
            return cached
        dataset = await self.datasets.get_dataset()
        return self._memo.put(render_csv(dataset))
