"""Beer list computation — filter, group by brewery, sort.

Learn: compute_view() is the heart of every list page:

1. Filter: session colour, metastyle, free-text search, "saved only",
   "hide tasted", "poured today".
2. Group the survivors by brewery.
3. Order breweries with the comparator named by view.order
   (alphabetical unless told otherwise).
4. Inside a brewery, order beers by festival session
   (yellow, blue, red, green; anything else last).
"""

from dataclasses import dataclass
from datetime import date
from typing import Callable, Iterable, Optional

from tapboard.schemas.beer import Beer, brewery_sort_key, session_rank
from tapboard.views.state import ClientState, ViewState


@dataclass
class ListedBeer:
    beer: Beer
    saved: bool = False
    tasted: bool = False


@dataclass
class BreweryGroup:
    name: str
    beers: list[ListedBeer]


@dataclass
class BeerListView:
    breweries: list[BreweryGroup]
    beer_count: int


def _best(values: Iterable[Optional[float]]) -> float:
    return max((v for v in values if v is not None), default=-1.0)


# view.order → sort key over a brewery group
BREWERY_ORDERS: dict[str, Callable[[BreweryGroup], tuple]] = {
    "brewery": lambda g: brewery_sort_key(g.name),
    "rating": lambda g: (-_best(b.beer.ut_rating for b in g.beers), *brewery_sort_key(g.name)),
    "live": lambda g: (-_best(b.beer.live_rating for b in g.beers), *brewery_sort_key(g.name)),
}
DEFAULT_ORDER = "brewery"

_SEARCH_FIELDS = ("name", "brewery", "superstyle", "metastyle", "mbcc_desc")


def matches_search(beer: Beer, text: str) -> bool:
    needle = text.casefold()
    return any(
        needle in (getattr(beer, f) or "").casefold() for f in _SEARCH_FIELDS
    )


def sessions_today(festival_days: dict[str, list[str]], today: Optional[date] = None) -> Optional[set[str]]:
    """Sessions poured today, or None outside the festival."""
    sessions = festival_days.get((today or date.today()).isoformat())
    return set(sessions) if sessions is not None else None


def compute_view(
    beers: list[Beer],
    view: ViewState,
    client: Optional[ClientState] = None,
    today_sessions: Optional[set[str]] = None,
) -> BeerListView:
    client = client or ClientState()

    def keep(beer: Beer) -> bool:
        if view.colour and beer.session != view.colour:
            return False
        if view.metastyle and beer.metastyle != view.metastyle:
            return False
        if view.search and not matches_search(beer, view.search):
            return False
        if view.saved and beer.id not in client.saved_beers:
            return False
        if view.tasted and beer.id in client.tasted_beers:
            return False
        if view.today and today_sessions is not None and beer.session not in today_sessions:
            return False
        return True

    groups: dict[str, list[ListedBeer]] = {}
    for beer in beers:
        if not keep(beer):
            continue
        groups.setdefault(beer.brewery or "", []).append(
            ListedBeer(
                beer=beer,
                saved=beer.id in client.saved_beers,
                tasted=beer.id in client.tasted_beers,
            )
        )

    breweries = [
        BreweryGroup(name=name, beers=sorted(listed, key=lambda b: session_rank(b.beer.session)))
        for name, listed in groups.items()
    ]
    breweries.sort(key=BREWERY_ORDERS.get(view.order or DEFAULT_ORDER, BREWERY_ORDERS[DEFAULT_ORDER]))

    return BeerListView(
        breweries=breweries,
        beer_count=sum(len(g.beers) for g in breweries),
    )
