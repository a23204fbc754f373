"""View and client state passed explicitly into every render.

Learn: ViewState is built per render from URL / fragment parameters
and thrown away afterwards. ClientState is the long-lived per-browser
state (saved/tasted ids, a one-shot message, the Untappd login, and a
local mirror of live ratings kept current by realtime frames).
"""

from dataclasses import dataclass, field
from typing import Any, Optional

from tapboard.events.types import RATING_CHANGED, RATINGS_UPDATE
from tapboard.schemas.beer import Beer

# Keys carried in bookmark links, in their serialized order
VIEW_KEYS = ("colour", "metastyle", "order", "tasted", "saved", "today", "mini")

_TRUE = {"1", "true", "yes", "on"}


def _flag(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in _TRUE
    return bool(value)


@dataclass
class ViewState:
    colour: Optional[str] = None
    metastyle: Optional[str] = None
    order: Optional[str] = None
    tasted: bool = False
    saved: bool = False
    today: bool = False
    mini: bool = False
    page: str = "index"
    search: Optional[str] = None

    @classmethod
    def from_params(cls, params: dict[str, Any]) -> "ViewState":
        """Build from query/fragment params; unknown keys are ignored."""
        return cls(
            colour=params.get("colour") or None,
            metastyle=params.get("metastyle") or None,
            order=params.get("order") or None,
            tasted=_flag(params.get("tasted", False)),
            saved=_flag(params.get("saved", False)),
            today=_flag(params.get("today", False)),
            mini=_flag(params.get("mini", False)),
            page=params.get("page") or "index",
            search=params.get("search") or None,
        )


@dataclass
class LiveRating:
    rating: float
    count: int


@dataclass
class ClientState:
    saved_beers: set[int] = field(default_factory=set)
    tasted_beers: set[int] = field(default_factory=set)
    msg: Optional[str] = None
    untappd_user: Optional[str] = None
    untappd_token: Optional[str] = None
    live_ratings_enabled: bool = True
    live_ratings: dict[int, LiveRating] = field(default_factory=dict)

    def take_msg(self) -> Optional[str]:
        """Return the pending message and clear it."""
        msg, self.msg = self.msg, None
        return msg

    # ─── Realtime mirror (last write wins per beer) ───────

    def apply_update(self, ratings: dict[str, dict]) -> None:
        for beer_id, entry in ratings.items():
            self.live_ratings[int(beer_id)] = LiveRating(
                rating=float(entry["rating"]), count=int(entry["count"])
            )

    def apply_rate(self, beer: int, rating: float, count: int) -> None:
        self.live_ratings[int(beer)] = LiveRating(rating=float(rating), count=int(count))

    def apply_frame(self, frame: dict[str, Any]) -> None:
        """Apply one realtime frame; unknown frame types are ignored."""
        if frame.get("type") == RATINGS_UPDATE:
            self.apply_update(frame.get("ratings") or {})
        elif frame.get("type") == RATING_CHANGED:
            self.apply_rate(frame["beer"], frame["rating"], frame["count"])

    def beerset(self, beers: list[Beer]) -> list[Beer]:
        """Beers with the local live-rating mirror laid over them."""
        if not self.live_ratings_enabled:
            return list(beers)
        out = []
        for beer in beers:
            live = self.live_ratings.get(beer.id)
            out.append(beer.with_live_rating(live.rating, live.count) if live else beer)
        return out
