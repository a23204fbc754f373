"""Pydantic schemas for beers and the aggregated dataset.

Learn: Beer rows coming out of the graph carry whatever properties
the importer put on the node (ut_bid, mbcc_desc, percent, ...), so the
model allows extra fields and only declares the ones the app reads.
Both models are frozen: a Dataset is replaced wholesale on refresh,
never patched in place.
"""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict


class Session(str, Enum):
    YELLOW = "yellow"
    BLUE = "blue"
    RED = "red"
    GREEN = "green"


# Pour order at the festival; also the in-brewery sort order everywhere
SESSION_ORDER: list[str] = [s.value for s in Session]


def session_rank(session: Optional[str]) -> int:
    """Index into SESSION_ORDER; unknown sessions sort last."""
    try:
        return SESSION_ORDER.index(session)
    except ValueError:
        return len(SESSION_ORDER)


def brewery_sort_key(name: str) -> tuple[str, str]:
    """Case-insensitive brewery order, ties broken by the exact name."""
    return (name.casefold(), name)


def clamp2(value: float) -> str:
    """Two-decimal string form of a rating ("3.50")."""
    return f"{value:.2f}"


class Beer(BaseModel):
    model_config = ConfigDict(extra="allow", frozen=True)

    id: int
    name: str = ""
    brewery: Optional[str] = None
    session: Optional[str] = None
    location: Optional[str] = None
    superstyle: Optional[str] = None
    metastyle: Optional[str] = None
    percent: Optional[float] = None
    desc: Optional[str] = None
    mbcc_desc: Optional[str] = None
    ut_bid: Optional[int] = None
    ut_rating: Optional[float] = None
    ut_rating_clamped: Optional[str] = None
    live_rating: Optional[float] = None
    live_rating_clamped: Optional[str] = None
    live_rating_count: Optional[int] = None

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "Beer":
        """Build a Beer from one beer-query row.

        The row holds the beer node under "beer" plus the joined
        brewery/session/location/superstyle/metastyle names.
        """
        data = dict(row.get("beer") or {})
        for field in ("brewery", "session", "location", "superstyle", "metastyle"):
            data[field] = row.get(field)
        return cls.from_node(data)

    @classmethod
    def from_node(cls, data: dict[str, Any]) -> "Beer":
        """Build a Beer from flat properties, deriving the rounded rating."""
        data = dict(data)
        if data.get("ut_rating"):
            data["ut_rating_clamped"] = clamp2(float(data["ut_rating"]))
        return cls(**data)

    def with_live_rating(self, rating: float, count: int) -> "Beer":
        return self.model_copy(
            update={
                "live_rating": rating,
                "live_rating_clamped": clamp2(rating),
                "live_rating_count": count,
            }
        )

    def to_json(self) -> dict[str, Any]:
        # Absent live ratings stay absent on the wire
        return self.model_dump(exclude_none=True)


class Dataset(BaseModel):
    """Snapshot bundle served as /latest.json."""

    model_config = ConfigDict(frozen=True)

    beers: list[Beer]
    breweries: list[str]
    superstyles: list[str]
    metastyles: list[str]

    def to_json(self) -> dict[str, Any]:
        return {
            "beers": [b.to_json() for b in self.beers],
            "breweries": list(self.breweries),
            "superstyles": list(self.superstyles),
            "metastyles": list(self.metastyles),
        }
