"""Test fixtures — the app wired to in-memory stand-ins for Neo4j and Redis.

Learn: AppState takes its stores as constructor arguments, so tests
build one around FakeGraph / FakeKeyValueStore and hand it to
create_app(). The lifespan sees a prebuilt state and skips connecting
to real backends. httpx's ASGITransport then drives the app in-process.
"""

import fnmatch
from typing import Optional

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from tapboard.config import Settings
from tapboard.exceptions import BackingStoreError
from tapboard.main import create_app
from tapboard.state import AppState
from tapboard.store import queries


# ─── Fixture data ─────────────────────────────────────────

BEER_ROWS = [
    {
        "beer": {"id": 1, "name": "Sunrise IPA", "percent": 6.5, "ut_rating": 3.876,
                 "ut_bid": 101, "mbcc_desc": "West coast IPA", "desc": "Piney"},
        "brewery": "Alpha Brewing", "session": "blue", "location": "Copenhagen",
        "superstyle": "IPA", "metastyle": "Hoppy",
    },
    {
        "beer": {"id": 2, "name": "Morning Stout", "percent": 11.0, "ut_rating": 4.2,
                 "ut_bid": 102, "mbcc_desc": "Coffee imperial stout"},
        "brewery": "Alpha Brewing", "session": "yellow", "location": "Copenhagen",
        "superstyle": "Imperial Stout", "metastyle": "Dark",
    },
    {
        "beer": {"id": 3, "name": "Zesty Sour", "percent": 4.5, "ut_rating": 4.1,
                 "ut_bid": 103, "mbcc_desc": "Passion fruit gose"},
        "brewery": "Bravo Beer", "session": "red", "location": "Oslo",
        "superstyle": "Gose", "metastyle": "Sour",
    },
    {
        "beer": {"id": 4, "name": "Night Porter", "percent": 7.0, "ut_bid": 104},
        "brewery": "Bravo Beer", "session": "green", "location": "Oslo",
        "superstyle": "Porter", "metastyle": "Dark",
    },
    {
        "beer": {"id": 5, "name": "Blue Lager", "percent": 5.0, "ut_rating": 3.2,
                 "ut_bid": 105, "mbcc_desc": "Crisp pils"},
        "brewery": "Charlie & Sons", "session": "blue", "location": "Portland",
        "superstyle": "Pilsner", "metastyle": "Light",
    },
]

QUERY_ROWS = {
    queries.BEERS: BEER_ROWS,
    queries.BREWERIES: [
        {"brewery": {"name": "Charlie & Sons"}},
        {"brewery": {"name": "Alpha Brewing"}},
        {"brewery": {"name": "Bravo Beer"}},
    ],
    queries.SUPERSTYLES: [
        {"superstyle": {"name": n}}
        for n in ("IPA", "Imperial Stout", "Gose", "Porter", "Pilsner")
    ],
    queries.METASTYLES: [
        {"metastyle": {"name": n}} for n in ("Hoppy", "Dark", "Sour", "Light")
    ],
}

# Beer 1 has two votes averaging 4.5; beer 3 one vote of 2
RATING_KEYS = {
    "_br1_rating": "4.5",
    "_br1_count": "2",
    "_br3_rating": "2",
    "_br3_count": "1",
}


# ─── Fakes ────────────────────────────────────────────────


class FakeGraph:
    """Answers the four aggregation queries from QUERY_ROWS."""

    def __init__(self, rows: Optional[dict] = None):
        self.rows = dict(QUERY_ROWS if rows is None else rows)
        self.fail_on: set[str] = set()
        self.calls: list[str] = []

    async def run_query(self, statement, parameters=None):
        self.calls.append(statement)
        if statement in self.fail_on:
            raise BackingStoreError("graph is down", store="graph")
        return [dict(r) for r in self.rows.get(statement, [])]

    async def ping(self):
        if self.fail_on:
            raise BackingStoreError("graph is down", store="graph")
        return True

    async def aclose(self):
        pass


class FakeKeyValueStore:
    """Dict-backed KeyValueStore."""

    def __init__(self, data: Optional[dict] = None):
        self.data: dict[str, str] = dict(data or {})
        self.fail = False

    def _check(self):
        if self.fail:
            raise BackingStoreError("redis is down", store="redis")

    async def keys(self, pattern):
        self._check()
        return [k for k in self.data if fnmatch.fnmatchcase(k, pattern)]

    async def mget(self, keys):
        self._check()
        return [self.data.get(k) for k in keys]

    async def get(self, key):
        self._check()
        return self.data.get(key)

    async def set(self, key, value):
        self._check()
        self.data[key] = value

    async def ping(self):
        self._check()
        return True


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


# ─── Fixtures ─────────────────────────────────────────────


@pytest.fixture()
def settings():
    return Settings(
        environment="test",
        festival_days={"2018-05-11": ["yellow", "blue"], "2018-05-12": ["red", "green"]},
    )


@pytest.fixture()
def kv():
    return FakeKeyValueStore(RATING_KEYS)


@pytest.fixture()
def graph():
    return FakeGraph()


@pytest.fixture()
def state(settings, kv, graph):
    return AppState.build(settings, kv, graph)


@pytest.fixture()
def app(settings, state):
    return create_app(settings, state)


@pytest_asyncio.fixture()
async def client(app):
    """HTTP client driving the app in-process."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
