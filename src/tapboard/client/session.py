"""Client session — the browser-side half of the dashboard, in Python.

Learn: ClientSession owns a ClientState and talks to two HTTP APIs:
- the tapboard server (dataset, snapshots) via httpx
- Untappd v4 (login check, the user's distinct beers) via httpx

It implements the ClientActions protocol the renderer's action views
call. Every failure is raised as ClientActionError so the renderer can
turn it into a one-shot message.

Snapshot strings are JSON: {"saved": [ids...], "tasted": [ids...]}.
The server stores them without looking inside.
"""

import json
from typing import Any, Callable, Optional

import httpx
import structlog

from tapboard.exceptions import ClientActionError
from tapboard.schemas.beer import Dataset
from tapboard.views.renderer import RenderContext
from tapboard.views.state import ClientState

logger = structlog.get_logger()

UNTAPPD_API_URL = "https://api.untappd.com/v4"
CHECKIN_PAGE_SIZE = 50


def export_snapshot(state: ClientState) -> str:
    return json.dumps(
        {"saved": sorted(state.saved_beers), "tasted": sorted(state.tasted_beers)},
        separators=(",", ":"),
    )


def import_snapshot(state: ClientState, blob: str) -> None:
    """Replace saved/tasted ids with the snapshot's. Raises ClientActionError."""
    try:
        data = json.loads(blob)
        saved = {int(i) for i in data.get("saved", [])}
        tasted = {int(i) for i in data.get("tasted", [])}
    except (ValueError, TypeError, AttributeError) as e:
        raise ClientActionError(f"snapshot is unreadable: {e}") from e
    state.saved_beers = saved
    state.tasted_beers = tasted
    state.msg = f"{len(saved)} saved, {len(tasted)} tasted beers loaded"


class ClientSession:
    """Dashboard API + Untappd client bound to one ClientState."""

    def __init__(
        self,
        base_url: str,
        state: Optional[ClientState] = None,
        *,
        http: Optional[httpx.AsyncClient] = None,
        untappd: Optional[httpx.AsyncClient] = None,
    ):
        self.state = state or ClientState()
        self.dataset: Optional[Dataset] = None
        self._http = http or httpx.AsyncClient(base_url=base_url.rstrip("/"), timeout=30.0)
        self._untappd = untappd or httpx.AsyncClient(base_url=UNTAPPD_API_URL, timeout=30.0)

    async def aclose(self) -> None:
        await self._http.aclose()
        await self._untappd.aclose()

    def context(self, confirm: Callable[[str], bool] = lambda message: True) -> RenderContext:
        beers = self.dataset.beers if self.dataset else []
        return RenderContext(beers=beers, client=self.state, actions=self, confirm=confirm)

    # ─── Dashboard API ────────────────────────────────────

    async def fetch_dataset(self) -> Dataset:
        try:
            resp = await self._http.get("/latest.json")
            resp.raise_for_status()
        except httpx.HTTPError as e:
            raise ClientActionError(f"couldn't fetch beers: {e}") from e
        self.dataset = Dataset.model_validate(resp.json())
        return self.dataset

    def _require_user(self) -> str:
        if not self.state.untappd_user:
            raise ClientActionError("log in with Untappd first")
        return self.state.untappd_user

    async def take_snapshot(self) -> None:
        user = self._require_user()
        try:
            resp = await self._http.post(f"/snapshot/{user}", content=export_snapshot(self.state))
            resp.raise_for_status()
        except httpx.HTTPError as e:
            raise ClientActionError(str(e)) from e
        logger.info("client.snapshot_saved", user=user)

    async def load_snapshot(self) -> None:
        user = self._require_user()
        try:
            resp = await self._http.get(f"/snapshot/{user}")
        except httpx.HTTPError as e:
            raise ClientActionError(str(e)) from e
        if resp.status_code == 404:
            raise ClientActionError("no snapshot saved yet")
        if resp.is_error:
            raise ClientActionError(f"server answered {resp.status_code}")
        import_snapshot(self.state, resp.text)

    def export_snapshot_string(self) -> str:
        return export_snapshot(self.state)

    def import_snapshot_from_string(self, blob: str) -> None:
        import_snapshot(self.state, blob)

    # ─── Untappd ──────────────────────────────────────────

    async def _untappd_get(self, path: str, **params: Any) -> dict:
        params["access_token"] = self.state.untappd_token
        try:
            resp = await self._untappd.get(path, params=params)
            resp.raise_for_status()
            return resp.json()["response"]
        except (httpx.HTTPError, ValueError, KeyError) as e:
            raise ClientActionError(f"Untappd request failed: {e}") from e

    async def save_untappd_token(self, params: dict[str, Any]) -> None:
        token = params.get("access_token")
        if not token:
            raise ClientActionError("no access token in redirect")
        self.state.untappd_token = token
        try:
            info = await self._untappd_get("/user/info", compact="true")
            self.state.untappd_user = info["user"]["user_name"]
        except (ClientActionError, KeyError, TypeError):
            self.state.untappd_token = None
            raise ClientActionError("Untappd rejected the access token") from None
        logger.info("client.untappd_login", user=self.state.untappd_user)

    async def download_checkins(self) -> int:
        """Mark every beer the user has checked in as tasted. Returns the count."""
        user = self._require_user()
        by_bid = {
            beer.ut_bid: beer.id
            for beer in (self.dataset.beers if self.dataset else [])
            if beer.ut_bid is not None
        }

        bids: set[int] = set()
        offset = 0
        while True:
            page = await self._untappd_get(
                f"/user/beers/{user}", limit=CHECKIN_PAGE_SIZE, offset=offset
            )
            items = (page.get("beers") or {}).get("items") or []
            bids.update(item["beer"]["bid"] for item in items)
            if len(items) < CHECKIN_PAGE_SIZE:
                break
            offset += len(items)

        marked = {by_bid[bid] for bid in bids if bid in by_bid}
        self.state.tasted_beers |= marked
        logger.info("client.checkins_marked", user=user, checkins=len(bids), marked=len(marked))
        return len(marked)
