"""Page routes — the index shell, server-rendered list fragments, offline manifest.

Learn: /views/{view} renders the same list views the browser renders
from its URL fragment. Saved/tasted ids come in as comma-separated
query params since the server keeps no per-user state. Action views
(snapshot, unicorn, ...) only make sense with a client session, so
they are refused here.
"""

import hashlib

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import HTMLResponse, PlainTextResponse
from markupsafe import Markup

from tapboard import __version__
from tapboard.api.deps import get_state, http_error
from tapboard.exceptions import TapboardError, UnknownViewError
from tapboard.views.beer_list import sessions_today
from tapboard.views.renderer import LIST_VIEWS, RenderContext
from tapboard.views.state import ClientState
from tapboard.state import AppState

router = APIRouter()

APPCACHE_FILES = [
    "js/app/cbc.js",
    "css/cbc.css",
    "fonts/oswald-v10-latin-700.woff",
    "fonts/oswald-v10-latin-700.woff2",
    "fonts/oswald-v10-latin-regular.woff",
    "fonts/oswald-v10-latin-regular.woff2",
    "img/beer_icon_check.png",
    "img/drank_flag.png",
    "img/puff.svg",
    "img/spin.svg",
    "img/users.svg",
    "img/ut_icon_144.png",
    "img/chevron-left.svg",
    "img/search.svg",
    "img/close.svg",
]


def _ids(raw: str | None) -> set[int]:
    return {int(p) for p in (raw or "").split(",") if p.strip().isdigit()}


async def _render(state: AppState, view_name: str, params: dict) -> str:
    try:
        dataset = await state.datasets.get_dataset()
        client = ClientState(
            saved_beers=_ids(params.pop("saved_ids", None)),
            tasted_beers=_ids(params.pop("tasted_ids", None)),
        )
        ctx = RenderContext(
            beers=dataset.beers,
            client=client,
            today_sessions=sessions_today(state.settings.festival_days),
        )
        result = await state.renderer.render(view_name, params, ctx)
    except UnknownViewError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except TapboardError as e:
        raise http_error(e)
    return result.html or ""


@router.get("/", response_class=HTMLResponse)
async def index(state: AppState = Depends(get_state)):
    body = await _render(state, "index", {})
    dataset = await state.datasets.get_dataset()
    page = state.renderer.env.get_template("page.html").render(
        body=Markup(body),
        beer_count=len(dataset.beers),
        appcache=state.settings.appcache_enabled,
    )
    return HTMLResponse(page)


@router.get("/views/{view_name}", response_class=HTMLResponse)
async def view_fragment(view_name: str, request: Request, state: AppState = Depends(get_state)):
    """Render index, beerlist or session from query params."""
    try:
        view = state.renderer.view_name(view_name)
    except UnknownViewError as e:
        raise HTTPException(status_code=404, detail=str(e))
    if view not in LIST_VIEWS:
        raise HTTPException(status_code=400, detail=f"View {view_name!r} needs a client session")
    return HTMLResponse(await _render(state, view_name, dict(request.query_params)))


@router.get("/app.cache")
async def app_cache(state: AppState = Depends(get_state)):
    """Offline manifest; the dataset and CSV always go to the network."""
    if not state.settings.appcache_enabled:
        raise HTTPException(status_code=404, detail="Not found")
    digest = hashlib.sha1("\n".join(APPCACHE_FILES).encode()).hexdigest()[:12]
    manifest = "\r\n".join(
        [
            "CACHE MANIFEST",
            f"# v{__version__} {digest}",
            *APPCACHE_FILES,
            "",
            "NETWORK:",
            "latest.json",
            f"/{state.settings.csv_export_name}.csv",
            "*",
        ]
    )
    return PlainTextResponse(manifest, media_type="text/cache-manifest")
