"""Renderer — maps view names to render strategies.

Learn: Views form a closed set (ViewName). Each name has exactly one
handler in Renderer._handlers; any other name raises UnknownViewError
instead of silently rendering nothing.

Two kinds of views:
- list views (index, beerlist, session) return HTML;
- action views (snapshot, unicorn, ut_logout, ...) change ClientState
  or call ClientActions, then redirect to #index. Failures are caught
  here and stored as a one-shot ClientState.msg, which the next index
  render shows once and clears.

Everything a handler touches arrives in the RenderContext; nothing is
read from module globals.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Optional, Protocol

import jinja2
import structlog
from markupsafe import Markup

from tapboard.exceptions import TapboardError, UnknownViewError, ValidationError
from tapboard.schemas.beer import Beer
from tapboard.views.beer_list import compute_view
from tapboard.views.bookmarks import bookmark_settings, link_to_set
from tapboard.views.state import ClientState, ViewState

logger = structlog.get_logger()

INDEX_FRAGMENT = "#index"

RATING_SCALE = 5


class ViewName(str, Enum):
    INDEX = "index"
    BEERLIST = "beerlist"
    SESSION = "session"
    TOGGLE_LIVE_RATINGS = "toggle_live_ratings"
    ACCESS_TOKEN = "access_token"
    UNICORN = "unicorn"
    SNAPSHOT = "snapshot"
    LOADSNAPSHOT = "loadsnapshot"
    UT_LOGOUT = "ut_logout"
    LOAD = "load"
    LOADB = "loadb"


LIST_VIEWS = frozenset({ViewName.INDEX, ViewName.BEERLIST, ViewName.SESSION})


class ClientActions(Protocol):
    async def save_untappd_token(self, params: dict[str, Any]) -> None: ...

    async def download_checkins(self) -> int: ...

    async def take_snapshot(self) -> None: ...

    async def load_snapshot(self) -> None: ...

    def import_snapshot_from_string(self, blob: str) -> None: ...


@dataclass
class RenderContext:
    beers: list[Beer]
    client: ClientState = field(default_factory=ClientState)
    actions: Optional[ClientActions] = None
    confirm: Callable[[str], bool] = lambda message: True
    today_sessions: Optional[set[str]] = None


@dataclass
class RenderResult:
    html: Optional[str] = None
    redirect: Optional[str] = None


def rating_as_percent(rating: Optional[float]) -> float:
    """Rating on the fixed 0-5 scale as a bar width."""
    if rating is None:
        return 0.0
    return rating / RATING_SCALE * 100


def create_environment() -> jinja2.Environment:
    env = jinja2.Environment(
        loader=jinja2.PackageLoader("tapboard", "templates"),
        autoescape=jinja2.select_autoescape(),
    )
    env.globals["rating_as_percent"] = rating_as_percent
    return env


Handler = Callable[[dict[str, Any], RenderContext], Awaitable[RenderResult]]


class Renderer:
    """Renders one view at a time into HTML or a redirect."""

    def __init__(
        self,
        env: jinja2.Environment,
        *,
        untappd_client_id: str = "",
        untappd_redirect_url: str = "",
        globals: Optional[dict[str, Any]] = None,
    ):
        self.env = env
        self.untappd_client_id = untappd_client_id
        self.untappd_redirect_url = untappd_redirect_url
        self.globals = dict(globals or {})
        self._listeners: list[Callable[[ViewName, RenderResult], None]] = []
        self._handlers: dict[ViewName, Handler] = {
            ViewName.INDEX: self._render_index,
            ViewName.BEERLIST: self._render_beerlist,
            ViewName.SESSION: self._render_session,
            ViewName.TOGGLE_LIVE_RATINGS: self._toggle_live_ratings,
            ViewName.ACCESS_TOKEN: self._access_token,
            ViewName.UNICORN: self._unicorn,
            ViewName.SNAPSHOT: self._snapshot,
            ViewName.LOADSNAPSHOT: self._load_snapshot,
            ViewName.UT_LOGOUT: self._ut_logout,
            ViewName.LOAD: self._load,
            ViewName.LOADB: self._loadb,
        }

    @staticmethod
    def view_name(name: str) -> ViewName:
        try:
            return ViewName(name)
        except ValueError:
            raise UnknownViewError(name) from None

    def can_render(self, name: str) -> bool:
        try:
            return self.view_name(name) in self._handlers
        except UnknownViewError:
            return False

    def on_render(self, listener: Callable[[ViewName, RenderResult], None]) -> None:
        self._listeners.append(listener)

    async def render(self, name: str, params: dict[str, Any], ctx: RenderContext) -> RenderResult:
        """Render a view. Raises UnknownViewError for names outside ViewName."""
        view = self.view_name(name)
        opts = {**params, **self.globals}
        page = opts.get("page") or view.value
        settings = bookmark_settings(opts)
        opts["tset"] = lambda updates: Markup(link_to_set(page, settings, updates))
        opts["link"] = lambda target, updates: Markup(link_to_set(target, settings, updates))

        result = await self._handlers[view](opts, ctx)
        for listener in self._listeners:
            listener(view, result)
        return result

    def _template(self, name: str, opts: dict[str, Any]) -> str:
        return self.env.get_template(name).render(**opts)

    def _list_page(self, opts: dict[str, Any], ctx: RenderContext, **extra: Any) -> str:
        if not ctx.beers:
            # Dataset not fetched yet
            return self._template("loading.html", opts)
        view = ViewState.from_params(opts)
        listing = compute_view(ctx.client.beerset(ctx.beers), view, ctx.client, ctx.today_sessions)
        return self._template(
            "beerlist.html",
            {
                **opts,
                **extra,
                "view": view,
                "breweries": listing.breweries,
                "beer_count": listing.beer_count,
                "live_ratings": ctx.client.live_ratings_enabled,
            },
        )

    # ─── List views ───────────────────────────────────────

    async def _render_session(self, opts, ctx) -> RenderResult:
        if not opts.get("colour"):
            return RenderResult()
        title = f"{opts['colour']} session"
        return RenderResult(html=self._list_page(opts, ctx, typeclass=title, title=title))

    async def _render_beerlist(self, opts, ctx) -> RenderResult:
        opts = {**opts, "colour": None}
        return RenderResult(
            html=self._list_page(opts, ctx, typeclass="beer-list", title="All Beers")
        )

    async def _render_index(self, opts, ctx) -> RenderResult:
        opts = {
            **opts,
            "msg": ctx.client.take_msg(),
            "untappd_user": ctx.client.untappd_user,
            "untappd_redir_url": self.untappd_redirect_url,
            "untappd_cid": self.untappd_client_id,
        }
        return RenderResult(html=self._template("index.html", opts))

    # ─── Action views ─────────────────────────────────────

    @staticmethod
    def _actions(ctx: RenderContext) -> ClientActions:
        if ctx.actions is None:
            raise ValidationError("this view needs a client session")
        return ctx.actions

    async def _toggle_live_ratings(self, opts, ctx) -> RenderResult:
        ctx.client.live_ratings_enabled = not ctx.client.live_ratings_enabled
        return RenderResult(redirect=INDEX_FRAGMENT)

    async def _access_token(self, opts, ctx) -> RenderResult:
        actions = self._actions(ctx)
        try:
            await actions.save_untappd_token(opts)
        except TapboardError as e:
            logger.warning("client.token_failed", error=str(e))
            ctx.client.msg = "Untappd authentication failed 😨"
        return RenderResult(redirect=INDEX_FRAGMENT)

    async def _unicorn(self, opts, ctx) -> RenderResult:
        actions = self._actions(ctx)
        try:
            count = await actions.download_checkins()
            ctx.client.msg = f"Marked {count} beers as checked-in on untappd"
        except TapboardError as e:
            ctx.client.msg = str(e)
        return RenderResult(redirect=INDEX_FRAGMENT)

    async def _snapshot(self, opts, ctx) -> RenderResult:
        actions = self._actions(ctx)
        try:
            await actions.take_snapshot()
            ctx.client.msg = "Snapshot saved!"
        except TapboardError as e:
            ctx.client.msg = f"Snapshot failed 😱 - {e}"
        return RenderResult(redirect=INDEX_FRAGMENT)

    async def _load_snapshot(self, opts, ctx) -> RenderResult:
        actions = self._actions(ctx)
        if not ctx.confirm(
            "Load snapshot? This will overwrite any existing stars/checks/ratings "
            "with data from the snapshot"
        ):
            return RenderResult(redirect=INDEX_FRAGMENT)
        try:
            await actions.load_snapshot()
        except TapboardError as e:
            ctx.client.msg = f"Couldn't load snapshot 😱 - {e}"
        return RenderResult(redirect=INDEX_FRAGMENT)

    async def _ut_logout(self, opts, ctx) -> RenderResult:
        ctx.client.untappd_user = None
        ctx.client.untappd_token = None
        return RenderResult(redirect=INDEX_FRAGMENT)

    async def _load(self, opts, ctx) -> RenderResult:
        data = opts.get("data")
        if not data:
            return await self._render_index(opts, ctx)
        ctx.client.saved_beers = _id_list(data.get("saved", ""))
        ctx.client.tasted_beers = _id_list(data.get("tasted", ""))
        ctx.client.msg = (
            f"{len(ctx.client.saved_beers)} saved, "
            f"{len(ctx.client.tasted_beers)} tasted beers loaded"
        )
        return RenderResult(redirect=INDEX_FRAGMENT)

    async def _loadb(self, opts, ctx) -> RenderResult:
        blob = opts.get("d")
        if not blob:
            return await self._render_index(opts, ctx)
        try:
            self._actions(ctx).import_snapshot_from_string(blob)
        except TapboardError as e:
            ctx.client.msg = f"Couldn't load snapshot 😱 - {e}"
        return RenderResult(redirect=INDEX_FRAGMENT)


def _id_list(raw: str) -> set[int]:
    """Parse "1,,2" into {1, 2}; blanks and non-numeric tokens are dropped."""
    ids = set()
    for part in str(raw).split(","):
        part = part.strip()
        if part.isascii() and part.isdigit():
            ids.add(int(part))
    return ids
