"""Tapboard CLI — run the server and poke at a running one.

Usage:
    tapboard serve                      # Serve from the graph store
    tapboard serve --disk beers.json    # Serve a dataset dumped earlier
    tapboard serve --persist beers.json # Serve from the graph, keep a dump fresh
    tapboard dump beers.json            # Save /latest.json from a running server
    tapboard rate 42 4.5                # Cast a vote
    tapboard rate 42 3.75 --amend       # Amend the latest vote
    tapboard export                     # Download the CSV export
    tapboard snapshot get untappd_user  # Print a stored snapshot
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import json
import os
import sys
from typing import Optional

import click
import httpx

# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------

DEFAULT_API_URL = "http://localhost:8000"


def _api_url() -> str:
    return os.environ.get("TAPBOARD_API_URL", DEFAULT_API_URL).rstrip("/")


def _client() -> httpx.AsyncClient:
    """Build an async HTTP client pointed at the tapboard server."""
    return httpx.AsyncClient(base_url=_api_url(), timeout=30.0)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _run(coro):
    """Run an async coroutine from synchronous Click handler.

    Handles nested event loops (e.g. when invoked via Click CliRunner
    inside an existing async context like tests) by offloading to a thread.
    """
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(coro)
    else:
        with concurrent.futures.ThreadPoolExecutor(max_workers=1) as pool:
            return pool.submit(asyncio.run, coro).result()


def _fail(message: str) -> None:
    click.secho(f"Error: {message}", fg="red", err=True)
    sys.exit(1)


async def _request(method: str, path: str, **kwargs) -> httpx.Response:
    async with _client() as client:
        try:
            return await client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            _fail(f"cannot reach {_api_url()}: {e}")


# ---------------------------------------------------------------------------
# CLI group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(version="0.1.0", prog_name="tapboard")
def main():
    """Tapboard — live beer list and ratings for a tasting festival."""


# ---------------------------------------------------------------------------
# tapboard serve
# ---------------------------------------------------------------------------


@main.command()
@click.option("--disk", "disk_file", type=click.Path(exists=True, dir_okay=False),
              help="Serve the dataset from this JSON file instead of the graph")
@click.option("--persist", "persist_file", type=click.Path(dir_okay=False),
              help="Write every graph fetch to this JSON file")
@click.option("--no-appcache", is_flag=True, help="Don't serve /app.cache")
@click.option("--host", default=None, help="Bind address (default from TAPBOARD_HOST)")
@click.option("--port", default=None, type=int, help="Port (default from TAPBOARD_PORT)")
def serve(disk_file: Optional[str], persist_file: Optional[str], no_appcache: bool,
          host: Optional[str], port: Optional[int]):
    """Run the dashboard server."""
    import uvicorn

    from tapboard.config import Settings

    if disk_file and persist_file:
        _fail("--disk and --persist are mutually exclusive")

    overrides: dict = {}
    if disk_file:
        overrides.update(dataset_source="disk", dataset_file=disk_file)
    if persist_file:
        overrides.update(persist_dataset=True, dataset_file=persist_file)
    if no_appcache:
        overrides["appcache_enabled"] = False
    settings = Settings(**overrides)

    from tapboard.main import create_app

    uvicorn.run(
        create_app(settings),
        host=host or settings.host,
        port=port or settings.port,
    )


# ---------------------------------------------------------------------------
# tapboard dump / export
# ---------------------------------------------------------------------------


@main.command()
@click.argument("path", type=click.Path(dir_okay=False))
def dump(path: str):
    """Save the current dataset (for serve --disk)."""
    resp = _run(_request("GET", "/latest.json"))
    if resp.status_code != 200:
        _fail(f"server answered {resp.status_code}")
    data = resp.json()
    with open(path, "w", encoding="utf-8") as fh:
        json.dump(data, fh)
    click.secho(f"Wrote {len(data.get('beers', []))} beers to {path}", fg="green")


@main.command()
@click.argument("path", required=False, type=click.Path(dir_okay=False))
@click.option("--name", default="mbcc-2018-dump-jonpacker", show_default=True,
              help="Export name configured on the server")
def export(path: Optional[str], name: str):
    """Download the CSV export (to PATH or stdout)."""
    resp = _run(_request("GET", f"/{name}.csv"))
    if resp.status_code != 200:
        _fail(f"server answered {resp.status_code}")
    if path:
        with open(path, "w", encoding="utf-8", newline="") as fh:
            fh.write(resp.text)
        click.secho(f"Wrote {path}", fg="green")
    else:
        click.echo(resp.text, nl=False)


# ---------------------------------------------------------------------------
# tapboard rate
# ---------------------------------------------------------------------------


@main.command()
@click.argument("beer_id", type=int)
@click.argument("value", type=float)
@click.option("--amend", is_flag=True, help="Amend the latest vote instead of adding one")
def rate(beer_id: int, value: float, amend: bool):
    """Submit a rating for a beer."""
    method = "PUT" if amend else "POST"
    resp = _run(_request(method, f"/rate/{beer_id}", content=str(value)))
    if resp.status_code == 400:
        _fail("rejected: beer id and rating must be numbers")
    if resp.status_code != 200:
        _fail(f"server answered {resp.status_code}")
    click.secho(f"{'Amended' if amend else 'Rated'} beer {beer_id}: {value}", fg="green")


# ---------------------------------------------------------------------------
# tapboard snapshot
# ---------------------------------------------------------------------------


@main.group()
def snapshot():
    """Read or write a user's saved/tasted snapshot."""


@snapshot.command("get")
@click.argument("user")
def snapshot_get(user: str):
    resp = _run(_request("GET", f"/snapshot/{user}"))
    if resp.status_code == 404:
        _fail(f"no snapshot for {user}")
    if resp.status_code != 200:
        _fail(f"server answered {resp.status_code}")
    click.echo(resp.text)


@snapshot.command("put")
@click.argument("user")
@click.argument("source", type=click.File("r"), default="-")
def snapshot_put(user: str, source):
    """Store SOURCE (default stdin) as USER's snapshot."""
    resp = _run(_request("POST", f"/snapshot/{user}", content=source.read()))
    if resp.status_code != 200:
        _fail(f"server answered {resp.status_code}")
    click.secho(f"Stored snapshot for {user}", fg="green")


if __name__ == "__main__":
    main()
