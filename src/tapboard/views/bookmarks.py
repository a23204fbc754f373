"""Bookmark links — view settings encoded into a URL fragment.

Learn: A bookmark looks like

    #session[{&quot;colour&quot;:&quot;red&quot;,&quot;mini&quot;:true}]

i.e. the page name followed by the settings as compact JSON in
brackets, with double quotes written as &quot; so the fragment can be
dropped into an href verbatim. Links already in people's bookmarks use
exactly this shape, so it must not change.

Links are built from the current settings plus an update string of
comma-separated key=value tokens:

    key=!       delete the key
    key=!word   toggle the key as a boolean
    key=value   set the key to the string value
"""

import json
import re
from typing import Any, Optional

from tapboard.exceptions import ValidationError
from tapboard.views.state import VIEW_KEYS

_TOGGLE = re.compile(r"!\w+")

# Slot for a view key with no value yet
_UNSET = object()


def apply_updates(settings: dict[str, Any], updates: str) -> dict[str, Any]:
    """Return a new settings dict with the update tokens applied.

    Deletes and toggles apply in token order. Plain sets are merged
    last, so `colour=red` wins over a `colour=!` in the same string.

    Every view key holds its slot in VIEW_KEYS order even while unset,
    so a key set by an update lands where existing bookmarks have it.
    Keys outside VIEW_KEYS (or deleted and set again) go at the end.
    """
    result: dict[str, Any] = {key: settings.get(key, _UNSET) for key in VIEW_KEYS}
    result.update((k, v) for k, v in settings.items() if k not in result)
    sets: dict[str, Any] = {}
    for token in updates.split(","):
        if not token.strip():
            continue
        key, sep, value = token.partition("=")
        if not sep:
            raise ValidationError(f"bookmark update {token!r} is not key=value")
        key, value = key.strip(), value.strip()
        if value == "!":
            result.pop(key, None)
        elif _TOGGLE.search(value):
            current = result.get(key)
            result[key] = not (current is not _UNSET and current)
        else:
            sets[key] = value
    result.update(sets)
    return {k: v for k, v in result.items() if v is not _UNSET and v is not None}


def encode_fragment(page: str, settings: dict[str, Any]) -> str:
    body = json.dumps(
        {k: v for k, v in settings.items() if v is not None},
        separators=(",", ":"),
        ensure_ascii=False,
    )
    return "#" + page + "[" + body.replace('"', "&quot;") + "]"


def link_to_set(page: str, settings: dict[str, Any], updates: str) -> str:
    """Fragment for the current view with `updates` applied."""
    return encode_fragment(page, apply_updates(settings, updates))


_FRAGMENT = re.compile(r"^#?(?P<page>[\w-]+)(?:\[(?P<body>.*)\])?$", re.S)


def decode_fragment(fragment: str) -> tuple[str, dict[str, Any]]:
    """Parse `#page[...]` back into (page, settings)."""
    match = _FRAGMENT.match(fragment.strip())
    if not match:
        raise ValidationError(f"not a bookmark fragment: {fragment!r}")
    body: Optional[str] = match.group("body")
    if not body:
        return match.group("page"), {}
    try:
        settings = json.loads(body.replace("&quot;", '"'))
    except json.JSONDecodeError as e:
        raise ValidationError(f"bookmark settings are not valid JSON: {e}") from e
    if not isinstance(settings, dict):
        raise ValidationError("bookmark settings must be an object")
    return match.group("page"), settings


def bookmark_settings(params: dict[str, Any]) -> dict[str, Any]:
    """Pick the bookmarkable keys out of render params, unset ones left out."""
    return {key: params[key] for key in VIEW_KEYS if params.get(key) is not None}
