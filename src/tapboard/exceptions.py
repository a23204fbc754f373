"""Exception hierarchy for tapboard.

Learn: Services raise these; the API layer maps them to status codes
(ValidationError → 400, NotFoundError → 404, BackingStoreError → 500).
Nothing is retried — every error is terminal for its request.
"""

from __future__ import annotations


class TapboardError(Exception):
    """Base exception for all tapboard errors."""


class ValidationError(TapboardError):
    """Non-numeric beer id or rating, or a malformed bookmark update."""


class BackingStoreError(TapboardError):
    """Graph query or key/value store failure."""

    def __init__(self, message: str, *, store: str = "") -> None:
        self.store = store
        super().__init__(message)


class NotFoundError(TapboardError):
    """Requested record (e.g. a snapshot) does not exist."""


class UnknownViewError(TapboardError):
    """Render requested for a view name outside the known set."""

    def __init__(self, view_name: str) -> None:
        self.view_name = view_name
        super().__init__(f"Unknown view: {view_name!r}")


class ClientActionError(TapboardError):
    """A client-side action (token save, check-in download, snapshot) failed."""
