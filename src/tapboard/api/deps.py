"""FastAPI dependencies shared by the routers."""

from fastapi import HTTPException, Request

from tapboard.exceptions import BackingStoreError, NotFoundError, TapboardError, ValidationError
from tapboard.state import AppState


def get_state(request: Request) -> AppState:
    return request.app.state.tapboard


def http_error(e: TapboardError) -> HTTPException:
    """Map a service error to its HTTP status."""
    if isinstance(e, ValidationError):
        return HTTPException(status_code=400, detail=str(e))
    if isinstance(e, NotFoundError):
        return HTTPException(status_code=404, detail=str(e))
    if isinstance(e, BackingStoreError):
        return HTTPException(status_code=500, detail="Backing store unavailable")
    return HTTPException(status_code=500, detail=str(e))
