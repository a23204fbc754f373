"""Health check endpoint.

Learn: Simple GET endpoint that verifies the server is running
and its backing stores (Redis, Neo4j) are reachable.
"""

from fastapi import APIRouter, Depends

from tapboard import __version__
from tapboard.api.deps import get_state
from tapboard.exceptions import BackingStoreError
from tapboard.state import AppState

router = APIRouter()


@router.get("/health")
async def health_check(state: AppState = Depends(get_state)):
    """Check server health and dependency connectivity."""
    checks = {"server": "ok", "version": __version__}

    try:
        await state.kv.ping()
        checks["redis"] = "ok"
    except BackingStoreError as e:
        checks["redis"] = f"error: {e}"

    if state.graph is not None:
        try:
            await state.graph.ping()
            checks["graph"] = "ok"
        except BackingStoreError as e:
            checks["graph"] = f"error: {e}"

    status = "healthy" if all(
        v == "ok" for k, v in checks.items() if k != "version"
    ) else "degraded"

    return {"status": status, **checks, "subscribers": len(state.broadcaster)}
