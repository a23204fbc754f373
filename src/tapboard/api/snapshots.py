"""Snapshot routes — store and fetch a user's saved/tasted blob verbatim."""

from fastapi import APIRouter, Depends, Request, Response

from tapboard.api.deps import get_state, http_error
from tapboard.exceptions import TapboardError
from tapboard.state import AppState

router = APIRouter()


@router.post("/snapshot/{user_id}")
async def put_snapshot(
    user_id: str,
    request: Request,
    state: AppState = Depends(get_state),
):
    blob = (await request.body()).decode("utf-8", errors="replace")
    try:
        await state.snapshots.put(user_id, blob)
    except TapboardError as e:
        raise http_error(e)
    return Response(status_code=200, content="OK", media_type="text/plain")


@router.get("/snapshot/{user_id}")
async def get_snapshot(user_id: str, state: AppState = Depends(get_state)):
    try:
        blob = await state.snapshots.get(user_id)
    except TapboardError as e:
        raise http_error(e)
    return Response(content=blob, media_type="text/plain")
