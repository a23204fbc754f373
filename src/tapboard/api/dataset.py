"""Dataset routes — /latest.json and the CSV export.

Learn: Both are memoized for dataset_ttl_seconds. A graph or redis
failure while refreshing is a 500 with no body; a stale memo is never
served in its place.
"""

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse, Response

from tapboard.api.deps import get_state, http_error
from tapboard.exceptions import BackingStoreError
from tapboard.state import AppState

router = APIRouter()


@router.get("/latest.json")
async def latest(state: AppState = Depends(get_state)):
    """Current dataset: beers, breweries, superstyles, metastyles."""
    try:
        dataset = await state.datasets.get_dataset()
    except BackingStoreError as e:
        raise http_error(e)
    return JSONResponse(dataset.to_json())


@router.get("/{export_name}.csv")
async def export_csv(export_name: str, state: AppState = Depends(get_state)):
    """Full beer list as CSV, brewery then session order."""
    if export_name != state.settings.csv_export_name:
        raise HTTPException(status_code=404, detail="Not found")
    try:
        body = await state.exports.csv()
    except BackingStoreError as e:
        raise http_error(e)
    return Response(content=body, media_type="text/csv")
