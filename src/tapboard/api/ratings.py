"""Rating routes — live votes from the festival floor.

Learn: The body is the raw rating as text ("4.25"), not JSON.
POST adds a new vote (count + 1); PUT amends the caller's latest vote
(count unchanged). The 200 goes out first and the rate frame is
broadcast from a background task after the response, so a slow
subscriber never delays the voter.
"""

from fastapi import APIRouter, BackgroundTasks, Depends, Request, Response

from tapboard.api.deps import get_state, http_error
from tapboard.exceptions import ValidationError
from tapboard.services.rating_cache import parse_beer_id, parse_rating
from tapboard.state import AppState

router = APIRouter()


async def _rate(
    beer_id: str,
    request: Request,
    background: BackgroundTasks,
    state: AppState,
    is_new_voter: bool,
) -> Response:
    try:
        body = (await request.body()).decode("utf-8", errors="replace")
        event = state.ratings.submit(parse_beer_id(beer_id), parse_rating(body), is_new_voter)
    except ValidationError as e:
        raise http_error(e)

    background.add_task(state.broadcaster.publish, event)
    return Response(status_code=200, content="OK", media_type="text/plain")


@router.post("/rate/{beer_id}")
async def add_rating(
    beer_id: str,
    request: Request,
    background: BackgroundTasks,
    state: AppState = Depends(get_state),
):
    """Record a new vote for a beer."""
    return await _rate(beer_id, request, background, state, is_new_voter=True)


@router.put("/rate/{beer_id}")
async def amend_rating(
    beer_id: str,
    request: Request,
    background: BackgroundTasks,
    state: AppState = Depends(get_state),
):
    """Replace the most recent vote's value without adding a voter."""
    return await _rate(beer_id, request, background, state, is_new_voter=False)
