"""Pydantic schemas for live rating frames pushed over the realtime channel."""

from pydantic import BaseModel

from tapboard.events.types import RATING_CHANGED


class RateEvent(BaseModel):
    beer: int
    rating: float
    count: int

    def frame(self) -> dict:
        return {"type": RATING_CHANGED, **self.model_dump()}
