"""API route aggregation.

All routers registered here get mounted in main.py. The dashboard is
public, so there is no auth layer; write endpoints are rate limited
by RateLimitMiddleware instead.
"""

from fastapi import APIRouter

from tapboard.api.dataset import router as dataset_router
from tapboard.api.health import router as health_router
from tapboard.api.pages import router as pages_router
from tapboard.api.ratings import router as ratings_router
from tapboard.api.snapshots import router as snapshots_router

api_router = APIRouter()

api_router.include_router(health_router, tags=["health"])
api_router.include_router(ratings_router, tags=["ratings"])
api_router.include_router(snapshots_router, tags=["snapshots"])
api_router.include_router(pages_router, tags=["pages"])
# Last: /{export_name}.csv is a catch-all for *.csv paths
api_router.include_router(dataset_router, tags=["dataset"])
