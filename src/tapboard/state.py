"""Process-scoped application state.

Learn: One AppState per app instance, stored on app.state.tapboard.
It owns the rating cache and wires the same instance into the dataset
service, the broadcaster and the routes. Tests build an AppState with
in-memory stores and hand it to create_app().
"""

from dataclasses import dataclass
from typing import Optional

from tapboard.config import Settings
from tapboard.realtime.broadcaster import Broadcaster
from tapboard.services.dataset_service import DatasetService
from tapboard.services.export_service import ExportService
from tapboard.services.rating_cache import RatingCache
from tapboard.services.snapshot_service import SnapshotService
from tapboard.store.graph import GraphClient
from tapboard.store.kv import KeyValueStore
from tapboard.views.renderer import Renderer, create_environment


@dataclass
class AppState:
    settings: Settings
    kv: KeyValueStore
    graph: Optional[GraphClient]
    ratings: RatingCache
    broadcaster: Broadcaster
    datasets: DatasetService
    exports: ExportService
    snapshots: SnapshotService
    renderer: Renderer

    @classmethod
    def build(
        cls,
        settings: Settings,
        kv: KeyValueStore,
        graph: Optional[GraphClient],
    ) -> "AppState":
        ratings = RatingCache(key_prefix=settings.rating_key_prefix)
        datasets = DatasetService(
            graph,
            kv,
            ratings,
            ttl_seconds=settings.dataset_ttl_seconds,
            source=settings.dataset_source,
            dataset_file=settings.dataset_file,
            persist=settings.persist_dataset,
        )
        return cls(
            settings=settings,
            kv=kv,
            graph=graph,
            ratings=ratings,
            broadcaster=Broadcaster(ratings),
            datasets=datasets,
            exports=ExportService(datasets, ttl_seconds=settings.dataset_ttl_seconds),
            snapshots=SnapshotService(kv, key_prefix=settings.snapshot_key_prefix),
            renderer=Renderer(
                create_environment(),
                untappd_client_id=settings.untappd_client_id,
                untappd_redirect_url=settings.untappd_redirect_url,
            ),
        )
