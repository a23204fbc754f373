"""Application configuration via environment variables.

Uses pydantic-settings to load config from env vars with TAPBOARD_ prefix.
No YAML files, no file-based config — just env vars (12-factor app style).

Learn: The CLI builds its own Settings(**overrides)
for flags like --disk, and hands it to create_app(). Everything else
imports the singleton.
"""

from typing import Literal, Optional

from pydantic import model_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """All app configuration. Set via TAPBOARD_* env vars."""

    # Redis (rating mirror + snapshots + rate limiting)
    redis_url: str = "redis://localhost:6379/0"
    rating_key_prefix: str = "_br"
    snapshot_key_prefix: str = "_snapshot_"

    # Graph store (Neo4j HTTP API)
    graph_url: str = "http://localhost:7474"
    graph_database: str = "neo4j"
    graph_user: str = "neo4j"
    graph_password: str = ""
    graph_timeout_seconds: float = 10.0

    # Dataset
    dataset_ttl_seconds: int = 120
    dataset_source: Literal["graph", "disk"] = "graph"
    dataset_file: Optional[str] = None
    persist_dataset: bool = False

    # Exports + offline manifest
    csv_export_name: str = "mbcc-2018-dump-jonpacker"
    appcache_enabled: bool = True
    static_dir: Optional[str] = None

    # Untappd (rendered into the index page for the OAuth flow)
    untappd_client_id: str = ""
    untappd_redirect_url: str = ""

    # ISO date -> sessions poured that day (drives the "today" filter)
    festival_days: dict[str, list[str]] = {}

    # Server
    environment: str = "development"
    debug: bool = False
    host: str = "0.0.0.0"
    port: int = 8000

    # CORS
    cors_origins: list[str] = [
        "http://localhost:5173",
        "http://localhost:3000",
    ]

    # Rate limiting on write endpoints (rating votes, snapshots)
    rate_limit_rpm: int = 30  # requests per minute per IP

    model_config = {"env_prefix": "TAPBOARD_"}

    @model_validator(mode="after")
    def validate_dataset_settings(self):
        """Disk mode needs a file; the dataset memo must live at least 120s."""
        if self.dataset_source == "disk" and not self.dataset_file:
            raise ValueError(
                "TAPBOARD_DATASET_FILE must be set when TAPBOARD_DATASET_SOURCE=disk"
            )
        if self.dataset_ttl_seconds < 120:
            raise ValueError("TAPBOARD_DATASET_TTL_SECONDS must be at least 120")
        return self


# Singleton — import this everywhere
settings = Settings()
