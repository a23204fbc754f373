"""Snapshot service — opaque per-user blobs of saved/tasted state.

Learn: The server never looks inside a snapshot. The browser (or
ClientSession) serializes its saved/tasted lists, POSTs the string
under the user's Untappd name, and can GET it back verbatim on another
device.
"""

import structlog

from tapboard.exceptions import NotFoundError, ValidationError
from tapboard.store.kv import KeyValueStore

logger = structlog.get_logger()


class SnapshotService:
    def __init__(self, kv: KeyValueStore, key_prefix: str = "_snapshot_"):
        self.kv = kv
        self.key_prefix = key_prefix

    def _key(self, user_id: str) -> str:
        if not user_id:
            raise ValidationError("snapshot user id is required")
        return f"{self.key_prefix}{user_id}"

    async def put(self, user_id: str, blob: str) -> None:
        """Store a snapshot. Raises BackingStoreError."""
        await self.kv.set(self._key(user_id), blob)
        logger.info("snapshot.stored", user=user_id, size=len(blob))

    async def get(self, user_id: str) -> str:
        """Fetch a snapshot. Raises NotFoundError or BackingStoreError."""
        blob = await self.kv.get(self._key(user_id))
        if not blob:
            raise NotFoundError(f"no snapshot for {user_id!r}")
        return blob
