"""Neo4j graph store over the HTTP transactional endpoint.

Learn: Instead of a bolt driver we POST Cypher to
/db/{database}/tx/commit with httpx. The response carries one result
per statement: a list of column names and a list of rows. Each row is
returned here as a dict keyed by column, so callers read
row["beer"], row["brewery"] and so on. Nodes come back as their
property maps.

Neo4j reports Cypher errors with HTTP 200 and a non-empty "errors"
list, so both the status and the payload are checked.
"""

from typing import Any, Optional

import httpx
import structlog

from tapboard.exceptions import BackingStoreError

logger = structlog.get_logger()


class GraphClient:
    """Runs read queries against one Neo4j database."""

    def __init__(
        self,
        base_url: str,
        database: str = "neo4j",
        *,
        user: str = "",
        password: str = "",
        timeout: float = 10.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.database = database
        auth = httpx.BasicAuth(user, password) if user else None
        self._client = client or httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            auth=auth,
            timeout=timeout,
            headers={"Accept": "application/json;charset=UTF-8"},
        )

    async def run_query(
        self,
        statement: str,
        parameters: Optional[dict[str, Any]] = None,
    ) -> list[dict[str, Any]]:
        """Run one Cypher statement and return its rows."""
        body = {"statements": [{"statement": statement, "parameters": parameters or {}}]}
        try:
            resp = await self._client.post(f"/db/{self.database}/tx/commit", json=body)
            resp.raise_for_status()
            payload = resp.json()
        except httpx.HTTPError as e:
            logger.warning("graph.request_failed", error=str(e))
            raise BackingStoreError(f"graph request failed: {e}", store="graph") from e
        except ValueError as e:
            raise BackingStoreError("graph returned invalid JSON", store="graph") from e

        errors = payload.get("errors") or []
        if errors:
            first = errors[0]
            message = f"{first.get('code', 'Neo.Unknown')}: {first.get('message', '')}"
            logger.warning("graph.query_failed", error=message)
            raise BackingStoreError(message, store="graph")

        results = payload.get("results") or []
        if not results:
            return []
        columns = results[0].get("columns", [])
        return [dict(zip(columns, item.get("row", []))) for item in results[0].get("data", [])]

    async def ping(self) -> bool:
        await self.run_query("RETURN 1 AS ok")
        return True

    async def aclose(self) -> None:
        await self._client.aclose()
