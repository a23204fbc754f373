"""Graph client tests — Neo4j HTTP payloads via httpx.MockTransport."""

import json

import httpx
import pytest

from tapboard.exceptions import BackingStoreError
from tapboard.store.graph import GraphClient


def _graph(handler) -> GraphClient:
    client = httpx.AsyncClient(
        base_url="http://neo4j.test", transport=httpx.MockTransport(handler)
    )
    return GraphClient("http://neo4j.test", "festival", client=client)


@pytest.mark.asyncio
async def test_rows_are_keyed_by_column():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["path"] = request.url.path
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={
            "results": [{
                "columns": ["beer", "brewery"],
                "data": [
                    {"row": [{"id": 1, "name": "Sunrise IPA"}, "Alpha"], "meta": []},
                    {"row": [{"id": 2, "name": "Morning Stout"}, "Alpha"], "meta": []},
                ],
            }],
            "errors": [],
        })

    rows = await _graph(handler).run_query("MATCH (b) RETURN b", {"x": 1})

    assert seen["path"] == "/db/festival/tx/commit"
    assert seen["body"] == {"statements": [{"statement": "MATCH (b) RETURN b", "parameters": {"x": 1}}]}
    assert rows == [
        {"beer": {"id": 1, "name": "Sunrise IPA"}, "brewery": "Alpha"},
        {"beer": {"id": 2, "name": "Morning Stout"}, "brewery": "Alpha"},
    ]


@pytest.mark.asyncio
async def test_cypher_error_payload_raises():
    def handler(request):
        return httpx.Response(200, json={
            "results": [],
            "errors": [{"code": "Neo.ClientError.Statement.SyntaxError", "message": "bad"}],
        })

    with pytest.raises(BackingStoreError, match="SyntaxError"):
        await _graph(handler).run_query("MATCH")


@pytest.mark.asyncio
async def test_http_error_raises():
    with pytest.raises(BackingStoreError) as exc:
        await _graph(lambda request: httpx.Response(503)).run_query("RETURN 1")
    assert exc.value.store == "graph"


@pytest.mark.asyncio
async def test_transport_error_raises():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    with pytest.raises(BackingStoreError):
        await _graph(handler).run_query("RETURN 1")


@pytest.mark.asyncio
async def test_empty_results():
    rows = await _graph(lambda request: httpx.Response(200, json={"results": [], "errors": []})).run_query("RETURN 1")
    assert rows == []
