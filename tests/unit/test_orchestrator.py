"""End-to-end tests of the demo stages against an in-memory graph."""

from unittest.mock import AsyncMock, MagicMock

import aiohttp
import pytest
from loguru import logger

from cosmos_gremlin_demo import orchestrator, query_runner
from cosmos_gremlin_demo.client import GraphConnection, GraphHandle
from cosmos_gremlin_demo.exceptions import (
    ConfigurationMissing,
    PropertyNotFound,
    ProvisioningError,
    StageExecutionError,
)
from cosmos_gremlin_demo.orchestrator import Stage, run_demo
from fakes import InMemoryGraph


@pytest.fixture
def service(monkeypatch, write_settings):
    """Patch the remote service with an in-memory graph; returns the fakes."""
    write_settings()
    graph_store = InMemoryGraph()

    cosmos = MagicMock()
    cosmos.close = AsyncMock()
    connection = GraphConnection(cosmos, "wss://demo-account.gremlin.cosmos.azure.com:443/", "key")
    create_client = MagicMock(return_value=connection)

    existing_paths: dict[str, str] = {}

    async def fake_ensure_graph(conn, database_name, graph_name, throughput, pk_path):
        return GraphHandle(
            connection=conn,
            database_name=database_name,
            graph_name=graph_name,
            partition_key_path=existing_paths.get(graph_name, pk_path),
        )

    ensure_database = AsyncMock()
    ensure_graph = AsyncMock(side_effect=fake_ensure_graph)

    monkeypatch.setattr(orchestrator, "create_client", create_client)
    monkeypatch.setattr(orchestrator, "ensure_database", ensure_database)
    monkeypatch.setattr(orchestrator, "ensure_graph", ensure_graph)
    monkeypatch.setattr(query_runner, "open_cursor", graph_store.open_cursor)

    fakes = MagicMock()
    fakes.graph = graph_store
    fakes.cosmos = cosmos
    fakes.create_client = create_client
    fakes.ensure_database = ensure_database
    fakes.ensure_graph = ensure_graph
    fakes.existing_paths = existing_paths
    return fakes


class TestRunDemo:
    @pytest.mark.asyncio
    async def test_prints_people_thomas_knows(self, service):
        output = []

        lines = await run_demo(echo=output.append)

        assert output == ["Thomas knows:", "Robin Smith (age 42)", "Paul Smith (age 26)"]
        assert lines == ["Robin Smith (age 42)", "Paul Smith (age 26)"]

    @pytest.mark.asyncio
    async def test_stages_run_in_order(self, service):
        await run_demo(echo=lambda line: None)

        service.create_client.assert_called_once_with(
            "https://demo-account.documents.azure.com:443/",
            "c2VjcmV0LWtleS12YWx1ZQ==",
            gremlin_endpoint=None,
        )
        service.ensure_database.assert_awaited_once()
        args = service.ensure_graph.await_args.args
        assert args[1:] == ("graphdb", "people", 400, "/pk")

        queries = service.graph.queries
        assert queries[0] == "g.V().drop()"
        assert [q.split(")")[0] for q in queries[1:4]] == [
            "g.V('thomas.1'",
            "g.V('robin.1'",
            "g.V('paul.1'",
        ]
        assert all(".coalesce(outE('knows')" in q for q in queries[4:6])
        assert queries[6] == "g.V('thomas.1').out('knows')"
        assert len(queries) == 7
        service.cosmos.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_rerun_converges_to_same_graph(self, service):
        first = await run_demo(echo=lambda line: None)
        second = await run_demo(echo=lambda line: None)

        assert first == second
        assert len(service.graph.vertices) == 3
        assert len(service.graph.edges) == 2

    @pytest.mark.asyncio
    async def test_seeds_partition_key_of_existing_graph(self, service):
        service.existing_paths["people"] = "/tenant"

        lines = await run_demo(echo=lambda line: None)

        vertex_queries = service.graph.queries[1:4]
        assert all(".property('tenant', " in q for q in vertex_queries)
        assert not any(".property('pk', " in q for q in vertex_queries)
        assert lines == ["Robin Smith (age 42)", "Paul Smith (age 26)"]


class TestStageFailures:
    @pytest.mark.asyncio
    async def test_missing_settings_fail_load_config(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        with pytest.raises(StageExecutionError) as exc_info:
            await run_demo(echo=lambda line: None)

        assert exc_info.value.stage_name == Stage.LOAD_CONFIG.value
        assert isinstance(exc_info.value.original_error, ConfigurationMissing)
        assert str(exc_info.value).startswith("Stage 'LoadConfig' failed:")
        assert not hasattr(exc_info.value, "context")

    @pytest.mark.asyncio
    async def test_provisioning_failure_stops_everything(self, service):
        service.ensure_graph.side_effect = ProvisioningError("quota exceeded")
        output = []

        with pytest.raises(StageExecutionError) as exc_info:
            await run_demo(echo=output.append)

        assert exc_info.value.stage_name == "EnsureGraph"
        assert output == []
        assert service.graph.queries == []
        service.cosmos.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_projection_failure_keeps_earlier_output(self, service, monkeypatch):
        original_run = service.graph.run

        def run_without_age(query):
            results = original_run(query)
            if query.endswith(".out('knows')"):
                results = [dict(v, properties={k: p for k, p in v["properties"].items() if k != "age"}) for v in results]
            return results

        monkeypatch.setattr(service.graph, "run", run_without_age)
        output = []

        with pytest.raises(StageExecutionError) as exc_info:
            await run_demo(echo=output.append)

        assert exc_info.value.stage_name == "ProjectAndPrint"
        assert isinstance(exc_info.value.original_error, PropertyNotFound)
        assert output == ["Thomas knows:"]

    @pytest.mark.asyncio
    async def test_close_error_does_not_hide_stage_error(self, service):
        service.ensure_database.side_effect = ProvisioningError("quota exceeded")
        service.cosmos.close.side_effect = aiohttp.ClientError("session already closed")

        with pytest.raises(StageExecutionError) as exc_info:
            await run_demo(echo=lambda line: None)

        assert exc_info.value.stage_name == "EnsureDatabase"
        assert isinstance(exc_info.value.original_error, ProvisioningError)
        service.cosmos.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_close_error_after_success_is_logged(self, service):
        service.cosmos.close.side_effect = aiohttp.ClientError("session already closed")
        messages = []
        handler_id = logger.add(messages.append, level="WARNING", format="{message}")
        try:
            lines = await run_demo(echo=lambda line: None)
        finally:
            logger.remove(handler_id)

        assert lines == ["Robin Smith (age 42)", "Paul Smith (age 26)"]
        assert any("Error closing connection" in m for m in messages)
