"""Runs the demo: provision the graph, seed it, and print who Thomas knows."""

from contextlib import contextmanager
from enum import Enum
from pathlib import Path
from typing import Callable, Iterator, Union

from loguru import logger

from .client import GraphConnection, create_client
from .config import load_settings
from .exceptions import StageExecutionError
from .projection import format_person
from .provisioning import ensure_database, ensure_graph
from .query_runner import execute_query, fetch_vertices
from .seed import (
    KNOWS,
    PEOPLE,
    QUERIED_PERSON,
    drop_all_query,
    knows_query,
    upsert_edge_query,
    upsert_vertex_query,
)


class Stage(str, Enum):
    LOAD_CONFIG = "LoadConfig"
    CONNECT = "Connect"
    ENSURE_DATABASE = "EnsureDatabase"
    ENSURE_GRAPH = "EnsureGraph"
    CLEAR_DATA = "ClearData"
    SEED_VERTICES = "SeedVertices"
    SEED_EDGES = "SeedEdges"
    RUN_TRAVERSAL_QUERY = "RunTraversalQuery"
    PROJECT_AND_PRINT = "ProjectAndPrint"


@contextmanager
def _stage(stage: Stage) -> Iterator[None]:
    logger.info(f">>> Executing Stage: {stage.value} >>>")
    try:
        yield
    except StageExecutionError:
        raise
    except Exception as exc:
        logger.error(f"Stage {stage.value} failed: {exc}")
        raise StageExecutionError(stage.value, exc) from exc
    logger.info(f"<<< Completed Stage: {stage.value} <<<")


async def _close(connection: GraphConnection) -> None:
    try:
        await connection.close()
    except Exception as exc:
        logger.warning(f"Error closing connection: {exc}")


async def run_demo(
    settings_path: Union[str, Path, None] = None,
    *,
    echo: Callable[[str], None] = print,
) -> list[str]:
    """
    Run every stage of the demo in order.

    Stages never retry and never roll back. Provisioning and seeding are
    create-if-absent, so rerunning after a failure converges on the same
    graph. The connection is closed on the way out; a failure to close it is
    logged and never hides the error of a failed stage.

    Args:
        settings_path: Settings file; ``appsettings.json`` in the working
            directory by default.
        echo: Receives each line of output.

    Returns:
        The printed person lines, in traversal order.

    Raises:
        StageExecutionError: Wrapping the error of the first failing stage.
    """
    with _stage(Stage.LOAD_CONFIG):
        settings = load_settings(settings_path)

    with _stage(Stage.CONNECT):
        connection = create_client(
            settings.endpoint,
            settings.auth_key,
            gremlin_endpoint=settings.gremlin_endpoint,
        )

    lines: list[str] = []
    try:
        with _stage(Stage.ENSURE_DATABASE):
            await ensure_database(connection, settings.database_name)

        with _stage(Stage.ENSURE_GRAPH):
            graph = await ensure_graph(
                connection,
                settings.database_name,
                settings.graph_name,
                settings.offer_throughput,
                settings.partition_key_path,
            )

        with _stage(Stage.CLEAR_DATA):
            await execute_query(graph, drop_all_query())

        with _stage(Stage.SEED_VERTICES):
            # The existing container decides which property holds the partition key
            for person in PEOPLE:
                await execute_query(
                    graph, upsert_vertex_query(person, graph.partition_key_property)
                )

        with _stage(Stage.SEED_EDGES):
            for source_id, target_id in KNOWS:
                await execute_query(graph, upsert_edge_query(source_id, target_id))

        with _stage(Stage.RUN_TRAVERSAL_QUERY):
            echo(f"{QUERIED_PERSON.first_name} knows:")
            people = await fetch_vertices(graph, knows_query(QUERIED_PERSON.id))

        with _stage(Stage.PROJECT_AND_PRINT):
            for person in people:
                line = format_person(person)
                echo(line)
                lines.append(line)
    finally:
        await _close(connection)

    return lines
