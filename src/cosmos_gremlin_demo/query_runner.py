"""Submit Gremlin queries and page through their results."""

import asyncio
from typing import Any, AsyncIterator, Optional, Protocol, TypeVar

import aiohttp
from gremlin_python.driver.protocol import GremlinServerError
from loguru import logger
from pydantic import BaseModel, ValidationError

from .client import GraphHandle
from .exceptions import ConnectionFailure, QueryExecutionError
from .models import Vertex

ModelT = TypeVar("ModelT", bound=BaseModel)


class QueryCursor(Protocol):
    """Server-backed pagination state of one submitted query."""

    query: str

    @property
    def has_more_results(self) -> bool:
        """False once every batch has been fetched."""
        raise NotImplementedError

    async def fetch_next(self) -> list[Any]:
        """Fetch the next batch of results in server order."""
        raise NotImplementedError


class GremlinCursor:
    """``QueryCursor`` over a gremlinpython ``ResultSet``.

    The result set receives one batch per partial response from the server.
    Reading it blocks, so each fetch runs in a worker thread.
    """

    def __init__(self, query: str, result_set: Any) -> None:
        self.query = query
        self._result_set = result_set
        self._exhausted = False

    @property
    def has_more_results(self) -> bool:
        return not self._exhausted

    def _next_batch(self) -> list[Any]:
        result_set = self._result_set
        batch = result_set.one()
        # A failed request keeps the cursor open so the next fetch raises
        done = result_set.done
        if done.done() and done.exception() is None and result_set.stream.empty():
            self._exhausted = True
        return list(batch or [])

    async def fetch_next(self) -> list[Any]:
        if self._exhausted:
            return []
        try:
            return await asyncio.to_thread(self._next_batch)
        except GremlinServerError as exc:
            self._exhausted = True
            raise QueryExecutionError(self.query, f"Gremlin server error: {exc}") from exc
        except (OSError, aiohttp.ClientError) as exc:
            self._exhausted = True
            raise QueryExecutionError(
                self.query, f"Connection lost while reading results: {exc}"
            ) from exc


async def open_cursor(
    graph: GraphHandle, query: str, bindings: Optional[dict[str, Any]] = None
) -> GremlinCursor:
    """Submit ``query`` against ``graph`` and return a cursor over its results."""
    gremlin = await graph.gremlin()
    logger.debug("Submitting query to '{}': {}", graph.graph_name, query[:100])
    try:
        result_set = await asyncio.to_thread(gremlin.submit, query, bindings)
    except GremlinServerError as exc:
        raise QueryExecutionError(query, f"Gremlin server error: {exc}") from exc
    except (OSError, aiohttp.ClientError) as exc:
        raise ConnectionFailure(f"Cannot submit query: {exc}") from exc
    return GremlinCursor(query, result_set)


def _convert(item: Any, result_type: Optional[type[BaseModel]], query: str) -> Any:
    if result_type is None:
        return item
    try:
        return result_type.model_validate(item)
    except ValidationError as exc:
        raise QueryExecutionError(
            query, f"Result is not a {result_type.__name__}: {exc.error_count()} error(s)"
        ) from exc


async def iterate_cursor(
    cursor: QueryCursor, result_type: Optional[type[BaseModel]] = None
) -> AsyncIterator[Any]:
    """
    Yield every result of ``cursor`` in batch order.

    Batches are fetched while the cursor reports more results. A cursor can
    be consumed once; a second pass needs a new submission.

    Args:
        cursor: The cursor of a submitted query.
        result_type: Optional pydantic model each item is validated into.

    Raises:
        QueryExecutionError: If fetching a batch fails for any reason,
            including a lost connection, or an item does not match
            ``result_type``.
    """
    while cursor.has_more_results:
        try:
            batch = await cursor.fetch_next()
        except QueryExecutionError:
            raise
        except Exception as exc:
            logger.error(f"Error fetching results for query: {cursor.query[:100]}")
            raise QueryExecutionError(cursor.query, f"Fetching results failed: {exc}") from exc
        for item in batch:
            yield _convert(item, result_type, cursor.query)


async def iterate_query(
    graph: GraphHandle,
    query: str,
    *,
    bindings: Optional[dict[str, Any]] = None,
    result_type: Optional[type[BaseModel]] = None,
) -> AsyncIterator[Any]:
    """Submit ``query`` and lazily yield its results."""
    cursor = await open_cursor(graph, query, bindings)
    async for item in iterate_cursor(cursor, result_type):
        yield item


async def execute_query(
    graph: GraphHandle, query: str, bindings: Optional[dict[str, Any]] = None
) -> int:
    """Run a query for its effect, discarding results. Returns the item count."""
    count = 0
    async for _ in iterate_query(graph, query, bindings=bindings):
        count += 1
    logger.debug("Query drained {} result(s).", count)
    return count


async def fetch_all(
    graph: GraphHandle,
    query: str,
    *,
    bindings: Optional[dict[str, Any]] = None,
    result_type: Optional[type[ModelT]] = None,
) -> list[Any]:
    """Run a query and collect every result in order."""
    results = [
        item
        async for item in iterate_query(
            graph, query, bindings=bindings, result_type=result_type
        )
    ]
    logger.info("Query returned {} result(s).", len(results))
    return results


async def fetch_vertices(
    graph: GraphHandle, query: str, bindings: Optional[dict[str, Any]] = None
) -> list[Vertex]:
    return await fetch_all(graph, query, bindings=bindings, result_type=Vertex)
