"""Connection handles for a Cosmos DB account and its Gremlin endpoint."""

import asyncio
from dataclasses import dataclass, field
from typing import Any, Optional

import aiohttp
from azure.cosmos.aio import CosmosClient
from gremlin_python.driver import client as gremlin_client
from gremlin_python.driver import serializer
from loguru import logger

from .config import derive_gremlin_endpoint, mask_endpoint
from .exceptions import ConnectionFailure


class GraphConnection:
    """
    Process-wide handle to the remote service.

    Holds the async Cosmos DB client used for provisioning and the credentials
    for the Gremlin endpoint. Gremlin clients are opened per graph on first
    use and closed together with this handle.
    """

    def __init__(self, cosmos: CosmosClient, gremlin_endpoint: str, auth_key: str) -> None:
        self.cosmos = cosmos
        self.gremlin_endpoint = gremlin_endpoint
        self._auth_key = auth_key
        self._gremlin_clients: list[gremlin_client.Client] = []

    async def __aenter__(self) -> "GraphConnection":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    async def open_gremlin_client(
        self, database_name: str, graph_name: str
    ) -> gremlin_client.Client:
        """Open a Gremlin client bound to ``/dbs/<database>/colls/<graph>``."""
        username = f"/dbs/{database_name}/colls/{graph_name}"

        def _connect() -> gremlin_client.Client:
            return gremlin_client.Client(
                self.gremlin_endpoint,
                "g",
                username=username,
                password=self._auth_key,
                message_serializer=serializer.GraphSONSerializersV2d0(),
            )

        logger.debug(
            "Opening Gremlin client for {} at {}",
            username,
            mask_endpoint(self.gremlin_endpoint),
        )
        try:
            gremlin = await asyncio.to_thread(_connect)
        except (OSError, aiohttp.ClientError) as exc:
            raise ConnectionFailure(
                f"Cannot connect to Gremlin endpoint {self.gremlin_endpoint}: {exc}"
            ) from exc
        self._gremlin_clients.append(gremlin)
        return gremlin

    async def close(self) -> None:
        """Close every open Gremlin client and the Cosmos DB client."""
        while self._gremlin_clients:
            gremlin = self._gremlin_clients.pop()
            await asyncio.to_thread(gremlin.close)
        await self.cosmos.close()
        logger.debug("Connection closed.")


@dataclass
class GraphHandle:
    """A provisioned graph container and its lazily opened Gremlin client."""

    connection: GraphConnection
    database_name: str
    graph_name: str
    container: Any = None
    partition_key_path: str = "/pk"
    _gremlin: Optional[gremlin_client.Client] = field(
        default=None, init=False, repr=False
    )

    async def gremlin(self) -> gremlin_client.Client:
        if self._gremlin is None:
            self._gremlin = await self.connection.open_gremlin_client(
                self.database_name, self.graph_name
            )
        return self._gremlin

    @property
    def partition_key_property(self) -> str:
        """Vertex property that carries the partition key value."""
        return self.partition_key_path.lstrip("/")


def create_client(
    endpoint: str, auth_key: str, *, gremlin_endpoint: Optional[str] = None
) -> GraphConnection:
    """
    Create a connection handle for a Cosmos DB account.

    No network I/O happens here; connectivity is checked by the first remote
    call made through the handle.

    Args:
        endpoint: Account endpoint, e.g. ``https://acct.documents.azure.com:443/``.
        auth_key: Account key passed through to both clients.
        gremlin_endpoint: Gremlin websocket endpoint. Derived from ``endpoint``
            when not given.
    """
    gremlin_endpoint = gremlin_endpoint or derive_gremlin_endpoint(endpoint)
    logger.info(
        "Creating Cosmos DB client for {} (Gremlin: {})",
        mask_endpoint(endpoint),
        mask_endpoint(gremlin_endpoint),
    )
    cosmos = CosmosClient(endpoint, credential=auth_key)
    return GraphConnection(cosmos, gremlin_endpoint, auth_key)
