"""Create-if-absent provisioning of the database and graph container."""

from azure.core.exceptions import ServiceRequestError
from azure.cosmos import PartitionKey
from azure.cosmos.aio import DatabaseProxy
from azure.cosmos.exceptions import CosmosHttpResponseError
from loguru import logger

from .client import GraphConnection, GraphHandle
from .exceptions import ConnectionFailure, ProvisioningError


async def ensure_database(connection: GraphConnection, database_name: str) -> DatabaseProxy:
    """
    Return the database ``database_name``, creating it if it does not exist.

    Raises:
        ProvisioningError: If the service rejects the request.
        ConnectionFailure: If the service cannot be reached.
    """
    logger.info("Ensuring database '{}' exists.", database_name)
    try:
        database = await connection.cosmos.create_database_if_not_exists(id=database_name)
    except CosmosHttpResponseError as exc:
        logger.error(f"Failed to ensure database '{database_name}': {exc.message}")
        raise ProvisioningError(
            f"Cannot create or read database '{database_name}' "
            f"(HTTP {exc.status_code}): {exc.message}"
        ) from exc
    except ServiceRequestError as exc:
        raise ConnectionFailure(f"Cosmos DB service unreachable: {exc}") from exc
    return database


async def ensure_graph(
    connection: GraphConnection,
    database_name: str,
    graph_name: str,
    offer_throughput: int,
    partition_key_path: str = "/pk",
) -> GraphHandle:
    """
    Return a handle to the graph ``graph_name``, creating it if absent.

    ``offer_throughput`` and ``partition_key_path`` apply only when the
    container is created; an existing container is returned unchanged. The
    handle carries the partition key path the container actually has.

    Raises:
        ProvisioningError: If the service rejects the request.
        ConnectionFailure: If the service cannot be reached.
    """
    logger.info(
        "Ensuring graph '{}' exists in database '{}' ({} RU/s).",
        graph_name,
        database_name,
        offer_throughput,
    )
    database = connection.cosmos.get_database_client(database_name)
    try:
        container = await database.create_container_if_not_exists(
            id=graph_name,
            partition_key=PartitionKey(path=partition_key_path),
            offer_throughput=offer_throughput,
        )
    except CosmosHttpResponseError as exc:
        logger.error(f"Failed to ensure graph '{graph_name}': {exc.message}")
        raise ProvisioningError(
            f"Cannot create or read graph '{graph_name}' in '{database_name}' "
            f"(HTTP {exc.status_code}): {exc.message}"
        ) from exc
    except ServiceRequestError as exc:
        raise ConnectionFailure(f"Cosmos DB service unreachable: {exc}") from exc

    try:
        properties = await container.read()
    except CosmosHttpResponseError as exc:
        logger.error(f"Failed to read graph '{graph_name}': {exc.message}")
        raise ProvisioningError(
            f"Cannot read graph '{graph_name}' in '{database_name}' "
            f"(HTTP {exc.status_code}): {exc.message}"
        ) from exc
    except ServiceRequestError as exc:
        raise ConnectionFailure(f"Cosmos DB service unreachable: {exc}") from exc

    paths = properties.get("partitionKey", {}).get("paths") or [partition_key_path]
    if paths[0] != partition_key_path:
        logger.warning(
            "Graph '{}' already exists with partition key '{}'; ignoring configured '{}'.",
            graph_name,
            paths[0],
            partition_key_path,
        )
    return GraphHandle(
        connection=connection,
        database_name=database_name,
        graph_name=graph_name,
        container=container,
        partition_key_path=paths[0],
    )
