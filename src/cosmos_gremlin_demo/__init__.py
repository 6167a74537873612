"""Azure Cosmos DB Gremlin API demo: provision a graph, seed it, traverse it."""

from .client import GraphConnection, GraphHandle, create_client
from .config import CosmosDbSettings, load_settings
from .exceptions import (
    ConfigurationMissing,
    ConnectionFailure,
    GraphDemoError,
    InvalidConfiguration,
    PropertyNotFound,
    ProvisioningError,
    QueryExecutionError,
    StageExecutionError,
    TypeMismatch,
)
from .models import Edge, Vertex, VertexPropertyValue
from .orchestrator import Stage, run_demo
from .projection import format_person, get_property
from .provisioning import ensure_database, ensure_graph
from .query_runner import (
    execute_query,
    fetch_all,
    fetch_vertices,
    iterate_cursor,
    iterate_query,
)

__version__ = "0.1.0"

__all__ = [
    "CosmosDbSettings",
    "load_settings",
    "GraphConnection",
    "GraphHandle",
    "create_client",
    "ensure_database",
    "ensure_graph",
    "iterate_cursor",
    "iterate_query",
    "execute_query",
    "fetch_all",
    "fetch_vertices",
    "Vertex",
    "Edge",
    "VertexPropertyValue",
    "get_property",
    "format_person",
    "Stage",
    "run_demo",
    "GraphDemoError",
    "ConfigurationMissing",
    "InvalidConfiguration",
    "ConnectionFailure",
    "ProvisioningError",
    "QueryExecutionError",
    "PropertyNotFound",
    "TypeMismatch",
    "StageExecutionError",
]
