"""Connection settings for the Azure Cosmos DB Gremlin account.

Settings are read from ``appsettings.json`` in the working directory using the
.NET configuration layout, either nested::

    {"AzureCosmosDb": {"Endpoint": "...", "AuthKey": "..."}}

or with flat colon-separated keys::

    {"AzureCosmosDb:Endpoint": "...", "AzureCosmosDb:AuthKey": "..."}

Keys that are absent from the file may be supplied through environment
variables such as ``AZURECOSMOSDB__AUTH_KEY`` or a ``.env`` file.
"""

import json
import re
from pathlib import Path
from typing import Any, Optional, Union
from urllib.parse import urlparse

import yaml
from loguru import logger
from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .exceptions import ConfigurationMissing, InvalidConfiguration

SETTINGS_FILE_NAME = "appsettings.json"
SECTION_NAME = "AzureCosmosDb"

DOCUMENTS_HOST_SUFFIX = ".documents.azure.com"
GREMLIN_HOST_SUFFIX = ".gremlin.cosmos.azure.com"
# The local emulator serves Gremlin on a separate plain websocket port
EMULATOR_GREMLIN_ENDPOINT = "ws://localhost:8901/"

# Settings file key -> CosmosDbSettings field
FILE_KEYS: dict[str, str] = {
    "Endpoint": "endpoint",
    "AuthKey": "auth_key",
    "DatabaseName": "database_name",
    "GraphName": "graph_name",
    "OfferThroughput": "offer_throughput",
    "GremlinEndpoint": "gremlin_endpoint",
    "PartitionKeyPath": "partition_key_path",
}
_FIELD_TO_KEY = {field: key for key, field in FILE_KEYS.items()}


class CosmosDbSettings(BaseSettings):
    """Immutable connection settings for one Cosmos DB graph."""

    endpoint: str = Field(
        min_length=1, description="Account endpoint, e.g. https://acct.documents.azure.com:443/"
    )
    auth_key: str = Field(min_length=1, description="Account primary or secondary key")
    database_name: str = Field(min_length=1, description="Database to create or reuse")
    graph_name: str = Field(min_length=1, description="Graph container to create or reuse")
    offer_throughput: int = Field(
        gt=0, description="Request units provisioned for a newly created graph"
    )
    gremlin_endpoint: Optional[str] = Field(
        default=None,
        description="Gremlin websocket endpoint; derived from the account endpoint when unset",
    )
    partition_key_path: str = Field(
        default="/pk", description="Partition key path for a newly created graph"
    )

    model_config = SettingsConfigDict(
        env_prefix="AZURECOSMOSDB__",
        env_file=".env",
        extra="ignore",
        frozen=True,
        str_strip_whitespace=True,
    )

    @field_validator("partition_key_path")
    @classmethod
    def _check_partition_key_path(cls, value: str) -> str:
        if not re.fullmatch(r"/\w+", value):
            raise ValueError(
                f"partition key path must look like '/name', got {value!r}"
            )
        return value

    @property
    def partition_key_property(self) -> str:
        """Vertex property that carries the partition key value."""
        return self.partition_key_path.lstrip("/")

    def masked_dump(self) -> dict[str, Any]:
        """Settings as file keys, with the key and endpoints masked."""
        data = self.model_dump()
        data["auth_key"] = mask_secret(self.auth_key)
        data["endpoint"] = mask_endpoint(self.endpoint)
        if self.gremlin_endpoint:
            data["gremlin_endpoint"] = mask_endpoint(self.gremlin_endpoint)
        else:
            try:
                derived = derive_gremlin_endpoint(self.endpoint)
            except InvalidConfiguration:
                data["gremlin_endpoint"] = "(not derivable, set it explicitly)"
            else:
                data["gremlin_endpoint"] = f"{derived} (derived)"
        return {f"{SECTION_NAME}:{_FIELD_TO_KEY[k]}": v for k, v in data.items()}


def mask_secret(value: str) -> str:
    """Mask a secret for logging, keeping only its first characters."""
    if len(value) <= 4:
        return "***"
    return value[:4] + "*" * 8


def mask_endpoint(uri: str) -> str:
    """Mask credentials embedded in a URI."""
    return re.sub(r"://([^:/@]+):([^@]+)@", r"://\1:***@", uri)


def derive_gremlin_endpoint(endpoint: str) -> str:
    """
    Derive the Gremlin websocket endpoint from a Cosmos DB account endpoint.

    ``https://acct.documents.azure.com:443/`` becomes
    ``wss://acct.gremlin.cosmos.azure.com:443/``.

    Raises:
        InvalidConfiguration: If the endpoint is not a recognised Cosmos DB host.
    """
    host = urlparse(endpoint).hostname
    if not host:
        raise InvalidConfiguration(f"Endpoint is not a valid URI: {endpoint!r}")
    if host in {"localhost", "127.0.0.1"}:
        return EMULATOR_GREMLIN_ENDPOINT
    if host.endswith(DOCUMENTS_HOST_SUFFIX):
        account = host[: -len(DOCUMENTS_HOST_SUFFIX)]
        return f"wss://{account}{GREMLIN_HOST_SUFFIX}:443/"
    if host.endswith(GREMLIN_HOST_SUFFIX):
        return f"wss://{host}:443/"
    raise InvalidConfiguration(
        f"Cannot derive a Gremlin endpoint from {endpoint!r}; "
        f"set {SECTION_NAME}:GremlinEndpoint explicitly"
    )


def _read_settings_file(path: Path) -> dict[str, Any]:
    if not path.exists():
        raise ConfigurationMissing(f"Settings file not found: {path}")

    text = path.read_text(encoding="utf-8").strip()
    if not text:
        raise InvalidConfiguration(f"Settings file is empty: {path}")
    try:
        if path.suffix.lower() in {".yaml", ".yml"}:
            data = yaml.safe_load(text)
        elif path.suffix.lower() == ".json":
            data = json.loads(text)
        else:
            raise InvalidConfiguration(f"Unsupported settings file format: {path.suffix}")
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        raise InvalidConfiguration(f"Failed to parse settings file {path}: {exc}") from exc

    if not isinstance(data, dict):
        raise InvalidConfiguration(f"Settings file {path} must contain a mapping")
    return data


def _extract_section(data: dict[str, Any]) -> dict[str, Any]:
    """Collect the AzureCosmosDb values from nested or flat keys."""
    section = SECTION_NAME.lower()
    known = {key.lower(): field for key, field in FILE_KEYS.items()}
    values: dict[str, Any] = {}

    def put(name: str, value: Any) -> None:
        field = known.get(name.lower())
        if field is None:
            logger.debug("Ignoring unknown setting {}:{}", SECTION_NAME, name)
            return
        values[field] = value

    for key, value in data.items():
        key = str(key)
        if ":" in key:
            prefix, _, name = key.partition(":")
            if prefix.lower() == section:
                put(name, value)
        elif key.lower() == section:
            if not isinstance(value, dict):
                raise InvalidConfiguration(f"'{SECTION_NAME}' must be a mapping")
            for name, nested in value.items():
                put(str(name), nested)
    return values


def _translate_validation_error(exc: ValidationError) -> Exception:
    missing: list[str] = []
    invalid: list[str] = []
    for error in exc.errors():
        field = str(error["loc"][0]) if error["loc"] else "?"
        name = f"{SECTION_NAME}:{_FIELD_TO_KEY.get(field, field)}"
        if error["type"] == "missing":
            missing.append(name)
        else:
            invalid.append(f"{name}: {error['msg']}")
    if missing:
        return ConfigurationMissing(f"Missing required settings: {', '.join(missing)}")
    return InvalidConfiguration("; ".join(invalid))


def load_settings(path: Union[str, Path, None] = None) -> CosmosDbSettings:
    """
    Load ``CosmosDbSettings`` from a settings file.

    Args:
        path: Settings file to read. Defaults to ``appsettings.json`` in the
            current working directory. ``.json``, ``.yaml`` and ``.yml`` files
            are supported.

    Returns:
        The validated settings.

    Raises:
        ConfigurationMissing: If the file does not exist or a required key is
            missing from both the file and the environment.
        InvalidConfiguration: If the file cannot be parsed or a value is
            invalid, e.g. a non-positive offer throughput.
    """
    settings_path = Path(path) if path is not None else Path.cwd() / SETTINGS_FILE_NAME
    logger.debug("Loading settings from {}", settings_path)
    values = _extract_section(_read_settings_file(settings_path))
    try:
        settings = CosmosDbSettings(**values)
    except ValidationError as exc:
        raise _translate_validation_error(exc) from exc

    logger.info(
        "Settings loaded: endpoint='{}', database='{}', graph='{}', throughput={}",
        mask_endpoint(settings.endpoint),
        settings.database_name,
        settings.graph_name,
        settings.offer_throughput,
    )
    return settings
