"""Pytest configuration and shared fixtures for the test suite."""

import json
from typing import Any

import pytest

from cosmos_gremlin_demo.config import FILE_KEYS

VALID_SECTION = {
    "Endpoint": "https://demo-account.documents.azure.com:443/",
    "AuthKey": "c2VjcmV0LWtleS12YWx1ZQ==",
    "DatabaseName": "graphdb",
    "GraphName": "people",
    "OfferThroughput": 400,
}


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Keep real AZURECOSMOSDB__* variables from leaking into settings."""
    for field in FILE_KEYS.values():
        monkeypatch.delenv(f"AZURECOSMOSDB__{field.upper()}", raising=False)
    monkeypatch.delenv("LOG_LEVEL", raising=False)


@pytest.fixture
def write_settings(tmp_path, monkeypatch):
    """Write an appsettings.json into a temporary working directory."""
    monkeypatch.chdir(tmp_path)

    def _write(data: Any = None, name: str = "appsettings.json"):
        path = tmp_path / name
        content = {"AzureCosmosDb": dict(VALID_SECTION)} if data is None else data
        path.write_text(json.dumps(content))
        return path

    return _write


@pytest.fixture
def valid_section() -> dict[str, Any]:
    return dict(VALID_SECTION)
