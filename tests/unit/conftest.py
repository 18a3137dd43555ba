"""Unit test environment helpers."""

import pytest

_SERVICE_ENV = (
    "DB_USER",
    "DB_PASSWORD",
    "DB_HOST",
    "DB_PORT",
    "DB_NAME",
    "DB_PARAMS",
    "SILICONFLOW_URL",
    "SILICONFLOW_TOKEN",
    "MILVUS_HOST",
    "MILVUS_PORT",
    "MILVUS_COLLECTION",
    "MILVUS_TOKEN",
    "OTEL_EXPORTER_OTLP_ENDPOINT",
)


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch):
    """Keep a developer's .env or shell settings out of unit tests."""
    for name in _SERVICE_ENV:
        monkeypatch.delenv(name, raising=False)
    yield
