"""Validated runtime settings assembled once from the environment.

Every required variable is read up front. Problems are collected and raised
together as a single ConfigError so an operator sees the full list at once.
"""

import os
from typing import Dict, List, Mapping, Optional
from urllib.parse import parse_qsl

from pydantic import BaseModel, Field

from common.errors import ConfigError

DEFAULT_EMBEDDING_MODEL = "BAAI/bge-m3"
DEFAULT_EMBEDDING_DIMENSION = 1024

_TRUTHY = ("true", "1", "yes", "on")
_FALSEY = ("false", "0", "no", "off", "")


class _EnvReader:
    """Typed environment reader that records problems instead of raising."""

    def __init__(self, environ: Mapping[str, str]) -> None:
        self._environ = environ
        self.missing: List[str] = []
        self.invalid: List[str] = []

    def get_str(self, name: str, default: Optional[str] = None, required: bool = False) -> str:
        value = self._environ.get(name)
        if value is None or (required and not value.strip()):
            if required:
                self.missing.append(name)
            return default or ""
        return value

    def get_int(self, name: str, default: int, minimum: Optional[int] = None) -> int:
        value = self._environ.get(name)
        if value is None or not value.strip():
            return default
        try:
            parsed = int(value)
        except ValueError:
            self.invalid.append(f"{name} must be an integer, got '{value}'")
            return default
        if minimum is not None and parsed < minimum:
            self.invalid.append(f"{name} must be >= {minimum}, got {parsed}")
            return default
        return parsed

    def get_float(self, name: str, default: float) -> float:
        value = self._environ.get(name)
        if value is None or not value.strip():
            return default
        try:
            parsed = float(value)
        except ValueError:
            self.invalid.append(f"{name} must be a number, got '{value}'")
            return default
        if parsed <= 0:
            self.invalid.append(f"{name} must be positive, got {parsed}")
            return default
        return parsed

    def get_bool(self, name: str, default: bool) -> bool:
        value = self._environ.get(name)
        if value is None:
            return default
        lowered = value.strip().lower()
        if lowered in _TRUTHY:
            return True
        if lowered in _FALSEY:
            return False
        self.invalid.append(f"{name} must be a boolean, got '{value}'")
        return default


class DatabaseSettings(BaseModel):
    """Connection settings for the MySQL query target."""

    user: str
    password: str = ""
    host: str
    port: int = 3306
    name: str
    params: str = ""

    model_config = {"frozen": True}

    def parsed_params(self) -> Dict[str, str]:
        """Return DB_PARAMS as a dict (query-string syntax, e.g. ``charset=utf8mb4``)."""
        return dict(parse_qsl(self.params, keep_blank_values=False))

    def dsn(self) -> str:
        """Render a redacted DSN for log lines."""
        dsn = f"{self.user}:***@tcp({self.host}:{self.port})/{self.name}"
        if self.params:
            dsn += "?" + self.params
        return dsn


class EmbeddingSettings(BaseModel):
    """Remote embedding service settings."""

    url: str
    token: str
    model: str = DEFAULT_EMBEDDING_MODEL
    dimension: int = DEFAULT_EMBEDDING_DIMENSION
    timeout_seconds: float = 10.0

    model_config = {"frozen": True}


class VectorIndexSettings(BaseModel):
    """Milvus connection and collection settings."""

    host: str
    port: int = 19530
    collection: str
    token: str = ""
    dimension: int = DEFAULT_EMBEDDING_DIMENSION
    timeout_seconds: float = 30.0

    model_config = {"frozen": True}

    @property
    def uri(self) -> str:
        if self.host.startswith(("http://", "https://")):
            return f"{self.host}:{self.port}"
        return f"http://{self.host}:{self.port}"


class IndexingSettings(BaseModel):
    """Knobs for the schema indexing pipeline."""

    ledger_path: str = "schema.db"
    workers: int = Field(default=5, ge=1)
    batch_size: int = Field(default=10, ge=1)
    refresh_enabled: bool = True
    refresh_interval_seconds: float = 300.0

    model_config = {"frozen": True}


class TelemetrySettings(BaseModel):
    """Logging and OpenTelemetry settings."""

    log_level: str = "INFO"
    service_name: str = "mysql-schema-mcp"
    otlp_endpoint: Optional[str] = None

    model_config = {"frozen": True}


class Settings(BaseModel):
    """Top-level settings passed to every component at construction time."""

    database: DatabaseSettings
    embedding: EmbeddingSettings
    vector_index: VectorIndexSettings
    indexing: IndexingSettings = Field(default_factory=IndexingSettings)
    telemetry: TelemetrySettings = Field(default_factory=TelemetrySettings)

    model_config = {"frozen": True}

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        """Build settings from environment variables.

        Raises:
            ConfigError: listing every missing or invalid variable.
        """
        env = _EnvReader(os.environ if environ is None else environ)

        database = dict(
            user=env.get_str("DB_USER", required=True),
            password=env.get_str("DB_PASSWORD", ""),
            host=env.get_str("DB_HOST", required=True),
            port=env.get_int("DB_PORT", 3306, minimum=1),
            name=env.get_str("DB_NAME", required=True),
            params=env.get_str("DB_PARAMS", ""),
        )
        embedding = dict(
            url=env.get_str("SILICONFLOW_URL", required=True),
            token=env.get_str("SILICONFLOW_TOKEN", required=True),
            model=env.get_str("EMBEDDING_MODEL", DEFAULT_EMBEDDING_MODEL),
            timeout_seconds=env.get_float("EMBEDDING_TIMEOUT_SECONDS", 10.0),
        )
        vector_index = dict(
            host=env.get_str("MILVUS_HOST", required=True),
            port=env.get_int("MILVUS_PORT", 19530, minimum=1),
            collection=env.get_str("MILVUS_COLLECTION", required=True),
            token=env.get_str("MILVUS_TOKEN", ""),
            timeout_seconds=env.get_float("MILVUS_TIMEOUT_SECONDS", 30.0),
        )
        indexing = IndexingSettings(
            ledger_path=env.get_str("LEDGER_PATH", "schema.db"),
            workers=env.get_int("INDEX_WORKERS", 5, minimum=1),
            batch_size=env.get_int("INDEX_BATCH_SIZE", 10, minimum=1),
            refresh_enabled=env.get_bool("SCHEMA_REFRESH_ENABLED", True),
            refresh_interval_seconds=env.get_float("SCHEMA_REFRESH_INTERVAL_SECONDS", 300.0),
        )
        telemetry = TelemetrySettings(
            log_level=env.get_str("LOG_LEVEL", "INFO").upper(),
            service_name=env.get_str("OTEL_SERVICE_NAME", "mysql-schema-mcp"),
            otlp_endpoint=env.get_str("OTEL_EXPORTER_OTLP_ENDPOINT", "") or None,
        )

        if env.missing or env.invalid:
            raise ConfigError(missing=env.missing, invalid=env.invalid)

        return cls(
            database=DatabaseSettings(**database),
            embedding=EmbeddingSettings(**embedding),
            vector_index=VectorIndexSettings(**vector_index),
            indexing=indexing,
            telemetry=telemetry,
        )
