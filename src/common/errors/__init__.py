"""Common error taxonomy."""

from common.errors.error_codes import ErrorCode
from common.errors.exceptions import (
    ConfigError,
    ConnectivityError,
    DecodeError,
    InvalidInputError,
    LedgerError,
    QueryExecutionError,
    ServiceError,
    TransportError,
    UpstreamError,
    VectorIndexError,
)

__all__ = [
    "ErrorCode",
    "ServiceError",
    "ConfigError",
    "ConnectivityError",
    "InvalidInputError",
    "TransportError",
    "UpstreamError",
    "VectorIndexError",
    "DecodeError",
    "QueryExecutionError",
    "LedgerError",
]
