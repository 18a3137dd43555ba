"""Exception hierarchy shared by the DAL, ingestion pipeline and MCP tools."""

from __future__ import annotations

from typing import Iterable, Optional

from common.errors.error_codes import ErrorCode


class ServiceError(Exception):
    """Base class for every error this service raises on purpose."""

    code: ErrorCode = ErrorCode.INTERNAL_ERROR


class ConfigError(ServiceError):
    """Required settings are missing or invalid."""

    code = ErrorCode.CONFIG_ERROR

    def __init__(
        self,
        message: Optional[str] = None,
        *,
        missing: Iterable[str] = (),
        invalid: Iterable[str] = (),
    ) -> None:
        self.missing = list(missing)
        self.invalid = list(invalid)
        if message is None:
            parts = []
            if self.missing:
                parts.append("missing: " + ", ".join(self.missing))
            if self.invalid:
                parts.append("invalid: " + "; ".join(self.invalid))
            message = "Invalid configuration (" + "; ".join(parts) + ")"
        super().__init__(message)


class ConnectivityError(ServiceError):
    """The relational source or the vector service cannot be reached."""

    code = ErrorCode.CONNECTIVITY_ERROR


class InvalidInputError(ServiceError, ValueError):
    """Caller supplied an empty or otherwise unusable argument."""

    code = ErrorCode.INVALID_INPUT


class TransportError(ServiceError):
    """Network failure or timeout while talking to an upstream service."""

    code = ErrorCode.TRANSPORT_ERROR


class UpstreamError(ServiceError):
    """An upstream service answered with a non-success response."""

    code = ErrorCode.UPSTREAM_ERROR

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class VectorIndexError(UpstreamError):
    """A vector index RPC failed."""

    def __init__(self, operation: str, message: str) -> None:
        super().__init__(f"vector index {operation} failed: {message}")
        self.operation = operation


class DecodeError(ServiceError):
    """An upstream response could not be decoded."""

    code = ErrorCode.DECODE_ERROR


class QueryExecutionError(ServiceError):
    """A relational query failed."""

    code = ErrorCode.QUERY_ERROR


class LedgerError(ServiceError):
    """The dedup ledger store could not be opened or prepared."""

    code = ErrorCode.LEDGER_ERROR
