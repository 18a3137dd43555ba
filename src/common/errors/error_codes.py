"""Canonical error-code taxonomy for the indexing pipeline and MCP tools."""

from __future__ import annotations

from enum import Enum


class ErrorCode(str, Enum):
    """Bounded error codes attached to every ServiceError."""

    CONFIG_ERROR = "CONFIG_ERROR"
    CONNECTIVITY_ERROR = "CONNECTIVITY_ERROR"
    INVALID_INPUT = "INVALID_INPUT"
    TRANSPORT_ERROR = "TRANSPORT_ERROR"
    UPSTREAM_ERROR = "UPSTREAM_ERROR"
    DECODE_ERROR = "DECODE_ERROR"
    QUERY_ERROR = "QUERY_ERROR"
    LEDGER_ERROR = "LEDGER_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"
