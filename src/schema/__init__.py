"""Canonical data models shared by the DAL, ingestion pipeline and tools."""

from .search_hit import SearchHit
from .table_schema import TableSchema

__all__ = ["SearchHit", "TableSchema"]
