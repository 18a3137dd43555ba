"""MySQL-backed DAL components."""

from .query_target import ExecuteResult, MysqlConnection, MysqlDatabase
from .quoting import quote_identifier
from .schema_introspector import MysqlSchemaIntrospector

__all__ = [
    "ExecuteResult",
    "MysqlConnection",
    "MysqlDatabase",
    "MysqlSchemaIntrospector",
    "quote_identifier",
]
