"""SQLite-backed DAL components."""

from .ledger import LEDGER_TABLE, SchemaLedger

__all__ = ["LEDGER_TABLE", "SchemaLedger"]
