"""Services for schema ingestion and vector indexing."""

__version__ = "0.1.0"
