"""Data Abstraction Layer (DAL).

Adapters for the MySQL query target, the local SQLite ledger and the Milvus
vector index.
"""
