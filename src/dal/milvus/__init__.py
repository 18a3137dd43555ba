"""Milvus-backed DAL components."""

from .vector_index import CollectionState, MilvusVectorIndex

__all__ = ["CollectionState", "MilvusVectorIndex"]
