"""Remote text embedding client."""

from .client import EmbeddingClient
from .models import EmbeddingRequest, EmbeddingResponse, EmbeddingVector

__all__ = ["EmbeddingClient", "EmbeddingRequest", "EmbeddingResponse", "EmbeddingVector"]
