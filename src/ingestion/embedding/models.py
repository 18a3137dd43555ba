from typing import List, Optional

import numpy as np
import numpy.typing as npt
from pydantic import BaseModel, Field

# Fixed-length float32 semantic fingerprint of a schema text or a user query.
EmbeddingVector = npt.NDArray[np.float32]


class EmbeddingRequest(BaseModel):
    """Request body for an OpenAI-compatible ``/embeddings`` endpoint."""

    model: str
    input: str
    encoding_format: str = "float"


class EmbeddingDatum(BaseModel):
    embedding: List[float]
    index: int = 0


class EmbeddingResponse(BaseModel):
    """Response body; only ``data[*].embedding`` is relied upon."""

    data: List[EmbeddingDatum] = Field(default_factory=list)
    model: Optional[str] = None

    model_config = {"extra": "ignore"}
