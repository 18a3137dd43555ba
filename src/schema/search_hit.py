from typing import Optional

from pydantic import BaseModel


class SearchHit(BaseModel):
    """A single nearest-neighbour result from the schema vector index."""

    text: str
    score: float
    record_id: Optional[int] = None

    model_config = {"frozen": True}
