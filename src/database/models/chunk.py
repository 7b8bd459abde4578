from datetime import datetime
from typing import List

from pydantic import Field

from src.database.record_model import StoredRecord
from src.utils.helpers import utc_now


class ChunkRecord(StoredRecord):
    """A span of a document's text with its vector, the unit of retrieval."""

    document_id: str = Field(..., description="Owning document ID")
    user_id: str = Field(..., description="Owning user ID")

    index: int = Field(..., ge=0, description="Position within the document")
    text: str = Field(default="", description="Raw text span")
    word_count: int = Field(default=0, ge=0)
    character_count: int = Field(default=0, ge=0)

    embedding: List[float] = Field(
        default_factory=list,
        description="Vector representation; empty when the chunk was stored without one",
    )

    created_at: datetime = Field(default_factory=utc_now)
