from datetime import datetime
from enum import Enum
from typing import List

from pydantic import BaseModel, ConfigDict, Field

from src.constants import DEFAULT_CATEGORY
from src.database.record_model import StoredRecord
from src.utils.helpers import utc_now


class FileType(str, Enum):
    PDF = "pdf"
    DOC = "doc"
    DOCX = "docx"
    TXT = "txt"


class DocumentMetadata(BaseModel):
    """Category and tags plus any caller supplied key/value pairs."""

    model_config = ConfigDict(extra="allow")

    category: str = Field(default=DEFAULT_CATEGORY, description="Document category")
    tags: List[str] = Field(default_factory=list, description="Free-form tags")


class DocumentRecord(StoredRecord):
    """Model for a user-uploaded document. Immutable after upload."""

    user_id: str = Field(..., description="Owning user ID")

    filename: str = Field(..., min_length=1, description="Display filename")
    original_filename: str = Field(..., description="Filename as uploaded")
    file_type: FileType = Field(default=FileType.TXT, description="Coarse file type")
    file_size: int = Field(default=0, ge=0, description="File size in bytes")

    # kept so the document can be re-chunked later
    text_content: str = Field(default="", description="Full extracted text")
    metadata: DocumentMetadata = Field(default_factory=DocumentMetadata)

    chunk_count: int = Field(default=0, ge=0, description="Number of stored chunks")

    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)
