from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import ConfigDict, Field, field_validator, model_validator

from src.schemas.common import CamelModel


class UploadChunk(CamelModel):
    index: int = Field(..., ge=0, description="0-based position within the document")
    text: str = Field(default="", description="Chunk text")
    word_count: int = Field(default=0, ge=0)
    character_count: int = Field(default=0, ge=0)
    embedding: List[float] = Field(default_factory=list, description="Chunk vector")


class UploadMetadata(CamelModel):
    """Category and tags; any other key is kept as-is."""

    model_config = ConfigDict(extra="allow")

    category: Optional[str] = Field(default=None, description="Document category")
    tags: List[str] = Field(default_factory=list)


class UploadDocumentRequest(CamelModel):
    filename: str = Field(..., min_length=1, max_length=500)
    type: Optional[str] = Field(default="text/plain", description="Declared MIME type")
    size: int = Field(default=0, ge=0, description="Byte size")
    text: str = Field(default="", description="Full extracted text")
    chunks: List[UploadChunk] = Field(..., min_length=1)
    metadata: UploadMetadata = Field(default_factory=UploadMetadata)

    @field_validator("filename")
    @classmethod
    def validate_filename(cls, v):
        if not v.strip():
            raise ValueError("Filename cannot be empty or whitespace only")
        return v.strip()

    @model_validator(mode="after")
    def validate_chunk_indices(self):
        indices = sorted(chunk.index for chunk in self.chunks)
        if indices != list(range(len(self.chunks))):
            raise ValueError("Chunk indices must be contiguous integers starting at 0")
        self.chunks = sorted(self.chunks, key=lambda chunk: chunk.index)
        return self


class UploadTextRequest(CamelModel):
    filename: str = Field(..., min_length=1, max_length=500)
    type: Optional[str] = Field(default="text/plain", description="Declared MIME type")
    size: Optional[int] = Field(
        default=None, ge=0, description="Byte size, defaults to the encoded text length"
    )
    text: str = Field(..., description="Full extracted text")
    metadata: UploadMetadata = Field(default_factory=UploadMetadata)

    @field_validator("filename")
    @classmethod
    def validate_filename(cls, v):
        if not v.strip():
            raise ValueError("Filename cannot be empty or whitespace only")
        return v.strip()


class UploadResponse(CamelModel):
    id: str
    filename: str
    chunk_count: int
    message: str = "Document uploaded and processed successfully"


class SearchOptions(CamelModel):
    limit: Optional[int] = Field(default=None, description="Maximum results")
    threshold: Optional[float] = Field(
        default=None, description="Minimum score, not clamped"
    )
    document_ids: Optional[List[str]] = Field(
        default=None, description="Restrict the scan to these documents"
    )


class SearchRequest(CamelModel):
    query_embedding: List[float] = Field(..., description="Query vector")
    options: SearchOptions = Field(default_factory=SearchOptions)


class TextSearchRequest(CamelModel):
    query: str = Field(..., max_length=1000, description="Search query")
    options: SearchOptions = Field(default_factory=SearchOptions)


class SearchResult(CamelModel):
    document_id: str
    filename: str
    chunk_index: int
    text: str
    similarity: float
    metadata: Dict[str, Any] = Field(default_factory=dict)


class SearchResponse(CamelModel):
    results: List[SearchResult] = Field(default_factory=list)
    total_found: int = 0


class DocumentSummary(CamelModel):
    id: str
    filename: str
    type: str
    size: int
    chunk_count: int
    category: str
    tags: List[str]
    created_at: datetime
    metadata: Dict[str, Any] = Field(default_factory=dict)


class DocumentListResponse(CamelModel):
    documents: List[DocumentSummary] = Field(default_factory=list)
    total: int = 0


class DeleteResponse(CamelModel):
    message: str = "Document deleted successfully"
    document_id: str
    filename: str
    deleted_chunks: int = 0
    failed_chunks: int = 0


class StatsResponse(CamelModel):
    total_documents: int = 0
    total_chunks: int = 0
    total_size: int = 0
    oldest_document: Optional[datetime] = None
    newest_document: Optional[datetime] = None
    last_updated: datetime


class AnswerRequest(CamelModel):
    question: str = Field(..., max_length=4000, description="User question")
    query_embedding: Optional[List[float]] = Field(
        default=None, description="Question vector; text search is used when absent"
    )
    options: SearchOptions = Field(default_factory=SearchOptions)

    @field_validator("question")
    @classmethod
    def validate_question(cls, v):
        if not v.strip():
            raise ValueError("Question cannot be empty or whitespace only")
        return v.strip()


class RagMetadata(CamelModel):
    total_sources: int = 0
    high_score_sources: int = 0
    average_score: float = 0.0
    search_type: Optional[str] = None


class AnswerResponse(CamelModel):
    answer: str
    sources: List[SearchResult] = Field(default_factory=list)
    rag_metadata: RagMetadata = Field(default_factory=RagMetadata)
