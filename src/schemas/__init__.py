from .documents import (
    AnswerRequest,
    AnswerResponse,
    DeleteResponse,
    DocumentListResponse,
    DocumentSummary,
    RagMetadata,
    SearchOptions,
    SearchRequest,
    SearchResponse,
    SearchResult,
    StatsResponse,
    TextSearchRequest,
    UploadChunk,
    UploadDocumentRequest,
    UploadMetadata,
    UploadResponse,
    UploadTextRequest,
)

__all__ = [
    "AnswerRequest",
    "AnswerResponse",
    "DeleteResponse",
    "DocumentListResponse",
    "DocumentSummary",
    "RagMetadata",
    "SearchOptions",
    "SearchRequest",
    "SearchResponse",
    "SearchResult",
    "StatsResponse",
    "TextSearchRequest",
    "UploadChunk",
    "UploadDocumentRequest",
    "UploadMetadata",
    "UploadResponse",
    "UploadTextRequest",
]
