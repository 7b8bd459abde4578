"""
Document Service for the RAG engine.

This module wires the ingestion pipeline, retrieval engine, stats aggregator
and answer assembly around one set of stores, and shapes their results into
the API response models.
"""

import logging
from typing import List, Optional, Sequence

from src.config import Config
from src.database.stores import RagStores
from src.schemas.documents import (
    AnswerResponse,
    DeleteResponse,
    DocumentListResponse,
    DocumentSummary,
    SearchOptions,
    SearchResponse,
    StatsResponse,
    UploadDocumentRequest,
    UploadResponse,
    UploadTextRequest,
)
from src.services.generate_answer import AnswerAssembler, CompletionFn
from src.services.ingestion import IngestionPipeline
from src.services.retrieval import RetrievalEngine
from src.services.stats import StatsAggregator
from src.utils.helpers import utc_now

logger = logging.getLogger(__name__)


class DocumentService:
    """
    Service for managing a user's RAG documents.

    The stores and the completion callable are injected; their lifecycle
    belongs to the caller.
    """

    def __init__(
        self,
        stores: RagStores,
        complete: CompletionFn,
        config: Optional[Config] = None,
    ):
        self.config = config or Config()
        self.stores = stores
        self.stats = StatsAggregator(stores.stats, stores.documents)
        self.ingestion = IngestionPipeline(stores, self.stats, self.config)
        self.retrieval = RetrievalEngine(stores, self.config)
        self.answers = AnswerAssembler(complete, self.config)

    async def upload(self, user_id: str, request: UploadDocumentRequest) -> UploadResponse:
        result = await self.ingestion.upload(user_id, request)
        return UploadResponse(
            id=result.document_id,
            filename=result.filename,
            chunk_count=result.chunk_count,
        )

    async def upload_text(self, user_id: str, request: UploadTextRequest) -> UploadResponse:
        result = await self.ingestion.upload_text(user_id, request)
        return UploadResponse(
            id=result.document_id,
            filename=result.filename,
            chunk_count=result.chunk_count,
        )

    async def search(
        self,
        user_id: str,
        query_embedding: Sequence[float],
        options: Optional[SearchOptions] = None,
    ) -> SearchResponse:
        return await self.retrieval.search(user_id, query_embedding, options)

    async def search_text(
        self, user_id: str, query: str, options: Optional[SearchOptions] = None
    ) -> SearchResponse:
        return await self.retrieval.search_text(user_id, query, options)

    async def list_documents(self, user_id: str) -> DocumentListResponse:
        documents: List[DocumentSummary] = []
        async for document in self.stores.documents.iter(user_id):
            documents.append(
                DocumentSummary(
                    id=document.id,
                    filename=document.filename,
                    type=f"application/{document.file_type}",
                    size=document.file_size,
                    chunk_count=document.chunk_count,
                    category=document.metadata.category,
                    tags=document.metadata.tags,
                    created_at=document.created_at,
                    metadata=document.metadata.model_dump(),
                )
            )

        # Newest first
        documents.sort(key=lambda summary: summary.created_at, reverse=True)
        return DocumentListResponse(documents=documents, total=len(documents))

    async def delete(self, user_id: str, document_id: str) -> DeleteResponse:
        result = await self.ingestion.delete(user_id, document_id)
        return DeleteResponse(
            document_id=result.document_id,
            filename=result.filename,
            deleted_chunks=result.deleted_chunks,
            failed_chunks=len(result.failed_chunks),
        )

    async def get_stats(self, user_id: str) -> StatsResponse:
        """Stats from a live scan; the cached counters are corrected if they drifted."""
        snapshot = await self.stats.reconcile(user_id)
        return StatsResponse(
            total_documents=snapshot.document_count,
            total_chunks=snapshot.chunk_count,
            total_size=snapshot.total_size,
            oldest_document=snapshot.oldest_document,
            newest_document=snapshot.newest_document,
            last_updated=utc_now(),
        )

    async def answer(
        self,
        user_id: str,
        question: str,
        query_embedding: Optional[Sequence[float]] = None,
        options: Optional[SearchOptions] = None,
    ) -> AnswerResponse:
        if query_embedding:
            search_type = "vector"
            found = await self.retrieval.search(user_id, query_embedding, options)
        else:
            search_type = "text"
            found = await self.retrieval.search_text(user_id, question, options)
        return await self.answers.generate(question, found.results, search_type)
