"""
Ingestion pipeline: turns one uploaded document into a Document record,
its Chunk records and a stats adjustment, and removes them again on delete.

Chunk writes and deletes are issued as one concurrent fan-out per document.
If any chunk write fails the upload is rolled back, so a stored document's
``chunk_count`` always equals the number of its stored chunks.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence

from src.config import Config
from src.constants import UNKNOWN_FILENAME
from src.database.models.chunk import ChunkRecord
from src.database.models.document import DocumentMetadata, DocumentRecord
from src.database.stores import RagStores
from src.schemas.documents import (
    UploadChunk,
    UploadDocumentRequest,
    UploadMetadata,
    UploadTextRequest,
)
from src.services.stats import StatsAggregator
from src.utils.chunker import chunk_text
from src.utils.errors import (
    Component,
    DocumentNotFoundError,
    InvalidRequestError,
    PartialFailureError,
    RecordSchemaError,
    StorageError,
)
from src.utils.helpers import (
    chunk_record_id,
    document_type_from_mime,
    generate_document_id,
    run_best_effort,
    utc_now,
)

logger = logging.getLogger(__name__)


@dataclass
class IngestionResult:
    document_id: str
    filename: str
    chunk_count: int


@dataclass
class DeletionResult:
    document_id: str
    filename: str
    deleted_chunks: int
    failed_chunks: List[str]


class IngestionPipeline:
    def __init__(
        self,
        stores: RagStores,
        stats: StatsAggregator,
        config: Optional[Config] = None,
    ):
        self.stores = stores
        self.stats = stats
        self.config = config or Config()

    async def upload(
        self, user_id: str, request: UploadDocumentRequest
    ) -> IngestionResult:
        """Persist a document whose chunks and vectors were computed upstream."""
        return await self._ingest(
            user_id,
            filename=request.filename,
            mime_type=request.type,
            size=request.size,
            text=request.text,
            chunks=request.chunks,
            metadata=request.metadata,
        )

    async def upload_text(
        self, user_id: str, request: UploadTextRequest
    ) -> IngestionResult:
        """Chunk raw text server-side and persist it without vectors.

        Such chunks are only reachable through the text search.
        """
        if not request.text.strip():
            raise InvalidRequestError("Document text is required", Component.INGESTION)

        pieces = chunk_text(
            request.text,
            chunk_size=self.config.get_chunk_size(),
            chunk_overlap=self.config.get_chunk_overlap(),
        )
        chunks = [
            UploadChunk(
                index=piece.index,
                text=piece.text,
                word_count=piece.word_count,
                character_count=piece.character_count,
            )
            for piece in pieces
        ]
        size = request.size
        if size is None:
            size = len(request.text.encode("utf-8"))
        return await self._ingest(
            user_id,
            filename=request.filename,
            mime_type=request.type,
            size=size,
            text=request.text,
            chunks=chunks,
            metadata=request.metadata,
        )

    async def _ingest(
        self,
        user_id: str,
        *,
        filename: str,
        mime_type: Optional[str],
        size: int,
        text: str,
        chunks: Sequence[UploadChunk],
        metadata: UploadMetadata,
    ) -> IngestionResult:
        if not chunks:
            raise InvalidRequestError(
                "Document produced no chunks", Component.INGESTION
            )

        document_id = generate_document_id()
        timestamp = utc_now()
        logger.info(
            f"Ingesting {filename} as {document_id} for user {user_id} "
            f"({len(chunks)} chunks)"
        )

        document = DocumentRecord(
            id=document_id,
            user_id=user_id,
            filename=filename,
            original_filename=filename,
            file_type=document_type_from_mime(mime_type),
            file_size=size,
            text_content=text,
            metadata=DocumentMetadata(**metadata.model_dump(exclude_none=True)),
            chunk_count=len(chunks),
            created_at=timestamp,
            updated_at=timestamp,
        )
        chunk_records = [
            ChunkRecord(
                id=chunk_record_id(document_id, chunk.index),
                document_id=document_id,
                user_id=user_id,
                index=chunk.index,
                text=chunk.text,
                word_count=chunk.word_count,
                character_count=chunk.character_count,
                embedding=chunk.embedding,
                created_at=timestamp,
            )
            for chunk in chunks
        ]

        try:
            await self.stores.documents.save(user_id, document)
        except Exception as e:
            logger.error(f"Failed to store document {document_id}: {e}", exc_info=True)
            raise StorageError("Failed to store document", error=e) from e

        results = await self.stores.chunks.save_many(user_id, chunk_records)
        failed = [result.record_id for result in results if not result.ok]
        if failed:
            written = [result.record_id for result in results if result.ok]
            await self._roll_back(user_id, document_id, written)
            raise PartialFailureError(
                f"Failed to store {len(failed)} of {len(chunk_records)} chunks; "
                "upload rolled back",
                failed_ids=failed,
                component=Component.INGESTION,
            )

        await self.stats.apply_best_effort(
            user_id,
            {"document_count": 1, "chunk_count": len(chunk_records), "total_size": size},
        )
        return IngestionResult(
            document_id=document_id, filename=filename, chunk_count=len(chunk_records)
        )

    async def _roll_back(
        self, user_id: str, document_id: str, written_chunk_ids: List[str]
    ) -> None:
        logger.error(f"Rolling back upload of {document_id} for user {user_id}")
        if written_chunk_ids:
            results = await self.stores.chunks.remove_many(user_id, written_chunk_ids)
            leftover = [result.record_id for result in results if not result.ok]
            if leftover:
                logger.error(
                    f"Rollback left {len(leftover)} orphan chunks of {document_id}"
                )
        await run_best_effort(
            f"rollback of document {document_id}",
            self.stores.documents.remove(user_id, document_id),
        )

    async def delete(self, user_id: str, document_id: str) -> DeletionResult:
        """Delete a document and all of its chunks.

        A document whose record no longer parses is still deleted by key,
        together with its chunks; stats are then left to reconciliation.

        Raises:
            DocumentNotFoundError: if the user has no such document.
            StorageError: if the document record cannot be read or removed.
        """
        if not document_id or not document_id.strip():
            raise InvalidRequestError("Document ID is required", Component.INGESTION)
        if "/" in document_id:
            raise DocumentNotFoundError(document_id)

        malformed = False
        try:
            document = await self.stores.documents.find(user_id, document_id)
        except RecordSchemaError as e:
            logger.warning(f"Deleting unreadable document {document_id}: {e.reason}")
            document = None
            malformed = True
        except Exception as e:
            logger.error(f"Failed to read document {document_id}: {e}", exc_info=True)
            raise StorageError("Failed to read document", error=e) from e

        if document is None and not malformed:
            raise DocumentNotFoundError(document_id)

        chunk_ids = await self.stores.chunks.ids_for_document(user_id, document_id)
        results = await self.stores.chunks.remove_many(user_id, chunk_ids)
        failed = [result.record_id for result in results if not result.ok]

        try:
            await self.stores.documents.remove(user_id, document_id)
        except Exception as e:
            logger.error(f"Failed to delete document {document_id}: {e}", exc_info=True)
            raise StorageError("Failed to delete document", error=e) from e

        if document is not None:
            await self.stats.apply_best_effort(
                user_id,
                {
                    "document_count": -1,
                    "chunk_count": -document.chunk_count,
                    "total_size": -document.file_size,
                },
            )
        logger.info(
            f"Deleted {document_id} for user {user_id}: "
            f"{len(chunk_ids) - len(failed)} chunks removed, {len(failed)} failed"
        )
        return DeletionResult(
            document_id=document_id,
            filename=document.filename if document else UNKNOWN_FILENAME,
            deleted_chunks=len(chunk_ids) - len(failed),
            failed_chunks=failed,
        )
