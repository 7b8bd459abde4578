"""
Retrieval engine: linear scan over every chunk a user owns.

There is no index; each query drains the user's chunk listing, scores each
chunk, keeps those at or above the threshold, ranks them by score (ties keep
listing order) and joins the survivors to their document's metadata.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from src.config import Config
from src.constants import UNKNOWN_FILENAME
from src.core.similarity import cosine_similarity, keyword_score
from src.database.models.chunk import ChunkRecord
from src.database.models.document import DocumentRecord
from src.database.stores import RagStores
from src.schemas.documents import SearchOptions, SearchResponse, SearchResult
from src.utils.errors import Component, InvalidRequestError

logger = logging.getLogger(__name__)

# Returns the chunk's score, or None when the chunk must not be kept at all.
Scorer = Callable[[ChunkRecord], Optional[float]]


@dataclass
class ResolvedOptions:
    limit: int
    threshold: float
    document_ids: Optional[frozenset]


class RetrievalEngine:
    def __init__(self, stores: RagStores, config: Optional[Config] = None):
        self.stores = stores
        self.config = config or Config()

    def _resolve(
        self, options: Optional[SearchOptions], default_threshold: float
    ) -> ResolvedOptions:
        options = options or SearchOptions()
        limit = options.limit if options.limit is not None else self.config.get_default_limit()
        threshold = options.threshold if options.threshold is not None else default_threshold
        document_ids = (
            frozenset(options.document_ids) if options.document_ids is not None else None
        )
        return ResolvedOptions(limit=limit, threshold=threshold, document_ids=document_ids)

    async def search(
        self,
        user_id: str,
        query_embedding: Sequence[float],
        options: Optional[SearchOptions] = None,
    ) -> SearchResponse:
        """Rank the user's chunks by cosine similarity to ``query_embedding``."""
        if not query_embedding:
            raise InvalidRequestError(
                "Valid query embedding is required", Component.RETRIEVAL
            )
        resolved = self._resolve(options, self.config.get_default_threshold())
        logger.info(
            f"Vector search for user {user_id} (limit={resolved.limit}, "
            f"threshold={resolved.threshold})"
        )
        return await self._rank(
            user_id,
            lambda chunk: cosine_similarity(query_embedding, chunk.embedding),
            resolved,
        )

    async def search_text(
        self, user_id: str, query: str, options: Optional[SearchOptions] = None
    ) -> SearchResponse:
        """Rank the user's chunks by keyword overlap with ``query``."""
        if not query or not query.strip():
            raise InvalidRequestError("Search query is required", Component.RETRIEVAL)
        resolved = self._resolve(options, self.config.get_default_text_threshold())
        logger.info(
            f"Text search for user {user_id} (limit={resolved.limit}, "
            f"threshold={resolved.threshold})"
        )

        def score(chunk: ChunkRecord) -> Optional[float]:
            normalized, matches = keyword_score(query, chunk.text)
            return normalized if matches > 0 else None

        return await self._rank(user_id, score, resolved)

    async def _rank(
        self, user_id: str, scorer: Scorer, options: ResolvedOptions
    ) -> SearchResponse:
        if options.limit <= 0:
            return SearchResponse(results=[], total_found=0)

        scored: List[Tuple[float, ChunkRecord]] = []
        scanned = 0
        async for chunk in self.stores.chunks.iter(user_id):
            scanned += 1
            if options.document_ids is not None and chunk.document_id not in options.document_ids:
                continue
            score = scorer(chunk)
            if score is None or score < options.threshold:
                continue
            scored.append((score, chunk))

        # sorted() is stable, so equal scores keep listing order
        ranked = sorted(scored, key=lambda item: item[0], reverse=True)[: options.limit]
        logger.info(
            f"Scanned {scanned} chunks for user {user_id}: "
            f"{len(scored)} above threshold, returning {len(ranked)}"
        )

        documents = await self._load_documents(
            user_id, {chunk.document_id for _, chunk in ranked}
        )
        results = [self._to_result(score, chunk, documents) for score, chunk in ranked]
        return SearchResponse(results=results, total_found=len(results))

    async def _load_documents(
        self, user_id: str, document_ids: set
    ) -> Dict[str, Optional[DocumentRecord]]:
        """Fetch each owning document once; failures become None."""
        ids = sorted(document_ids)
        fetched = await asyncio.gather(
            *(self.stores.documents.find(user_id, document_id) for document_id in ids),
            return_exceptions=True,
        )
        documents: Dict[str, Optional[DocumentRecord]] = {}
        for document_id, outcome in zip(ids, fetched):
            if isinstance(outcome, Exception):
                logger.warning(
                    f"Error getting document metadata for {document_id}: {outcome}"
                )
                documents[document_id] = None
            else:
                if outcome is None:
                    logger.warning(f"Document {document_id} missing for matched chunks")
                documents[document_id] = outcome
        return documents

    @staticmethod
    def _to_result(
        score: float,
        chunk: ChunkRecord,
        documents: Dict[str, Optional[DocumentRecord]],
    ) -> SearchResult:
        document = documents.get(chunk.document_id)
        return SearchResult(
            document_id=chunk.document_id,
            filename=document.filename if document else UNKNOWN_FILENAME,
            chunk_index=chunk.index,
            text=chunk.text,
            similarity=score,
            metadata=document.metadata.model_dump() if document else {},
        )
