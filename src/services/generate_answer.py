"""
Answer assembly: grounds a question in ranked search results, asks the
chat-completion collaborator once, and appends a source attribution footer.
"""

import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Dict, List, Optional

from src.config import Config
from src.constants import CONTEXT_DELIMITER, TRUNCATION_MARKER
from src.schemas.documents import AnswerResponse, RagMetadata, SearchResult
from src.utils.template_loader import format_template

logger = logging.getLogger(__name__)

CompletionFn = Callable[[str], Awaitable[str]]


@dataclass
class SourceSummary:
    filename: str
    scores: List[float] = field(default_factory=list)

    @property
    def average(self) -> float:
        return sum(self.scores) / len(self.scores)


def build_context(results: List[SearchResult], max_chars: int) -> str:
    """Join result texts under their filenames, cut at ``max_chars``."""
    context = CONTEXT_DELIMITER.join(
        f"[Document: {result.filename}]\n{result.text}\n" for result in results
    )
    if len(context) > max_chars:
        return context[:max_chars] + TRUNCATION_MARKER
    return context


def summarize_sources(results: List[SearchResult]) -> List[SourceSummary]:
    """Group scores per document, in order of first appearance."""
    sources: Dict[str, SourceSummary] = {}
    for result in results:
        summary = sources.setdefault(
            result.document_id, SourceSummary(filename=result.filename)
        )
        summary.scores.append(result.similarity)
    return list(sources.values())


def build_sources_footer(results: List[SearchResult], strong_cutoff: float) -> str:
    sources = summarize_sources(results)
    if not sources:
        return ""

    footer = "\n\n**Sources Referenced:**\n"
    for source in sources:
        footer += f"- {source.filename} ({source.average * 100:.1f}% match)\n"

    strong = sum(1 for result in results if result.similarity > strong_cutoff)
    if strong:
        footer += (
            f"\n**Strong matches:** {strong} chunks with "
            f">{strong_cutoff * 100:.0f}% relevance"
        )
    return footer


class AnswerAssembler:
    def __init__(self, complete: CompletionFn, config: Optional[Config] = None):
        self.complete = complete
        self.config = config or Config()

    async def generate(
        self,
        question: str,
        results: List[SearchResult],
        search_type: Optional[str] = None,
    ) -> AnswerResponse:
        """Answer ``question`` from ``results``.

        Raises:
            UpstreamServiceError: propagated from the completion call.
        """
        if not results:
            logger.info("No search results, answering without document context")
            answer = await self.complete(question)
            return AnswerResponse(
                answer=answer,
                sources=[],
                rag_metadata=RagMetadata(search_type=search_type),
            )

        logger.info(f"Generating grounded answer from {len(results)} chunks")
        context = build_context(results, self.config.get_max_context_chars())
        prompt = format_template("rag_prompt", context=context, question=question)
        answer = await self.complete(prompt)

        strong_cutoff = self.config.get_strong_match_cutoff()
        footer = build_sources_footer(results, strong_cutoff)
        return AnswerResponse(
            answer=answer + footer,
            sources=results,
            rag_metadata=RagMetadata(
                total_sources=len(results),
                high_score_sources=sum(
                    1 for result in results if result.similarity > strong_cutoff
                ),
                average_score=sum(result.similarity for result in results)
                / len(results),
                search_type=search_type,
            ),
        )
