from unittest.mock import AsyncMock, patch

import pytest

from src.core.llm_manager import LLMManager
from src.schemas.documents import SearchOptions, SearchResult
from src.services.generate_answer import (
    AnswerAssembler,
    build_context,
    build_sources_footer,
    summarize_sources,
)
from src.utils.errors import UpstreamServiceError
from tests.utils.utils import TEST_USER_ID, make_upload

USER = TEST_USER_ID


def result(document_id="doc_1", filename="sop.pdf", text="text", similarity=0.8, index=0):
    return SearchResult(
        document_id=document_id,
        filename=filename,
        chunk_index=index,
        text=text,
        similarity=similarity,
    )


def test_build_context_format():
    context = build_context(
        [result(filename="a.pdf", text="alpha"), result(filename="b.pdf", text="beta")],
        max_chars=10_000,
    )

    assert context == "[Document: a.pdf]\nalpha\n\n---\n[Document: b.pdf]\nbeta\n"


def test_build_context_truncates():
    context = build_context([result(text="x" * 500)], max_chars=100)

    assert context.endswith(" ...[truncated]")
    assert len(context) == 100 + len(" ...[truncated]")


def test_summarize_sources_groups_by_document():
    sources = summarize_sources(
        [
            result("doc_1", "a.pdf", similarity=0.9),
            result("doc_2", "b.pdf", similarity=0.5),
            result("doc_1", "a.pdf", similarity=0.7, index=1),
        ]
    )

    assert [s.filename for s in sources] == ["a.pdf", "b.pdf"]
    assert sources[0].average == pytest.approx(0.8)


def test_sources_footer():
    footer = build_sources_footer(
        [
            result("doc_1", "a.pdf", similarity=0.9),
            result("doc_1", "a.pdf", similarity=0.7, index=1),
            result("doc_2", "b.pdf", similarity=0.5),
        ],
        strong_cutoff=0.6,
    )

    assert footer == (
        "\n\n**Sources Referenced:**\n"
        "- a.pdf (80.0% match)\n"
        "- b.pdf (50.0% match)\n"
        "\n**Strong matches:** 2 chunks with >60% relevance"
    )


def test_sources_footer_without_strong_matches():
    footer = build_sources_footer([result(similarity=0.6)], strong_cutoff=0.6)

    assert "Strong matches" not in footer
    assert "- sop.pdf (60.0% match)" in footer


def test_sources_footer_empty():
    assert build_sources_footer([], strong_cutoff=0.6) == ""


@pytest.mark.asyncio
async def test_no_results_sends_bare_question(complete):
    assembler = AnswerAssembler(complete)

    response = await assembler.generate("What is a CAPA?", [], search_type="text")

    complete.assert_awaited_once_with("What is a CAPA?")
    assert response.answer == "Generated answer"
    assert response.sources == []
    assert response.rag_metadata.total_sources == 0
    assert response.rag_metadata.search_type == "text"


@pytest.mark.asyncio
async def test_grounded_answer(complete):
    assembler = AnswerAssembler(complete)
    results = [
        result("doc_1", "a.pdf", text="CAPA means corrective action", similarity=0.9),
        result("doc_2", "b.pdf", text="unrelated", similarity=0.4),
    ]

    response = await assembler.generate("What is a CAPA?", results, search_type="vector")

    prompt = complete.await_args.args[0]
    assert "[Document: a.pdf]\nCAPA means corrective action" in prompt
    assert "USER QUESTION: What is a CAPA?" in prompt
    assert response.answer.startswith("Generated answer\n\n**Sources Referenced:**")
    assert "**Strong matches:** 1 chunks with >60% relevance" in response.answer
    assert response.rag_metadata.total_sources == 2
    assert response.rag_metadata.high_score_sources == 1
    assert response.rag_metadata.average_score == pytest.approx(0.65)
    assert response.sources == results


@pytest.mark.asyncio
async def test_upstream_failure_propagates():
    complete = AsyncMock(side_effect=UpstreamServiceError("Chat completion failed"))
    assembler = AnswerAssembler(complete)

    with pytest.raises(UpstreamServiceError):
        await assembler.generate("question", [result()])


@pytest.mark.asyncio
async def test_service_answer_uses_vector_search(service, complete):
    await service.upload(USER, make_upload(filename="sop.pdf", embeddings=[[1.0, 0.0]]))

    response = await service.answer(USER, "question", query_embedding=[1.0, 0.0])

    assert response.rag_metadata.search_type == "vector"
    assert [s.filename for s in response.sources] == ["sop.pdf"]
    assert "[Document: sop.pdf]" in complete.await_args.args[0]


@pytest.mark.asyncio
async def test_service_answer_falls_back_to_text_search(service, complete):
    await service.upload(
        USER,
        make_upload(
            filename="capa.pdf",
            texts=["corrective and preventive action plan"],
        ),
    )

    response = await service.answer(
        USER, "preventive action", options=SearchOptions(threshold=0.1)
    )

    assert response.rag_metadata.search_type == "text"
    assert [s.filename for s in response.sources] == ["capa.pdf"]


@pytest.mark.asyncio
async def test_llm_manager_wraps_failures():
    manager = LLMManager()
    failing = AsyncMock(side_effect=TimeoutError("timed out"))

    with patch.object(manager, "_get_openai_llm") as get_llm:
        get_llm.return_value.ainvoke = failing
        with pytest.raises(UpstreamServiceError) as exc_info:
            await manager.complete("prompt")

    assert isinstance(exc_info.value.error, TimeoutError)
    assert exc_info.value.status_code == 502


@pytest.mark.asyncio
async def test_llm_manager_returns_content():
    manager = LLMManager()
    reply = AsyncMock(return_value=type("Reply", (), {"content": "answer text"})())

    with patch.object(manager, "_get_openai_llm") as get_llm:
        get_llm.return_value.ainvoke = reply
        answer = await manager.complete("prompt")

    assert answer == "answer text"
    messages = reply.await_args.args[0]
    assert messages[-1].content == "prompt"
