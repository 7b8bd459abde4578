"""Endpoint to answer a question from the user's documents."""

import logging
from fastapi import APIRouter, Depends

from src.dependencies import get_document_service
from src.middlewares.auth import get_current_user_id
from src.schemas.documents import AnswerRequest, AnswerResponse
from src.services.document import DocumentService

router = APIRouter(prefix="/rag")
logger = logging.getLogger(__name__)


@router.post("/answer", response_model=AnswerResponse)
async def generate_answer(
    request: AnswerRequest,
    user_id: str = Depends(get_current_user_id),
    document_service: DocumentService = Depends(get_document_service),
):
    """
    Retrieve supporting chunks and generate a grounded answer.

    A vector search is used when ``queryEmbedding`` is given, a text search
    on the question otherwise.

    :raises HTTPException:\n
        - 502: The chat-completion service failed.
    """
    logger.info(f"Answer request from {user_id}")
    return await document_service.answer(
        user_id,
        request.question,
        query_embedding=request.query_embedding,
        options=request.options,
    )
