# src/routers/__init__.py
from .health_check import router as health_check_router
from .document import router as document_router
from .retrieve_documents import router as retrieve_router
from .generate_answer import router as answer_router

__all__ = [
    "health_check_router",
    "document_router",
    "retrieve_router",
    "answer_router",
]
