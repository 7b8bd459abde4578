"""
Core module for the RAG engine.

This module contains the scoring functions and the chat-completion client.
"""

from .llm_manager import LLMManager
from .similarity import cosine_similarity, keyword_score

__all__ = [
    "LLMManager",
    "cosine_similarity",
    "keyword_score",
]
