"""
Utility functions shared by the ingestion, retrieval and stats services.
"""

import logging
import time
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Awaitable, Optional

from src.constants import MIME_TYPE_TO_FILE_TYPE

logger = logging.getLogger(__name__)


@dataclass
class BestEffortResult:
    """Outcome of an operation whose failure must never reach the caller."""

    ok: bool
    error: Optional[Exception] = None


async def run_best_effort(operation: str, awaitable: Awaitable) -> BestEffortResult:
    """Await ``awaitable``, logging and swallowing any exception it raises."""
    try:
        await awaitable
        return BestEffortResult(ok=True)
    except Exception as e:
        logger.warning(f"Best-effort operation '{operation}' failed: {e}")
        return BestEffortResult(ok=False, error=e)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def generate_document_id() -> str:
    """Millisecond timestamp plus a random 128-bit suffix."""
    return f"doc_{int(time.time() * 1000)}_{uuid.uuid4().hex}"


def chunk_record_id(document_id: str, index: int) -> str:
    return f"{document_id}_chunk_{index}"


def chunk_id_prefix(document_id: str) -> str:
    return f"{document_id}_chunk_"


def document_type_from_mime(mime_type: Optional[str]) -> str:
    """Map a MIME type to the coarse file type, defaulting to txt."""
    if not mime_type:
        return "txt"
    return MIME_TYPE_TO_FILE_TYPE.get(mime_type.strip().lower(), "txt")


def count_words(text: str) -> int:
    return len(text.split())
