"""
Server-side chunking for documents uploaded as plain text.
"""

from dataclasses import dataclass
from typing import List, Optional

from langchain_text_splitters import RecursiveCharacterTextSplitter

from src.constants import DEFAULT_CHUNK_OVERLAP, DEFAULT_CHUNK_SIZE
from src.utils.helpers import count_words

# paragraph, line, then sentence boundaries before falling back to words
SEPARATORS = ["\n\n", "\n", ". ", "? ", "! ", " ", ""]


@dataclass
class TextChunk:
    index: int
    text: str
    word_count: int
    character_count: int


def chunk_text(
    text: str,
    chunk_size: Optional[int] = None,
    chunk_overlap: Optional[int] = None,
) -> List[TextChunk]:
    """Split ``text`` into overlapping chunks indexed from 0."""
    chunk_size = chunk_size or DEFAULT_CHUNK_SIZE
    chunk_overlap = DEFAULT_CHUNK_OVERLAP if chunk_overlap is None else chunk_overlap
    if chunk_overlap >= chunk_size:
        raise ValueError("Chunk overlap must be less than chunk size")

    splitter = RecursiveCharacterTextSplitter(
        chunk_size=chunk_size,
        chunk_overlap=chunk_overlap,
        separators=SEPARATORS,
        keep_separator="end",
        strip_whitespace=True,
    )
    pieces = [piece for piece in splitter.split_text(text) if piece.strip()]
    return [
        TextChunk(
            index=i,
            text=piece,
            word_count=count_words(piece),
            character_count=len(piece),
        )
        for i, piece in enumerate(pieces)
    ]
