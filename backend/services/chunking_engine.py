"""Character-window chunking engine with offset tracking."""
import logging
from typing import List, Optional

from models.chunk import Chunk
from config import CHUNK_SIZE, CHUNK_OVERLAP

logger = logging.getLogger(__name__)


class ChunkingEngine:
    """Segments extracted document text into bounded, overlapping windows."""

    def __init__(self, chunk_size: int = CHUNK_SIZE, chunk_overlap: int = CHUNK_OVERLAP):
        """
        Initialize ChunkingEngine.

        Args:
            chunk_size: Maximum window length in characters
            chunk_overlap: Characters shared by consecutive windows

        Raises:
            ValueError: If chunk_size is not positive or overlap is outside [0, chunk_size)
        """
        if chunk_size <= 0:
            raise ValueError(f"chunk_size must be positive, got {chunk_size}")
        if chunk_overlap < 0:
            raise ValueError(f"chunk_overlap cannot be negative, got {chunk_overlap}")
        if chunk_overlap >= chunk_size:
            raise ValueError(
                f"chunk_overlap ({chunk_overlap}) must be smaller than chunk_size ({chunk_size})"
            )

        self.chunk_size = chunk_size
        self.chunk_overlap = chunk_overlap

    def chunk_text(self, text: str, document_id: Optional[str] = None) -> List[Chunk]:
        """
        Split text into overlapping windows.

        Windows whose content is only whitespace are skipped, but the content of
        emitted windows is kept verbatim so ``text[char_start:char_end]`` always
        equals ``content``.

        Args:
            text: Extracted document text (may be empty)
            document_id: Owning document, copied onto every chunk

        Returns:
            Chunks ordered by char_start with indices 0..n-1
        """
        if not text:
            return []

        step = self.chunk_size - self.chunk_overlap
        length = len(text)
        chunks: List[Chunk] = []
        start = 0

        while start < length:
            end = min(start + self.chunk_size, length)
            window = text[start:end]

            if window.strip():
                chunks.append(Chunk(
                    index=len(chunks),
                    content=window,
                    char_start=start,
                    char_end=end,
                    document_id=document_id,
                ))

            next_start = start + step
            # Guard against a non-advancing start
            if next_start <= start:
                next_start = end
            start = next_start

        logger.debug(
            f"Split {length} characters into {len(chunks)} chunks "
            f"(size={self.chunk_size}, overlap={self.chunk_overlap})"
        )
        return chunks


def chunk_text(
    text: str,
    chunk_size: int = CHUNK_SIZE,
    overlap: int = CHUNK_OVERLAP,
    document_id: Optional[str] = None
) -> List[Chunk]:
    """Convenience wrapper: chunk ``text`` with a one-off ChunkingEngine."""
    return ChunkingEngine(chunk_size=chunk_size, chunk_overlap=overlap).chunk_text(
        text, document_id=document_id
    )
