"""Chunk data models."""
from dataclasses import dataclass, field
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class Chunk:
    """A window of a document's extracted text, tagged with its source offsets."""
    index: int  # 0-based, sequential per document
    content: str
    char_start: int
    char_end: int
    document_id: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict, compare=False)

    def to_row(self) -> Dict[str, Any]:
        """Serialize using the column names of the document_chunks table."""
        return {
            "doc_id": self.document_id,
            "chunk_index": self.index,
            "content": self.content,
            "char_start": self.char_start,
            "char_end": self.char_end,
            "metadata_json": dict(self.metadata),
        }

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "Chunk":
        """Build a chunk from a document_chunks row."""
        content = row.get("content") or ""
        char_start = row.get("char_start")
        if char_start is None:
            char_start = 0
        char_end = row.get("char_end")
        if char_end is None:
            char_end = char_start + len(content)
        return cls(
            index=row["chunk_index"],
            content=content,
            char_start=char_start,
            char_end=char_end,
            document_id=row.get("doc_id"),
            metadata=row.get("metadata_json") or {},
        )


@dataclass
class ScoredChunk:
    """Chunk with keyword match score from retrieval."""
    chunk: Chunk
    score: int  # total keyword occurrences, 0 when nothing matched
