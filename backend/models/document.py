"""Document data models."""
from dataclasses import dataclass, field
from typing import List, Optional


@dataclass
class Page:
    """Represents a single page from a document."""
    page_number: int
    text: str
    word_count: int


@dataclass
class Document:
    """Represents a PDF extracted into pages."""
    filename: str
    pages: List[Page]
    total_pages: int

    @property
    def text(self) -> str:
        return "\n".join(page.text for page in self.pages)


@dataclass
class StoredDocument:
    """A document record in the documents table and its object in the bucket."""
    doc_id: str
    filename: str
    bucket: str
    path: str
    status: str = "uploaded"
    session_id: Optional[str] = None
    text_length: int = 0
    created_at: Optional[str] = None


@dataclass
class IngestionResult:
    """Outcome of storing, extracting and chunking one uploaded PDF."""
    document: StoredDocument
    chunks_created: int
    text_length: int
    warnings: List[str] = field(default_factory=list)
