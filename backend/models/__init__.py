"""Data models for the XRL chat backend."""
from .document import Document, Page, StoredDocument, IngestionResult
from .chunk import Chunk, ScoredChunk
from .api import (
    ChatRequest,
    ChatResponse,
    RetrievalSummary,
    RetrieveRequest,
    RetrieveResponse,
    ChunkOut,
    UploadResponse,
)

__all__ = [
    "Document",
    "Page",
    "StoredDocument",
    "IngestionResult",
    "Chunk",
    "ScoredChunk",
    "ChatRequest",
    "ChatResponse",
    "RetrievalSummary",
    "RetrieveRequest",
    "RetrieveResponse",
    "ChunkOut",
    "UploadResponse",
]
