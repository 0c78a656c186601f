"""Request and response models for the HTTP API."""
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field

from config import RETRIEVAL_TOP_K


class ChatRequest(BaseModel):
    """Chat message from the UI. Unknown keys are forwarded to the webhook."""
    model_config = ConfigDict(extra="allow")

    message: str = Field(..., min_length=1)
    session_id: Optional[str] = None
    document_ids: List[str] = Field(default_factory=list)
    top_k: int = Field(default=RETRIEVAL_TOP_K, gt=0)


class RetrievalSummary(BaseModel):
    """How context retrieval went for a chat request."""
    status: str  # "ok", "skipped" or "failed"
    chunks: int = 0
    error: Optional[str] = None


class ChatResponse(BaseModel):
    ok: bool
    assistant_text: str
    assistant_json: Optional[Any] = None
    n8n_raw: Any = None
    retrieval: RetrievalSummary


class RetrieveRequest(BaseModel):
    document_ids: List[str] = Field(default_factory=list)
    query: str = ""
    top_k: int = Field(default=RETRIEVAL_TOP_K, gt=0)


class ChunkOut(BaseModel):
    doc_id: Optional[str]
    chunk_index: int
    content: str
    metadata_json: Dict[str, Any] = Field(default_factory=dict)


class RetrieveResponse(BaseModel):
    chunks: List[ChunkOut]
    count: int


class UploadResponse(BaseModel):
    doc_id: str
    bucket: str
    path: str
    status: str
    chunks_created: int
    text_length: int
    warnings: List[str] = Field(default_factory=list)
