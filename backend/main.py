"""Main entry point for the XRL chat backend API."""
import logging
from typing import Any, Dict, List, Optional
from fastapi import FastAPI, File, Form, HTTPException, UploadFile
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse

from config import (
    PORT,
    LOG_LEVEL,
    LOG_FORMAT,
    FRONTEND_ORIGIN,
    SUPABASE_URL,
    SUPABASE_SERVICE_ROLE_KEY,
    N8N_WEBHOOK_URL,
    MAX_UPLOAD_BYTES,
)
from logger import setup_logging
from models.api import (
    ChatRequest,
    ChatResponse,
    ChunkOut,
    RetrievalSummary,
    RetrieveRequest,
    RetrieveResponse,
    UploadResponse,
)
from models.chunk import Chunk
from services.chunk_store import ChunkStore, ChunkStoreError
from services.document_store import DocumentStore, DocumentStoreError
from services.ingestion_service import IngestionService
from services.retrieval_engine import RetrievalEngine
from services.response_normalizer import build_assistant_payload
from services.webhook_client import WebhookClient, WebhookClientError

# Initialize logging
logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(
    title="XRL Chat Backend",
    description="Proxy between the XRL chat UI, the n8n workflow and Supabase document storage",
    version="1.0.0"
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=[FRONTEND_ORIGIN],
    allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "x-callback-secret"],
)

# Initialize services (will be done on startup)
chunk_store: ChunkStore = None
document_store: DocumentStore = None
retrieval_engine: RetrievalEngine = None
ingestion_service: IngestionService = None
webhook_client: WebhookClient = None


@app.on_event("startup")
async def startup_event():
    """Initialize services on startup."""
    global chunk_store, document_store, retrieval_engine, ingestion_service, webhook_client

    if LOG_FORMAT == "json":
        setup_logging(LOG_LEVEL)

    logger.info("Initializing XRL chat backend services...")

    if N8N_WEBHOOK_URL:
        webhook_client = WebhookClient()
    else:
        logger.warning("N8N_WEBHOOK_URL is not set, /api/chat will answer with an error")

    if SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY:
        chunk_store = ChunkStore.from_credentials(SUPABASE_URL, SUPABASE_SERVICE_ROLE_KEY)
        # Both stores share one client
        document_store = DocumentStore(chunk_store.client)
        retrieval_engine = RetrievalEngine(chunk_store)
        ingestion_service = IngestionService(document_store, chunk_store)
        logger.info("Initialized Supabase-backed document services")
    else:
        logger.warning("Supabase credentials missing, document upload and retrieval are disabled")

    logger.info("Service initialization finished")


def _require_documents() -> None:
    if retrieval_engine is None or ingestion_service is None or document_store is None:
        raise HTTPException(status_code=503, detail="Document storage is not configured")


def _chunk_out(chunk: Chunk) -> ChunkOut:
    return ChunkOut(
        doc_id=chunk.document_id,
        chunk_index=chunk.index,
        content=chunk.content,
        metadata_json=chunk.metadata,
    )


@app.get("/", response_class=PlainTextResponse)
async def root():
    """Plain liveness response."""
    return "OK"


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"ok": True}


def _retrieve_context(request: ChatRequest):
    """Fetch context chunks for a chat request, reporting failures instead of raising."""
    if not request.document_ids:
        return [], RetrievalSummary(status="skipped")

    if retrieval_engine is None:
        return [], RetrievalSummary(status="failed", error="Document storage is not configured")

    try:
        chunks = retrieval_engine.retrieve(request.document_ids, request.message, top_k=request.top_k)
    except ChunkStoreError as e:
        # The chat still goes through, without document context
        logger.error(f"Context retrieval failed, continuing without context: {e}")
        return [], RetrievalSummary(status="failed", error=str(e))

    return chunks, RetrievalSummary(status="ok", chunks=len(chunks))


@app.post("/api/chat", response_model=ChatResponse)
def chat_endpoint(request: ChatRequest):
    """
    Forward a chat message, with retrieved document context, to the n8n workflow.

    The request body is passed through unchanged (unknown keys included) and
    extended with ``context_chunks``. The upstream reply is normalized for
    display; upstream and transport failures keep the shapes the UI expects.
    """
    if webhook_client is None:
        return JSONResponse(status_code=500, content={"ok": False, "error": "Missing N8N_WEBHOOK_URL"})

    logger.info(f"Processing chat message: {request.message[:100]}...", extra={"session_id": request.session_id})

    chunks, retrieval = _retrieve_context(request)

    payload: Dict[str, Any] = request.model_dump(exclude_none=True)
    payload["context_chunks"] = [_chunk_out(chunk).model_dump() for chunk in chunks]

    try:
        upstream = webhook_client.post(payload)
    except WebhookClientError as e:
        logger.error(f"Webhook error: {e.error.message}")
        return JSONResponse(
            status_code=500,
            content={"ok": False, "error": "backend_error", "message": e.error.message}
        )

    if not upstream.ok:
        return JSONResponse(
            status_code=upstream.status_code,
            content={
                "ok": False,
                "error": "n8n_error",
                "status": upstream.status_code,
                "n8n_raw": upstream.raw,
            }
        )

    body = build_assistant_payload(upstream.raw)
    body["retrieval"] = retrieval.model_dump()
    return body


@app.post("/api/documents/upload", response_model=UploadResponse)
async def upload_document(
    file: UploadFile = File(...),
    session_id: Optional[str] = Form(None)
) -> UploadResponse:
    """Store an uploaded PDF and index its text for retrieval."""
    _require_documents()

    filename = file.filename or "document.pdf"
    if file.content_type != "application/pdf" and not filename.lower().endswith(".pdf"):
        raise HTTPException(status_code=400, detail="Only PDF files are supported")

    pdf_bytes = await file.read()
    if not pdf_bytes:
        raise HTTPException(status_code=400, detail="Uploaded file is empty")
    if len(pdf_bytes) > MAX_UPLOAD_BYTES:
        raise HTTPException(status_code=413, detail=f"File exceeds the {MAX_UPLOAD_BYTES} byte upload limit")

    try:
        # PDF parsing and the Supabase client block, keep them off the event loop
        result = await run_in_threadpool(ingestion_service.ingest_pdf, filename, pdf_bytes, session_id=session_id)
    except (DocumentStoreError, ChunkStoreError) as e:
        logger.error(f"Upload of {filename} failed: {e}")
        raise HTTPException(status_code=502, detail=f"Storage error: {str(e)}")

    document = result.document
    return UploadResponse(
        doc_id=document.doc_id,
        bucket=document.bucket,
        path=document.path,
        status=document.status,
        chunks_created=result.chunks_created,
        text_length=result.text_length,
        warnings=result.warnings,
    )


@app.post("/api/documents/retrieve", response_model=RetrieveResponse)
def retrieve_endpoint(request: RetrieveRequest) -> RetrieveResponse:
    """Return the chunks that would be sent as context for ``query``."""
    _require_documents()

    try:
        chunks: List[Chunk] = retrieval_engine.retrieve(request.document_ids, request.query, top_k=request.top_k)
    except ChunkStoreError as e:
        raise HTTPException(status_code=502, detail=f"Storage error: {str(e)}")

    return RetrieveResponse(chunks=[_chunk_out(chunk) for chunk in chunks], count=len(chunks))


@app.delete("/api/documents/{doc_id}")
def delete_document(doc_id: str):
    """Delete a document, its stored PDF and (by cascade) its chunks."""
    _require_documents()

    try:
        document = document_store.get_document(doc_id)
        if document is None:
            raise HTTPException(status_code=404, detail=f"Document {doc_id} not found")
        document_store.delete_document(document)
    except DocumentStoreError as e:
        raise HTTPException(status_code=502, detail=f"Storage error: {str(e)}")

    return {"ok": True, "doc_id": doc_id}


if __name__ == "__main__":
    import uvicorn
    logger.info(f"Starting XRL chat backend on port {PORT}")
    uvicorn.run(app, host="0.0.0.0", port=PORT)
