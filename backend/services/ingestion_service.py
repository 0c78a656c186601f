"""Ingestion of uploaded PDFs: store, extract, chunk, persist."""
import logging
from dataclasses import replace
from typing import Optional

from models.document import IngestionResult
from services.chunk_store import ChunkStore, ChunkStoreError
from services.chunking_engine import ChunkingEngine
from services.document_loader import DocumentLoader
from services.document_store import DocumentStore
from config import CHUNK_INSERT_BATCH_SIZE

logger = logging.getLogger(__name__)

STATUS_READY = "ready"
STATUS_NO_TEXT = "no_text"
STATUS_FAILED = "failed"


class IngestionService:
    """Turn an uploaded PDF into a stored document with retrievable chunks."""

    def __init__(
        self,
        document_store: DocumentStore,
        chunk_store: ChunkStore,
        chunking_engine: Optional[ChunkingEngine] = None,
        document_loader: Optional[DocumentLoader] = None,
        batch_size: int = CHUNK_INSERT_BATCH_SIZE
    ):
        self.document_store = document_store
        self.chunk_store = chunk_store
        self.chunking_engine = chunking_engine or ChunkingEngine()
        self.document_loader = document_loader or DocumentLoader()
        self.batch_size = batch_size

    def ingest_pdf(
        self,
        filename: str,
        pdf_bytes: bytes,
        session_id: Optional[str] = None
    ) -> IngestionResult:
        """
        Store a PDF and index its text.

        Args:
            filename: Client-supplied filename
            pdf_bytes: Raw PDF content
            session_id: Chat session the upload belongs to

        Returns:
            IngestionResult with the stored document and chunk count

        Raises:
            DocumentStoreError: If the PDF cannot be stored or registered
            ChunkStoreError: If chunks cannot be written (document marked failed)
        """
        document = self.document_store.create_document(filename, pdf_bytes, session_id=session_id)
        warnings = []

        text = self.document_loader.extract_text(pdf_bytes, filename=document.filename)
        if not text.strip():
            warnings.append("No extractable text found in PDF")
            self.document_store.update_status(document.doc_id, STATUS_NO_TEXT, text_length=0)
            document.status = STATUS_NO_TEXT
            logger.warning(f"Document {document.doc_id} has no extractable text", extra={"doc_id": document.doc_id})
            return IngestionResult(document=document, chunks_created=0, text_length=0, warnings=warnings)

        chunks = [
            replace(chunk, metadata={"filename": document.filename})
            for chunk in self.chunking_engine.chunk_text(text, document_id=document.doc_id)
        ]

        try:
            written = self.chunk_store.insert_chunks(document.doc_id, chunks, batch_size=self.batch_size)
        except ChunkStoreError:
            # Batches written before the failure must not be retrievable
            try:
                self.chunk_store.delete_chunks(document.doc_id)
            except ChunkStoreError as cleanup_error:
                logger.error(
                    f"Could not remove partial chunks of {document.doc_id}: {cleanup_error}",
                    extra={"doc_id": document.doc_id}
                )
            self.document_store.update_status(document.doc_id, STATUS_FAILED)
            raise

        self.document_store.update_status(document.doc_id, STATUS_READY, text_length=len(text))
        document.status = STATUS_READY
        document.text_length = len(text)

        logger.info(
            f"Ingested {document.filename} as {document.doc_id}: "
            f"{len(text)} characters, {written} chunks",
            extra={"doc_id": document.doc_id}
        )
        return IngestionResult(document=document, chunks_created=written, text_length=len(text), warnings=warnings)
