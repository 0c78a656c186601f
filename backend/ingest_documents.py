"""
Bulk ingestion script for the XRL chat backend.

Uploads every PDF in a directory to Supabase storage, extracts its text,
chunks it and stores the chunks so they can be retrieved as chat context.

Usage:
    python ingest_documents.py path/to/pdfs [--session-id SESSION] [--chunk-size 1200] [--overlap 200]
"""
import argparse
import sys
import logging
from pathlib import Path
from typing import List, Optional

# Add backend to path
sys.path.insert(0, str(Path(__file__).parent))

from services.chunk_store import ChunkStore, ChunkStoreError
from services.chunking_engine import ChunkingEngine
from services.document_loader import DocumentLoader
from services.document_store import DocumentStore, DocumentStoreError
from services.ingestion_service import IngestionService
from models.document import IngestionResult
from config import SUPABASE_URL, SUPABASE_SERVICE_ROLE_KEY, CHUNK_SIZE, CHUNK_OVERLAP, CHUNK_INSERT_BATCH_SIZE

logger = logging.getLogger(__name__)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Ingest a directory of PDFs into Supabase")
    parser.add_argument("docs_directory", help="Directory containing PDF files")
    parser.add_argument("--session-id", default=None, help="Session the documents belong to")
    parser.add_argument("--chunk-size", type=int, default=CHUNK_SIZE, help="Chunk size in characters")
    parser.add_argument("--overlap", type=int, default=CHUNK_OVERLAP, help="Chunk overlap in characters")
    parser.add_argument("--batch-size", type=int, default=CHUNK_INSERT_BATCH_SIZE, help="Chunks per insert request")
    return parser.parse_args(argv)


def ingest_directory(
    service: IngestionService,
    loader: DocumentLoader,
    docs_directory: str,
    session_id: Optional[str] = None
) -> List[IngestionResult]:
    """
    Ingest every PDF in ``docs_directory``; unreadable files are skipped.

    Raises:
        DocumentStoreError: If storage rejects a document
        ChunkStoreError: If chunks cannot be written
    """
    results = []
    pdf_paths = loader.list_pdfs(docs_directory)

    for i, pdf_path in enumerate(pdf_paths, start=1):
        pdf_bytes = loader.read_file(pdf_path)
        if not pdf_bytes:
            logger.warning(f"Skipping unreadable or empty file {pdf_path}")
            continue

        filename = Path(pdf_path).name
        logger.info(f"[{i}/{len(pdf_paths)}] Ingesting {filename}...")
        result = service.ingest_pdf(filename, pdf_bytes, session_id=session_id)
        for warning in result.warnings:
            logger.warning(f"  {filename}: {warning}")
        logger.info(f"  ✓ {result.document.doc_id}: {result.chunks_created} chunks ({result.document.status})")
        results.append(result)

    return results


def main(argv: Optional[List[str]] = None) -> int:
    """Main ingestion process."""
    args = parse_args(argv)

    try:
        chunking_engine = ChunkingEngine(chunk_size=args.chunk_size, chunk_overlap=args.overlap)
    except ValueError as e:
        logger.error(f"Invalid chunking configuration: {e}")
        return 2

    try:
        chunk_store = ChunkStore.from_credentials(SUPABASE_URL, SUPABASE_SERVICE_ROLE_KEY)
    except ValueError as e:
        logger.error(str(e))
        return 2

    loader = DocumentLoader()
    service = IngestionService(
        document_store=DocumentStore(chunk_store.client),
        chunk_store=chunk_store,
        chunking_engine=chunking_engine,
        document_loader=loader,
        batch_size=args.batch_size
    )

    logger.info("=" * 60)
    logger.info(f"Ingesting PDFs from {args.docs_directory}")
    logger.info("=" * 60)

    try:
        results = ingest_directory(service, loader, args.docs_directory, session_id=args.session_id)
    except KeyboardInterrupt:
        logger.warning("Ingestion interrupted by user")
        return 1
    except (DocumentStoreError, ChunkStoreError) as e:
        logger.error(f"Ingestion failed: {e}", exc_info=True)
        return 1

    if not results:
        logger.error("No documents ingested! Check that the directory exists and contains PDFs")
        return 1

    total_chunks = sum(result.chunks_created for result in results)
    logger.info("=" * 60)
    logger.info(f"Documents ingested: {len(results)}")
    logger.info(f"Total chunks stored: {total_chunks}")
    logger.info("=" * 60)
    return 0


if __name__ == "__main__":
    sys.exit(main())
