"""Unit tests for IngestionService."""
import sys
from pathlib import Path

# Add backend to path
sys.path.insert(0, str(Path(__file__).parent.parent / "backend"))

import pytest
from unittest.mock import Mock
from models.document import StoredDocument
from services.chunk_store import ChunkStore, ChunkStoreError
from services.chunking_engine import ChunkingEngine
from services.ingestion_service import IngestionService, STATUS_READY, STATUS_NO_TEXT, STATUS_FAILED


class TestIngestionService:
    """Test suite for IngestionService."""

    @pytest.fixture
    def mock_document_store(self):
        store = Mock()
        store.create_document.return_value = StoredDocument(
            doc_id="doc-1",
            filename="report.pdf",
            bucket="documents",
            path="sess-1/doc-1/report.pdf",
            session_id="sess-1"
        )
        return store

    @pytest.fixture
    def mock_chunk_store(self):
        store = Mock()
        store.insert_chunks.side_effect = lambda doc_id, chunks, batch_size: len(chunks)
        return store

    @pytest.fixture
    def mock_loader(self):
        loader = Mock()
        loader.extract_text.return_value = "Graphene coating process. " * 4  # 104 characters
        return loader

    @pytest.fixture
    def service(self, mock_document_store, mock_chunk_store, mock_loader):
        return IngestionService(
            document_store=mock_document_store,
            chunk_store=mock_chunk_store,
            chunking_engine=ChunkingEngine(chunk_size=40, chunk_overlap=10),
            document_loader=mock_loader,
            batch_size=2
        )

    def test_ingest_pdf_success(self, service, mock_document_store, mock_chunk_store):
        """Test the full store -> extract -> chunk -> insert flow."""
        result = service.ingest_pdf("report.pdf", b"%PDF", session_id="sess-1")

        mock_document_store.create_document.assert_called_once_with("report.pdf", b"%PDF", session_id="sess-1")

        doc_id, chunks = mock_chunk_store.insert_chunks.call_args.args
        assert doc_id == "doc-1"
        assert mock_chunk_store.insert_chunks.call_args.kwargs == {"batch_size": 2}
        # 104 characters, windows start at 0, 30, 60, 90
        assert [(c.char_start, c.char_end) for c in chunks] == [(0, 40), (30, 70), (60, 100), (90, 104)]
        assert all(c.document_id == "doc-1" for c in chunks)
        assert all(c.metadata == {"filename": "report.pdf"} for c in chunks)

        mock_document_store.update_status.assert_called_once_with("doc-1", STATUS_READY, text_length=104)
        assert result.chunks_created == 4
        assert result.text_length == 104
        assert result.document.status == STATUS_READY
        assert result.warnings == []

    def test_ingest_pdf_without_text(self, service, mock_document_store, mock_chunk_store, mock_loader):
        """Test that PDFs without text are kept but not chunked."""
        mock_loader.extract_text.return_value = "   \n"

        result = service.ingest_pdf("scan.pdf", b"%PDF")

        mock_chunk_store.insert_chunks.assert_not_called()
        mock_document_store.update_status.assert_called_once_with("doc-1", STATUS_NO_TEXT, text_length=0)
        assert result.chunks_created == 0
        assert result.document.status == STATUS_NO_TEXT
        assert result.warnings == ["No extractable text found in PDF"]

    def test_ingest_pdf_chunk_insert_failure(self, service, mock_document_store, mock_chunk_store):
        """Test that chunk write failures mark the document failed and propagate."""
        mock_chunk_store.insert_chunks.side_effect = ChunkStoreError("Failed to insert chunk batch 1/2")

        with pytest.raises(ChunkStoreError):
            service.ingest_pdf("report.pdf", b"%PDF")

        mock_chunk_store.delete_chunks.assert_called_once_with("doc-1")
        mock_document_store.update_status.assert_called_once_with("doc-1", STATUS_FAILED)

    def test_ingest_pdf_cleanup_failure_keeps_original_error(self, service, mock_document_store, mock_chunk_store):
        """Test that a failed chunk cleanup still marks the document failed."""
        mock_chunk_store.insert_chunks.side_effect = ChunkStoreError("Failed to insert chunk batch 2/2")
        mock_chunk_store.delete_chunks.side_effect = ChunkStoreError("Failed to delete chunks")

        with pytest.raises(ChunkStoreError, match="batch 2/2"):
            service.ingest_pdf("report.pdf", b"%PDF")

        mock_document_store.update_status.assert_called_once_with("doc-1", STATUS_FAILED)

    def test_storage_failure_propagates(self, service, mock_document_store, mock_loader):
        """Test that upload failures stop ingestion before extraction."""
        mock_document_store.create_document.side_effect = RuntimeError("bucket not found")

        with pytest.raises(RuntimeError, match="bucket not found"):
            service.ingest_pdf("report.pdf", b"%PDF")

        mock_loader.extract_text.assert_not_called()


class InMemoryChunkTable:
    """Minimal stand-in for the Supabase document_chunks table."""

    def __init__(self, fail_on_insert: int):
        self.rows = []
        self.inserts = 0
        self.fail_on_insert = fail_on_insert
        self._pending = None

    def table(self, name):
        return self

    def insert(self, rows):
        self.inserts += 1
        if self.inserts == self.fail_on_insert:
            self._pending = ("fail", None)
        else:
            self._pending = ("insert", rows)
        return self

    def delete(self):
        self._pending = ("delete", None)
        return self

    def eq(self, column, value):
        self._pending = ("delete", (column, value))
        return self

    def execute(self):
        action, arg = self._pending
        if action == "fail":
            raise Exception("statement timeout")
        if action == "insert":
            self.rows.extend(arg)
        elif action == "delete" and arg is not None:
            column, value = arg
            self.rows = [row for row in self.rows if row[column] != value]
        return Mock(data=[])


def test_failed_batch_leaves_no_chunks_behind():
    """Test that a document whose second batch fails has no retrievable chunks."""
    document_store = Mock()
    document_store.create_document.return_value = StoredDocument(
        doc_id="d1", filename="report.pdf", bucket="documents", path="anonymous/d1/report.pdf"
    )
    loader = Mock()
    loader.extract_text.return_value = "Graphene coating process on copper foil. " * 30
    table = InMemoryChunkTable(fail_on_insert=2)

    service = IngestionService(
        document_store=document_store,
        chunk_store=ChunkStore(table),
        chunking_engine=ChunkingEngine(chunk_size=100, chunk_overlap=10),
        document_loader=loader,
        batch_size=5
    )

    with pytest.raises(ChunkStoreError, match="batch 2/"):
        service.ingest_pdf("report.pdf", b"%PDF")

    assert table.inserts == 2
    assert table.rows == []
    document_store.update_status.assert_called_once_with("d1", STATUS_FAILED)
