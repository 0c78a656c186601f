"""Unit tests for DocumentLoader."""
import sys
from pathlib import Path

# Add backend to path
sys.path.insert(0, str(Path(__file__).parent.parent / "backend"))

import fitz  # PyMuPDF
import pytest
from services.document_loader import DocumentLoader


def make_pdf(*page_texts: str) -> bytes:
    """Build a small PDF in memory, one page per text."""
    pdf = fitz.open()
    for text in page_texts:
        page = pdf.new_page()
        page.insert_text((72, 72), text)
    data = pdf.tobytes()
    pdf.close()
    return data


class TestDocumentLoader:
    """Test suite for DocumentLoader."""

    @pytest.fixture
    def loader(self):
        return DocumentLoader()

    def test_load_bytes_extracts_pages(self, loader):
        """Test page-by-page extraction."""
        document = loader.load_bytes(make_pdf("Graphene synthesis report", "Second page"), "report.pdf")

        assert document.filename == "report.pdf"
        assert document.total_pages == 2
        assert [page.page_number for page in document.pages] == [1, 2]
        assert "Graphene synthesis report" in document.pages[0].text
        assert document.pages[0].word_count == 3
        assert "Second page" in document.text

    def test_load_bytes_empty(self, loader):
        """Test that empty content is rejected."""
        with pytest.raises(ValueError, match="PDF content cannot be empty"):
            loader.load_bytes(b"", "empty.pdf")

    def test_load_bytes_invalid(self, loader):
        """Test that non-PDF bytes raise RuntimeError."""
        with pytest.raises(RuntimeError, match="Failed to open PDF"):
            loader.load_bytes(b"this is not a pdf", "bad.pdf")

    def test_extract_text(self, loader):
        """Test full-text extraction."""
        text = loader.extract_text(make_pdf("Coating process notes"))

        assert "Coating process notes" in text

    def test_extract_text_failure_returns_empty(self, loader):
        """Test that extraction failures degrade to an empty string."""
        assert loader.extract_text(b"this is not a pdf", "bad.pdf") == ""
        assert loader.extract_text(b"", "empty.pdf") == ""

    def test_list_pdfs(self, loader, tmp_path):
        """Test PDF discovery in a directory."""
        (tmp_path / "b.pdf").write_bytes(b"%PDF")
        (tmp_path / "a.PDF").write_bytes(b"%PDF")
        (tmp_path / "notes.txt").write_text("ignore me")

        paths = loader.list_pdfs(str(tmp_path))

        assert [Path(p).name for p in paths] == ["a.PDF", "b.pdf"]

    def test_list_pdfs_missing_directory(self, loader, tmp_path):
        """Test that a missing directory yields no files."""
        assert loader.list_pdfs(str(tmp_path / "missing")) == []

    def test_read_file(self, loader, tmp_path):
        """Test reading PDFs from disk."""
        target = tmp_path / "a.pdf"
        target.write_bytes(b"%PDF-1.4")

        assert loader.read_file(str(target)) == b"%PDF-1.4"
        assert loader.read_file(str(tmp_path / "missing.pdf")) is None
