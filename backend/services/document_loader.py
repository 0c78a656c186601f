"""Document loading service for PDF text extraction."""
import logging
import os
from typing import List, Optional
import fitz  # PyMuPDF

from models.document import Document, Page

logger = logging.getLogger(__name__)


class DocumentLoader:
    """Extracts page text from PDF files or uploaded PDF bytes."""

    def load_bytes(self, pdf_bytes: bytes, filename: str) -> Document:
        """
        Extract text page-by-page from an in-memory PDF.

        Args:
            pdf_bytes: Raw PDF content
            filename: Name used for the resulting Document

        Returns:
            Document object with extracted text

        Raises:
            ValueError: If pdf_bytes is empty
            RuntimeError: If the bytes cannot be parsed as a PDF
        """
        if not pdf_bytes:
            raise ValueError("PDF content cannot be empty")

        try:
            pdf_document = fitz.open(stream=pdf_bytes, filetype="pdf")
        except Exception as e:
            raise RuntimeError(f"Failed to open PDF {filename}: {str(e)}") from e

        try:
            pages = []
            for page_num in range(len(pdf_document)):
                text = pdf_document[page_num].get_text()
                pages.append(Page(
                    page_number=page_num + 1,  # 1-indexed
                    text=text,
                    word_count=len(text.split())
                ))
        finally:
            pdf_document.close()

        return Document(filename=filename, pages=pages, total_pages=len(pages))

    def extract_text(self, pdf_bytes: bytes, filename: str = "upload.pdf") -> str:
        """
        Extract the full text of a PDF, or an empty string if that fails.

        A PDF without extractable text is still a valid upload, so failures
        are logged rather than raised.
        """
        try:
            return self.load_bytes(pdf_bytes, filename).text
        except (ValueError, RuntimeError) as e:
            logger.warning(f"Failed to extract text from {filename}: {str(e)}")
            return ""

    def list_pdfs(self, docs_directory: str) -> List[str]:
        """Return sorted paths of the PDF files directly inside ``docs_directory``."""
        if not os.path.isdir(docs_directory):
            logger.error(f"Documents directory not found: {docs_directory}")
            return []

        pdf_files = sorted(f for f in os.listdir(docs_directory) if f.lower().endswith(".pdf"))
        logger.info(f"Found {len(pdf_files)} PDF files in {docs_directory}")
        return [os.path.join(docs_directory, f) for f in pdf_files]

    def read_file(self, filepath: str) -> Optional[bytes]:
        """Read a PDF from disk, returning None if it cannot be read."""
        try:
            with open(filepath, "rb") as f:
                return f.read()
        except OSError as e:
            logger.error(f"Error reading {filepath}: {str(e)}")
            return None
