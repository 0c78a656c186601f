"""Uploaded document storage using a Supabase bucket and the documents table."""
import logging
import os
import re
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from supabase import Client

from models.document import StoredDocument
from config import SUPABASE_BUCKET

logger = logging.getLogger(__name__)

_UNSAFE_FILENAME_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


class DocumentStoreError(RuntimeError):
    """Raised when the bucket or the documents table cannot be reached."""


def safe_filename(filename: str) -> str:
    """Reduce a client-supplied filename to a storage-safe basename."""
    base = os.path.basename(filename or "").strip()
    cleaned = _UNSAFE_FILENAME_CHARS.sub("_", base).strip("._")
    return cleaned or "document.pdf"


class DocumentStore:
    """Store PDFs in object storage and track them in the documents table."""

    def __init__(
        self,
        client: Client,
        bucket: str = SUPABASE_BUCKET,
        table_name: str = "documents"
    ):
        """
        Args:
            client: Supabase client with storage and table access
            bucket: Storage bucket receiving uploaded PDFs
            table_name: Table holding one row per document
        """
        self.client = client
        self.bucket = bucket
        self.table_name = table_name
        logger.info(f"Initialized DocumentStore with bucket: {bucket}")

    def create_document(
        self,
        filename: str,
        pdf_bytes: bytes,
        session_id: Optional[str] = None
    ) -> StoredDocument:
        """
        Upload a PDF and register it with status "uploaded".

        Raises:
            DocumentStoreError: If the upload or the insert fails
        """
        doc_id = str(uuid.uuid4())
        name = safe_filename(filename)
        path = f"{session_id or 'anonymous'}/{doc_id}/{name}"

        try:
            self.client.storage.from_(self.bucket).upload(
                path=path,
                file=pdf_bytes,
                file_options={"content-type": "application/pdf"}
            )
        except Exception as e:
            error_msg = f"Failed to upload {name} to bucket {self.bucket}: {str(e)}"
            logger.error(error_msg)
            raise DocumentStoreError(error_msg) from e

        document = StoredDocument(
            doc_id=doc_id,
            filename=name,
            bucket=self.bucket,
            path=path,
            status="uploaded",
            session_id=session_id,
            created_at=datetime.now(timezone.utc).isoformat()
        )

        try:
            self.client.table(self.table_name).insert({
                "doc_id": document.doc_id,
                "filename": document.filename,
                "bucket": document.bucket,
                "path": document.path,
                "session_id": document.session_id,
                "status": document.status,
                "created_at": document.created_at
            }).execute()
        except Exception as e:
            error_msg = f"Failed to register document {doc_id}: {str(e)}"
            logger.error(error_msg)
            self._remove_object(path)
            raise DocumentStoreError(error_msg) from e

        logger.info(f"Stored document {doc_id} at {self.bucket}/{path}", extra={"doc_id": doc_id})
        return document

    def _remove_object(self, path: str) -> None:
        """Best-effort removal of an uploaded object whose row was never written."""
        try:
            self.client.storage.from_(self.bucket).remove([path])
        except Exception as e:
            logger.error(f"Could not remove orphaned upload {self.bucket}/{path}: {str(e)}")

    def update_status(self, doc_id: str, status: str, **fields: Any) -> None:
        """
        Update the status (and optionally other columns) of a document.

        Raises:
            DocumentStoreError: If database operation fails
        """
        values: Dict[str, Any] = {"status": status}
        values.update(fields)
        try:
            self.client.table(self.table_name).update(values).eq("doc_id", doc_id).execute()
        except Exception as e:
            error_msg = f"Failed to update document {doc_id}: {str(e)}"
            logger.error(error_msg)
            raise DocumentStoreError(error_msg) from e
        logger.debug(f"Document {doc_id} status set to {status}")

    def get_document(self, doc_id: str) -> Optional[StoredDocument]:
        """
        Look up a document by id.

        Returns:
            The document, or None if it does not exist

        Raises:
            DocumentStoreError: If database operation fails
        """
        try:
            result = self.client.table(self.table_name).select("*").eq("doc_id", doc_id).execute()
        except Exception as e:
            error_msg = f"Failed to load document {doc_id}: {str(e)}"
            logger.error(error_msg)
            raise DocumentStoreError(error_msg) from e

        if not result.data:
            return None

        row = result.data[0]
        return StoredDocument(
            doc_id=row["doc_id"],
            filename=row.get("filename", ""),
            bucket=row.get("bucket", self.bucket),
            path=row.get("path", ""),
            status=row.get("status", "uploaded"),
            session_id=row.get("session_id"),
            text_length=row.get("text_length") or 0,
            created_at=row.get("created_at")
        )

    def delete_document(self, document: StoredDocument) -> None:
        """
        Remove the stored PDF and its row; chunks follow via ON DELETE CASCADE.

        Raises:
            DocumentStoreError: If either deletion fails
        """
        try:
            self.client.storage.from_(document.bucket).remove([document.path])
            self.client.table(self.table_name).delete().eq("doc_id", document.doc_id).execute()
        except Exception as e:
            error_msg = f"Failed to delete document {document.doc_id}: {str(e)}"
            logger.error(error_msg)
            raise DocumentStoreError(error_msg) from e

        logger.info(f"Deleted document {document.doc_id}", extra={"doc_id": document.doc_id})
