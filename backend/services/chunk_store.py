"""Chunk storage backed by the Supabase document_chunks table."""
import logging
from typing import List, Optional, Sequence
from supabase import create_client, Client

from models.chunk import Chunk
from config import CHUNK_INSERT_BATCH_SIZE

logger = logging.getLogger(__name__)

CHUNK_COLUMNS = "doc_id, chunk_index, content, char_start, char_end, metadata_json"


class ChunkStoreError(RuntimeError):
    """Raised when the chunk table cannot be read or written."""


class ChunkStore:
    """Read and write document chunks through an injected Supabase client."""

    def __init__(
        self,
        client: Client,
        table_name: str = "document_chunks",
        page_size: int = 1000
    ):
        """
        Initialize the chunk store.

        Args:
            client: Supabase client with access to the chunk table
            table_name: Name of the table holding chunks
            page_size: Rows requested per page when fetching; must not exceed
                the PostgREST max-rows setting of the project
        """
        if page_size <= 0:
            raise ValueError("page_size must be positive")

        self.client = client
        self.table_name = table_name
        self.page_size = page_size

        logger.info(f"Initialized ChunkStore with table: {table_name}")

    @classmethod
    def from_credentials(cls, supabase_url: Optional[str], supabase_key: Optional[str], **kwargs) -> "ChunkStore":
        """
        Build a store with its own Supabase client.

        Raises:
            ValueError: If Supabase credentials are missing
        """
        if not supabase_url or not supabase_key:
            raise ValueError("SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY environment variables are required")
        return cls(create_client(supabase_url, supabase_key), **kwargs)

    def fetch_chunks(self, document_ids: Sequence[str]) -> List[Chunk]:
        """
        Fetch every chunk belonging to the given documents.

        Args:
            document_ids: Documents to read chunks from

        Returns:
            Chunks ordered by (chunk_index, doc_id) ascending (empty if no ids given)

        Raises:
            ChunkStoreError: If the database query fails
        """
        if not document_ids:
            return []

        rows = []
        offset = 0
        try:
            while True:
                response = (
                    self.client.table(self.table_name)
                    .select(CHUNK_COLUMNS)
                    .in_("doc_id", list(document_ids))
                    .order("chunk_index")
                    .order("doc_id")
                    .range(offset, offset + self.page_size - 1)
                    .execute()
                )
                page = response.data or []
                rows.extend(page)
                if len(page) < self.page_size:
                    break
                offset += self.page_size
        except Exception as e:
            error_msg = f"Failed to fetch chunks: {str(e)}"
            logger.error(error_msg)
            raise ChunkStoreError(error_msg) from e

        logger.debug(f"Fetched {len(rows)} chunks for {len(document_ids)} documents")
        return [Chunk.from_row(row) for row in rows]

    def insert_chunks(
        self,
        document_id: str,
        chunks: List[Chunk],
        batch_size: int = CHUNK_INSERT_BATCH_SIZE
    ) -> int:
        """
        Write chunks for a document in bounded batches.

        Args:
            document_id: Owning document; overrides any id on the chunks
            chunks: Chunks produced by the chunking engine
            batch_size: Maximum rows per insert request

        Returns:
            Number of rows written

        Raises:
            ValueError: If batch_size is not positive
            ChunkStoreError: If any batch fails
        """
        if batch_size <= 0:
            raise ValueError("batch_size must be positive")
        if not chunks:
            return 0

        records = []
        for chunk in chunks:
            record = chunk.to_row()
            record["doc_id"] = document_id
            records.append(record)

        total_batches = (len(records) + batch_size - 1) // batch_size
        written = 0
        for i in range(0, len(records), batch_size):
            batch = records[i:i + batch_size]
            batch_num = (i // batch_size) + 1
            try:
                self.client.table(self.table_name).insert(batch).execute()
            except Exception as e:
                error_msg = (
                    f"Failed to insert chunk batch {batch_num}/{total_batches} "
                    f"for document {document_id}: {str(e)}"
                )
                logger.error(error_msg)
                raise ChunkStoreError(error_msg) from e
            written += len(batch)
            logger.debug(f"Inserted batch {batch_num}/{total_batches} ({len(batch)} chunks)")

        logger.info(f"Stored {written} chunks for document {document_id}")
        return written

    def delete_chunks(self, document_id: str) -> None:
        """
        Delete all chunks of a document.

        Raises:
            ChunkStoreError: If database operation fails
        """
        try:
            self.client.table(self.table_name).delete().eq("doc_id", document_id).execute()
            logger.info(f"Deleted chunks for document {document_id}")
        except Exception as e:
            error_msg = f"Failed to delete chunks for document {document_id}: {str(e)}"
            logger.error(error_msg)
            raise ChunkStoreError(error_msg) from e
