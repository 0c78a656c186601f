"""Services for the XRL chat backend."""
from .chunking_engine import ChunkingEngine, chunk_text
from .chunk_store import ChunkStore, ChunkStoreError
from .document_loader import DocumentLoader
from .document_store import DocumentStore, DocumentStoreError
from .ingestion_service import IngestionService
from .retrieval_engine import RetrievalEngine, tokenize_query, score_chunk
from .webhook_client import WebhookClient, WebhookResponse, WebhookError, WebhookClientError
from .response_normalizer import build_assistant_payload

__all__ = ['ChunkingEngine', 'chunk_text', 'ChunkStore', 'ChunkStoreError', 'DocumentLoader', 'DocumentStore', 'DocumentStoreError', 'IngestionService', 'RetrievalEngine', 'tokenize_query', 'score_chunk', 'WebhookClient', 'WebhookResponse', 'WebhookError', 'WebhookClientError', 'build_assistant_payload']
