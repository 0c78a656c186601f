"""Keyword retrieval over stored document chunks."""
import logging
import re
from typing import List, Optional, Sequence

from models.chunk import Chunk, ScoredChunk
from services.chunk_store import ChunkStore
from config import RETRIEVAL_TOP_K, MIN_KEYWORD_LENGTH

logger = logging.getLogger(__name__)

_NON_WORD = re.compile(r"\W+")


def tokenize_query(text: str, min_length: int = MIN_KEYWORD_LENGTH) -> List[str]:
    """
    Turn a free-text query into unique lowercase keywords.

    Words shorter than ``min_length`` are dropped so stop words like "the"
    or "is" never drive the ranking.
    """
    if not text or not isinstance(text, str):
        return []

    keywords = []
    seen = set()
    for word in _NON_WORD.split(text.lower()):
        if len(word) >= min_length and word not in seen:
            seen.add(word)
            keywords.append(word)
    return keywords


def score_chunk(content: str, keywords: Sequence[str]) -> int:
    """Count case-insensitive occurrences of every keyword in ``content``."""
    if not content or not keywords:
        return 0

    lowered = content.lower()
    return sum(lowered.count(keyword) for keyword in keywords)


class RetrievalEngine:
    """Rank stored chunks against a query by keyword frequency."""

    def __init__(self, chunk_store: ChunkStore, default_top_k: int = RETRIEVAL_TOP_K):
        """
        Initialize the retrieval engine.

        Args:
            chunk_store: Storage used to fetch candidate chunks
            default_top_k: Result size when the caller does not pass one
        """
        self.chunk_store = chunk_store
        self.default_top_k = default_top_k
        logger.info("Initialized RetrievalEngine")

    def retrieve_scored(
        self,
        document_ids: Sequence[str],
        query: str,
        top_k: Optional[int] = None
    ) -> List[ScoredChunk]:
        """
        Retrieve the top chunks of the given documents with their scores.

        Every chunk is placed in one total order (score descending, chunk
        index ascending, document id ascending) and the first ``top_k`` are
        returned, so chunks without any keyword match pad the result in
        reading order.

        Args:
            document_ids: Documents to search within
            query: User message
            top_k: Maximum number of chunks to return

        Returns:
            Scored chunks, empty if no documents, a blank query or no keywords

        Raises:
            ValueError: If top_k is not positive
            ChunkStoreError: If chunks cannot be fetched
        """
        top_k = self.default_top_k if top_k is None else top_k
        if top_k <= 0:
            raise ValueError("top_k must be positive")

        if not document_ids:
            logger.debug("No document ids provided, returning empty results")
            return []

        keywords = tokenize_query(query)
        if not keywords:
            logger.info("Query has no usable keywords, returning empty results")
            return []

        # ChunkStoreError propagates
        chunks = self.chunk_store.fetch_chunks(document_ids)
        if not chunks:
            logger.info(f"No chunks stored for documents {list(document_ids)}")
            return []

        scored = [ScoredChunk(chunk=chunk, score=score_chunk(chunk.content, keywords)) for chunk in chunks]
        scored.sort(key=lambda item: (-item.score, item.chunk.index, item.chunk.document_id or ""))
        top = scored[:top_k]

        matched = sum(1 for item in top if item.score > 0)
        logger.info(
            f"Retrieved {len(top)} chunks from {len(chunks)} candidates "
            f"({matched} keyword matches, keywords={keywords})"
        )
        return top

    def retrieve(
        self,
        document_ids: Sequence[str],
        query: str,
        top_k: Optional[int] = None
    ) -> List[Chunk]:
        """Retrieve the top chunks without their scores."""
        return [item.chunk for item in self.retrieve_scored(document_ids, query, top_k=top_k)]
