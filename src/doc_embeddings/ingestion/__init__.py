"""
Ingestion — tokenizing, chunking, embedding and persisting crawled pages.

Public surface
--------------
- :func:`split_document` / :func:`split_documents` — token-bounded chunking.
- :class:`StageCache` — file-backed memoization of a whole stage.
- :class:`ChunkStore` — abstract sink. The PostgreSQL backend lives in
  :mod:`doc_embeddings.ingestion.pg_store`.
- Record models: :class:`SourceDocument`, :class:`TokenizedDocument`,
  :class:`TextChunk`, :class:`EmbeddedChunk`, :class:`PersistedRecord`.
"""

from doc_embeddings.ingestion.base import VECTOR_SIZE, ChunkStore, fit_vector
from doc_embeddings.ingestion.cache import StageCache, with_cache
from doc_embeddings.ingestion.chunker import MAX_TOKENS, split_document, split_documents
from doc_embeddings.ingestion.models import (
    EmbeddedChunk,
    PersistedRecord,
    SourceDocument,
    TextChunk,
    TokenizedDocument,
)

__all__ = [
    "MAX_TOKENS",
    "VECTOR_SIZE",
    "ChunkStore",
    "EmbeddedChunk",
    "PersistedRecord",
    "SourceDocument",
    "StageCache",
    "TextChunk",
    "TokenizedDocument",
    "fit_vector",
    "split_document",
    "split_documents",
    "with_cache",
]
