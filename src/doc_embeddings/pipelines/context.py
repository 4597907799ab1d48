"""Run context threaded through every pipeline stage."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from doc_embeddings.config import Settings
    from doc_embeddings.ingestion.base import ChunkStore
    from doc_embeddings.ingestion.embedder import EmbeddingClient
    from doc_embeddings.ingestion.tokenizer import Tokenizer


@dataclass
class PipelineContext:
    """Collaborators of one ingestion run.

    Built once by the entry point; tests build it from fakes.
    """

    settings: Settings
    tokenizer: Tokenizer
    embedder: EmbeddingClient
    store: ChunkStore

    @classmethod
    def from_settings(cls, settings: Settings) -> PipelineContext:
        """Wire the production tokenizer, embedding client and pgvector store."""
        from doc_embeddings.ingestion.embedder import OpenAIEmbeddingClient
        from doc_embeddings.ingestion.pg_store import PgVectorChunkStore
        from doc_embeddings.ingestion.tokenizer import TiktokenTokenizer

        return cls(
            settings=settings,
            tokenizer=TiktokenTokenizer(settings.tokenizer_encoding),
            embedder=OpenAIEmbeddingClient(
                api_key=settings.openai_api_key, model=settings.embedding_model
            ),
            store=PgVectorChunkStore(
                settings.database_url,
                table=settings.table_name,
                vector_size=settings.vector_size,
            ),
        )

    def source_dir(self, source: str) -> Path:
        return Path(self.settings.data_dir) / source

    def cache_dir(self, source: str) -> Path:
        return Path(self.settings.cache_dir) / source
