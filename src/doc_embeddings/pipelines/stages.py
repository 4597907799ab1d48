"""Stage functions of the ingestion pipeline.

Every stage takes the :class:`PipelineContext` plus the previous stage's
records and returns its own records:

    read → tokenize → chunk → embed → persist

Items are processed in input order, one at a time. The only exception is
the opt-in ``embed_concurrency`` setting, which lets up to N embedding calls
run at once while still returning results in input order.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from doc_embeddings.ingestion.base import fit_vector
from doc_embeddings.ingestion.chunker import split_documents
from doc_embeddings.ingestion.loader import read_source_documents
from doc_embeddings.ingestion.models import (
    EmbeddedChunk,
    PersistedRecord,
    SourceDocument,
    TextChunk,
    TokenizedDocument,
)

if TYPE_CHECKING:
    from doc_embeddings.pipelines.context import PipelineContext

logger = logging.getLogger(__name__)


@dataclass
class PersistStats:
    """Row counters of the persist stage."""

    saved: int = 0
    skipped: int = 0

    @property
    def total(self) -> int:
        return self.saved + self.skipped


# ── read ─────────────────────────────────────────────────────────────


async def read_documents(context: PipelineContext, source: str) -> list[SourceDocument]:
    """Load every crawled page of *source*."""
    return await read_source_documents(context.source_dir(source))


# ── tokenize ─────────────────────────────────────────────────────────


async def tokenize_documents(
    context: PipelineContext, documents: list[SourceDocument]
) -> list[TokenizedDocument]:
    tokenized: list[TokenizedDocument] = []
    for doc in documents:
        tokens = context.tokenizer.encode(doc.text)
        tokenized.append(TokenizedDocument(filepath=doc.filepath, text=doc.text, tokens=tokens))
        logger.debug("Tokenized %s: %d tokens", doc.filepath, len(tokens))
    logger.info("Tokenized %d documents", len(tokenized))
    return tokenized


# ── chunk ────────────────────────────────────────────────────────────


async def chunk_documents(
    context: PipelineContext, documents: list[TokenizedDocument]
) -> list[TextChunk]:
    settings = context.settings
    return split_documents(
        documents,
        context.tokenizer,
        max_tokens=settings.max_tokens,
        min_chunk_chars=settings.min_chunk_chars,
    )


# ── embed ────────────────────────────────────────────────────────────


async def _embed_one(
    context: PipelineContext, chunk: TextChunk, index: int, total: int
) -> EmbeddedChunk:
    embedding = await context.embedder.embed(chunk.text)
    token_count = context.tokenizer.count(chunk.text)
    logger.info(
        "Embedded %d/%d %s (%d tokens, dim=%d)",
        index, total, chunk.filepath, token_count, len(embedding),
    )
    return EmbeddedChunk(
        filepath=chunk.filepath,
        text=chunk.text,
        token_count=token_count,
        embedding=embedding,
    )


async def embed_chunks(context: PipelineContext, chunks: list[TextChunk]) -> list[EmbeddedChunk]:
    """Embed every chunk, re-counting its tokens on the final text.

    Any embedding error propagates and aborts the stage; nothing is cached
    for a partially embedded run.
    """
    total = len(chunks)
    concurrency = context.settings.embed_concurrency

    if concurrency <= 1:
        embedded: list[EmbeddedChunk] = []
        for index, chunk in enumerate(chunks, 1):
            embedded.append(await _embed_one(context, chunk, index, total))
        return embedded

    semaphore = asyncio.Semaphore(concurrency)

    async def _bounded(index: int, chunk: TextChunk) -> EmbeddedChunk:
        async with semaphore:
            return await _embed_one(context, chunk, index, total)

    logger.info("Embedding %d chunks with concurrency=%d", total, concurrency)
    async with asyncio.TaskGroup() as group:
        tasks = [group.create_task(_bounded(i, c)) for i, c in enumerate(chunks, 1)]
    return [task.result() for task in tasks]


# ── persist ──────────────────────────────────────────────────────────


async def persist_chunks(context: PipelineContext, chunks: list[EmbeddedChunk]) -> PersistStats:
    """Insert one row per chunk long enough to keep.

    Chunks shorter than ``min_chunk_chars`` are counted as skipped and not
    inserted. Vectors are padded / truncated to ``vector_size``.
    """
    settings = context.settings
    stats = PersistStats()
    total = len(chunks)

    for index, chunk in enumerate(chunks, 1):
        if len(chunk.text) < settings.min_chunk_chars:
            stats.skipped += 1
            logger.info(
                "Skipped %d/%d %s: %d chars < %d",
                index, total, chunk.filepath, len(chunk.text), settings.min_chunk_chars,
            )
            logger.debug("Skipped text: %r", chunk.text)
            continue

        record = PersistedRecord(
            text=chunk.text,
            n_tokens=chunk.token_count,
            file_path=chunk.filepath,
            embeddings=fit_vector(chunk.embedding, settings.vector_size),
        )
        await context.store.insert(record)
        stats.saved += 1
        logger.info(
            "Saved %d/%d %s (saved=%d, skipped=%d)",
            index, total, chunk.filepath, stats.saved, stats.skipped,
        )

    return stats
