"""Resumable ingestion pipeline.

    read → tokenize → chunk → embed → persist

The first four stages are memoized by a :class:`StageCache` at a fixed path
under ``<cache_dir>/<source>/``. Re-running after a failure therefore
skips every stage that already completed; a failed stage restarts from its
first item. Persisting is terminal and runs on every invocation.

Run
---
    python -m doc_embeddings ingest nextjs --init-schema
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from doc_embeddings.ingestion.cache import StageCache
from doc_embeddings.ingestion.models import (
    EmbeddedChunk,
    SourceDocument,
    TextChunk,
    TokenizedDocument,
)
from doc_embeddings.pipelines.context import PipelineContext
from doc_embeddings.pipelines.stages import (
    PersistStats,
    chunk_documents,
    embed_chunks,
    persist_chunks,
    read_documents,
    tokenize_documents,
)

logger = logging.getLogger(__name__)

# stage name → (artifact file name, record model)
STAGE_ARTIFACTS: dict[str, tuple[str, type]] = {
    "texts": ("texts.json", SourceDocument),
    "texts_tokens": ("texts_tokens.json", TokenizedDocument),
    "texts_chunks": ("texts_chunks.json", TextChunk),
    "texts_embeddings": ("texts_embeddings.json", EmbeddedChunk),
}


def stage_cache(cache_dir: Path, stage: str) -> StageCache:
    """Return the cache of *stage* rooted at *cache_dir*."""
    file_name, record_type = STAGE_ARTIFACTS[stage]
    return StageCache(Path(cache_dir) / file_name, stage, record_type)


def clear_stage_caches(cache_dir: Path, source: str) -> list[Path]:
    """Delete every stage artifact of *source* under *cache_dir*; return the removed paths."""
    removed: list[Path] = []
    for stage in STAGE_ARTIFACTS:
        cache = stage_cache(Path(cache_dir) / source, stage)
        if cache.clear():
            removed.append(cache.path)
    return removed


@dataclass
class IngestionReport:
    """What one run produced, stage by stage."""

    source: str
    documents: int = 0
    chunks: int = 0
    embedded: int = 0
    persist: PersistStats = field(default_factory=PersistStats)

    def summary(self) -> str:
        return (
            f"[{self.source}] {self.documents} documents → {self.chunks} chunks → "
            f"{self.embedded} embedded; persisted {self.persist.saved}, "
            f"skipped {self.persist.skipped} of {self.persist.total}"
        )


async def run_ingestion(context: PipelineContext, source: str) -> IngestionReport:
    """Run all stages for one source folder, strictly one after the other.

    Parameters
    ----------
    context:
        Collaborators and settings of this run.
    source:
        Folder name under ``data_dir`` (e.g. ``"nextjs"``); also names the
        cache sub-directory.

    Returns
    -------
    IngestionReport
        Per-stage counts, including saved / skipped rows.
    """
    cache_dir = context.cache_dir(source)
    report = IngestionReport(source=source)

    # Step 1: read every crawled page
    documents = await stage_cache(cache_dir, "texts").get_or_compute(
        lambda: read_documents(context, source)
    )
    report.documents = len(documents)

    # Step 2: tokenize
    tokenized = await stage_cache(cache_dir, "texts_tokens").get_or_compute(
        lambda: tokenize_documents(context, documents)
    )

    # Step 3: split into token-bounded chunks
    chunks = await stage_cache(cache_dir, "texts_chunks").get_or_compute(
        lambda: chunk_documents(context, tokenized)
    )
    report.chunks = len(chunks)

    # Step 4: embed
    embedded = await stage_cache(cache_dir, "texts_embeddings").get_or_compute(
        lambda: embed_chunks(context, chunks)
    )
    report.embedded = len(embedded)

    # Step 5: persist
    report.persist = await persist_chunks(context, embedded)

    logger.info(report.summary())
    return report
