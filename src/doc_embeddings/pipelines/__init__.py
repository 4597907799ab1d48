"""
Pipelines — stage functions and the resumable ingestion orchestrator.
"""

from doc_embeddings.pipelines.context import PipelineContext
from doc_embeddings.pipelines.ingestion_pipeline import (
    IngestionReport,
    clear_stage_caches,
    run_ingestion,
)
from doc_embeddings.pipelines.stages import PersistStats

__all__ = [
    "IngestionReport",
    "PersistStats",
    "PipelineContext",
    "clear_stage_caches",
    "run_ingestion",
]
