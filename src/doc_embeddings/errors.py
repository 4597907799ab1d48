"""Exception hierarchy shared by the ingestion stages."""

from __future__ import annotations


class IngestionError(Exception):
    """Base class for errors that abort an ingestion run."""


class ConfigurationError(IngestionError):
    """Required configuration is missing or invalid."""


class StageCacheError(IngestionError):
    """A stage artifact exists but could not be read or written."""


class ChunkStoreError(IngestionError):
    """The chunk store could not be reached or rejected a statement."""
