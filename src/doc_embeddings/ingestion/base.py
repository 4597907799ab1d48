"""Abstract base class for chunk-store backends.

A backend only has to insert one :class:`PersistedRecord` at a time; the
persist stage owns filtering, vector fitting and counting, so backends stay
dumb writers.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Sequence

from doc_embeddings.ingestion.models import PersistedRecord

VECTOR_SIZE = 1536


def fit_vector(values: Sequence[float], size: int = VECTOR_SIZE) -> list[float]:
    """Return *values* zero-padded or truncated to exactly *size* components."""
    fitted = [0.0] * size
    head = list(values[:size])
    fitted[: len(head)] = head
    return fitted


class ChunkStore(ABC):
    """Append-only sink for embedded chunks.

    Parameters
    ----------
    vector_size:
        Width of the stored vector column.
    """

    def __init__(self, vector_size: int = VECTOR_SIZE) -> None:
        self.vector_size = vector_size

    @abstractmethod
    async def insert(self, record: PersistedRecord) -> None:
        """Insert and commit a single row."""
        ...

    async def ensure_schema(self) -> None:
        """Create the backing table if the backend needs one. No-op by default."""

    async def close(self) -> None:
        """Release any connection held by the backend."""

    async def __aenter__(self) -> ChunkStore:
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()
