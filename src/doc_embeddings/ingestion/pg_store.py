"""PostgreSQL + pgvector implementation of the chunk store.

A single ``asyncpg`` connection is opened on first use and every insert is
its own implicit transaction, so a crash loses at most the row in flight.
"""

from __future__ import annotations

import logging

import asyncpg
from pgvector.asyncpg import register_vector

from doc_embeddings.errors import ChunkStoreError
from doc_embeddings.ingestion.base import VECTOR_SIZE, ChunkStore
from doc_embeddings.ingestion.models import PersistedRecord

logger = logging.getLogger(__name__)


class PgVectorChunkStore(ChunkStore):
    """Chunk table with a fixed-width ``vector`` column.

    Parameters
    ----------
    dsn:
        PostgreSQL connection string.
    table:
        Target table name (a plain SQL identifier).
    vector_size:
        Width of the ``embeddings`` column.
    """

    def __init__(self, dsn: str, table: str = "documents", vector_size: int = VECTOR_SIZE) -> None:
        super().__init__(vector_size)
        if not table.isidentifier():
            raise ValueError(f"Invalid table name: {table!r}")
        self.dsn = dsn
        self.table = table
        self._conn: asyncpg.Connection | None = None
        self._vector_registered = False

    @property
    def insert_sql(self) -> str:
        return (
            f"INSERT INTO {self.table} (text, n_tokens, file_path, embeddings) "
            "VALUES ($1, $2, $3, $4)"
        )

    async def _connect(self) -> asyncpg.Connection:
        """Open the raw connection; no type codecs are registered yet."""
        if self._conn is None:
            try:
                self._conn = await asyncpg.connect(self.dsn)
            except (OSError, asyncpg.PostgresError) as exc:
                raise ChunkStoreError(f"Cannot connect to chunk store: {exc}") from exc
            logger.info("Connected to chunk store (table=%s)", self.table)
        return self._conn

    async def _connection(self) -> asyncpg.Connection:
        """Connection with the ``vector`` codec registered.

        The codec lookup needs the extension to exist, so on a fresh database
        :meth:`ensure_schema` has to run first.
        """
        conn = await self._connect()
        if not self._vector_registered:
            try:
                await register_vector(conn)
            except (ValueError, asyncpg.PostgresError) as exc:
                raise ChunkStoreError(
                    f"The vector type is not available in the chunk store "
                    f"(run with --init-schema to create the extension): {exc}"
                ) from exc
            self._vector_registered = True
        return conn

    async def ensure_schema(self) -> None:
        """Create the ``vector`` extension and the chunk table if missing."""
        conn = await self._connect()
        try:
            await conn.execute("CREATE EXTENSION IF NOT EXISTS vector")
            conn = await self._connection()
            await conn.execute(
                f"""
                CREATE TABLE IF NOT EXISTS {self.table} (
                    id BIGSERIAL PRIMARY KEY,
                    text TEXT NOT NULL,
                    n_tokens INTEGER NOT NULL,
                    file_path TEXT NOT NULL,
                    embeddings VECTOR({self.vector_size}) NOT NULL
                )
                """
            )
        except asyncpg.PostgresError as exc:
            raise ChunkStoreError(f"Cannot create schema for {self.table}: {exc}") from exc
        logger.info("Ensured table %s (vector(%d))", self.table, self.vector_size)

    async def insert(self, record: PersistedRecord) -> None:
        if len(record.embeddings) != self.vector_size:
            raise ValueError(
                f"Vector has {len(record.embeddings)} components, "
                f"column expects {self.vector_size}"
            )
        conn = await self._connection()
        try:
            await conn.execute(self.insert_sql, *record.as_row())
        except asyncpg.PostgresError as exc:
            raise ChunkStoreError(
                f"Insert into {self.table} failed for {record.file_path}: {exc}"
            ) from exc

    async def close(self) -> None:
        if self._conn is not None:
            await self._conn.close()
            self._conn = None
            self._vector_registered = False
