"""Unit tests for vector fitting and the pgvector chunk store."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import asyncpg
import pytest

from doc_embeddings.errors import ChunkStoreError
from doc_embeddings.ingestion.base import VECTOR_SIZE, fit_vector
from doc_embeddings.ingestion.models import PersistedRecord
from doc_embeddings.ingestion.pg_store import PgVectorChunkStore

# ── fit_vector ──────────────────────────────────────────────────────────


def test_short_vector_is_zero_padded() -> None:
    fitted = fit_vector([0.1, 0.2, 0.3])
    assert len(fitted) == VECTOR_SIZE == 1536
    assert fitted[:3] == [0.1, 0.2, 0.3]
    assert set(fitted[3:]) == {0.0}


def test_long_vector_is_truncated() -> None:
    values = [float(i) for i in range(2000)]
    assert fit_vector(values) == values[:1536]


def test_exact_vector_is_unchanged() -> None:
    values = [1.0] * 1536
    assert fit_vector(values) == values


def test_custom_size() -> None:
    assert fit_vector([1.0, 2.0, 3.0], size=2) == [1.0, 2.0]
    assert fit_vector([], size=2) == [0.0, 0.0]


# ── PgVectorChunkStore ──────────────────────────────────────────────────


def _record(dim: int = 4) -> PersistedRecord:
    return PersistedRecord(
        text="Some chunk text",
        n_tokens=3,
        file_path="nextjsorg_docs.txt",
        embeddings=[0.5] * dim,
    )


@pytest.fixture
def mock_conn() -> MagicMock:
    conn = MagicMock()
    conn.execute = AsyncMock()
    conn.close = AsyncMock()
    return conn


@pytest.fixture
def patched_connect(mock_conn):
    with patch("doc_embeddings.ingestion.pg_store.asyncpg.connect",
               AsyncMock(return_value=mock_conn)) as connect, \
         patch("doc_embeddings.ingestion.pg_store.register_vector", AsyncMock()) as register:
        yield connect, register


def test_invalid_table_name_rejected() -> None:
    with pytest.raises(ValueError, match="Invalid table name"):
        PgVectorChunkStore("postgresql://x", table="docs; DROP TABLE x")


@pytest.mark.asyncio
async def test_insert_binds_four_positional_values(mock_conn, patched_connect) -> None:
    connect, register = patched_connect
    store = PgVectorChunkStore("postgresql://x", table="documents", vector_size=4)

    await store.insert(_record())

    connect.assert_awaited_once_with("postgresql://x")
    register.assert_awaited_once_with(mock_conn)
    sql, *params = mock_conn.execute.await_args.args
    assert sql == (
        "INSERT INTO documents (text, n_tokens, file_path, embeddings) "
        "VALUES ($1, $2, $3, $4)"
    )
    assert params == ["Some chunk text", 3, "nextjsorg_docs.txt", [0.5] * 4]


@pytest.mark.asyncio
async def test_connection_is_reused(mock_conn, patched_connect) -> None:
    connect, _ = patched_connect
    store = PgVectorChunkStore("postgresql://x", vector_size=4)

    await store.insert(_record())
    await store.insert(_record())

    assert connect.await_count == 1
    assert mock_conn.execute.await_count == 2


@pytest.mark.asyncio
async def test_insert_rejects_wrong_width(patched_connect) -> None:
    store = PgVectorChunkStore("postgresql://x", vector_size=1536)
    with pytest.raises(ValueError, match="column expects 1536"):
        await store.insert(_record(dim=4))


@pytest.mark.asyncio
async def test_ensure_schema_creates_extension_and_table(mock_conn, patched_connect) -> None:
    store = PgVectorChunkStore("postgresql://x", table="chunks", vector_size=1536)

    await store.ensure_schema()

    statements = [c.args[0] for c in mock_conn.execute.await_args_list]
    assert statements[0] == "CREATE EXTENSION IF NOT EXISTS vector"
    assert "CREATE TABLE IF NOT EXISTS chunks" in statements[1]
    assert "VECTOR(1536)" in statements[1]


@pytest.mark.asyncio
async def test_connect_failure_raises_store_error() -> None:
    store = PgVectorChunkStore("postgresql://x")
    with patch("doc_embeddings.ingestion.pg_store.asyncpg.connect",
               AsyncMock(side_effect=OSError("connection refused"))):
        with pytest.raises(ChunkStoreError, match="connection refused"):
            await store.insert(_record(dim=1536))


@pytest.mark.asyncio
async def test_close_and_context_manager(mock_conn, patched_connect) -> None:
    async with PgVectorChunkStore("postgresql://x", vector_size=4) as store:
        await store.insert(_record())
    mock_conn.close.assert_awaited_once()
    assert store._conn is None


class FreshDatabaseConnection:
    """asyncpg stand-in for a database where the vector extension is not installed yet.

    ``set_type_codec`` fails the way asyncpg does for an unknown type until
    ``CREATE EXTENSION`` has been executed.
    """

    def __init__(self) -> None:
        self.statements: list[str] = []
        self.codecs: list[str] = []
        self.has_vector = False

    async def execute(self, sql: str, *args) -> str:
        self.statements.append(sql.strip())
        if sql.startswith("CREATE EXTENSION"):
            self.has_vector = True
        return "OK"

    async def set_type_codec(self, typename: str, *, schema: str = "public", **kwargs) -> None:
        if not self.has_vector:
            raise ValueError(f"unknown type: {schema}.{typename}")
        self.codecs.append(typename)

    async def close(self) -> None:
        pass


@pytest.mark.asyncio
async def test_ensure_schema_on_fresh_database_creates_extension_first() -> None:
    conn = FreshDatabaseConnection()
    store = PgVectorChunkStore("postgresql://x", vector_size=4)

    with patch("doc_embeddings.ingestion.pg_store.asyncpg.connect", AsyncMock(return_value=conn)):
        await store.ensure_schema()
        await store.insert(_record())

    assert conn.statements[0] == "CREATE EXTENSION IF NOT EXISTS vector"
    assert conn.statements[1].startswith("CREATE TABLE IF NOT EXISTS documents")
    assert conn.statements[2].startswith("INSERT INTO documents")
    assert "vector" in conn.codecs


@pytest.mark.asyncio
async def test_insert_without_extension_raises_store_error() -> None:
    conn = FreshDatabaseConnection()
    store = PgVectorChunkStore("postgresql://x", vector_size=4)

    with patch("doc_embeddings.ingestion.pg_store.asyncpg.connect", AsyncMock(return_value=conn)):
        with pytest.raises(ChunkStoreError, match="--init-schema"):
            await store.insert(_record())

    assert conn.statements == []


@pytest.mark.asyncio
async def test_rejected_insert_raises_store_error(mock_conn, patched_connect) -> None:
    mock_conn.execute.side_effect = asyncpg.exceptions.UndefinedTableError(
        'relation "documents" does not exist'
    )
    store = PgVectorChunkStore("postgresql://x", vector_size=4)

    with pytest.raises(ChunkStoreError, match="does not exist"):
        await store.insert(_record())


@pytest.mark.asyncio
async def test_rejected_ddl_raises_store_error(mock_conn, patched_connect) -> None:
    mock_conn.execute.side_effect = asyncpg.exceptions.InsufficientPrivilegeError(
        "permission denied to create extension"
    )
    store = PgVectorChunkStore("postgresql://x")

    with pytest.raises(ChunkStoreError, match="permission denied"):
        await store.ensure_schema()
