"""Unit tests for source loading."""

from __future__ import annotations

from pathlib import Path

import pytest

from doc_embeddings.ingestion.loader import list_source_files, read_source_documents


@pytest.mark.asyncio
async def test_reads_files_sorted_by_name(tmp_path: Path) -> None:
    (tmp_path / "b.txt").write_text("Beta", encoding="utf-8")
    (tmp_path / "a.txt").write_text("Alpha — ünïcode", encoding="utf-8")
    (tmp_path / "nested").mkdir()
    (tmp_path / "nested" / "c.txt").write_text("ignored")

    docs = await read_source_documents(tmp_path)

    assert [d.filepath for d in docs] == ["a.txt", "b.txt"]
    assert docs[0].text == "Alpha — ünïcode"


def test_missing_directory_raises(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError, match="Source directory not found"):
        list_source_files(tmp_path / "missing")


@pytest.mark.asyncio
async def test_empty_directory(tmp_path: Path) -> None:
    assert await read_source_documents(tmp_path) == []
