"""Source loading — one text file per crawled page."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

from doc_embeddings.ingestion.models import SourceDocument

logger = logging.getLogger(__name__)


def list_source_files(directory: str | Path) -> list[Path]:
    """Return the regular files directly under *directory*, sorted by name.

    Raises
    ------
    FileNotFoundError
        If *directory* does not exist.
    """
    root = Path(directory)
    if not root.is_dir():
        raise FileNotFoundError(f"Source directory not found: {root}")
    return sorted(p for p in root.iterdir() if p.is_file())


async def read_source_documents(directory: str | Path) -> list[SourceDocument]:
    """Read every file of a source folder into a :class:`SourceDocument`.

    The file name (not the full path) becomes ``filepath`` so the identifier
    stays stable wherever the data folder is mounted. Files are read one at
    a time as UTF-8; a file that cannot be read aborts the stage.
    """
    documents: list[SourceDocument] = []
    for path in list_source_files(directory):
        text = await asyncio.to_thread(path.read_text, encoding="utf-8")
        documents.append(SourceDocument(filepath=path.name, text=text))
        logger.debug("Read %s (%d chars)", path.name, len(text))

    logger.info("Read %d documents from %s", len(documents), directory)
    return documents
