"""File-backed memoization of whole pipeline stages.

Artifact layout (one JSON file per stage)::

    {
      "schema":  "<stage name>",
      "version": 1,
      "records": [ ... stage output records ... ]
    }

Reading an artifact distinguishes three outcomes:

* **absent** → cache miss, the stage is computed and the artifact written;
* **unusable** (invalid JSON, wrong schema/version tag, records that fail
  validation) → logged as a warning and treated as a miss;
* **unreadable** (any other ``OSError``, e.g. permission denied) →
  :class:`~doc_embeddings.errors.StageCacheError`, the run stops.

The artifact is written only once the stage returned, so an interrupted
stage leaves no artifact behind and is recomputed in full next time.
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
from pathlib import Path
from typing import Awaitable, Callable, Generic, TypeVar

from pydantic import BaseModel, TypeAdapter, ValidationError

from doc_embeddings.errors import StageCacheError

logger = logging.getLogger(__name__)

CACHE_VERSION = 1

RecordT = TypeVar("RecordT", bound=BaseModel)


class StageCache(Generic[RecordT]):
    """Memoize the list of records produced by one stage at a fixed *path*.

    Parameters
    ----------
    path:
        Location of the artifact file.
    schema:
        Stage name written into the artifact and checked on load.
    record_type:
        Pydantic model every cached record is validated against.
    version:
        Artifact format version; bump it when a record model changes.
    """

    def __init__(
        self,
        path: str | Path,
        schema: str,
        record_type: type[RecordT],
        version: int = CACHE_VERSION,
    ) -> None:
        self.path = Path(path)
        self.schema = schema
        self.version = version
        self._adapter: TypeAdapter[list[RecordT]] = TypeAdapter(list[record_type])

    # -- sync I/O (run in a worker thread) ------------------------------------

    def load(self) -> list[RecordT] | None:
        """Return the cached records, or ``None`` when there is nothing usable."""
        if not self.path.exists():
            return None
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except UnicodeDecodeError as exc:
            logger.warning("Ignoring undecodable cache %s: %s", self.path, exc)
            return None
        except OSError as exc:
            raise StageCacheError(f"Cannot read stage cache {self.path}: {exc}") from exc

        try:
            payload = json.loads(raw)
        except json.JSONDecodeError as exc:
            logger.warning("Ignoring malformed cache %s: %s", self.path, exc)
            return None

        if not isinstance(payload, dict):
            logger.warning("Ignoring cache %s: not a tagged artifact", self.path)
            return None
        if payload.get("schema") != self.schema or payload.get("version") != self.version:
            logger.warning(
                "Ignoring cache %s: tagged %r v%s, expected %r v%s",
                self.path, payload.get("schema"), payload.get("version"),
                self.schema, self.version,
            )
            return None

        try:
            return self._adapter.validate_python(payload.get("records"))
        except ValidationError as exc:
            logger.warning(
                "Ignoring cache %s: %d invalid record field(s)", self.path, exc.error_count()
            )
            return None

    def store(self, records: list[RecordT]) -> None:
        """Atomically write *records* to the artifact path."""
        payload = {
            "schema": self.schema,
            "version": self.version,
            "records": self._adapter.dump_python(records, mode="json"),
        }
        tmp_path = self.path.with_name(self.path.name + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(json.dumps(payload, ensure_ascii=False), encoding="utf-8")
            os.replace(tmp_path, self.path)
        except OSError as exc:
            raise StageCacheError(f"Cannot write stage cache {self.path}: {exc}") from exc

    def clear(self) -> bool:
        """Delete the artifact. Returns ``True`` when a file was removed."""
        try:
            self.path.unlink()
        except FileNotFoundError:
            return False
        return True

    # -- async API -------------------------------------------------------------

    async def get_or_compute(
        self, compute: Callable[[], Awaitable[list[RecordT]]]
    ) -> list[RecordT]:
        """Return the cached records, or await *compute* and cache its result."""
        cached = await asyncio.to_thread(self.load)
        if cached is not None:
            logger.info("[%s] cache hit: %d records from %s", self.schema, len(cached), self.path)
            return cached

        logger.info("[%s] cache miss, computing", self.schema)
        records = await compute()
        await asyncio.to_thread(self.store, records)
        logger.info("[%s] cached %d records to %s", self.schema, len(records), self.path)
        return records


async def with_cache(
    compute: Callable[[], Awaitable[list[RecordT]]],
    path: str | Path,
    schema: str,
    record_type: type[RecordT],
) -> list[RecordT]:
    """Shorthand for ``StageCache(path, schema, record_type).get_or_compute(compute)``."""
    return await StageCache(path, schema, record_type).get_or_compute(compute)
