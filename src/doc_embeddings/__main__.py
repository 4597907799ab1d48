"""Command-line entry point.

    doc-embeddings crawl nextjs
    doc-embeddings ingest nextjs --init-schema
    doc-embeddings clear-cache nextjs
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from doc_embeddings.config import PathSettings, Settings, load_settings
from doc_embeddings.crawler import SITES, DocsCrawler
from doc_embeddings.errors import IngestionError
from doc_embeddings.pipelines.context import PipelineContext
from doc_embeddings.pipelines.ingestion_pipeline import (
    IngestionReport,
    clear_stage_caches,
    run_ingestion,
)

logger = logging.getLogger("doc_embeddings")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="doc-embeddings",
        description="Crawl documentation sites and ingest them into a pgvector table.",
    )
    parser.add_argument("--log-level", default=None, help="Overrides LOG_LEVEL")
    sub = parser.add_subparsers(dest="command", required=True)

    ingest = sub.add_parser("ingest", help="Run the resumable ingestion pipeline")
    ingest.add_argument("source", help="Folder name under the data directory, e.g. 'nextjs'")
    ingest.add_argument("--data-dir", type=Path, default=None, help="Overrides DATA_DIR")
    ingest.add_argument("--cache-dir", type=Path, default=None, help="Overrides CACHE_DIR")
    ingest.add_argument(
        "--init-schema",
        action="store_true",
        help="Create the vector extension and chunk table before inserting",
    )

    crawl = sub.add_parser("crawl", help="Harvest a documentation site into text files")
    crawl.add_argument("site", choices=sorted(SITES))
    crawl.add_argument("--data-dir", type=Path, default=None, help="Overrides DATA_DIR")

    clear = sub.add_parser("clear-cache", help="Delete the stage artifacts of a source")
    clear.add_argument("source")
    clear.add_argument("--cache-dir", type=Path, default=None, help="Overrides CACHE_DIR")

    return parser


async def _ingest(settings: Settings, source: str, init_schema: bool) -> IngestionReport:
    context = PipelineContext.from_settings(settings)
    try:
        if init_schema:
            await context.store.ensure_schema()
        return await run_ingestion(context, source)
    finally:
        await context.store.close()


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    paths = PathSettings()
    logging.basicConfig(
        level=(args.log_level or paths.log_level).upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        if args.command == "crawl":
            data_dir = args.data_dir or paths.data_dir
            written = DocsCrawler(SITES[args.site], data_dir=data_dir).crawl()
            print(f"Crawled {len(written)} pages → {data_dir / args.site}")

        elif args.command == "clear-cache":
            removed = clear_stage_caches(args.cache_dir or paths.cache_dir, args.source)
            print(f"Removed {len(removed)} stage artifacts for {args.source}")

        elif args.command == "ingest":
            overrides = {
                key: value
                for key, value in (("data_dir", args.data_dir), ("cache_dir", args.cache_dir))
                if value is not None
            }
            settings = load_settings(**overrides)
            report = asyncio.run(_ingest(settings, args.source, args.init_schema))
            print(report.summary())

    except IngestionError as exc:
        logger.error("%s", exc)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
