#!/usr/bin/env python3
"""
Command-line interface for the hybrid retrieval engine.

Commands:
- index: Chunk and index a text file
- query: Search a text file (indexing it first if needed)
- cache: Inspect, evict or clear build metadata
"""

from __future__ import annotations
import argparse
import asyncio
import json
import logging
import sys
from datetime import timedelta
from pathlib import Path
from typing import List, Optional

from .backends.factory import build_hybrid_rag
from .config import CHUNK_STRATEGIES, FUSION_METHODS, HybridRAGConfig, expand_path, load_config
from .exceptions import HybridRAGError
from .retrieval.hybrid_searcher import HybridRAG, SearchResponse
from .utils.cache_manager import CacheManager
from .utils.logger import setup_logger


def setup_logging(config: HybridRAGConfig) -> logging.Logger:
    return setup_logger(
        name="hybrid_rag",
        log_level=config.logging.level,
        log_file=config.logging.log_file,
    )


def read_document(path: Path) -> str:
    with open(path, "r", encoding="utf-8") as f:
        return f.read()


def format_console_output(response: SearchResponse, show_full_content: bool = False) -> str:
    """Render search results for the terminal."""
    lines = [
        "=" * 60,
        f"Query: {response.query}",
        f"Document: {response.document_id}  |  fusion: {response.fusion_method}  |  "
        f"semantic: {response.semantic_status}",
        "=" * 60,
    ]
    if not response.results:
        lines.append("No matching chunks.")

    for result in response.results:
        text = result.chunk_text
        if not show_full_content and len(text) > 300:
            text = text[:300] + "..."
        lines.append(
            f"\n[{result.rank}] {result.chunk.id}  fused={result.fused_score:.4f}  "
            f"lexical={result.lexical_score:.4f}  semantic={result.semantic_score:.4f}"
        )
        lines.append(text)

    lines.append(f"\nTiming (ms): {response.timing}")
    return "\n".join(lines)


async def _index(engine: HybridRAG, args) -> None:
    document_id = args.document_id or args.file.stem
    index = await engine.build_index(
        document_id,
        read_document(args.file),
        chunk_strategy=args.strategy,
        force_rebuild=args.force,
    )
    stats = engine.get_stats(document_id)
    print(f"Indexed '{document_id}': {stats['chunk_count']} chunks, "
          f"semantic={index.semantic_status}, model={stats['embedding_model']}")


async def _query(engine: HybridRAG, args) -> None:
    document_id = args.document_id or args.file.stem
    await engine.build_index(document_id, read_document(args.file), chunk_strategy=args.strategy)
    response = await engine.search(
        document_id,
        args.query_text,
        top_k=args.top_k,
        fusion_method=args.fusion,
    )
    print(format_console_output(response, show_full_content=args.show_content))

    if args.output:
        output_path = Path(args.output)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        with open(output_path, "w", encoding="utf-8") as f:
            json.dump(response.to_dict(), f, indent=2, ensure_ascii=False)
        print(f"\nResults saved to: {output_path}")


async def _run_engine(config: HybridRAGConfig, args, handler) -> None:
    engine = build_hybrid_rag(config, semantic=not args.no_semantic)
    await engine.initialize()
    try:
        await handler(engine, args)
    finally:
        await engine.shutdown()


async def _cache(config: HybridRAGConfig, args) -> None:
    manager = CacheManager(
        expand_path(config.cache.cache_dir),
        max_age=timedelta(days=config.cache.max_age_days),
    )
    await manager.initialize()

    if args.cache_command == "evict":
        max_age = timedelta(days=args.days) if args.days is not None else None
        evicted = await manager.evict_stale(max_age)
        print(f"Evicted {len(evicted)} records")
        for document_id in evicted:
            print(f"  {document_id}")
    elif args.cache_command == "clear":
        await manager.clear_all()
        print("Cleared all cache records")
    else:
        stats = manager.get_stats()
        print(f"Cache file: {stats['cache_path']}")
        print(f"Documents: {stats['document_count']}")
        print(f"Durable: {stats['durable']}")

    await manager.shutdown()


def cmd_index(args, config: HybridRAGConfig) -> None:
    """Chunk and index a document."""
    logger = setup_logging(config)
    logger.info("Starting INDEX command")
    try:
        asyncio.run(_run_engine(config, args, _index))
    except FileNotFoundError as e:
        logger.error(f"Document not found: {e}")
        sys.exit(1)
    except HybridRAGError as e:
        logger.error(f"Indexing failed: {e}", exc_info=True)
        sys.exit(1)


def cmd_query(args, config: HybridRAGConfig) -> None:
    """Search a document."""
    logger = setup_logging(config)
    logger.info("Starting QUERY command")

    if not args.query_text or not args.query_text.strip():
        logger.error("Query text is required")
        sys.exit(1)

    try:
        asyncio.run(_run_engine(config, args, _query))
    except FileNotFoundError as e:
        logger.error(f"Document not found: {e}")
        sys.exit(1)
    except HybridRAGError as e:
        logger.error(f"Query failed: {e}", exc_info=True)
        sys.exit(1)


def cmd_cache(args, config: HybridRAGConfig) -> None:
    """Inspect or prune the build metadata cache."""
    setup_logging(config)
    asyncio.run(_cache(config, args))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="hybrid-rag",
        description="Hybrid document retrieval: TF-IDF + embeddings with rank fusion",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to configuration file (default: config/config.yaml)",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        default=None,
        help="Override the configured log level",
    )
    parser.add_argument(
        "--no-semantic",
        action="store_true",
        help="TF-IDF only: skip loading the embedding model and vector store",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Shared document arguments
    document_parser = argparse.ArgumentParser(add_help=False)
    document_parser.add_argument("file", type=Path, help="UTF-8 text file")
    document_parser.add_argument(
        "--document-id",
        default=None,
        help="Document identifier (default: file name without extension)",
    )
    document_parser.add_argument(
        "--strategy",
        choices=list(CHUNK_STRATEGIES),
        default=None,
        help="Chunking strategy (default: from config)",
    )

    index_parser = subparsers.add_parser("index", parents=[document_parser], help="Index a document")
    index_parser.add_argument(
        "--force",
        action="store_true",
        help="Rebuild and re-embed even if cached",
    )

    query_parser = subparsers.add_parser("query", parents=[document_parser], help="Search a document")
    query_parser.add_argument("query_text", help="Natural language query text")
    query_parser.add_argument("--top-k", type=int, default=None, help="Number of results")
    query_parser.add_argument(
        "--fusion",
        choices=list(FUSION_METHODS),
        default=None,
        help="Fusion method (default: from config)",
    )
    query_parser.add_argument(
        "--show-content",
        action="store_true",
        help="Print full chunk text instead of a preview",
    )
    query_parser.add_argument("--output", "-o", default=None, help="Save results as JSON")

    cache_parser = subparsers.add_parser("cache", help="Manage build metadata")
    cache_parser.add_argument("cache_command", choices=["stats", "evict", "clear"], help="Cache action")
    cache_parser.add_argument(
        "--days",
        type=float,
        default=None,
        help="Evict records not accessed for this many days (default: from config)",
    )

    return parser


def main(argv: Optional[List[str]] = None) -> None:
    """Main entry point for the CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    # If no command provided, print help
    if not args.command:
        parser.print_help()
        sys.exit(0)

    try:
        config = load_config(args.config)
    except Exception as e:
        print(f"Error loading configuration: {e}", file=sys.stderr)
        sys.exit(1)

    if args.log_level:
        config.logging.level = args.log_level

    commands = {
        "index": cmd_index,
        "query": cmd_query,
        "cache": cmd_cache,
    }
    commands[args.command](args, config)


if __name__ == "__main__":
    main()
