# src/main.py — v1
"""CLI entry point: extract, remaining, cache-stats, cache-clear commands.

Usage:
    fusextractor extract <documents> [--method gemini|rules] [options]
    fusextractor remaining <documents> [--cache-dir DIR]
    fusextractor cache-stats [--cache-dir DIR]
    fusextractor cache-clear [--cache-dir DIR] [--yes]

This is the only layer that reads the environment (via Settings).
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import TYPE_CHECKING

from fusextractor.version import __version__

if TYPE_CHECKING:
    from fusextractor.config.settings import Settings

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if not hasattr(args, "func"):
        parser.print_help()
        return 1

    try:
        settings = _load_settings(args)
        _setup_logging(settings, args.verbose)
        return args.func(args, settings)
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130
    except Exception as exc:
        logger.error("Fatal error: %s", exc, exc_info=args.verbose)
        return 1


def _build_parser() -> argparse.ArgumentParser:
    """Build CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="fusextractor",
        description=f"fusextractor v{__version__}: resumable Fusarium abstract extraction",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command")

    # --- extract ---
    p_extract = subparsers.add_parser(
        "extract", help="Extract structured fields from a document file",
    )
    p_extract.add_argument("documents", type=Path, help="Documents (.json, .jsonl, .csv)")
    p_extract.add_argument(
        "--checkpoint", type=Path, default=None,
        help="Checkpoint file (default: BATCH_CHECKPOINT_PATH)",
    )
    p_extract.add_argument("--cache-dir", type=Path, default=None, help="Content cache directory")
    p_extract.add_argument("--id-field", default=None, help="Document id field (default: id)")
    p_extract.add_argument("--group-size", type=int, default=None)
    p_extract.add_argument("--delay", type=float, default=None, help="Seconds between groups")
    p_extract.add_argument("--checkpoint-every", type=int, default=None)
    p_extract.add_argument(
        "--no-cache", action="store_true",
        help="Do not skip documents already in the content cache",
    )
    p_extract.add_argument(
        "--method", choices=["gemini", "rules"], default="gemini",
        help="Extraction method (rules needs no API key)",
    )
    p_extract.add_argument(
        "-o", "--output", type=Path, default=None,
        help="Export results to this .json or .csv file",
    )
    p_extract.set_defaults(func=_cmd_extract)

    # --- remaining ---
    p_remaining = subparsers.add_parser(
        "remaining", help="Count documents not yet in the content cache",
    )
    p_remaining.add_argument("documents", type=Path)
    p_remaining.add_argument("--cache-dir", type=Path, default=None)
    p_remaining.add_argument("--id-field", default=None)
    p_remaining.set_defaults(func=_cmd_remaining)

    # --- cache-stats ---
    p_stats = subparsers.add_parser("cache-stats", help="Show content cache statistics")
    p_stats.add_argument("--cache-dir", type=Path, default=None)
    p_stats.set_defaults(func=_cmd_cache_stats)

    # --- cache-clear ---
    p_clear = subparsers.add_parser("cache-clear", help="Delete every content cache entry")
    p_clear.add_argument("--cache-dir", type=Path, default=None)
    p_clear.add_argument("-y", "--yes", action="store_true", help="Skip confirmation")
    p_clear.set_defaults(func=_cmd_cache_clear)

    return parser


def _cmd_extract(args: argparse.Namespace, settings: Settings) -> int:
    """Run the batch scheduler with the selected extractor."""
    from fusextractor.batch.scheduler import BatchScheduler
    from fusextractor.cache.cache_factory import create_cache_store
    from fusextractor.storage.exporter import export_results, export_summary
    from fusextractor.storage.reader import load_documents

    if not args.documents.exists():
        logger.error("File not found: %s", args.documents)
        return 1

    documents = load_documents(args.documents, id_field=settings.batch_id_field)
    scheduler = BatchScheduler(
        config=settings.batch_config(),
        cache_store=create_cache_store(settings),
    )
    results = scheduler.run(documents, _extract_fn(args.method, settings), id_field="id")

    if args.output is not None:
        export_results(results, args.output)
    if scheduler.last_summary is not None:
        print(export_summary(scheduler.last_summary))
    return 0


def _extract_fn(method: str, settings: Settings):
    if method == "rules":
        from fusextractor.extraction.rule_extractor import RuleExtractor

        return RuleExtractor()

    from fusextractor.extraction.gemini_extractor import build_extract_fn

    return build_extract_fn(settings)


def _cmd_remaining(args: argparse.Namespace, settings: Settings) -> int:
    from fusextractor.cache.cache_factory import create_cache_store
    from fusextractor.storage.reader import load_documents

    if not args.documents.exists():
        logger.error("File not found: %s", args.documents)
        return 1

    documents = load_documents(args.documents, id_field=settings.batch_id_field)
    remaining = create_cache_store(settings).uncached(documents, "id")
    print(f"{len(remaining)} of {len(documents)} documents still need extraction")
    return 0


def _cmd_cache_stats(args: argparse.Namespace, settings: Settings) -> int:
    from fusextractor.cache.cache_factory import create_cache_store

    stats = create_cache_store(settings).stats()
    print(f"\nCache: {settings.cache_root}")
    print(f"  Exists:  {stats.exists}")
    print(f"  Entries: {stats.count}")
    print(f"  Size:    {stats.size_mb:.2f} MB")
    return 0


def _cmd_cache_clear(args: argparse.Namespace, settings: Settings) -> int:
    from fusextractor.cache.cache_factory import create_cache_store

    cleared = create_cache_store(settings).clear(require_confirmation=not args.yes)
    return 0 if cleared else 1


def _load_settings(args: argparse.Namespace) -> Settings:
    """Build Settings from .env, then apply CLI flag overrides."""
    from fusextractor.config.settings import load_settings

    flag_map = {
        "cache_dir": "cache_root",
        "checkpoint": "batch_checkpoint_path",
        "id_field": "batch_id_field",
        "group_size": "batch_group_size",
        "delay": "batch_inter_group_delay",
        "checkpoint_every": "batch_checkpoint_every",
    }
    overrides: dict[str, object] = {}
    for flag, field_name in flag_map.items():
        value = getattr(args, flag, None)
        if value is not None:
            overrides[field_name] = value
    if getattr(args, "no_cache", False):
        overrides["batch_consult_cache"] = False
    return load_settings(**overrides)


def _setup_logging(settings: Settings, verbose: bool) -> None:
    """Configure logging for CLI usage."""
    from fusextractor.logging.logger import setup_logging

    setup_logging(
        level="DEBUG" if verbose else settings.log_level,
        log_format=settings.log_format,
        log_file=settings.log_file,
        rotation=settings.log_rotation,
        retention=settings.log_retention,
    )
    # Quiet noisy libraries
    logging.getLogger("google").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)


if __name__ == "__main__":
    sys.exit(main())
