"""
Maintenance commands for the template cache.

    template-feed cleanup                 delete expired cache rows
    template-feed invalidate [--source S] drop cached rows
    template-feed refresh [--source S]    fetch live and repopulate the cache
"""
import argparse
import asyncio
import logging
import sys
from typing import List, Optional

import psycopg2
from dotenv import load_dotenv

from template_feed.config import FetcherConfig
from template_feed.core.errors import TemplateFetchError
from template_feed.orchestrator import FetchOptions, TemplateOrchestrator, create_orchestrator

logger = logging.getLogger(__name__)


async def run_command(args: argparse.Namespace, orchestrator: TemplateOrchestrator) -> int:
    try:
        await asyncio.to_thread(orchestrator.store.ensure_schema)

        if args.command == "cleanup":
            deleted = await orchestrator.cleanup_cache()
            print(f"Deleted {deleted} expired cache rows")

        elif args.command == "invalidate":
            deleted = await orchestrator.invalidate_cache(args.source)
            print(f"Invalidated {deleted} cache rows ({args.source or 'all sources'})")

        elif args.command == "refresh":
            if args.source and args.source not in orchestrator.source_names:
                print(f"ERROR: unknown source {args.source!r} (known: {', '.join(orchestrator.source_names)})")
                return 2
            options = FetchOptions(force_refresh=True, fallback_on_error=False, source=args.source)
            result = await orchestrator.fetch(options)
            metrics = result.metrics
            print(
                f"Fetched {len(result.templates)} templates from "
                f"{metrics.sources_succeeded}/{metrics.sources_attempted} sources"
            )

        return 0
    except (TemplateFetchError, psycopg2.Error) as e:
        print(f"ERROR: {e}")
        return 1
    finally:
        await orchestrator.shutdown()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="template-feed", description="Template cache maintenance")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("cleanup", help="Delete expired cache rows")

    invalidate = subparsers.add_parser("invalidate", help="Drop cached rows")
    invalidate.add_argument("--source", help="Only this source (default: all)")

    refresh = subparsers.add_parser("refresh", help="Fetch live and repopulate the cache")
    refresh.add_argument("--source", help="Only this source (default: all)")

    return parser


def main(argv: Optional[List[str]] = None, orchestrator: Optional[TemplateOrchestrator] = None) -> int:
    load_dotenv()
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO)

    orchestrator = orchestrator or create_orchestrator(FetcherConfig())
    return asyncio.run(run_command(args, orchestrator))


if __name__ == "__main__":
    sys.exit(main())
