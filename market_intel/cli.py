"""
Market Intelligence - CLI.

============================================================
RESPONSIBILITY
============================================================
Command-line access to the news pipeline.

- argparse subcommands mapped to service operations
- Configuration from environment plus CLI overrides
- JSON output on stdout, logs on stderr

============================================================
USAGE
============================================================
market-intel refresh
market-intel list --sort impact_level --limit 10
market-intel summary
market-intel disable "Reuters Markets"
market-intel clean --days 7

============================================================
"""

import argparse
import asyncio
import json
import logging
import sys
from typing import Any, List, Optional

from .config import PipelineConfig
from .exceptions import MarketIntelError, UnknownSourceError
from .models import SortKey
from .service import MarketIntelligenceService, create_service


logger = logging.getLogger(__name__)


# ============================================================
# CLI ARGUMENT PARSER
# ============================================================

def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="market-intel",
        description="Financial news ingestion and sentiment summary",
    )

    parser.add_argument(
        "--log-level",
        type=str,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        default="WARNING",
        help="Logging level (default: WARNING)",
    )
    parser.add_argument(
        "--database-url",
        type=str,
        metavar="URL",
        help="SQLAlchemy database URL; empty string disables persistence",
    )
    parser.add_argument(
        "--env-file",
        type=str,
        metavar="PATH",
        help="Load environment variables from this file",
    )
    parser.add_argument(
        "--version",
        action="version",
        version="%(prog)s 1.0.0",
    )

    commands = parser.add_subparsers(dest="command", required=True)

    commands.add_parser("refresh", help="Fetch all enabled sources and merge")

    list_cmd = commands.add_parser("list", help="List stored articles")
    list_cmd.add_argument(
        "--sort",
        type=str,
        default=SortKey.CREATED_DATE.value,
        help="created_date, sentiment_score, impact_level or relevance_score",
    )
    list_cmd.add_argument("--limit", type=int, default=None)

    commands.add_parser("summary", help="Sentiment summary of recent articles")
    commands.add_parser("sources", help="List sources with their stats")

    enable_cmd = commands.add_parser("enable", help="Enable a source")
    enable_cmd.add_argument("name")

    disable_cmd = commands.add_parser("disable", help="Disable a source")
    disable_cmd.add_argument("name")

    clean_cmd = commands.add_parser("clean", help="Delete articles older than N days")
    clean_cmd.add_argument("--days", type=float, default=7)

    commands.add_parser("clear", help="Delete all stored articles")

    return parser


def build_config(args: argparse.Namespace) -> PipelineConfig:
    config = PipelineConfig.from_env(args.env_file)
    if args.database_url is not None:
        config.store.database_url = args.database_url or None
    return config


# ============================================================
# COMMANDS
# ============================================================

async def run_command(service: MarketIntelligenceService, args: argparse.Namespace) -> Any:
    """Execute one subcommand and return a JSON-serializable result."""
    command = args.command

    if command == "refresh":
        articles = await service.update_news()
        return {"stored": len(articles)}

    if command == "list":
        articles = await service.list(args.sort, args.limit, wait_for_refresh=True)
        return [a.to_dict() for a in articles]

    if command == "summary":
        summary = await service.get_sentiment_summary(wait_for_refresh=True)
        return summary.to_dict()

    if command == "sources":
        stats = service.get_source_stats()
        return [
            {**config.to_dict(), "stats": stats[config.name].to_dict()}
            for config in service.get_news_sources()
        ]

    if command == "enable":
        service.enable_source(args.name)
        return {"name": args.name, "enabled": True}

    if command == "disable":
        service.disable_source(args.name)
        return {"name": args.name, "enabled": False}

    if command == "clean":
        removed = await service.delete_old_news(args.days)
        return {"removed": removed}

    if command == "clear":
        await service.clear_cache()
        return {"cleared": True}

    raise ValueError(f"Unknown command: {command}")


async def async_main(args: argparse.Namespace) -> int:
    service = create_service(build_config(args))
    try:
        result = await run_command(service, args)
    except (UnknownSourceError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2
    finally:
        await service.close()

    json.dump(result, sys.stdout, indent=2, default=str)
    sys.stdout.write("\n")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main CLI entry point.

    Args:
        argv: Command line arguments (default: sys.argv[1:])

    Returns:
        Exit code
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    try:
        return asyncio.run(async_main(args))
    except MarketIntelError as e:
        logger.error(f"Fatal error: {e}")
        return 1
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130


if __name__ == "__main__":
    sys.exit(main())
