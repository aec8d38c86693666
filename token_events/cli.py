"""
Token Events - CLI.

============================================================
RESPONSIBILITY
============================================================
Runs one ingestion pass from the command line and prints the
resulting events as JSON lines on stdout.

============================================================
USAGE
============================================================
python -m token_events.cli --level-from 2500000 --level-to 2500100
python -m token_events.cli --target KT1CePTyk6fk4cFr6fasY5YXPGks6ttjSLp4 --strict

============================================================
"""

import argparse
import asyncio
import json
import logging
import sys
from typing import Any, Optional

from token_events.config import Settings, configure_logging
from token_events.dispatcher import EventDispatcher
from token_events.exceptions import ConfigurationError, FetchError
from token_events.fetcher import TzktClient
from token_events.handlers.schemas import TokenEvent
from token_events.ingestion import IngestionService
from token_events.registry import create_default_registry


logger = logging.getLogger(__name__)


# ============================================================
# CLI ARGUMENT PARSER
# ============================================================

def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="token-events",
        description="Produce token events from TzKT transactions",
    )
    
    # --------------------------------------------------------
    # Query Options
    # --------------------------------------------------------
    query_group = parser.add_argument_group("Query Options")
    
    query_group.add_argument(
        "--level-from",
        type=int,
        metavar="LEVEL",
        help="First block level (inclusive)",
    )
    
    query_group.add_argument(
        "--level-to",
        type=int,
        metavar="LEVEL",
        help="Last block level (inclusive)",
    )
    
    query_group.add_argument(
        "--target",
        action="append",
        default=[],
        metavar="ADDRESS",
        help="Only transactions to this contract (repeatable; default: every handler target)",
    )
    
    query_group.add_argument(
        "--per-page",
        type=int,
        help="Page size (default: TZKT_PER_PAGE)",
    )
    
    query_group.add_argument(
        "--max-pages",
        type=int,
        help="Maximum pages per query (default: TZKT_MAX_PAGES)",
    )
    
    # --------------------------------------------------------
    # Execution Options
    # --------------------------------------------------------
    execution_group = parser.add_argument_group("Execution Options")
    
    execution_group.add_argument(
        "--workers",
        type=int,
        default=None,
        help="Dispatch operations over this many threads",
    )
    
    execution_group.add_argument(
        "--strict",
        action="store_true",
        help="Exit non-zero when any schema violation or extraction bug occurred",
    )
    
    execution_group.add_argument(
        "--log-level",
        type=str,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="INFO",
        help="Logging level (default: INFO)",
    )
    
    return parser


def build_filters(args: argparse.Namespace, targets: list[str]) -> dict[str, Any]:
    """Translate CLI arguments into TzKT filters."""
    filters: dict[str, Any] = {}
    
    if args.level_from is not None:
        filters["level.ge"] = args.level_from
    if args.level_to is not None:
        filters["level.le"] = args.level_to
    if targets:
        filters["target.in"] = sorted(set(targets))
    
    return filters


def print_event(event: TokenEvent) -> None:
    print(json.dumps(event.model_dump(), sort_keys=True))


async def run(args: argparse.Namespace, settings: Settings) -> int:
    registry = create_default_registry(settings)
    targets = args.target or [
        handler.accept["target_address"]
        for handler in registry
        if "target_address" in handler.accept
    ]
    
    async with TzktClient(settings) as client:
        service = IngestionService(
            client,
            EventDispatcher(registry),
            sink=print_event,
            max_workers=args.workers,
        )
        result = await service.ingest_transactions(
            build_filters(args, targets),
            per_page=args.per_page,
            max_pages=args.max_pages,
        )
    
    for failure in result.failures:
        logger.log(
            logging.ERROR if failure.is_defect else logging.INFO,
            f"[{failure.handler_type}] opid={failure.operation_id} {failure.category.value}: "
            f"{failure.error.message}",
        )
    
    if args.strict and result.has_defects:
        return 2
    return 0


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point."""
    args = create_parser().parse_args(argv)
    configure_logging(getattr(logging, args.log_level))
    
    try:
        settings = Settings.from_env()
        return asyncio.run(run(args, settings))
    except FetchError as e:
        logger.error(f"Fetch failed: {e}")
        return 1
    except ConfigurationError as e:
        logger.error(f"Configuration error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
