"""
Main entry point for the Vehicle Deal Filter system.
"""

import argparse
import json
import sys
from typing import Any, List, Optional

from .models.processing import BatchReport
from .services.config_manager import ConfigurationManager
from .services.listing_processor import ListingProcessor
from .services.storage import InMemoryStore, create_store
from .utils.error_handling import DealFilterError
from .utils.logging import get_logger, setup_logging


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="vehicle-deal-filter",
        description="Flag vehicle listings priced well below their market.",
    )
    parser.add_argument(
        "listings",
        help="JSON file holding an array of listing records, or '-' for stdin",
    )
    parser.add_argument("-c", "--config", help="Path to configuration file")
    parser.add_argument("--log-level", help="Override the configured log level")
    parser.add_argument(
        "--memory",
        action="store_true",
        help="Use an in-memory store instead of the configured backend",
    )
    parser.add_argument(
        "--all-new",
        action="store_true",
        help="Print alerts for every new listing, not only hot deals",
    )
    return parser


def load_records(source: str) -> List[Any]:
    """Read listing records from a JSON file or stdin."""
    if source == "-":
        records = json.load(sys.stdin)
    else:
        with open(source, "r", encoding="utf-8") as f:
            records = json.load(f)

    if isinstance(records, dict):
        records = records.get("items") or records.get("listings") or []
    if not isinstance(records, list):
        raise ValueError("Listings input must be a JSON array of records")
    return records


def print_alerts(report: BatchReport, all_new: bool = False) -> int:
    results = report.new_listings if all_new else report.hot_deals
    printed = 0
    for result in results:
        if result.alert is None:
            continue
        print(result.alert.message)
        print()
        printed += 1
    return printed


def run(args: argparse.Namespace) -> int:
    """Run one batch and return the process exit code."""
    config = ConfigurationManager(args.config).load_config()

    log_level = args.log_level or config.system.log_level
    setup_logging(log_dir=config.system.log_dir, log_level=log_level.upper())
    logger = get_logger("main")

    store = InMemoryStore() if args.memory else create_store(config.storage)
    store.init()
    try:
        records = load_records(args.listings)
        processor = ListingProcessor(config, store)
        report = processor.process_batch(records)
        printed = print_alerts(report, all_new=args.all_new)

        logger.info(
            "Run complete",
            extra={
                "received": report.received,
                "hot_deals": len(report.hot_deals),
                "alerts_printed": printed,
                "needs_sampling": report.needs_sampling,
            },
        )
    finally:
        store.close()

    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main application entry point."""
    args = build_parser().parse_args(argv)

    try:
        return run(args)
    except KeyboardInterrupt:
        print("\nShutdown requested by user", file=sys.stderr)
        return 130
    except (DealFilterError, OSError, ValueError) as e:
        print(f"Fatal error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
