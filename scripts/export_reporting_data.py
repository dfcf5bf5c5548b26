#!/usr/bin/env python3
"""
Export stored telemetry aggregates as JSON.

Each aggregate holds one tracking URL, the session and metadata it belongs to,
and the events to report to that URL.

Usage:
    # Print every stored aggregate
    python scripts/export_reporting_data.py

    # Write to a file and delete the exported events
    python scripts/export_reporting_data.py --output export.json --delete
"""

import argparse
import json
import logging
import sys
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from rad_store.reporting import TelemetryStore
from rad_store.storage import StorageError
from rad_store.utils import setup_logging

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Export stored telemetry aggregates as JSON",
    )
    parser.add_argument(
        "--db-path",
        type=Path,
        help="Path to SQLite database (default: from settings)",
    )
    parser.add_argument(
        "--output",
        "-o",
        type=Path,
        help="Write JSON to this file instead of stdout",
    )
    parser.add_argument(
        "--delete",
        action="store_true",
        help="Delete each aggregate's events once exported",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose logging",
    )

    args = parser.parse_args(argv)
    setup_logging(level=logging.DEBUG if args.verbose else logging.INFO)

    try:
        with TelemetryStore(db_path=args.db_path) as store:
            aggregates = store.list_all()
            payload = json.dumps(
                [data.to_dict() for data in aggregates], indent=2, default=str
            )

            if args.output:
                args.output.parent.mkdir(parents=True, exist_ok=True)
                args.output.write_text(payload + "\n", encoding="utf-8")
                logger.info(f"Exported {len(aggregates)} aggregates to {args.output}")
            else:
                print(payload)

            if args.delete:
                deleted = sum(store.delete(data) for data in aggregates)
                logger.info(f"Deleted {deleted} exported events")
    except StorageError as e:
        logger.error(f"Export failed: {e}")
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
