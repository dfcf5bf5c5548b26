#!/usr/bin/env python3
"""
Run one retention (garbage collection) pass over the telemetry store.

Deletes expired events, then every session, metadata snapshot, metadata/URL
ref and tracking URL that no remaining event still reaches.

Usage:
    # Collect using the configured database
    python scripts/run_retention.py

    # Collect a specific database and reclaim file space afterwards
    python scripts/run_retention.py --db-path data/rad-telemetry.db --vacuum

    # Evaluate expiry as of a given instant, JSON output
    python scripts/run_retention.py --now 2026-01-31T00:00:00+00:00 --json
"""

import argparse
import json
import logging
import sys
from datetime import datetime
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from rad_store.reporting import TelemetryStore
from rad_store.storage import StorageError
from rad_store.storage.sqlite_backend import to_epoch_millis
from rad_store.utils import setup_logging

logger = logging.getLogger(__name__)


def parse_instant(value: str) -> int:
    """Parse an ISO8601 datetime into epoch milliseconds."""
    try:
        return to_epoch_millis(datetime.fromisoformat(value.replace("Z", "+00:00")))
    except ValueError:
        raise argparse.ArgumentTypeError(
            f"Invalid datetime: {value}. Use ISO8601, e.g. 2026-01-31T00:00:00+00:00"
        )


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Run a retention pass over the telemetry store",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--db-path",
        type=Path,
        help="Path to SQLite database (default: from settings)",
    )
    parser.add_argument(
        "--now",
        type=parse_instant,
        help="Reference time for expiry (ISO8601, default: current time)",
    )
    parser.add_argument(
        "--vacuum",
        action="store_true",
        help="VACUUM the database after collecting",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Output as JSON",
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
            before = store.get_table_counts()
            result = store.collect(now_ms=args.now)
            after = store.get_table_counts()
            if args.vacuum:
                store.backend.vacuum()
    except StorageError as e:
        logger.error(f"Retention pass failed: {e}")
        return 1

    if args.json:
        print(
            json.dumps(
                {"before": before, "after": after, "result": result.to_dict()},
                indent=2,
            )
        )
    else:
        print()
        print("🧹 Retention Pass")
        print("=" * 50)
        for table, count in before.items():
            print(f"  {table:<20} {count:>8} -> {after[table]:>8}")
        print("-" * 50)
        print(f"  Rows deleted: {result.total_deleted}")
        print(f"  Duration: {result.duration_seconds:.3f}s")
        print()

    return 0


if __name__ == "__main__":
    sys.exit(main())
