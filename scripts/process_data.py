#!/usr/bin/env python3
"""
Load a CSV preference table, normalize its ballots and store them in DuckDB.
"""

import argparse
import logging
import sys
from collections import Counter
from pathlib import Path

# Add src to path so we can import our modules
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from ballots.database import ElectionDatabase  # noqa: E402
from ballots.normalizer import normalize_table  # noqa: E402
from ballots.preference_table import PreferenceTable  # noqa: E402

logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


def main():
    parser = argparse.ArgumentParser(description="Process ballot data")
    parser.add_argument("csv_file", help="Path to ballot CSV file")
    parser.add_argument("--db", required=True, help="Path to DuckDB database file")
    parser.add_argument(
        "--verbose", action="store_true", help="List every invalid ballot"
    )

    args = parser.parse_args()

    csv_path = Path(args.csv_file)
    if not csv_path.exists():
        logger.error(f"CSV file not found: {csv_path}")
        sys.exit(1)

    try:
        logger.info("=== Step 1: Loading Preference Table ===")
        table = PreferenceTable.from_csv(csv_path)
        print(f"✓ Loaded {table.ballot_count} ballots")
        print(f"✓ Found {len(table.candidates)} candidates")
        for i, name in enumerate(table.candidates):
            print(f"  {i:2d}: {name}")

        logger.info("=== Step 2: Normalizing Ballots ===")
        result = normalize_table(table)
        print(f"✓ {len(result.ballots)} valid ballots")
        if result.empty_ballots:
            print(f"  {result.empty_ballots} ballots express no preference")
        if result.invalid:
            print(f"⚠️  Dropped {len(result.invalid)} invalid ballots")
            if args.verbose:
                for error in result.invalid:
                    logger.warning(str(error))

        logger.info("=== Step 3: Storing Ballots ===")
        with ElectionDatabase(args.db) as db:
            stats = db.save_election(table.candidates, result.ballots)
        print(f"✓ Stored {stats['vote_records']} vote records in {args.db}")

        first_choices = Counter(ballot[0] for ballot in result.ballots if ballot)
        print("\nFirst Choice Results:")
        for name, votes in first_choices.most_common():
            print(f"  {name:25s}: {votes:5d} votes")

    except Exception as e:
        logger.error(f"Error processing data: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
