#!/usr/bin/env python3
"""
Count an instant-runoff election from a CSV preference table.
"""

import argparse
import logging
import sys
from pathlib import Path

# Add src to path so we can import our modules
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from ballots.database import ElectionDatabase  # noqa: E402
from ballots.errors import BallotError, InvalidThreshold  # noqa: E402
from ballots.preference_table import PreferenceTable  # noqa: E402
from counting.config import CountConfig  # noqa: E402
from counting.election import count_table  # noqa: E402
from counting.irv import TieBreak  # noqa: E402
from counting.report import format_outcome, format_report  # noqa: E402

# sysexits.h
EXIT_OK = 0
EXIT_USAGE = 64
EXIT_DATAERR = 65

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Count an IRV election")
    parser.add_argument("csv_file", help="Path to the CSV containing the ballots")
    parser.add_argument(
        "--threshold",
        "-t",
        help="Share of continuing votes needed to win (default: 0.5 or $IRV_THRESHOLD)",
    )
    parser.add_argument(
        "--tie-break",
        choices=[t.value for t in TieBreak],
        help="How to resolve a tie for last place (default: simultaneous)",
    )
    parser.add_argument(
        "--report", action="store_true", help="Print the round-by-round report"
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true", help="Log invalid ballots and rounds"
    )
    parser.add_argument("--db", help="Store ballots and rounds in this DuckDB file")
    parser.add_argument("--export", help="Export round summary to CSV file")
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(levelname)s - %(message)s",
    )

    try:
        config = CountConfig.from_env(verbose=args.verbose).override(
            threshold=args.threshold, tie_break=args.tie_break
        )
    except (InvalidThreshold, ValueError) as e:
        logger.error(f"Invalid configuration: {e}")
        return EXIT_USAGE

    csv_path = Path(args.csv_file)
    if not csv_path.exists():
        logger.error(f"CSV file not found: {csv_path}")
        return EXIT_DATAERR

    try:
        table = PreferenceTable.from_csv(csv_path)
        election = count_table(table, config)
    except (BallotError, ValueError) as e:
        logger.error(f"An error occurred reading the ballot data: {e}")
        return EXIT_DATAERR

    tabulator = election.tabulator
    if args.report:
        print(
            format_report(
                tabulator.rounds,
                election.outcome,
                election.normalization.invalid,
                table,
            )
        )
    else:
        print(format_outcome(election.outcome))

    if args.export:
        export_path = Path(args.export).with_suffix(".csv")
        tabulator.get_round_summary().to_csv(export_path, index=False)
        print(f"Round summary exported to: {export_path}")

    if args.db:
        with ElectionDatabase(args.db) as db:
            db.save_election(table.candidates, election.normalization.ballots)
            db.save_rounds(tabulator.get_round_summary())
        print(f"Election stored in: {args.db}")

    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
