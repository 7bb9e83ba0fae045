import logging
from typing import List, Optional, Sequence, Tuple

import duckdb
import pandas as pd

try:
    from .errors import EmptyCandidateSet
    from .normalizer import NormalizedBallot
except ImportError:
    from ballots.errors import EmptyCandidateSet
    from ballots.normalizer import NormalizedBallot

logger = logging.getLogger(__name__)


class ElectionDatabase:
    """
    Stores normalized ballots and round results of an election in DuckDB.

    Ballots are kept in long format (one row per ballot and rank) in
    ``ballots_long``; abstaining ballots, which have no ranks, are listed in
    ``ballots_empty`` so they still count towards the ballot total.
    """

    def __init__(self, db_path: Optional[str] = None, read_only: bool = False):
        """
        Initialize database connection.

        Args:
            db_path: Path to DuckDB file. If None, uses in-memory database.
            read_only: Open an existing file without taking a write lock
        """
        self.db_path = db_path or ":memory:"
        self.read_only = read_only and self.db_path != ":memory:"
        self._conn = None

    @property
    def conn(self) -> duckdb.DuckDBPyConnection:
        """Get or create a database connection on-demand."""
        if self._conn is None:
            self._conn = duckdb.connect(self.db_path, read_only=self.read_only)
            logger.debug(f"Opened connection to {self.db_path}")
        return self._conn

    def query(self, sql: str, params: Optional[Sequence] = None) -> pd.DataFrame:
        """Execute a SQL query and return results as DataFrame."""
        if params is None:
            return self.conn.execute(sql).fetchdf()
        return self.conn.execute(sql, params).fetchdf()

    def table_exists(self, table_name: str) -> bool:
        sql = "SELECT COUNT(*) FROM information_schema.tables WHERE table_name = ?"
        result = self.conn.execute(sql, [table_name]).fetchone()
        return result[0] > 0

    def save_election(
        self, candidates: Sequence[str], ballots: Sequence[NormalizedBallot]
    ) -> dict:
        """
        Replace the stored election with the given candidates and ballots.

        Args:
            candidates: Candidate names in header order
            ballots: Valid normalized ballots

        Returns:
            Dictionary with storage statistics
        """
        logger.info(f"Storing {len(ballots)} ballots for {len(candidates)} candidates")

        self.conn.execute(
            "CREATE OR REPLACE TABLE candidates (candidate_id INTEGER, candidate_name TEXT)"
        )
        self.conn.execute(
            """
            CREATE OR REPLACE TABLE ballots_long (
                BallotID INTEGER,
                candidate_name TEXT,
                rank_position INTEGER
            )
            """
        )
        self.conn.execute("CREATE OR REPLACE TABLE ballots_empty (BallotID INTEGER)")

        if candidates:
            self.conn.executemany(
                "INSERT INTO candidates VALUES (?, ?)",
                [(i, name) for i, name in enumerate(candidates)],
            )

        long_rows = [
            (ballot_id, candidate, rank)
            for ballot_id, ballot in enumerate(ballots)
            for rank, candidate in enumerate(ballot, 1)
        ]
        if long_rows:
            self.conn.executemany("INSERT INTO ballots_long VALUES (?, ?, ?)", long_rows)

        empty_rows = [(ballot_id,) for ballot_id, ballot in enumerate(ballots) if not ballot]
        if empty_rows:
            self.conn.executemany("INSERT INTO ballots_empty VALUES (?)", empty_rows)

        return {
            "candidates": len(candidates),
            "ballots": len(ballots),
            "vote_records": len(long_rows),
            "empty_ballots": len(empty_rows),
        }

    def load_election(self) -> Tuple[Tuple[str, ...], List[NormalizedBallot]]:
        """
        Rebuild the stored election.

        Returns:
            Tuple of (candidate names in header order, ballots in stored order)
        """
        if not self.table_exists("candidates"):
            raise EmptyCandidateSet(f"No election stored in {self.db_path}")

        candidates_df = self.query(
            "SELECT candidate_name FROM candidates ORDER BY candidate_id"
        )
        candidates = tuple(candidates_df["candidate_name"])

        prefs = self.query(
            """
            SELECT BallotID, candidate_name
            FROM ballots_long
            ORDER BY BallotID, rank_position
            """
        )
        empty = self.query("SELECT BallotID FROM ballots_empty")

        by_ballot = {int(ballot_id): () for ballot_id in empty["BallotID"]}
        for ballot_id, group in prefs.groupby("BallotID", sort=False):
            by_ballot[int(ballot_id)] = tuple(group["candidate_name"])

        ballots = [by_ballot[ballot_id] for ballot_id in sorted(by_ballot)]
        logger.info(f"Loaded {len(ballots)} ballots from {self.db_path}")
        return candidates, ballots

    def save_rounds(self, round_summary: pd.DataFrame) -> None:
        """Store a tabulator's round summary as ``irv_rounds``."""
        if round_summary.empty:
            logger.warning("No rounds to store")
            return
        self.conn.register("round_summary_df", round_summary)
        try:
            self.conn.execute(
                "CREATE OR REPLACE TABLE irv_rounds AS SELECT * FROM round_summary_df"
            )
        finally:
            self.conn.unregister("round_summary_df")
        logger.info(f"Stored {len(round_summary)} round records")

    def close(self):
        """Close database connection."""
        if self._conn:
            try:
                self._conn.close()
                logger.debug(f"Closed database connection to {self.db_path}")
            except Exception as e:
                logger.warning(f"Error closing database connection: {e}")
            finally:
                self._conn = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
