"""
Ballot input for instant-runoff counting.

- PreferenceTable: raw per-candidate preference numbers loaded from CSV
- normalize_ballot / normalize_table: raw rows to ordered candidate tuples
- ElectionDatabase: DuckDB storage of normalized ballots and round results
"""

from .errors import (
    BallotError,
    DuplicateCandidate,
    EmptyCandidateSet,
    InvalidBallot,
    InvalidBallotReason,
    InvalidThreshold,
    MalformedTable,
    NoBallots,
)
from .normalizer import (
    NormalizationResult,
    normalize_ballot,
    normalize_table,
    ranks_from_sequence,
)
from .preference_table import PreferenceTable, parse_cell

__all__ = [
    "BallotError",
    "DuplicateCandidate",
    "EmptyCandidateSet",
    "InvalidBallot",
    "InvalidBallotReason",
    "InvalidThreshold",
    "MalformedTable",
    "NoBallots",
    "NormalizationResult",
    "PreferenceTable",
    "normalize_ballot",
    "normalize_table",
    "parse_cell",
    "ranks_from_sequence",
]
