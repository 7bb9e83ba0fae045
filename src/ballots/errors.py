"""
Exceptions raised while loading ballots and preparing a count.

``NoWinner`` is deliberately absent: an election without a winner is a
normal outcome of the counting engine, not an error.
"""

from enum import Enum
from typing import Optional


class InvalidBallotReason(str, Enum):
    """Why a raw ballot was rejected by the normalizer."""

    DUPLICATE_PREFERENCE = "duplicate_preference"


class BallotError(ValueError):
    """Base class for ballot and election input errors."""


class InvalidBallot(BallotError):
    """A single ballot could not be normalized. Callers drop it and continue."""

    def __init__(
        self,
        row: Optional[int],
        reason: InvalidBallotReason = InvalidBallotReason.DUPLICATE_PREFERENCE,
        value: Optional[int] = None,
    ):
        self.row = row
        self.reason = reason
        self.value = value
        where = f"ballot {row}" if row is not None else "ballot"
        detail = f" (preference {value} given twice)" if value is not None else ""
        super().__init__(f"Invalid {where}: {reason.value}{detail}")


class EmptyCandidateSet(BallotError):
    """The election has no candidates."""


class NoBallots(BallotError):
    """The election has no valid ballots to count."""


class DuplicateCandidate(BallotError):
    """A candidate name is blank or appears more than once in the header."""


class InvalidThreshold(BallotError):
    """The winning threshold is not a fraction in (0, 1]."""


class MalformedTable(BallotError):
    """The ballot file cannot be read as a preference table."""
