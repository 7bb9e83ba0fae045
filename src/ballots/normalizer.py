"""
Ballot normalization.

Turns a raw ballot row (one preference number per candidate) into the
ordered tuple of candidates the counting engine consumes. Only the relative
order of the numbers matters: ``{Hannah: 3, Lee: 1}`` and
``{Hannah: 30, Lee: 1}`` both normalize to ``("Lee", "Hannah")``.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

try:
    from .errors import InvalidBallot, InvalidBallotReason
    from .preference_table import PreferenceTable, RawCell
except ImportError:
    from ballots.errors import InvalidBallot, InvalidBallotReason
    from ballots.preference_table import PreferenceTable, RawCell

NormalizedBallot = Tuple[str, ...]


def normalize_ballot(
    cells: Sequence[RawCell], candidates: Sequence[str], row: Optional[int] = None
) -> NormalizedBallot:
    """
    Normalize one raw ballot.

    Absent and negative cells express no preference. Gaps between numbers
    and numbers larger than the candidate count are accepted.

    Args:
        cells: Raw preference value per candidate, aligned with ``candidates``
        candidates: Candidate names in header order
        row: Ballot index, carried into the error for reporting

    Returns:
        Candidates in preference order, most preferred first (possibly empty)

    Raises:
        InvalidBallot: Two candidates were given the same preference value
    """
    if len(cells) != len(candidates):
        raise ValueError(
            f"Ballot has {len(cells)} cells for {len(candidates)} candidates"
        )

    pairs: Dict[int, str] = {}
    for candidate, value in zip(candidates, cells):
        if value is None or value < 0:
            continue
        if value in pairs:
            raise InvalidBallot(row, InvalidBallotReason.DUPLICATE_PREFERENCE, value)
        pairs[value] = candidate

    return tuple(pairs[value] for value in sorted(pairs))


def ranks_from_sequence(
    ballot: Sequence[str], candidates: Sequence[str]
) -> Tuple[RawCell, ...]:
    """Express a normalized ballot as raw cells, using sequence position as rank."""
    position = {candidate: rank for rank, candidate in enumerate(ballot, 1)}
    return tuple(position.get(candidate) for candidate in candidates)


@dataclass
class NormalizationResult:
    """Valid ballots of a table plus the rows that were dropped."""

    candidates: Tuple[str, ...]
    ballots: List[NormalizedBallot] = field(default_factory=list)
    invalid: List[InvalidBallot] = field(default_factory=list)

    @property
    def empty_ballots(self) -> int:
        return sum(1 for ballot in self.ballots if not ballot)


def normalize_table(table: PreferenceTable) -> NormalizationResult:
    """
    Normalize every row of a preference table.

    Invalid ballots are collected rather than raised so a single malformed
    row never aborts the count.
    """
    result = NormalizationResult(candidates=table.candidates)
    for index, cells in enumerate(table.rows):
        try:
            result.ballots.append(normalize_ballot(cells, table.candidates, row=index))
        except InvalidBallot as e:
            result.invalid.append(e)
    return result
