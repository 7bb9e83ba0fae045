import logging
from dataclasses import dataclass
from fractions import Fraction
from typing import Optional

from pyrankvote import Ballot, Candidate, instant_runoff_voting

try:
    from .irv import IRVTabulator, Winner
except ImportError:
    from counting.irv import IRVTabulator, Winner

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VerificationResult:
    comparable: bool
    matches: Optional[bool]
    our_winner: Optional[str]
    reference_winner: Optional[str]
    note: str = ""

    def to_dict(self) -> dict:
        return {
            "comparable": self.comparable,
            "matches": self.matches,
            "our_winner": self.our_winner,
            "reference_winner": self.reference_winner,
            "note": self.note,
        }


class ReferenceVerifier:
    """
    Re-counts a finished tabulation with PyRankVote and compares winners.

    PyRankVote eliminates one candidate at a time until a single candidate
    remains, so the comparison only applies to majority counts that ended
    with a strict-majority winner and never had a tie for last place.
    """

    def __init__(self, tabulator: IRVTabulator):
        if tabulator.outcome is None:
            raise RuntimeError("Must run tabulation before verifying")
        self.tabulator = tabulator

    def _comparability_issue(self) -> str:
        outcome = self.tabulator.outcome
        if self.tabulator.threshold != Fraction(1, 2):
            return f"threshold {self.tabulator.threshold} is not a simple majority"
        if not isinstance(outcome, Winner):
            return "count ended without a winner"
        if 2 * outcome.votes <= outcome.total_votes:
            return "winner did not hold a strict majority"
        if any(r.tied_for_last for r in self.tabulator.rounds):
            return "a tie for last place was resolved by local rule"
        return ""

    def run_reference_count(self) -> Optional[str]:
        """Run PyRankVote on the same ballots and return its winner."""
        candidates = {name: Candidate(name) for name in self.tabulator.candidates}
        ballots = [
            Ballot(ranked_candidates=[candidates[name] for name in ballot])
            for ballot in self.tabulator.ballots
            if ballot
        ]
        if not ballots:
            return None

        result = instant_runoff_voting(list(candidates.values()), ballots)
        winners = result.get_winners()
        return winners[0].name if winners else None

    def verify(self) -> VerificationResult:
        outcome = self.tabulator.outcome
        our_winner = outcome.candidate if isinstance(outcome, Winner) else None

        issue = self._comparability_issue()
        if issue:
            logger.info(f"Skipping reference comparison: {issue}")
            return VerificationResult(
                comparable=False,
                matches=None,
                our_winner=our_winner,
                reference_winner=None,
                note=issue,
            )

        reference_winner = self.run_reference_count()
        matches = reference_winner == our_winner
        if matches:
            logger.info(f"Reference count agrees: {our_winner}")
        else:
            logger.warning(
                f"Reference count disagrees: ours {our_winner}, PyRankVote {reference_winner}"
            )
        return VerificationResult(
            comparable=True,
            matches=matches,
            our_winner=our_winner,
            reference_winner=reference_winner,
        )
