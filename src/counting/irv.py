import logging
from dataclasses import dataclass, field
from enum import Enum
from fractions import Fraction
from numbers import Rational
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional, Sequence, Set, Tuple, Union

import pandas as pd

try:
    from ..ballots.errors import EmptyCandidateSet, InvalidThreshold, NoBallots
except ImportError:
    from ballots.errors import EmptyCandidateSet, InvalidThreshold, NoBallots

logger = logging.getLogger(__name__)

ThresholdLike = Union[Fraction, float, int, str]

DEFAULT_THRESHOLD = Fraction(1, 2)


class TieBreak(str, Enum):
    """How to resolve a tie for last place."""

    # Eliminate every candidate sharing the lowest tally in the same round
    SIMULTANEOUS = "simultaneous"
    # Eliminate only the tied candidate listed last in the header
    CANDIDATE_ORDER = "candidate-order"
    # Candidates without first preferences drop out before the count; when
    # every active candidate is level, each ballot moves on to its next
    # preference and nobody is eliminated; otherwise the lowest candidates
    # holding votes are eliminated together
    PROMOTION = "promotion"


class NoWinnerReason(str, Enum):
    EXHAUSTED = "exhausted"
    ALL_ELIMINATED = "all_eliminated"
    TIED = "tied"


@dataclass(frozen=True)
class Winner:
    candidate: str
    votes: int
    total_votes: int
    share: Fraction
    round_number: int


@dataclass(frozen=True)
class NoWinner:
    reason: NoWinnerReason
    round_number: int
    tied: Tuple[str, ...] = ()


Outcome = Union[Winner, NoWinner]


@dataclass(frozen=True)
class IRVRound:
    """
    Snapshot of one tally-and-eliminate cycle.

    ``vote_totals`` and ``transfers`` are read-only mappings. ``promoted``
    lists the level candidates whose ballots moved on without anyone being
    eliminated, and ``withdrawn`` the candidates dropped before the first
    round for lack of first preferences (both only under
    ``TieBreak.PROMOTION``).
    """

    round_number: int
    active_candidates: Tuple[str, ...]
    vote_totals: Mapping[str, int]
    total_votes: int
    exhausted_ballots: int
    eliminated: Tuple[str, ...] = ()
    tied_for_last: bool = False
    transfers: Mapping[str, Mapping[str, int]] = field(
        default_factory=lambda: MappingProxyType({})
    )
    exhausted_by_transfer: int = 0
    promoted: Tuple[str, ...] = ()
    withdrawn: Tuple[str, ...] = ()

    def __post_init__(self):
        object.__setattr__(
            self, "vote_totals", MappingProxyType(dict(self.vote_totals))
        )
        object.__setattr__(
            self,
            "transfers",
            MappingProxyType(
                {k: MappingProxyType(dict(v)) for k, v in self.transfers.items()}
            ),
        )


@dataclass
class ElectionState:
    """Mutable state of a single count. Never shared between tabulations."""

    active: Set[str]
    cursors: List[int]
    tallies: Dict[str, int] = field(default_factory=dict)
    exhausted: int = 0


def parse_threshold(value: ThresholdLike) -> Fraction:
    """
    Convert a threshold to an exact fraction in (0, 1].

    Floats are converted through their decimal text so that ``0.6`` becomes
    exactly ``3/5`` rather than the nearest binary value.
    """
    try:
        if isinstance(value, Fraction):
            threshold = value
        elif isinstance(value, float):
            threshold = Fraction(repr(value))
        elif isinstance(value, Rational):
            threshold = Fraction(value)
        else:
            threshold = Fraction(str(value).strip())
    except (ValueError, ZeroDivisionError) as e:
        raise InvalidThreshold(f"Invalid threshold {value!r}: {e}") from e

    if not 0 < threshold <= 1:
        raise InvalidThreshold(f"Threshold must lie in (0, 1], got {value!r}")
    return threshold


class IRVTabulator:
    """
    Instant-runoff counting engine.

    Each round every ballot counts for its highest-ranked active candidate.
    A candidate whose share of the votes still in play reaches the threshold
    wins; otherwise the last-placed candidate is eliminated and its ballots
    move on to their next active preference.
    """

    def __init__(
        self,
        candidates: Sequence[str],
        ballots: Sequence[Sequence[str]],
        threshold: ThresholdLike = DEFAULT_THRESHOLD,
        tie_break: TieBreak = TieBreak.SIMULTANEOUS,
    ):
        """
        Initialize the tabulator.

        Args:
            candidates: Candidate names in header order
            ballots: Normalized ballots, most preferred candidate first
            threshold: Winning share of the votes in play, in (0, 1]
            tie_break: Rule applied when several candidates tie for last place
        """
        if not candidates:
            raise EmptyCandidateSet("Cannot count an election without candidates")
        if not ballots:
            raise NoBallots("Cannot count an election without valid ballots")

        self.candidates: Tuple[str, ...] = tuple(candidates)
        if len(set(self.candidates)) != len(self.candidates):
            raise ValueError("Candidate names must be unique")

        known = set(self.candidates)
        for index, ballot in enumerate(ballots):
            if len(set(ballot)) != len(ballot):
                raise ValueError(f"Ballot {index} ranks a candidate more than once")
            unknown = [c for c in ballot if c not in known]
            if unknown:
                raise ValueError(f"Ballot {index} ranks unknown candidates: {unknown}")

        self.ballots: Tuple[Tuple[str, ...], ...] = tuple(tuple(b) for b in ballots)
        self.threshold = parse_threshold(threshold)
        self.tie_break = TieBreak(tie_break)

        self.rounds: List[IRVRound] = []
        self.eliminated: List[str] = []
        self.outcome: Optional[Outcome] = None

    def _tally(self, state: ElectionState) -> None:
        """Advance every cursor to its next active preference and count votes."""
        state.tallies = {c: 0 for c in self.candidates if c in state.active}
        state.exhausted = 0
        for index, ballot in enumerate(self.ballots):
            choice = self._current_choice(state, index)
            if choice is None:
                state.exhausted += 1
            else:
                state.tallies[choice] += 1

    def _current_choice(self, state: ElectionState, index: int) -> Optional[str]:
        ballot = self.ballots[index]
        cursor = state.cursors[index]
        while cursor < len(ballot) and ballot[cursor] not in state.active:
            cursor += 1
        state.cursors[index] = cursor
        return ballot[cursor] if cursor < len(ballot) else None

    def _select_for_elimination(self, tallies: Dict[str, int]) -> Tuple[str, ...]:
        lowest = min(tallies.values())
        tied = [c for c in self.candidates if tallies.get(c) == lowest]
        if len(tied) > 1 and self.tie_break is TieBreak.CANDIDATE_ORDER:
            return (tied[-1],)
        return tuple(tied)

    def _select_for_promotion(
        self, tallies: Dict[str, int]
    ) -> Tuple[Tuple[str, ...], bool]:
        """
        Pick the candidates whose ballots move on under ``TieBreak.PROMOTION``.

        Returns:
            (candidates, promote) where promote is True when everyone is level
            and nobody should be eliminated
        """
        top = max(tallies.values())
        if all(votes == top for votes in tallies.values()):
            return tuple(c for c in self.candidates if c in tallies), True

        # Candidates left without votes are never the ones run off
        lowest = min(votes for votes in tallies.values() if votes > 0)
        return tuple(c for c in self.candidates if tallies.get(c) == lowest), False

    def _transfer(
        self, state: ElectionState, sources: Tuple[str, ...], eliminate: bool = True
    ) -> Tuple[Dict[str, Dict[str, int]], int]:
        """
        Move the ballots held by ``sources`` to their next active preference.

        With ``eliminate`` the sources leave the count first; otherwise they
        stay active and each ballot simply steps past its current choice.
        """
        transfers: Dict[str, Dict[str, int]] = {c: {} for c in sources}
        exhausted = 0
        holders = {}
        for index, ballot in enumerate(self.ballots):
            cursor = state.cursors[index]
            if cursor < len(ballot) and ballot[cursor] in sources:
                holders[index] = ballot[cursor]

        if eliminate:
            state.active.difference_update(sources)

        for index, source in holders.items():
            if not eliminate:
                state.cursors[index] += 1
            destination = self._current_choice(state, index)
            if destination is None:
                exhausted += 1
            else:
                flows = transfers[source]
                flows[destination] = flows.get(destination, 0) + 1
        return transfers, exhausted

    def _check_threshold(
        self, tallies: Dict[str, int], total: int
    ) -> Tuple[Optional[str], Tuple[str, ...]]:
        """Return the winner, or the candidates tied above the threshold."""
        clearing = [
            c for c in self.candidates
            if c in tallies and Fraction(tallies[c], total) >= self.threshold
        ]
        if not clearing:
            return None, ()
        best = max(tallies[c] for c in clearing)
        leaders = tuple(c for c in clearing if tallies[c] == best)
        if len(leaders) == 1:
            return leaders[0], ()
        return None, leaders

    def run_tabulation(self) -> Outcome:
        """
        Run the count to completion.

        Returns:
            Winner, or NoWinner when every ballot is exhausted, every
            candidate is eliminated, or the leaders tie above the threshold
        """
        logger.info(
            f"Starting IRV tabulation: {len(self.candidates)} candidates, "
            f"{len(self.ballots)} ballots, threshold {self.threshold}, "
            f"tie-break {self.tie_break.value}"
        )

        promotion = self.tie_break is TieBreak.PROMOTION
        self.rounds = []
        self.eliminated = []
        state = ElectionState(
            active=set(self.candidates), cursors=[0] * len(self.ballots)
        )

        round_num = 0
        outcome: Optional[Outcome] = None
        while outcome is None:
            round_num += 1
            self._tally(state)
            vote_totals = dict(state.tallies)
            total = sum(vote_totals.values())

            withdrawn: Tuple[str, ...] = ()
            if promotion and round_num == 1 and total > 0:
                withdrawn = tuple(c for c, v in vote_totals.items() if v == 0)
                state.active.difference_update(withdrawn)
                self.eliminated.extend(withdrawn)
                if withdrawn:
                    logger.info(f"No first preferences for {', '.join(withdrawn)}")

            tallies = {c: v for c, v in vote_totals.items() if c in state.active}
            active = tuple(c for c in self.candidates if c in state.active)

            logger.debug(
                f"Round {round_num}: {tallies} "
                f"(total {total}, exhausted {state.exhausted})"
            )

            snapshot = dict(
                round_number=round_num,
                active_candidates=active,
                vote_totals=vote_totals,
                total_votes=total,
                exhausted_ballots=state.exhausted,
                withdrawn=withdrawn,
            )

            if total == 0:
                outcome = NoWinner(NoWinnerReason.EXHAUSTED, round_num)
                self.rounds.append(IRVRound(**snapshot))
                break

            winner, tied = self._check_threshold(tallies, total)
            if winner is not None:
                outcome = Winner(
                    candidate=winner,
                    votes=tallies[winner],
                    total_votes=total,
                    share=Fraction(tallies[winner], total),
                    round_number=round_num,
                )
                self.rounds.append(IRVRound(**snapshot))
                break
            # Under promotion a level top is resolved like any other tie
            if tied and not promotion:
                outcome = NoWinner(NoWinnerReason.TIED, round_num, tied)
                self.rounds.append(IRVRound(**snapshot))
                break

            if promotion:
                sources, promote = self._select_for_promotion(tallies)
            else:
                sources, promote = self._select_for_elimination(tallies), False
            tied_for_last = list(tallies.values()).count(tallies[sources[0]]) > 1
            transfers, exhausted = self._transfer(state, sources, eliminate=not promote)

            if promote:
                logger.info(
                    f"Round {round_num}: resolving tie between {', '.join(sources)}"
                )
                self.rounds.append(
                    IRVRound(
                        **snapshot,
                        tied_for_last=tied_for_last,
                        transfers=transfers,
                        exhausted_by_transfer=exhausted,
                        promoted=sources,
                    )
                )
                continue

            self.eliminated.extend(sources)
            logger.info(
                f"Round {round_num}: eliminating {', '.join(sources)} "
                f"with {tallies[sources[0]]} votes"
            )

            self.rounds.append(
                IRVRound(
                    **snapshot,
                    eliminated=sources,
                    tied_for_last=tied_for_last,
                    transfers=transfers,
                    exhausted_by_transfer=exhausted,
                )
            )

            if not state.active:
                outcome = NoWinner(NoWinnerReason.ALL_ELIMINATED, round_num)

        self.outcome = outcome
        if isinstance(outcome, Winner):
            logger.info(
                f"Winner: {outcome.candidate} with {outcome.votes}/{outcome.total_votes} "
                f"votes in round {outcome.round_number}"
            )
        else:
            logger.info(f"No winner after {round_num} rounds: {outcome.reason.value}")
        return outcome

    def get_round_summary(self) -> pd.DataFrame:
        """
        Get summary of all rounds as a DataFrame.

        Returns:
            DataFrame with one row per active candidate per round
        """
        if not self.rounds:
            return pd.DataFrame()

        summary_data = []
        for round_obj in self.rounds:
            for candidate, votes in round_obj.vote_totals.items():
                summary_data.append(
                    {
                        "round": round_obj.round_number,
                        "candidate_name": candidate,
                        "votes": votes,
                        "share": votes / round_obj.total_votes
                        if round_obj.total_votes
                        else 0.0,
                        "status": self._get_candidate_status(candidate, round_obj),
                        "exhausted_ballots": round_obj.exhausted_ballots,
                    }
                )

        return pd.DataFrame(summary_data)

    def _get_candidate_status(self, candidate: str, round_obj: IRVRound) -> str:
        """Get the status of a candidate in a given round."""
        if candidate in round_obj.eliminated or candidate in round_obj.withdrawn:
            return "eliminated"
        if (
            isinstance(self.outcome, Winner)
            and self.outcome.candidate == candidate
            and self.outcome.round_number == round_obj.round_number
        ):
            return "elected"
        return "continuing"

    def get_final_results(self) -> pd.DataFrame:
        """
        Get final election results.

        Returns:
            DataFrame with the last tally of every candidate, best first
        """
        if not self.rounds:
            return pd.DataFrame()

        results_data = []
        for candidate in self.candidates:
            # Every candidate is active in round 1, so a last round always exists
            last_round = next(
                r for r in reversed(self.rounds) if candidate in r.vote_totals
            )
            if isinstance(self.outcome, Winner) and self.outcome.candidate == candidate:
                status = "elected"
            elif candidate in self.eliminated:
                status = "eliminated"
            else:
                status = "not_elected"
            results_data.append(
                {
                    "candidate_name": candidate,
                    "final_votes": last_round.vote_totals[candidate],
                    "last_round": last_round.round_number,
                    "status": status,
                }
            )

        return pd.DataFrame(results_data).sort_values(
            ["final_votes", "last_round"], ascending=False
        )
