"""
Human-readable round-by-round report of an IRV count.
"""

from typing import Iterable, List, Optional, Sequence

try:
    from ..ballots.errors import InvalidBallot
    from ..ballots.preference_table import PreferenceTable
    from .irv import IRVRound, NoWinnerReason, Outcome, Winner
except ImportError:
    from ballots.errors import InvalidBallot
    from ballots.preference_table import PreferenceTable
    from counting.irv import IRVRound, NoWinnerReason, Outcome, Winner

# Header line plus the 0-based ballot index gives the 1-based CSV line
HEADER_LINES = 2


def format_invalid_ballot(
    error: InvalidBallot, table: Optional[PreferenceTable] = None
) -> str:
    """Describe a rejected ballot, with its raw cells when the table is known."""
    line = error.row + HEADER_LINES if error.row is not None else "?"
    text = f"Invalid ballot (line {line}): {error.reason.value}"
    if error.value is not None:
        text += f", preference {error.value} repeated"
    if table is not None and error.row is not None:
        cells = ",".join("_" if c is None else str(c) for c in table.rows[error.row])
        text += f" [{cells}]"
    return text


def format_round(round_obj: IRVRound) -> List[str]:
    lines = [f"Round {round_obj.round_number}:"]
    ordered = sorted(
        round_obj.vote_totals.items(), key=lambda item: item[1], reverse=True
    )
    for candidate, votes in ordered:
        share = votes / round_obj.total_votes if round_obj.total_votes else 0.0
        out = candidate in round_obj.eliminated or candidate in round_obj.withdrawn
        marker = "x " if out else "  "
        lines.append(f"  {marker}{candidate:25s}: {votes:6d} votes ({share:6.1%})")

    if round_obj.exhausted_ballots:
        lines.append(f"    {'Exhausted':25s}: {round_obj.exhausted_ballots:6d} ballots")

    if round_obj.withdrawn:
        lines.append(f"  No first preferences: {', '.join(round_obj.withdrawn)}")

    moved = round_obj.eliminated or round_obj.promoted
    if round_obj.promoted:
        lines.append(f"  Resolving tie between: {', '.join(round_obj.promoted)}")
    elif round_obj.eliminated:
        label = "Eliminating (tie)" if round_obj.tied_for_last else "Eliminating"
        lines.append(f"  {label}: {', '.join(round_obj.eliminated)}")

    if moved:
        for source, flows in round_obj.transfers.items():
            for destination, count in sorted(flows.items(), key=lambda f: -f[1]):
                lines.append(f"    {source} -> {destination}: {count}")
        if round_obj.exhausted_by_transfer:
            lines.append(f"    exhausted by transfer: {round_obj.exhausted_by_transfer}")
    return lines


def format_outcome(outcome: Outcome) -> str:
    if isinstance(outcome, Winner):
        return (
            f"Winner: {outcome.candidate} "
            f"({outcome.votes}/{outcome.total_votes} votes, {float(outcome.share):.1%}, "
            f"round {outcome.round_number})"
        )

    if outcome.reason is NoWinnerReason.TIED:
        return f"The election was a tie between: {', '.join(outcome.tied)}"
    if outcome.reason is NoWinnerReason.ALL_ELIMINATED:
        return "No winner: all candidates were eliminated"
    return "No winner: all ballots were exhausted before any candidate reached the threshold"


def format_report(
    rounds: Sequence[IRVRound],
    outcome: Outcome,
    invalid: Iterable[InvalidBallot] = (),
    table: Optional[PreferenceTable] = None,
) -> str:
    """
    Build the full text report.

    Args:
        rounds: Round trace of a finished tabulation
        outcome: Its terminal outcome
        invalid: Ballots dropped during normalization
        table: Source table, used to show the raw cells of invalid ballots

    Returns:
        Multi-line report text
    """
    lines = [format_invalid_ballot(error, table) for error in invalid]
    if lines:
        lines.append("")

    for round_obj in rounds:
        lines.extend(format_round(round_obj))
        lines.append("")

    lines.append(format_outcome(outcome))
    return "\n".join(lines)
