"""
Instant-runoff counting.

- IRVTabulator: round-based elimination and transfer engine
- IRVRound: per-round trace record
- Winner / NoWinner: terminal outcomes
"""

from .config import CountConfig
from .election import ElectionCount, count_table
from .irv import (
    IRVRound,
    IRVTabulator,
    NoWinner,
    NoWinnerReason,
    TieBreak,
    Winner,
    parse_threshold,
)

__all__ = [
    "CountConfig",
    "ElectionCount",
    "IRVRound",
    "IRVTabulator",
    "NoWinner",
    "NoWinnerReason",
    "TieBreak",
    "Winner",
    "count_table",
    "parse_threshold",
]
