import logging
from dataclasses import dataclass

try:
    from ..ballots.errors import NoBallots
    from ..ballots.normalizer import NormalizationResult, normalize_table
    from ..ballots.preference_table import PreferenceTable
    from .config import CountConfig
    from .irv import IRVTabulator, Outcome
except ImportError:
    from ballots.errors import NoBallots
    from ballots.normalizer import NormalizationResult, normalize_table
    from ballots.preference_table import PreferenceTable
    from counting.config import CountConfig
    from counting.irv import IRVTabulator, Outcome

logger = logging.getLogger(__name__)


@dataclass
class ElectionCount:
    """Everything produced by counting one preference table."""

    table: PreferenceTable
    normalization: NormalizationResult
    tabulator: IRVTabulator
    outcome: Outcome


def count_table(table: PreferenceTable, config: CountConfig = CountConfig()) -> ElectionCount:
    """
    Normalize a preference table and run the count.

    Invalid ballots are dropped; with ``config.verbose`` each one is logged.

    Raises:
        NoBallots: No ballot survived normalization
    """
    normalization = normalize_table(table)

    if normalization.invalid:
        logger.info(f"Dropped {len(normalization.invalid)} invalid ballots")
        if config.verbose:
            for error in normalization.invalid:
                logger.warning(f"Invalid ballot at row {error.row}: {error}")

    if not normalization.ballots:
        raise NoBallots(
            f"No valid ballots among {table.ballot_count} rows"
        )

    tabulator = IRVTabulator(
        table.candidates,
        normalization.ballots,
        threshold=config.threshold,
        tie_break=config.tie_break,
    )
    outcome = tabulator.run_tabulation()
    return ElectionCount(
        table=table, normalization=normalization, tabulator=tabulator, outcome=outcome
    )
