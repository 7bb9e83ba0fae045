"""
Golden scenario tests.

Hand-counted elections run end to end from a preference table through
normalization and counting.
"""

from fractions import Fraction

import pytest

from ballots.errors import NoBallots
from ballots.preference_table import PreferenceTable
from counting.config import CountConfig
from counting.election import count_table
from counting.irv import NoWinner, NoWinnerReason, TieBreak, Winner

SIMULTANEOUS = CountConfig()
CANDIDATE_ORDER = CountConfig(tie_break=TieBreak.CANDIDATE_ORDER)
PROMOTION = CountConfig(tie_break=TieBreak.PROMOTION)


@pytest.mark.golden
def test_scenario_one_simultaneous(scenario_table):
    """Mia goes first, then Peter, Hannah and Lee tie for last together."""
    election = count_table(scenario_table, SIMULTANEOUS)

    rounds = election.tabulator.rounds
    assert rounds[0].vote_totals == {"Peter": 1, "Mia": 0, "Hannah": 1, "Lee": 1}
    assert rounds[0].eliminated == ("Mia",)
    assert rounds[1].eliminated == ("Peter", "Hannah", "Lee")
    assert election.outcome == NoWinner(NoWinnerReason.ALL_ELIMINATED, 2)


@pytest.mark.golden
def test_scenario_one_candidate_order(scenario_table):
    """Lee is listed last among the tied candidates; the Lee ballot moves to Peter."""
    election = count_table(scenario_table, CANDIDATE_ORDER)

    rounds = election.tabulator.rounds
    assert rounds[1].eliminated == ("Lee",)
    assert rounds[1].transfers == {"Lee": {"Peter": 1}}
    assert rounds[2].vote_totals == {"Peter": 2, "Hannah": 1}
    assert election.outcome == Winner("Peter", 2, 3, Fraction(2, 3), 3)


@pytest.mark.golden
def test_scenario_one_promotion(scenario_table):
    """Mia never enters; the level field moves on, then Peter and Lee are run off."""
    election = count_table(scenario_table, PROMOTION)

    rounds = election.tabulator.rounds
    assert rounds[0].withdrawn == ("Mia",)
    assert rounds[0].promoted == ("Peter", "Hannah", "Lee")
    assert rounds[0].transfers == {
        "Peter": {"Lee": 1},
        "Hannah": {},
        "Lee": {"Peter": 1},
    }
    assert rounds[0].exhausted_by_transfer == 1
    assert rounds[1].vote_totals == {"Peter": 1, "Hannah": 0, "Lee": 1}
    assert rounds[1].eliminated == ("Peter", "Lee")
    assert rounds[1].transfers == {"Peter": {"Hannah": 1}, "Lee": {}}
    assert rounds[2].vote_totals == {"Hannah": 1}
    assert election.outcome == Winner("Hannah", 1, 1, Fraction(1), 3)


@pytest.mark.golden
def test_scenario_one_is_reproducible(scenario_table):
    for config in (SIMULTANEOUS, CANDIDATE_ORDER, PROMOTION):
        first = count_table(scenario_table, config)
        second = count_table(scenario_table, config)

        assert first.outcome == second.outcome
        assert first.tabulator.rounds == second.tabulator.rounds


@pytest.mark.golden
def test_scenario_two_duplicate_ballot_excluded():
    table = PreferenceTable.from_grid(
        ["Peter", "Mia", "Hannah", "Lee"],
        [
            [1, 2, None, None],
            [None, 1, None, None],
            [1, 1, None, None],
            [1, None, None, None],
        ],
    )

    election = count_table(table, SIMULTANEOUS)

    assert [e.row for e in election.normalization.invalid] == [2]
    for round_obj in election.tabulator.rounds:
        assert round_obj.total_votes + round_obj.exhausted_ballots == 3
    assert election.tabulator.rounds[0].total_votes == 3
    assert election.outcome == Winner("Peter", 2, 3, Fraction(2, 3), 1)


@pytest.mark.golden
def test_scenario_three_all_exhausted():
    table = PreferenceTable.from_grid(
        ["Peter", "Mia"],
        [
            [None, None],
            [-1, None],
            [None, -4],
        ],
    )

    election = count_table(table, SIMULTANEOUS)

    assert election.outcome == NoWinner(NoWinnerReason.EXHAUSTED, 1)
    assert election.tabulator.rounds[0].exhausted_ballots == 3


@pytest.mark.golden
def test_only_invalid_ballots_aborts():
    table = PreferenceTable.from_grid(["Peter", "Mia"], [[1, 1], [2, 2]])

    with pytest.raises(NoBallots):
        count_table(table, SIMULTANEOUS)


@pytest.mark.golden
def test_verbose_logs_each_invalid_ballot(caplog):
    table = PreferenceTable.from_grid(["A", "B"], [[1, 1], [1, 2], [3, 3]])

    with caplog.at_level("WARNING"):
        count_table(table, CountConfig(verbose=True))

    warnings = [r for r in caplog.records if r.levelname == "WARNING"]
    assert len(warnings) == 2
    assert "row 0" in warnings[0].getMessage()
    assert "row 2" in warnings[1].getMessage()


@pytest.mark.golden
def test_quiet_mode_does_not_warn(caplog):
    table = PreferenceTable.from_grid(["A", "B"], [[1, 1], [1, 2]])

    with caplog.at_level("WARNING"):
        count_table(table, CountConfig())

    assert not [r for r in caplog.records if r.levelname == "WARNING"]
