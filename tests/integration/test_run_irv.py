"""
End-to-end tests of the run_irv.py command-line script.
"""

import importlib.util
from pathlib import Path

import pandas as pd
import pytest

from ballots.database import ElectionDatabase

SCRIPT = Path(__file__).parent.parent.parent / "scripts" / "run_irv.py"


def load_script():
    spec = importlib.util.spec_from_file_location("run_irv", SCRIPT)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


@pytest.fixture(scope="module")
def run_irv():
    return load_script()


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    monkeypatch.delenv("IRV_THRESHOLD", raising=False)
    monkeypatch.delenv("IRV_TIE_BREAK", raising=False)


SCENARIO_CSV = "Peter,Mia,Hannah,Lee\n1,2,,3\n2,,3,1\n,,1,\n1,1,,\n"


@pytest.mark.integration
def test_prints_winner(run_irv, write_csv, capsys):
    path = write_csv(SCENARIO_CSV)

    code = run_irv.main([str(path), "--tie-break", "candidate-order"])

    assert code == run_irv.EXIT_OK
    assert capsys.readouterr().out.strip().startswith("Winner: Peter")


@pytest.mark.integration
def test_no_winner_still_exits_ok(run_irv, write_csv, capsys):
    path = write_csv(SCENARIO_CSV)

    code = run_irv.main([str(path), "--threshold", "0.5"])

    assert code == run_irv.EXIT_OK
    assert "all candidates were eliminated" in capsys.readouterr().out


@pytest.mark.integration
def test_report_lists_invalid_ballot(run_irv, write_csv, capsys):
    path = write_csv(SCENARIO_CSV)

    run_irv.main([str(path), "--report", "--tie-break", "candidate-order"])

    out = capsys.readouterr().out
    assert "Invalid ballot (line 5)" in out
    assert "Round 3:" in out


@pytest.mark.integration
def test_export_and_store(run_irv, write_csv, tmp_path, temp_db_file):
    path = write_csv(SCENARIO_CSV)
    export = tmp_path / "rounds"

    code = run_irv.main(
        [
            str(path),
            "--tie-break",
            "candidate-order",
            "--export",
            str(export),
            "--db",
            temp_db_file,
        ]
    )

    assert code == run_irv.EXIT_OK
    summary = pd.read_csv(export.with_suffix(".csv"))
    assert set(summary["round"]) == {1, 2, 3}

    with ElectionDatabase(temp_db_file, read_only=True) as db:
        candidates, ballots = db.load_election()
        assert db.table_exists("irv_rounds")

    assert candidates == ("Peter", "Mia", "Hannah", "Lee")
    assert len(ballots) == 3


@pytest.mark.integration
def test_bad_threshold_is_usage_error(run_irv, write_csv):
    path = write_csv(SCENARIO_CSV)

    assert run_irv.main([str(path), "--threshold", "1.5"]) == run_irv.EXIT_USAGE


@pytest.mark.integration
def test_missing_file_is_data_error(run_irv, tmp_path):
    assert run_irv.main([str(tmp_path / "missing.csv")]) == run_irv.EXIT_DATAERR


@pytest.mark.integration
def test_only_invalid_ballots_is_data_error(run_irv, write_csv):
    path = write_csv("A,B\n1,1\n2,2\n")

    assert run_irv.main([str(path)]) == run_irv.EXIT_DATAERR


@pytest.mark.integration
def test_promotion_tie_break(run_irv, write_csv, capsys):
    path = write_csv(SCENARIO_CSV)

    code = run_irv.main([str(path), "--tie-break", "promotion", "--report"])

    out = capsys.readouterr().out
    assert code == run_irv.EXIT_OK
    assert "Resolving tie between: Peter, Hannah, Lee" in out
    assert out.strip().splitlines()[-1].startswith("Winner: Hannah")


@pytest.mark.integration
def test_trailing_blank_cells_accepted(run_irv, write_csv, capsys):
    path = write_csv("A,B,C\n1,2,,\n2,1,3\n1,,,,\n")

    code = run_irv.main([str(path)])

    assert code == run_irv.EXIT_OK
    assert capsys.readouterr().out.strip().startswith("Winner: A")


@pytest.mark.integration
def test_extra_preference_cell_is_data_error(run_irv, write_csv):
    path = write_csv("A,B\n1,2\n1,2,3\n")

    assert run_irv.main([str(path)]) == run_irv.EXIT_DATAERR
