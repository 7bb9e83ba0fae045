"""
Project layout and packaging smoke tests.
"""

import sys
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).parent.parent.parent


@pytest.mark.unit
@pytest.mark.smoke
def test_source_packages_present():
    for package in ("ballots", "counting", "web"):
        init = PROJECT_ROOT / "src" / package / "__init__.py"
        assert init.exists(), f"{package} package missing"


@pytest.mark.unit
@pytest.mark.smoke
def test_scripts_present():
    for script in ("run_irv.py", "process_data.py", "start_server.py"):
        assert (PROJECT_ROOT / "scripts" / script).exists(), f"{script} missing"


@pytest.mark.unit
@pytest.mark.smoke
def test_pyproject_declares_runtime_stack():
    pyproject = (PROJECT_ROOT / "pyproject.toml").read_text()

    for requirement in ("pandas", "duckdb", "fastapi", "uvicorn", "pyrankvote"):
        assert requirement in pyproject, f"{requirement} not declared"


@pytest.mark.unit
def test_src_on_path():
    src_path = str(PROJECT_ROOT / "src")
    assert any(src_path in p for p in sys.path)


@pytest.mark.unit
@pytest.mark.smoke
def test_package_exports():
    import ballots
    import counting

    assert "normalize_ballot" in ballots.__all__
    assert "PreferenceTable" in ballots.__all__
    assert "IRVTabulator" in counting.__all__
    assert "count_table" in counting.__all__
