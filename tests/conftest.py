"""
Shared pytest configuration and fixtures for the IRV vote counter.

This module provides common test fixtures and utilities used across
all test modules.
"""

import os
import sys
import tempfile
from pathlib import Path

import pytest

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from ballots.preference_table import PreferenceTable  # noqa: E402

SCENARIO_CANDIDATES = ["Peter", "Mia", "Hannah", "Lee"]


@pytest.fixture
def temp_db_file():
    """Provide a temporary database path for testing."""
    fd, db_path = tempfile.mkstemp(suffix=".duckdb")
    os.close(fd)
    os.unlink(db_path)  # Let DuckDB create the file itself

    try:
        yield db_path
    finally:
        if os.path.exists(db_path):
            os.unlink(db_path)


@pytest.fixture
def write_csv(tmp_path):
    """Write CSV text to a temporary file and return its path."""

    def _write(text: str, name: str = "ballots.csv") -> Path:
        path = tmp_path / name
        path.write_text(text)
        return path

    return _write


@pytest.fixture
def scenario_table():
    """Four candidates, three ballots: Peter/Mia/Lee, Lee/Peter/Hannah, Hannah."""
    return PreferenceTable.from_grid(
        SCENARIO_CANDIDATES,
        [
            [1, 2, None, 3],
            [2, None, 3, 1],
            [None, None, 1, None],
        ],
    )


@pytest.fixture
def majority_ballots():
    """Nine ballots where C's elimination hands B a strict majority."""
    return [("A",)] * 4 + [("B",)] * 3 + [("C", "B")] * 2


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "unit: marks tests as unit tests (fast, no external dependencies)"
    )
    config.addinivalue_line(
        "markers",
        "integration: marks tests as integration tests (medium speed, database required)",
    )
    config.addinivalue_line(
        "markers",
        "golden: marks tests as golden dataset validation (slow, full verification)",
    )
    config.addinivalue_line(
        "markers", "invariant: marks tests as mathematical invariant validation"
    )
    config.addinivalue_line(
        "markers", "smoke: marks tests as smoke tests (basic functionality check)"
    )
