import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Tuple, Union

import pandas as pd

try:
    from .errors import DuplicateCandidate, EmptyCandidateSet, MalformedTable
except ImportError:
    from ballots.errors import DuplicateCandidate, EmptyCandidateSet, MalformedTable

logger = logging.getLogger(__name__)

RawCell = Optional[int]
RawBallot = Tuple[RawCell, ...]

_INTEGER = re.compile(r"^[+-]?\d+$")


def parse_cell(value) -> RawCell:
    """
    Convert one CSV cell into a raw preference value.

    Args:
        value: Cell content as read from the file (string, number or NaN)

    Returns:
        The integer preference, or None when the cell expresses no preference
    """
    if value is None:
        return None
    if isinstance(value, float):
        if pd.isna(value) or not value.is_integer():
            return None
        return int(value)
    if isinstance(value, int):
        return value

    text = str(value).strip()
    if not text:
        return None
    if not _INTEGER.match(text):
        logger.debug(f"Treating non-integer cell {text!r} as no preference")
        return None
    return int(text)


@dataclass(frozen=True)
class PreferenceTable:
    """
    Raw input of one election.

    ``candidates`` holds the header names in file order; each entry of
    ``rows`` holds one raw cell per candidate, aligned with ``candidates``.
    """

    candidates: Tuple[str, ...]
    rows: Tuple[RawBallot, ...]

    def __post_init__(self):
        if not self.candidates:
            raise EmptyCandidateSet("Preference table has no candidates")

        seen = set()
        for name in self.candidates:
            if not name:
                raise DuplicateCandidate("Candidate names must not be blank")
            if name in seen:
                raise DuplicateCandidate(f"Candidate {name!r} appears more than once")
            seen.add(name)

        width = len(self.candidates)
        for index, row in enumerate(self.rows):
            if len(row) != width:
                raise ValueError(
                    f"Ballot {index} has {len(row)} cells, expected {width}"
                )

    @property
    def ballot_count(self) -> int:
        return len(self.rows)

    @classmethod
    def from_grid(
        cls, header: Sequence[str], rows: Iterable[Sequence[object]]
    ) -> "PreferenceTable":
        """
        Build a table from a header and rows of cell values.

        Short rows are padded with absent cells; surplus cells beyond the
        header width are rejected.
        """
        candidates = tuple(str(name).strip() for name in header)
        width = len(candidates)

        parsed: List[RawBallot] = []
        for index, row in enumerate(rows):
            cells = list(row)
            if len(cells) > width:
                extra = [c for c in cells[width:] if parse_cell(c) is not None]
                if extra:
                    raise ValueError(
                        f"Ballot {index} has {len(cells)} cells, expected {width}"
                    )
                cells = cells[:width]
            cells.extend([None] * (width - len(cells)))
            parsed.append(tuple(parse_cell(c) for c in cells))

        return cls(candidates=candidates, rows=tuple(parsed))

    @classmethod
    def from_csv(cls, csv_path: Union[str, Path]) -> "PreferenceTable":
        """
        Load a preference table from a CSV file.

        Rows wider than the header are accepted when the surplus cells are
        blank; a value beyond the last candidate column is rejected.

        Args:
            csv_path: Path to a CSV whose header row names the candidates

        Returns:
            PreferenceTable with one raw ballot per data row

        Raises:
            EmptyCandidateSet: The file has no header row
            MalformedTable: A row cannot be parsed or carries extra values
        """
        logger.info(f"Loading preference table from: {csv_path}")

        read_options = dict(
            engine="python",
            header=None,
            dtype=str,
            keep_default_na=False,
            skip_blank_lines=True,
        )
        # Header names are read as plain data so pandas never renames duplicates
        try:
            width = len(pd.read_csv(csv_path, nrows=1, **read_options).columns)
        except pd.errors.EmptyDataError:
            raise EmptyCandidateSet(f"No header row found in {csv_path}")

        def trim_surplus(fields: List[str]) -> List[str]:
            if any(cell.strip() for cell in fields[width:]):
                raise MalformedTable(
                    f"Row {fields} has {len(fields)} cells, expected {width}"
                )
            return fields[:width]

        try:
            grid = pd.read_csv(csv_path, on_bad_lines=trim_surplus, **read_options)
        except pd.errors.ParserError as e:
            raise MalformedTable(f"Could not parse {csv_path}: {e}") from e

        if grid.empty:
            raise EmptyCandidateSet(f"No header row found in {csv_path}")

        header = list(grid.iloc[0])
        data_rows = grid.iloc[1:].itertuples(index=False, name=None)
        table = cls.from_grid(header, data_rows)

        logger.info(
            f"Loaded {table.ballot_count} ballots for {len(table.candidates)} candidates"
        )
        return table
