"""sheetsplus/tabular/grid.py
###############################################################################
Rectangular grid normalisation and the session-scoped GridEditor
###############################################################################
Parsing and editing are two separate phases:

1. :func:`sheetsplus.tabular.csv_parser.parse` returns rows exactly as found in
   the text, ragged or not.
2. :func:`normalize` pads every row with empty fields up to the widest row.

A :class:`GridEditor` only ever holds a normalised grid and keeps it
rectangular across every mutation.  It does no parsing or formatting of its
own – CSV goes through the parser/serializer and the Word export through
:func:`sheetsplus.export.docx.build_docx`.

The editor is not thread-safe; the session layer serialises access with one
lock per session.
"""

from __future__ import annotations

from typing import List, Sequence

from sheetsplus.core.exceptions import OutOfRangeError
from sheetsplus.export.docx import build_docx
from sheetsplus.tabular.csv_parser import parse
from sheetsplus.tabular.csv_serializer import serialize

__all__: list[str] = [
    "Grid",
    "GridEditor",
    "normalize",
]

Grid = List[List[str]]


def normalize(rows: Sequence[Sequence[str]]) -> Grid:
    """Return a rectangular copy of **rows**, padding short rows with ``""``."""
    width = max((len(row) for row in rows), default=0)
    return [list(row) + [""] * (width - len(row)) for row in rows]


class GridEditor:
    """Mutable rectangular grid for one editing session.

    Row 0 is conventionally the header; it is positional only and is edited,
    padded and removed like any other row.
    """

    def __init__(self, grid: Sequence[Sequence[str]] | None = None) -> None:
        self._grid: Grid = []
        if grid is not None:
            self.set_grid(grid)

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------
    @property
    def grid(self) -> Grid:
        """Deep copy of the current grid."""
        return [list(row) for row in self._grid]

    @property
    def header(self) -> List[str]:
        return list(self._grid[0]) if self._grid else []

    @property
    def row_count(self) -> int:
        return len(self._grid)

    @property
    def column_count(self) -> int:
        return len(self._grid[0]) if self._grid else 0

    @property
    def is_empty(self) -> bool:
        return not self._grid

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------
    def set_grid(self, grid: Sequence[Sequence[str]]) -> None:
        """Replace the whole grid (no merge) with a normalised copy of **grid**."""
        self._grid = normalize(grid)

    def load_csv(self, text: str) -> None:
        """Parse **text** and replace the grid with the normalised result."""
        self.set_grid(parse(text))

    # ------------------------------------------------------------------
    # Mutators
    # ------------------------------------------------------------------
    def _check_row(self, index: int) -> None:
        if not 0 <= index < self.row_count:
            raise OutOfRangeError("row", index, self.row_count)

    def _check_column(self, index: int) -> None:
        if not 0 <= index < self.column_count:
            raise OutOfRangeError("column", index, self.column_count)

    def edit_cell(self, row: int, col: int, value: str) -> None:
        """Set the cell at (**row**, **col**).

        Raises:
            OutOfRangeError: If either index is outside the current bounds.
        """
        self._check_row(row)
        self._check_column(col)
        self._grid[row][col] = value

    def add_row(self) -> None:
        """Append an empty row sized to the current column count."""
        if self.column_count == 0:
            self._grid = [[""]]
            return
        self._grid.append([""] * self.column_count)

    def add_column(self) -> None:
        """Append one empty field to every row, the header included."""
        if not self._grid:
            self._grid = [[""]]
            return
        for row in self._grid:
            row.append("")

    def remove_row(self, index: int) -> None:
        self._check_row(index)
        del self._grid[index]

    def remove_column(self, index: int) -> None:
        self._check_column(index)
        for row in self._grid:
            del row[index]

    # ------------------------------------------------------------------
    # Export
    # ------------------------------------------------------------------
    def to_csv(self) -> str:
        return serialize(self._grid)

    def to_tabular_document(self) -> bytes:
        """Render the grid as a ``.docx`` table with a bold header row."""
        return build_docx(self._grid)
