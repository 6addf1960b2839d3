"""sheetsplus/tabular/csv_serializer.py
###############################################################################
Minimal-quoting CSV writer
###############################################################################
Renders a grid as CSV text that :func:`sheetsplus.tabular.csv_parser.parse`
reads back field-for-field.

* A field is quoted **only** when it contains ``,``, ``"``, ``\\n`` or ``\\r``;
  inner quotes are doubled.
* Fields are joined with ``,``; every row, the last one included, ends with
  ``\\r\\n`` regardless of the host platform.

Two grid shapes do not survive a round trip:

* a row made of a single empty field renders as a blank line, which the
  parser drops;
* a grid whose every row is a single field of spaces or tabs renders as
  whitespace-only text, which the parser reads as no rows at all.
"""

from __future__ import annotations

from typing import Final, FrozenSet, Sequence

__all__: list[str] = [
    "ROW_TERMINATOR",
    "quote_field",
    "serialize",
]

ROW_TERMINATOR: Final[str] = "\r\n"

_NEEDS_QUOTING: Final[FrozenSet[str]] = frozenset({",", '"', "\n", "\r"})


def quote_field(value: str) -> str:
    """Return **value** as a CSV field, quoted only if it has to be."""
    if any(char in _NEEDS_QUOTING for char in value):
        return '"' + value.replace('"', '""') + '"'
    return value


def serialize(grid: Sequence[Sequence[str]]) -> str:
    """Render **grid** as CSV text.  Total: never raises for a grid of strings."""
    return "".join(
        ",".join(quote_field(field) for field in row) + ROW_TERMINATOR for row in grid
    )
