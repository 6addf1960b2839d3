"""sheetsplus/tabular/__init__.py
###############################################################################
Sheets+ ─ Tabular Core
###############################################################################
Pure, synchronous building blocks shared by the extraction pipeline and the
editing API:

* :func:`parse` – lenient CSV text → ragged rows.
* :func:`serialize` – grid → minimally-quoted CSV text (CRLF rows).
* :func:`normalize` – ragged rows → rectangular grid.
* :class:`GridEditor` – rectangular grid with add/remove/edit operations.

Nothing in this package logs or performs I/O.
"""

from __future__ import annotations

from .csv_parser import ParserState, parse
from .csv_serializer import serialize
from .grid import Grid, GridEditor, normalize

__all__: list[str] = [
    "Grid",
    "GridEditor",
    "ParserState",
    "normalize",
    "parse",
    "serialize",
]
