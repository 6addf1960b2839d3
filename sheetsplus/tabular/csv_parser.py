"""sheetsplus/tabular/csv_parser.py
###############################################################################
Lenient CSV parser
###############################################################################
Turns a CSV-shaped text blob (typically produced by a vision model, so often
slightly malformed) into an ordered list of rows, each an ordered list of
fields.  Rows are returned *as found* – ragged rows are kept and padding is
left to :func:`sheetsplus.tabular.grid.normalize`.

Design considerations
=====================
1. **Explicit automaton** – a single loop over a character cursor driven by a
   :class:`ParserState` tag, with one character of look-ahead at quote and
   line-terminator boundaries.  No regular expressions.
2. **Leniency over rejection** – :func:`parse` never raises.  A ``"`` that
   appears after other characters of an unquoted field is kept as a literal,
   characters after a closing quote are appended to the same field, and an
   unterminated quoted field runs to the end of the input.
3. **Line endings** – ``\\n``, ``\\r\\n``, ``\\n\\r`` and a bare ``\\r`` all end a
   row outside quotes.
4. **Blank lines** – rows made of a single empty field are dropped after
   parsing.
"""

from __future__ import annotations

from enum import Enum
from typing import List

__all__: list[str] = [
    "ParserState",
    "parse",
]

_QUOTE = '"'
_DELIMITER = ","
_LF = "\n"
_CR = "\r"


class ParserState(str, Enum):
    """Quoting state of the parser cursor."""

    UNQUOTED = "unquoted"
    QUOTED = "quoted"


def _is_blank_row(row: List[str]) -> bool:
    return len(row) == 1 and row[0] == ""


def parse(text: str) -> List[List[str]]:
    """Parse **text** into rows of fields.

    Args:
        text: CSV-shaped input.  May be empty, lack a trailing newline, mix
            line-ending styles or contain stray quotes.

    Returns:
        The rows in input order.  Input that is empty after trimming yields
        ``[]``.
    """
    if not text.strip():
        return []

    rows: List[List[str]] = []
    row: List[str] = []
    field: List[str] = []
    state = ParserState.UNQUOTED

    length = len(text)
    i = 0
    while i < length:
        char = text[i]
        nxt = text[i + 1] if i + 1 < length else ""

        if state is ParserState.QUOTED:
            if char == _QUOTE:
                if nxt == _QUOTE:
                    field.append(_QUOTE)
                    i += 2
                    continue
                state = ParserState.UNQUOTED
            else:
                field.append(char)
            i += 1
            continue

        if char == _DELIMITER:
            row.append("".join(field))
            field = []
        elif char == _LF or char == _CR:
            row.append("".join(field))
            rows.append(row)
            field = []
            row = []
            # \n\r and \r\n are both a single terminator
            if (char == _LF and nxt == _CR) or (char == _CR and nxt == _LF):
                i += 1
        elif char == _QUOTE and not field:
            state = ParserState.QUOTED
        else:
            field.append(char)
        i += 1

    if field or row:
        row.append("".join(field))
        rows.append(row)

    return [r for r in rows if not _is_blank_row(r)]
