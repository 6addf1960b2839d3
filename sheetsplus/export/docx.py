"""sheetsplus/export/docx.py
###############################################################################
Word (.docx) table export using python-docx
###############################################################################
Builds a single-table document from a rectangular grid.  Row 0 is rendered in
bold as the header row; every other cell is plain text.  The document is
returned as bytes so the API layer can stream it without touching disk.
"""

from __future__ import annotations

from io import BytesIO
from typing import Final, Sequence

from docx import Document

from sheetsplus.core.exceptions import EmptyGridError

__all__: list[str] = [
    "DOCX_MEDIA_TYPE",
    "build_docx",
]

DOCX_MEDIA_TYPE: Final[str] = (
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
)

_TABLE_STYLE: Final[str] = "Table Grid"


def build_docx(grid: Sequence[Sequence[str]]) -> bytes:
    """Render **grid** as a ``.docx`` document and return its bytes.

    Args:
        grid: Rectangular grid of strings; row 0 is the header.

    Raises:
        EmptyGridError: If the grid has no rows or no columns.
    """
    num_rows = len(grid)
    num_cols = len(grid[0]) if grid else 0
    if num_rows == 0 or num_cols == 0:
        raise EmptyGridError()

    doc = Document()
    table = doc.add_table(rows=num_rows, cols=num_cols)
    table.style = _TABLE_STYLE
    table.autofit = True

    for i, row_data in enumerate(grid):
        cells = table.rows[i].cells
        for j, cell_text in enumerate(row_data):
            # New cells already hold one empty paragraph
            run = cells[j].paragraphs[0].add_run(cell_text)
            run.bold = i == 0

    buffer = BytesIO()
    doc.save(buffer)
    return buffer.getvalue()
