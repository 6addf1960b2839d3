"""sheetsplus/api/schemas.py
###############################################################################
Public Pydantic models **exposed by the API layer**.
###############################################################################
Request and response contracts for the editing-session endpoints.  Grids cross
the wire as a JSON array of rows, each row an array of strings; row 0 is the
header.  The internal :class:`~sheetsplus.tabular.grid.GridEditor` never
leaks – responses are built from a snapshot via :meth:`GridView.from_session`.
"""

from __future__ import annotations

from typing import List

from pydantic import BaseModel, ConfigDict, Field

from sheetsplus.sessions.store import Session

__all__: list[str] = [
    "CellEdit",
    "GridReplace",
    "GridView",
]


class GridView(BaseModel):
    """Snapshot of a session's grid as returned by every session endpoint."""

    model_config = ConfigDict(frozen=True)

    session_id: str = Field(..., description="Opaque session identifier.")
    filename: str = Field(..., description="Name of the document the grid came from.")
    rows: List[List[str]] = Field(
        default_factory=list, description="Rectangular grid; row 0 is the header."
    )
    row_count: int = 0
    column_count: int = 0
    is_empty: bool = Field(True, description="True when there is no data to show.")

    @classmethod
    def from_session(cls, session: Session) -> "GridView":
        editor = session.editor
        return cls(
            session_id=session.session_id,
            filename=session.filename,
            rows=editor.grid,
            row_count=editor.row_count,
            column_count=editor.column_count,
            is_empty=editor.is_empty,
        )


class CellEdit(BaseModel):  # noqa: D101 – tiny data container
    row: int = Field(..., description="Row index, 0 being the header row.")
    col: int = Field(..., description="Column index.")
    value: str = Field(..., description="New cell text.")


class GridReplace(BaseModel):  # noqa: D101 – tiny data container
    rows: List[List[str]] = Field(
        ..., description="Replacement grid; ragged rows are padded."
    )
