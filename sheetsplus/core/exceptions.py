"""
Core Custom Exceptions

Domain-specific exceptions shared by the tabular core, the extraction
pipeline and the session layer.  The API layer maps each of them to an HTTP
status in :pymod:`sheetsplus.api.errors`; nothing below the API layer turns
them into responses or logs them.

Defined Exceptions:
- `OutOfRangeError`: A grid operation addressed a row or column that does not
  exist.  The only failure the editing core can produce.
- `EmptyGridError`: An export was requested for a grid with no cells.
- `ExtractionError`: The extraction backend failed or returned nothing usable.
- `SessionNotFoundError`: No live editing session exists for an id.
"""

from __future__ import annotations

__all__: list[str] = [
    "OutOfRangeError",
    "EmptyGridError",
    "ExtractionError",
    "SessionNotFoundError",
]


class OutOfRangeError(IndexError):
    """Raised when a grid mutator addresses a row/column index that does not exist.

    Callers are expected to check bounds against the grid's own reported
    dimensions (``row_count`` / ``column_count``) rather than guess.
    """

    def __init__(self, axis: str, index: int, size: int) -> None:
        self.axis = axis
        self.index = index
        self.size = size
        super().__init__(f"{axis} index {index} out of range (size {size})")


class EmptyGridError(ValueError):
    """Raised when a tabular export is requested for a grid without cells."""

    def __init__(self, message: str = "There is no data to export.") -> None:
        super().__init__(message)


class ExtractionError(Exception):
    """Raised by extraction backends when an upload cannot be turned into CSV text.

    Backends raise this wrapper once they have given up; the original cause is
    chained via ``raise ... from``.
    """

    pass


class SessionNotFoundError(KeyError):
    """Raised when a session id is unknown or its session has expired."""

    def __init__(self, session_id: str) -> None:
        self.session_id = session_id
        super().__init__(session_id)

    def __str__(self) -> str:
        return f"Session {self.session_id} not found or expired."
