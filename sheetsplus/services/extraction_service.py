"""
Extraction Service

Runs one upload through the configured extraction backend and the tabular
core, producing the rectangular grid that seeds (or replaces) an editing
session.

Key Responsibilities:
- Select the backend named by ``Settings.extraction_backend``.
- Parse the returned CSV text and normalise it to a rectangle.
- Measure and log processing time and grid dimensions.

Backend failures surface as :class:`ExtractionError`; an answer that parses to
no rows is *not* an error – it yields an empty grid that renders as "no data".
"""

from __future__ import annotations

import time
from dataclasses import asdict, dataclass, field
from typing import Any, List

import structlog
from starlette.datastructures import UploadFile

from sheetsplus.core.config import Settings
from sheetsplus.extraction.registry import EXTRACTION_BACKENDS
from sheetsplus.tabular import normalize, parse

__all__: list[str] = ["ExtractionResult", "extract_grid"]

logger = structlog.get_logger(__name__)


@dataclass
class ExtractionResult:
    """
    Outcome of a single extraction.

    Attributes:
        filename: Original filename of the upload
        content_type: Declared MIME type of the upload
        grid: Rectangular grid, row 0 being the header
        backend: Name of the backend that produced the text
        processing_ms: Time taken end-to-end in milliseconds
    """

    filename: str
    content_type: str
    grid: List[List[str]] = field(default_factory=list)
    backend: str = "vision"
    processing_ms: float = 0.0

    def dict(self) -> dict[str, Any]:
        """Return a serialisable ``dict`` representation."""
        return asdict(self)


async def extract_grid(file: UploadFile, settings: Settings) -> ExtractionResult:
    """
    Extract the table in **file** as a rectangular grid.

    Args:
        file: A validated upload.
        settings: Application settings selecting the backend.

    Returns:
        An :class:`ExtractionResult` holding the normalised grid.

    Raises:
        ExtractionError: Propagated from the backend.
    """
    start = time.perf_counter()
    backend_name = settings.extraction_backend
    backend = EXTRACTION_BACKENDS[backend_name]

    logger.info("extraction_started", filename=file.filename, backend=backend_name)
    text = await backend(file, settings)
    grid = normalize(parse(text))

    processing_ms = round((time.perf_counter() - start) * 1000, 2)
    logger.info(
        "extraction_completed",
        filename=file.filename,
        backend=backend_name,
        rows=len(grid),
        columns=len(grid[0]) if grid else 0,
        processing_ms=processing_ms,
    )
    return ExtractionResult(
        filename=file.filename or "unknown",
        content_type=file.content_type or "application/octet-stream",
        grid=grid,
        backend=backend_name,
        processing_ms=processing_ms,
    )
