"""sheetsplus/extraction/__init__.py
###############################################################################
Sheets+ ─ Extraction Backends
###############################################################################
Asynchronous helpers that turn an uploaded image or PDF into CSV-shaped text.
Each backend:

1. Never blocks the event-loop – blocking SDK/OCR calls run via
   `asyncio.to_thread()`.
2. Raises :class:`~sheetsplus.core.exceptions.ExtractionError` once it gives
   up; it never returns an error message as text.
3. Returns *raw* CSV text; parsing and normalisation belong to
   :mod:`sheetsplus.tabular`.

Dispatch by setting name lives in :py:mod:`sheetsplus.extraction.registry`.
"""

from __future__ import annotations

from .ocr import extract_csv_with_tesseract
from .vision import extract_csv_with_vision_model

__all__: list[str] = [
    "extract_csv_with_tesseract",
    "extract_csv_with_vision_model",
]
