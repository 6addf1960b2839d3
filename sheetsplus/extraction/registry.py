"""
Extraction Backend Registry

Maps the ``EXTRACTION_BACKEND`` setting to the coroutine that turns an upload
into CSV text.  Every backend has the same signature and raises
:class:`sheetsplus.core.exceptions.ExtractionError` on failure.
"""

from __future__ import annotations

from typing import Awaitable, Callable, Dict, Final

from starlette.datastructures import UploadFile

from sheetsplus.core.config import Settings

from .ocr import extract_csv_with_tesseract
from .vision import extract_csv_with_vision_model

__all__: list[str] = [
    "EXTRACTION_BACKENDS",
    "ExtractionBackend",
]

ExtractionBackend = Callable[[UploadFile, Settings], Awaitable[str]]

# Keys must stay in sync with ``sheetsplus.core.config.EXTRACTION_BACKEND_NAMES``.
EXTRACTION_BACKENDS: Final[Dict[str, ExtractionBackend]] = {
    "vision": extract_csv_with_vision_model,
    "tesseract": extract_csv_with_tesseract,
}
