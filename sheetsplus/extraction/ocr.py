"""sheetsplus/extraction/ocr.py
###############################################################################
Local fallback: Tesseract OCR (images) and pdfminer.six (PDFs)
###############################################################################
Produces CSV text without any remote model.  Every non-blank line of the
recognised text becomes one row; columns are split on tabs or on runs of two
or more spaces, which is how Tesseract renders the gaps between table cells.
The rows are written with the shared serializer so the result goes through
exactly the same parse path as a vision-model answer.

Assumptions / Limitations
-------------------------
• Tesseract must be installed in the runtime image (``apt-get install
  tesseract-ocr``); it is not a Python dependency.
• Scanned PDFs without a text layer yield no text and raise
  :class:`ExtractionError`.
"""

from __future__ import annotations

import asyncio
import re
from io import BytesIO
from typing import Final, List

import pytesseract
import structlog
from pdfminer.high_level import extract_text
from pdfminer.psparser import PSException
from PIL import Image
from starlette.datastructures import UploadFile

from sheetsplus.core.config import Settings
from sheetsplus.core.exceptions import ExtractionError
from sheetsplus.tabular.csv_serializer import serialize

__all__: list[str] = [
    "extract_csv_with_tesseract",
    "lines_to_csv",
]

logger = structlog.get_logger(__name__)

_COLUMN_GAP: Final[re.Pattern[str]] = re.compile(r"\t+| {2,}")


def lines_to_csv(text: str) -> str:
    """Turn OCR text into CSV, one row per non-blank line."""
    rows: List[List[str]] = [
        [cell.strip() for cell in _COLUMN_GAP.split(line.strip())]
        for line in text.splitlines()
        if line.strip()
    ]
    return serialize(rows)


def _ocr_image(content: bytes, lang: str) -> str:
    with Image.open(BytesIO(content)) as img:
        img = img.convert("RGB")
        return pytesseract.image_to_string(img, lang=lang) or ""


def _pdf_text(content: bytes) -> str:
    return extract_text(BytesIO(content)) or ""


async def extract_csv_with_tesseract(file: UploadFile, settings: Settings) -> str:
    """
    Recognise the text of **file** locally and return it as CSV.

    Args:
        file: The validated upload (JPEG, PNG or PDF)
        settings: Application settings (OCR language)

    Returns:
        CSV text, one row per recognised line.

    Raises:
        ExtractionError: If the file cannot be decoded or yields no text.
    """
    await file.seek(0)
    content = await file.read()
    is_pdf = (file.content_type == "application/pdf") or (
        (file.filename or "").lower().endswith(".pdf")
    )

    try:
        if is_pdf:
            text = await asyncio.to_thread(_pdf_text, content)
        else:
            text = await asyncio.to_thread(_ocr_image, content, settings.tesseract_lang)
    except (OSError, pytesseract.TesseractError, PSException) as e:
        logger.error("ocr_extraction_failed", filename=file.filename, error=str(e))
        raise ExtractionError("Could not read the selected file.") from e

    if not text.strip():
        logger.warning("ocr_extraction_empty", filename=file.filename)
        raise ExtractionError("No text could be extracted from the file.")

    return lines_to_csv(text)
