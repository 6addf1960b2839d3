"""sheetsplus/extraction/vision.py
###############################################################################
CSV extraction through an OpenAI vision model
###############################################################################
The uploaded image or PDF is encoded as a base64 *data URI* and sent to a chat
completion together with a short instruction asking for the table as CSV with
the header row first.  The answer is returned verbatim (minus an optional
Markdown code fence) – parsing is the tabular core's job.

Design considerations
=====================
1. **Thread off-loading** – the OpenAI client is synchronous; the request runs
   inside `asyncio.to_thread()` so the FastAPI event-loop stays responsive.
2. **Single failure type** – missing credentials, transport/API errors and
   empty answers all surface as :class:`ExtractionError`; the API layer maps
   it to *502*.
3. **No retries here** – the caller decides whether to re-submit the upload.
"""

from __future__ import annotations

import asyncio
import base64
import os
from typing import Any, Dict, Final, List

import structlog
from openai import OpenAI, OpenAIError
from starlette.datastructures import UploadFile

from sheetsplus.core.config import Settings
from sheetsplus.core.exceptions import ExtractionError
from sheetsplus.ingestion.validators import media_type_for

__all__: list[str] = [
    "EXTRACTION_INSTRUCTIONS",
    "build_data_uri",
    "extract_csv_with_vision_model",
]

logger = structlog.get_logger(__name__)

EXTRACTION_INSTRUCTIONS: Final[str] = (
    "Extract the tabular data from this document and correct obvious OCR "
    "mistakes (for example 'l' vs '1', 'O' vs '0', 'S' vs '5'). "
    "Return only the table as a single valid CSV string. The first line must "
    "be the header row. If rows are prefixed with a serial number, put those "
    'numbers in their own column named "S.No.". Quote fields that contain '
    "commas, quotes or line breaks."
)

_SYSTEM_PROMPT: Final[str] = "You convert documents into CSV. Output CSV only."


def build_data_uri(content: bytes, media_type: str) -> str:
    """Return ``data:<media_type>;base64,<payload>`` for **content**."""
    encoded = base64.b64encode(content).decode("ascii")
    return f"data:{media_type};base64,{encoded}"


def _strip_code_fence(text: str) -> str:
    """Remove a surrounding Markdown code fence such as ```csv ... ```."""
    stripped = text.strip()
    if not stripped.startswith("```"):
        return text
    lines = stripped.split("\n")
    lines = lines[1:]
    if lines and lines[-1].strip() == "```":
        lines = lines[:-1]
    return "\n".join(lines)


def _document_part(data_uri: str, media_type: str, filename: str) -> Dict[str, Any]:
    if media_type == "application/pdf":
        return {"type": "file", "file": {"filename": filename, "file_data": data_uri}}
    return {"type": "image_url", "image_url": {"url": data_uri}}


async def extract_csv_with_vision_model(file: UploadFile, settings: Settings) -> str:
    """
    Ask the configured vision model for the table in **file** as CSV text.

    Args:
        file: The validated upload (JPEG, PNG or PDF)
        settings: Application settings (API key, model, timeout)

    Returns:
        The CSV text produced by the model.

    Raises:
        ExtractionError: If the backend is not configured, the call fails, or
            the model returns no text.
    """
    if not settings.openai_api_key:
        raise ExtractionError("Vision extraction backend is not configured.")

    await file.seek(0)
    content = await file.read()
    filename = file.filename or "upload"
    _, extension = os.path.splitext(filename)
    media_type = (
        media_type_for(extension) or file.content_type or "application/octet-stream"
    )

    data_uri = build_data_uri(content, media_type)
    messages: List[Dict[str, Any]] = [
        {"role": "system", "content": _SYSTEM_PROMPT},
        {
            "role": "user",
            "content": [
                {"type": "text", "text": EXTRACTION_INSTRUCTIONS},
                _document_part(data_uri, media_type, filename),
            ],
        },
    ]

    def _worker() -> str:
        client = OpenAI(
            api_key=settings.openai_api_key, timeout=settings.extraction_timeout_s
        )
        response = client.chat.completions.create(
            model=settings.openai_model,
            temperature=0,
            messages=messages,  # type: ignore[arg-type]
        )
        return response.choices[0].message.content or ""

    logger.debug(
        "vision_request_started",
        filename=filename,
        media_type=media_type,
        model=settings.openai_model,
        size_bytes=len(content),
    )
    try:
        text = await asyncio.to_thread(_worker)
    except OpenAIError as e:
        logger.error("vision_request_failed", filename=filename, error=str(e))
        raise ExtractionError(
            "Failed to extract data from the file. Please try again."
        ) from e

    text = _strip_code_fence(text)
    if not text.strip():
        logger.warning("vision_response_empty", filename=filename)
        raise ExtractionError("Failed to extract text from image.")
    return text
