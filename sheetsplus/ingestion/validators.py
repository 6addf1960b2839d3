from __future__ import annotations

import mimetypes
import os
from typing import Dict, Final, Optional

import structlog
from fastapi import HTTPException, UploadFile, status

from sheetsplus.core.config import Settings, get_settings

__all__: list[str] = ["validate_file", "media_type_for"]

logger = structlog.get_logger(__name__)

# Browsers and scanners disagree on a few image types; accept the common aliases.
_MIME_ALIASES: Final[Dict[str, set[str]]] = {
    "jpg": {"image/jpeg", "image/jpg", "image/pjpeg"},
    "jpeg": {"image/jpeg", "image/jpg", "image/pjpeg"},
    "png": {"image/png", "image/x-png"},
    "pdf": {"application/pdf", "application/x-pdf"},
}


def media_type_for(extension: str) -> Optional[str]:
    """Return the canonical MIME type for a file **extension** (no leading dot)."""
    return mimetypes.guess_type(f"file.{extension.lower().lstrip('.')}")[0]


def _validate_filename(filename: Optional[str]) -> str:
    """Ensure filename exists and is not empty."""
    if not filename:
        logger.warning("file_upload_no_filename")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="No filename provided."
        )
    return filename.lower()


def _validate_extension(filename: str, settings: Settings) -> str:
    """Validate the file extension."""
    _, extension = os.path.splitext(filename)
    if not extension:
        logger.warning("file_upload_no_extension", filename=filename)
        raise HTTPException(
            status_code=status.HTTP_415_UNSUPPORTED_MEDIA_TYPE,
            detail="File has no extension.",
        )

    extension = extension[1:]  # Remove the leading dot
    if not settings.is_extension_allowed(extension):
        logger.warning(
            "file_upload_invalid_extension", extension=extension, filename=filename
        )
        raise HTTPException(
            status_code=status.HTTP_415_UNSUPPORTED_MEDIA_TYPE,
            detail=(
                f"Unsupported file extension: .{extension}. Please upload one of: "
                f"{', '.join(sorted(settings.allowed_extensions))}."
            ),
        )
    return extension


def _validate_size(file: UploadFile, filename: str, settings: Settings) -> int:
    """Validate the file size."""
    try:
        current_pos = file.file.tell()
        file.file.seek(0, 2)
        size = file.file.tell()
        file.file.seek(current_pos)  # Reset position

        if size == 0:
            logger.warning("file_upload_empty", filename=filename)
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Uploaded file is empty.",
            )

        max_size = settings.max_file_size_mb * 1024 * 1024
        if size > max_size:
            logger.warning(
                "file_upload_too_large",
                size=size,
                max_size=max_size,
                filename=filename,
            )
            raise HTTPException(
                status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                detail=(
                    f"File size {size / 1024 / 1024:.2f} MB exceeds the "
                    f"limit of {settings.max_file_size_mb} MB."
                ),
            )
        return size
    except OSError as e:
        logger.error("file_size_check_failed", error=str(e), filename=filename)
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Unable to assess uploaded file size. The upload may be corrupted.",
        ) from e


def _validate_mime(file: UploadFile, extension: str, filename: str) -> None:
    """Validate the declared MIME type against the extension."""
    if not file.content_type:
        return

    expected = _MIME_ALIASES.get(extension)
    if expected is None:
        guessed = media_type_for(extension)
        expected = {guessed} if guessed else set()

    if expected and file.content_type not in expected:
        logger.warning(
            "file_upload_mime_mismatch",
            extension=extension,
            expected_mime=sorted(expected),
            actual_mime=file.content_type,
            filename=filename,
        )
        raise HTTPException(
            status_code=status.HTTP_415_UNSUPPORTED_MEDIA_TYPE,
            detail=(
                f"MIME type mismatch: extension .{extension} does not match "
                f"{file.content_type}."
            ),
        )


def validate_file(file: UploadFile, *, settings: Optional[Settings] = None) -> str:
    """
    Validate an uploaded document before it is sent for extraction.

    Performs checks for:
    - Missing filename
    - Allowed extensions
    - Empty files and file size limits
    - MIME type consistency

    Args:
        file: The uploaded file to validate
        settings: Optional Settings instance (uses global if not provided)

    Returns:
        The lower-cased extension of the file (without the dot).

    Raises:
        HTTPException: With appropriate status code if validation fails
            - 400: Empty file or missing filename, size check error
            - 413: File too large
            - 415: Unsupported extension or MIME type mismatch, no extension
    """
    settings = settings or get_settings()

    filename_lower = _validate_filename(file.filename)
    extension = _validate_extension(filename_lower, settings)
    size = _validate_size(file, filename_lower, settings)
    _validate_mime(file, extension, filename_lower)

    logger.debug(
        "upload_validation_passed",
        filename=file.filename,
        size_bytes=size,
        content_type=file.content_type,
    )
    return extension
