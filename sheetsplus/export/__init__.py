"""Export helpers turning an edited grid into downloadable documents."""

from __future__ import annotations

from .docx import DOCX_MEDIA_TYPE, build_docx

__all__: list[str] = [
    "DOCX_MEDIA_TYPE",
    "build_docx",
]
