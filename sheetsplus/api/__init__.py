"""Sheets+ API package root.

The FastAPI application lives in :pymod:`sheetsplus.api.app`; this file stays
minimal so importing a sibling module (schemas, errors) does not build the
application.
"""

from __future__ import annotations

__all__: list[str] = []
