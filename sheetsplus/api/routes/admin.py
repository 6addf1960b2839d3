from __future__ import annotations

from typing import Dict

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from sheetsplus.core.config import Settings, get_settings

__all__: list[str] = [
    "router",
]

router = APIRouter(prefix="/v1", tags=["Admin"])

SETTINGS_DEP: Settings = Depends(get_settings)


@router.get("/health", response_model=Dict[str, str])
async def health(
    settings: Settings = SETTINGS_DEP,
) -> Dict[str, str]:
    """Return service health status."""
    return {"status": "ok", "commit_sha": settings.commit_sha or "unknown"}


@router.get("/version", summary="Application version information")
async def version(
    settings: Settings = SETTINGS_DEP,
) -> JSONResponse:
    """Return the configured application version plus the git commit SHA."""

    return JSONResponse(
        {
            "version": settings.app_version,
            "commit_sha": settings.commit_sha,
        }
    )
