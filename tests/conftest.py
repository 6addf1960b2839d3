# ruff: noqa: E402
from __future__ import annotations

import sys
from pathlib import Path

# Ensure repository root is first on sys.path
_repo_root: Path = Path(__file__).resolve().parent.parent  # tests/ -> repo root
if str(_repo_root) not in sys.path:
    sys.path.insert(0, str(_repo_root))

from io import BytesIO
from typing import Optional, Set

import pytest
from starlette.datastructures import Headers, UploadFile


class MockSettings:  # Does NOT inherit from real Settings
    """Mock Settings class for testing."""

    debug: bool = False
    app_version: str = "0.0.0-test"
    commit_sha: Optional[str] = None
    prometheus_enabled: bool = False

    allowed_extensions_raw: str = "jpg,jpeg,png,pdf"
    allowed_extensions: Set[str] = {"jpg", "jpeg", "png", "pdf"}
    max_file_size_mb: int = 10

    extraction_backend: str = "vision"
    openai_api_key: Optional[str] = "sk-test"
    openai_model: str = "gpt-test"
    extraction_timeout_s: float = 5.0
    tesseract_lang: str = "eng"

    session_ttl_s: int = 3600
    max_sessions: int = 100

    def __init__(self, **kwargs):
        """Initialize with optional overrides for any attribute."""
        for key, value in self.__class__.__dict__.items():
            if not key.startswith("__") and not callable(value):
                setattr(self, key, value)

        for key, value in kwargs.items():
            setattr(self, key, value)

        if "allowed_extensions_raw" in kwargs:
            raw_value = kwargs["allowed_extensions_raw"] or ""
            self.allowed_extensions = {
                ext.strip().lower().lstrip(".")
                for ext in raw_value.split(",")
                if ext.strip()
            }

    def is_extension_allowed(self, extension: str) -> bool:
        """Check if file extension is allowed."""
        if not extension:
            return False
        clean_ext = extension.lower().lstrip(".")
        return clean_ext in self.allowed_extensions


def build_upload(
    filename: Optional[str],
    payload: bytes,
    content_type: Optional[str] = None,
) -> UploadFile:
    """Return a real Starlette *UploadFile* wrapping **payload**."""
    headers = Headers({"content-type": content_type}) if content_type else None
    return UploadFile(file=BytesIO(payload), filename=filename, headers=headers)


@pytest.fixture
def mock_settings() -> MockSettings:
    """Provide a plain MockSettings instance.

    Integration tests inject it through ``app.dependency_overrides``.
    """
    return MockSettings()


@pytest.fixture(autouse=True)
def _disable_dotenv(monkeypatch):
    """Prevent the application Settings class from reading the developer *.env* file.

    Unit-tests must operate against a *clean* environment, so dotenv
    processing is switched off and the variables most often used in
    default-value tests are removed unless a test sets them explicitly.
    """

    from sheetsplus.core.config import Settings  # Imported here to avoid circularity

    monkeypatch.setitem(Settings.model_config, "env_file", None)

    for var in (
        "ALLOWED_EXTENSIONS",
        "ALLOWED_EXTENSIONS_RAW",
        "EXTRACTION_BACKEND",
        "OPENAI_API_KEY",
    ):
        monkeypatch.delenv(var, raising=False)
