from __future__ import annotations

import json
import os
from typing import Any, Final, List, Optional, Set, Tuple, cast

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Names accepted for ``EXTRACTION_BACKEND``; must match the keys of
# ``sheetsplus.extraction.registry.EXTRACTION_BACKENDS``.
EXTRACTION_BACKEND_NAMES: Final[Tuple[str, ...]] = ("vision", "tesseract")


def _parse_csv_str(v: str) -> List[str]:
    """Parse a comma-separated string into a list of values, stripping whitespace."""
    return [x.strip() for x in v.split(",") if x.strip()]


def _normalise_extensions(values: Any) -> Set[str]:
    return {
        str(ext).strip().lower().lstrip(".") for ext in values if str(ext).strip()
    }


# ---------------------------------------------------------------------------
# Environment *pre-processing* – normalise problematic variables before Pydantic
# ---------------------------------------------------------------------------

# ``ALLOWED_EXTENSIONS`` may be given comma-separated in *.env* files; Pydantic
# expects JSON for complex types, so rewrite it once at import time.
_env_allowed_ext = os.environ.get("ALLOWED_EXTENSIONS")
if _env_allowed_ext and not _env_allowed_ext.strip().startswith("["):
    os.environ["ALLOWED_EXTENSIONS"] = json.dumps(_parse_csv_str(_env_allowed_ext))


class Settings(BaseSettings):
    """
    Application configuration settings, loaded from environment variables.
    """

    debug: bool = False
    app_version: str = "0.1.0"
    commit_sha: Optional[str] = None
    prometheus_enabled: bool = True

    # Upload restrictions
    allowed_extensions_raw: Optional[str] = "jpg,jpeg,png,pdf"
    allowed_extensions: Set[str] = set()
    max_file_size_mb: int = 10

    # Extraction backend
    extraction_backend: str = "vision"
    openai_api_key: Optional[str] = None
    openai_model: str = "gpt-4o-mini"
    extraction_timeout_s: float = 60.0
    tesseract_lang: str = "eng"

    # Editing sessions (in-memory only)
    session_ttl_s: int = 3600
    max_sessions: int = 1000

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        env_nested_delimiter=None,
        # Disable automatic JSON parsing globally – custom validators will handle coercion.
        enable_decoding=False,
    )

    @model_validator(mode="after")
    def parse_settings(self) -> "Settings":
        """Derive ``allowed_extensions`` from the raw string unless set explicitly."""
        # An explicit ALLOWED_EXTENSIONS (even empty) wins over the raw fallback.
        if os.getenv("ALLOWED_EXTENSIONS") is None and not self.allowed_extensions:
            if self.allowed_extensions_raw is None:
                self.allowed_extensions = set()
            else:
                self.allowed_extensions = _normalise_extensions(
                    self.allowed_extensions_raw.split(",")
                )
        return self

    @field_validator("extraction_backend")
    @classmethod
    def validate_extraction_backend(cls, v: str) -> str:
        """Only registered backends may be selected."""
        backend = v.strip().lower()
        if backend not in EXTRACTION_BACKEND_NAMES:
            raise ValueError(
                f"EXTRACTION_BACKEND must be one of {', '.join(EXTRACTION_BACKEND_NAMES)}"
            )
        return backend

    @field_validator("session_ttl_s", "max_sessions")
    @classmethod
    def validate_positive(cls, v: int, info: Any) -> int:
        if v <= 0:
            raise ValueError(f"{info.field_name.upper()} must be positive")
        return v

    def is_extension_allowed(self, extension: str) -> bool:
        """
        Check if file extension is allowed.

        Args:
            extension: The file extension to check (with or without leading dot)

        Returns:
            True if extension is allowed, False otherwise
        """
        if not extension:
            return False

        clean_ext = extension.lower().lstrip(".")
        return clean_ext in self.allowed_extensions

    @field_validator("allowed_extensions", mode="before")
    @classmethod
    def _coerce_allowed_extensions(cls, v: Any) -> Set[str]:
        """Convert comma or JSON strings into a set[str]."""

        if v is None or v == "":
            return set()

        if isinstance(v, str):
            if v.strip().startswith("["):
                try:
                    parsed: list[str] = json.loads(v)
                    return _normalise_extensions(parsed)
                except json.JSONDecodeError:
                    pass  # Fall through for malformed JSON
            return _normalise_extensions(v.split(","))
        if isinstance(v, (list, set, tuple)):
            return _normalise_extensions(v)
        return cast(Set[str], v)


# Public accessor – manual caching to support special behaviour in tests
_CACHED_SETTINGS: Optional[Settings] = None


def get_settings() -> Settings:  # noqa: D401 – accessor helper
    """Return a **singleton** Settings instance unless running under pytest.

    Under pytest (``PYTEST_CURRENT_TEST`` present) every call builds a fresh
    instance so tests can tweak the environment with ``monkeypatch``.
    """

    global _CACHED_SETTINGS  # noqa: PLW0603 – module-level singleton

    if "PYTEST_CURRENT_TEST" in os.environ:
        return Settings()

    if _CACHED_SETTINGS is None:
        _CACHED_SETTINGS = Settings()

    return _CACHED_SETTINGS


def _clear_settings_cache() -> None:  # noqa: D401 – helper for tests
    """Clear the internal Settings singleton (used by unit-tests)."""

    global _CACHED_SETTINGS
    _CACHED_SETTINGS = None


get_settings.cache_clear = _clear_settings_cache  # type: ignore[attr-defined]
