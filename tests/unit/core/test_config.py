from __future__ import annotations

import json

import pytest
from pydantic import ValidationError

from sheetsplus.core.config import Settings, _parse_csv_str, get_settings


def test_settings_default_values(monkeypatch: pytest.MonkeyPatch) -> None:
    """Settings have the documented defaults when no env vars are set."""
    for var in (
        "DEBUG",
        "APP_VERSION",
        "COMMIT_SHA",
        "PROMETHEUS_ENABLED",
        "MAX_FILE_SIZE_MB",
        "OPENAI_MODEL",
        "EXTRACTION_TIMEOUT_S",
        "TESSERACT_LANG",
        "SESSION_TTL_S",
        "MAX_SESSIONS",
    ):
        monkeypatch.delenv(var, raising=False)

    get_settings.cache_clear()
    settings = get_settings()

    assert settings.debug is False
    assert settings.app_version == "0.1.0"
    assert settings.commit_sha is None
    assert settings.prometheus_enabled is True
    assert settings.allowed_extensions == {"jpg", "jpeg", "png", "pdf"}
    assert settings.max_file_size_mb == 10
    assert settings.extraction_backend == "vision"
    assert settings.openai_api_key is None
    assert settings.openai_model == "gpt-4o-mini"
    assert settings.extraction_timeout_s == 60.0
    assert settings.tesseract_lang == "eng"
    assert settings.session_ttl_s == 3600
    assert settings.max_sessions == 1000


def test_settings_parsing_from_env_vars(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DEBUG", "true")
    monkeypatch.setenv("ALLOWED_EXTENSIONS_RAW", "png, .Jpg, TIFF")
    monkeypatch.setenv("MAX_FILE_SIZE_MB", "20")
    monkeypatch.setenv("EXTRACTION_BACKEND", " Tesseract ")
    monkeypatch.setenv("OPENAI_API_KEY", "sk-env")
    monkeypatch.setenv("OPENAI_MODEL", "gpt-4o")
    monkeypatch.setenv("TESSERACT_LANG", "deu")
    monkeypatch.setenv("SESSION_TTL_S", "120")
    monkeypatch.setenv("MAX_SESSIONS", "5")
    monkeypatch.setenv("COMMIT_SHA", "testsha123env")
    monkeypatch.setenv("PROMETHEUS_ENABLED", "false")

    get_settings.cache_clear()
    settings = get_settings()

    assert settings.debug is True
    assert settings.allowed_extensions == {"png", "jpg", "tiff"}
    assert settings.max_file_size_mb == 20
    assert settings.extraction_backend == "tesseract"
    assert settings.openai_api_key == "sk-env"
    assert settings.openai_model == "gpt-4o"
    assert settings.tesseract_lang == "deu"
    assert settings.session_ttl_s == 120
    assert settings.max_sessions == 5
    assert settings.commit_sha == "testsha123env"
    assert settings.prometheus_enabled is False


def test_settings_is_extension_allowed() -> None:
    settings = Settings()
    settings.allowed_extensions = {"pdf", "png", "jpg"}

    assert settings.is_extension_allowed("pdf") is True
    assert settings.is_extension_allowed(".png") is True
    assert settings.is_extension_allowed("JPG") is True
    assert settings.is_extension_allowed("txt") is False
    assert settings.is_extension_allowed("") is False
    assert settings.is_extension_allowed(None) is False  # type: ignore[arg-type]


def test_unknown_extraction_backend_is_rejected() -> None:
    with pytest.raises(ValidationError) as exc_info:
        Settings(extraction_backend="gemini")
    assert "EXTRACTION_BACKEND must be one of vision, tesseract" in str(exc_info.value)


@pytest.mark.parametrize("field", ["session_ttl_s", "max_sessions"])
@pytest.mark.parametrize("value", [0, -5])
def test_session_limits_must_be_positive(field: str, value: int) -> None:
    with pytest.raises(ValidationError) as exc_info:
        Settings(**{field: value})
    assert f"{field.upper()} must be positive" in str(exc_info.value)


def test_get_settings_returns_settings_instance() -> None:
    get_settings.cache_clear()
    assert isinstance(get_settings(), Settings)


def test_get_settings_caching_normal_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Outside pytest the Settings instance is a process-wide singleton."""
    monkeypatch.delenv("PYTEST_CURRENT_TEST", raising=False)
    get_settings.cache_clear()

    s1 = get_settings()
    s2 = get_settings()
    assert s1 is s2
    get_settings.cache_clear()


def test_get_settings_pytest_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PYTEST_CURRENT_TEST", "some_test_is_running")
    get_settings.cache_clear()

    assert get_settings() is not get_settings()


@pytest.mark.parametrize(
    ("raw_value", "expected"),
    [
        ("pdf,png,.jpg", {"pdf", "png", "jpg"}),
        (" PNG , jpeg ", {"png", "jpeg"}),
        (".Pdf", {"pdf"}),
        ("", set()),
    ],
)
def test_settings_allowed_extensions_parsing(
    monkeypatch: pytest.MonkeyPatch, raw_value: str, expected: set
) -> None:
    monkeypatch.setenv("ALLOWED_EXTENSIONS_RAW", raw_value)
    get_settings.cache_clear()
    settings = get_settings()
    assert settings.allowed_extensions == expected


def test_empty_raw_extensions_allow_nothing(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ALLOWED_EXTENSIONS_RAW", "")
    settings = get_settings()
    assert settings.is_extension_allowed("pdf") is False


def test_settings_extensions_already_json_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ALLOWED_EXTENSIONS", json.dumps(["PNG", ".pdf"]))
    get_settings.cache_clear()
    settings = get_settings()
    assert settings.allowed_extensions == {"png", "pdf"}


def test_settings_extensions_comma_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ALLOWED_EXTENSIONS", "png,jpg")
    settings = get_settings()
    assert settings.allowed_extensions == {"png", "jpg"}


def test_explicit_extensions_win_over_raw(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ALLOWED_EXTENSIONS", '["pdf"]')
    monkeypatch.setenv("ALLOWED_EXTENSIONS_RAW", "png,jpg")
    settings = get_settings()
    assert settings.allowed_extensions == {"pdf"}


def test_extensions_passed_as_list() -> None:
    settings = Settings(allowed_extensions=[".PNG", "jpg", " "])
    assert settings.allowed_extensions == {"png", "jpg"}


def test_parse_csv_str_helper() -> None:
    assert _parse_csv_str("a,b,c") == ["a", "b", "c"]
    assert _parse_csv_str(" a , b , c ") == ["a", "b", "c"]
    assert _parse_csv_str("single") == ["single"]
    assert _parse_csv_str("") == []
    assert _parse_csv_str(" , ") == []
    assert _parse_csv_str("a,,b") == ["a", "b"]
