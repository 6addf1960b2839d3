from __future__ import annotations

import base64
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pytest
from openai import OpenAIError

from sheetsplus.core.exceptions import ExtractionError
from sheetsplus.extraction.vision import (
    EXTRACTION_INSTRUCTIONS,
    _strip_code_fence,
    build_data_uri,
    extract_csv_with_vision_model,
)
from tests.conftest import MockSettings, build_upload


def _completion(content: str | None) -> SimpleNamespace:
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


@pytest.fixture
def openai_client():
    """Patch the OpenAI client class and yield the instance the backend will use."""
    with patch("sheetsplus.extraction.vision.OpenAI") as client_cls:
        yield client_cls


def test_build_data_uri() -> None:
    uri = build_data_uri(b"\x89PNG", "image/png")
    assert uri == "data:image/png;base64," + base64.b64encode(b"\x89PNG").decode()


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("a,b\n1,2", "a,b\n1,2"),
        ("```csv\na,b\n1,2\n```", "a,b\n1,2"),
        ("```\na,b\n```\n", "a,b"),
    ],
)
def test_strip_code_fence(raw: str, expected: str) -> None:
    assert _strip_code_fence(raw) == expected


@pytest.mark.asyncio
async def test_image_upload_is_sent_as_image_url(openai_client: MagicMock) -> None:
    create = openai_client.return_value.chat.completions.create
    create.return_value = _completion("Name,Qty\napple,3\n")
    settings = MockSettings(openai_model="gpt-vision", extraction_timeout_s=12.0)
    upload = build_upload("receipt.png", b"png-bytes", "image/png")

    text = await extract_csv_with_vision_model(upload, settings)

    assert text == "Name,Qty\napple,3\n"
    openai_client.assert_called_once_with(api_key="sk-test", timeout=12.0)
    kwargs = create.call_args.kwargs
    assert kwargs["model"] == "gpt-vision"
    assert kwargs["temperature"] == 0

    user_parts = kwargs["messages"][-1]["content"]
    assert user_parts[0] == {"type": "text", "text": EXTRACTION_INSTRUCTIONS}
    assert user_parts[1] == {
        "type": "image_url",
        "image_url": {"url": build_data_uri(b"png-bytes", "image/png")},
    }


@pytest.mark.asyncio
async def test_pdf_upload_is_sent_as_file_part(openai_client: MagicMock) -> None:
    create = openai_client.return_value.chat.completions.create
    create.return_value = _completion("a,b\n")
    upload = build_upload("ledger.pdf", b"%PDF-1.7", "application/pdf")

    await extract_csv_with_vision_model(upload, MockSettings())

    part = create.call_args.kwargs["messages"][-1]["content"][1]
    assert part["type"] == "file"
    assert part["file"]["filename"] == "ledger.pdf"
    assert part["file"]["file_data"].startswith("data:application/pdf;base64,")


@pytest.mark.asyncio
async def test_extension_decides_media_type_over_declared_type(
    openai_client: MagicMock,
) -> None:
    create = openai_client.return_value.chat.completions.create
    create.return_value = _completion("a\n")
    upload = build_upload("photo.jpg", b"jpeg-bytes", "image/pjpeg")

    await extract_csv_with_vision_model(upload, MockSettings())

    part = create.call_args.kwargs["messages"][-1]["content"][1]
    assert part["image_url"]["url"].startswith("data:image/jpeg;base64,")


@pytest.mark.asyncio
async def test_code_fenced_answer_is_unwrapped(openai_client: MagicMock) -> None:
    openai_client.return_value.chat.completions.create.return_value = _completion(
        "```csv\nh1,h2\nv1,v2\n```"
    )
    upload = build_upload("t.png", b"x", "image/png")

    assert await extract_csv_with_vision_model(upload, MockSettings()) == "h1,h2\nv1,v2"


@pytest.mark.asyncio
async def test_missing_api_key_raises(openai_client: MagicMock) -> None:
    upload = build_upload("t.png", b"x", "image/png")

    with pytest.raises(ExtractionError, match="not configured"):
        await extract_csv_with_vision_model(upload, MockSettings(openai_api_key=None))

    openai_client.assert_not_called()


@pytest.mark.asyncio
async def test_api_error_is_wrapped(openai_client: MagicMock) -> None:
    openai_client.return_value.chat.completions.create.side_effect = OpenAIError("boom")
    upload = build_upload("t.png", b"x", "image/png")

    with pytest.raises(ExtractionError) as exc_info:
        await extract_csv_with_vision_model(upload, MockSettings())

    assert str(exc_info.value) == "Failed to extract data from the file. Please try again."
    assert isinstance(exc_info.value.__cause__, OpenAIError)


@pytest.mark.asyncio
@pytest.mark.parametrize("content", [None, "", "   \n"])
async def test_empty_answer_raises(openai_client: MagicMock, content: str | None) -> None:
    openai_client.return_value.chat.completions.create.return_value = _completion(content)
    upload = build_upload("t.png", b"x", "image/png")

    with pytest.raises(ExtractionError, match="Failed to extract text from image."):
        await extract_csv_with_vision_model(upload, MockSettings())
