"""Tests for the OpenAI image generation client."""

from __future__ import annotations

from types import SimpleNamespace

import httpx
import pytest
import pytest_mock
from openai import (
    APIConnectionError,
    AuthenticationError,
    BadRequestError,
    RateLimitError,
)

from dreamhouse.config.settings import Settings
from dreamhouse.imggen import (
    FailureKind,
    GenerationError,
    ImageGeneratorClient,
    classify_openai_error,
)
from dreamhouse.imgproc import ImageAsset
from dreamhouse.validation import GenerationForm

REQUEST = httpx.Request("POST", "https://openai.test/v1/images/edits")


def _status_error(cls, status: int, code: str | None = None, message: str = "error"):
    body = {"code": code, "message": message} if code else None
    return cls(message, response=httpx.Response(status, request=REQUEST), body=body)


@pytest.fixture
def form() -> GenerationForm:
    return GenerationForm(theme="お菓子の家", vibe="元気", pose="手を振る")


@pytest.fixture
def asset() -> ImageAsset:
    return ImageAsset(data=b"jpeg-bytes", mime_type="image/jpeg", width=10, height=10, filename="face.jpg")


@pytest.fixture
def openai_mock(mocker: pytest_mock.MockerFixture):
    client = mocker.Mock()
    client.images.edit = mocker.AsyncMock()
    client.models.list = mocker.AsyncMock()
    client.close = mocker.AsyncMock()
    return client


@pytest.mark.asyncio
async def test_generate_returns_data_uri(openai_mock, asset, form) -> None:
    openai_mock.images.edit.return_value = SimpleNamespace(data=[SimpleNamespace(b64_json="QUJD", url=None)])
    client = ImageGeneratorClient(Settings(image_model="gpt-image-1"), client=openai_mock)

    result = await client.generate(asset, form)

    assert result.url == "data:image/png;base64,QUJD"
    kwargs = openai_mock.images.edit.await_args.kwargs
    assert kwargs["model"] == "gpt-image-1"
    assert kwargs["image"] == ("face.jpg", b"jpeg-bytes", "image/jpeg")
    assert "お菓子の家" in kwargs["prompt"]
    assert "response_format" not in kwargs


@pytest.mark.asyncio
async def test_generate_falls_back_to_url(openai_mock, asset, form) -> None:
    openai_mock.images.edit.return_value = SimpleNamespace(data=[{"url": "https://cdn.test/out.png"}])
    client = ImageGeneratorClient(Settings(image_model="dall-e-2"), client=openai_mock)

    result = await client.generate(asset, form)

    assert result.url == "https://cdn.test/out.png"
    assert openai_mock.images.edit.await_args.kwargs["response_format"] == "b64_json"


@pytest.mark.asyncio
async def test_empty_response_is_unknown_failure(openai_mock, asset, form) -> None:
    openai_mock.images.edit.return_value = SimpleNamespace(data=[])
    client = ImageGeneratorClient(Settings(), client=openai_mock)

    with pytest.raises(GenerationError) as excinfo:
        await client.generate(asset, form)

    assert excinfo.value.kind is FailureKind.UNKNOWN
    assert excinfo.value.status_code == 500


@pytest.mark.asyncio
async def test_api_errors_are_mapped_without_retry(openai_mock, asset, form) -> None:
    openai_mock.images.edit.side_effect = _status_error(RateLimitError, 429)
    client = ImageGeneratorClient(Settings(), client=openai_mock)

    with pytest.raises(GenerationError) as excinfo:
        await client.generate(asset, form)

    assert excinfo.value.kind is FailureKind.RATE_LIMITED
    assert excinfo.value.status_code == 429
    assert openai_mock.images.edit.await_count == 1


@pytest.mark.parametrize(
    ("error", "kind", "status"),
    [
        (_status_error(RateLimitError, 429, "insufficient_quota"), FailureKind.QUOTA_EXCEEDED, 503),
        (_status_error(RateLimitError, 429), FailureKind.RATE_LIMITED, 429),
        (_status_error(AuthenticationError, 401, "invalid_api_key"), FailureKind.AUTH_FAILURE, 502),
        (_status_error(BadRequestError, 400, "invalid_image"), FailureKind.INVALID_INPUT, 400),
        (
            _status_error(BadRequestError, 400, "moderation_blocked"),
            FailureKind.CONTENT_POLICY_VIOLATION,
            400,
        ),
        (APIConnectionError(request=REQUEST), FailureKind.UNKNOWN, 500),
    ],
)
def test_classify_openai_error(error, kind: FailureKind, status: int) -> None:
    result = classify_openai_error(error)

    assert result is kind
    assert GenerationError(result).status_code == status
    assert GenerationError(result).user_message


def test_client_requires_api_key() -> None:
    with pytest.raises(RuntimeError):
        ImageGeneratorClient(Settings(openai_api_key=""))


@pytest.mark.asyncio
async def test_ping_and_close(openai_mock) -> None:
    openai_mock.models.list.return_value = SimpleNamespace(data=[SimpleNamespace(id="gpt-image-1")])
    client = ImageGeneratorClient(Settings(), client=openai_mock)

    assert await client.ping()
    await client.close()

    openai_mock.close.assert_awaited_once()
