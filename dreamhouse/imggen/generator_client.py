"""Async client for the OpenAI image editing endpoint."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Mapping

import httpx
from openai import AsyncOpenAI, OpenAIError

from dreamhouse.config.settings import Settings
from dreamhouse.imggen.errors import FailureKind, GenerationError, classify_openai_error
from dreamhouse.imggen.prompt_builder import PromptBuilder
from dreamhouse.imgproc.models import ImageAsset
from dreamhouse.validation import GenerationForm

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class GenerationResult:
    """Image reference returned by the generation API."""

    url: str
    prompt: str


class ImageGeneratorClient:
    """Turns a normalised photo and style choices into an illustration."""

    def __init__(
        self,
        settings: Settings,
        *,
        client: AsyncOpenAI | None = None,
        prompt_builder: PromptBuilder | None = None,
    ) -> None:
        if client is None:
            if not settings.openai_api_key:
                raise RuntimeError("OpenAI API key is not configured.")
            client = AsyncOpenAI(
                api_key=settings.openai_api_key,
                base_url=settings.openai_base_url.rstrip("/"),
                timeout=httpx.Timeout(settings.request_timeout),
                max_retries=0,
            )
        self._settings = settings
        self._client = client
        self._prompt_builder = prompt_builder or PromptBuilder()

    async def generate(self, asset: ImageAsset, form: GenerationForm) -> GenerationResult:
        """Send the photo with the built prompt and return the image reference.

        Raises:
            GenerationError: The API call failed or returned no image.
        """

        prompt = self._prompt_builder.build(form)
        kwargs: dict[str, Any] = {
            "model": self._settings.image_model,
            "image": (asset.filename, asset.data, asset.mime_type),
            "prompt": prompt,
            "size": self._settings.image_size,
        }
        if self._settings.image_quality:
            kwargs["quality"] = self._settings.image_quality
        if self._settings.image_model.startswith("dall-e"):
            kwargs["response_format"] = "b64_json"

        logger.info(
            "Generating image for theme %r with vibe %r and pose %r",
            form.theme,
            form.vibe.value,
            form.pose.value,
        )
        try:
            result = await self._client.images.edit(**kwargs)
        except OpenAIError as exc:
            kind = classify_openai_error(exc)
            logger.error("Image generation failed (%s): %s", kind.value, exc)
            raise GenerationError(kind, str(exc)) from exc

        return GenerationResult(url=self._extract_url(result), prompt=prompt)

    @staticmethod
    def _extract_url(result: Any) -> str:
        data_attr = getattr(result, "data", None)
        if not data_attr:
            raise GenerationError(FailureKind.UNKNOWN, "No data returned from the image API.")

        primary = data_attr[0]
        image_base64 = getattr(primary, "b64_json", None)
        image_url = getattr(primary, "url", None)
        if isinstance(primary, Mapping):
            image_base64 = image_base64 or primary.get("b64_json")
            image_url = image_url or primary.get("url")

        if image_base64:
            return f"data:image/png;base64,{image_base64}"
        if image_url:
            return image_url
        raise GenerationError(FailureKind.UNKNOWN, "No image payload in response.")

    async def ping(self) -> bool:
        """Return ``True`` when the service responds to a model listing call."""

        models = await self._client.models.list()
        return bool(models.data)

    async def close(self) -> None:
        """Close the underlying HTTP session."""

        await self._client.close()
