"""Coordinates normalisation, generation and saving to the gallery."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from dreamhouse.gallery.models import GalleryItem
from dreamhouse.gallery.store import GalleryStore
from dreamhouse.imggen.generator_client import ImageGeneratorClient
from dreamhouse.imgproc.models import UploadedImage
from dreamhouse.imgproc.normalize import DecisionCallback, ImageNormalizer
from dreamhouse.validation import GenerationForm

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class GenerationOutcome:
    """Result of one generation request, ready to be displayed or saved."""

    url: str
    form: GenerationForm


class StudioService:
    """Runs a single photo through the pipeline and manages saved results."""

    def __init__(
        self,
        normalizer: ImageNormalizer,
        generator: ImageGeneratorClient,
        gallery: GalleryStore | None = None,
    ) -> None:
        self._normalizer = normalizer
        self._generator = generator
        self._gallery = gallery

    async def generate(
        self,
        upload: UploadedImage,
        form: GenerationForm,
        decide: DecisionCallback | None = None,
    ) -> GenerationOutcome:
        """Normalise ``upload`` and request an illustration for ``form``.

        The normalised asset only lives for the duration of this call.
        """

        asset = await self._normalizer.normalize(upload, decide)
        logger.info("Uploading %s (%s, %d bytes)", asset.filename, asset.mime_type, asset.size)
        result = await self._generator.generate(asset, form)
        return GenerationOutcome(url=result.url, form=form)

    async def save(self, outcome: GenerationOutcome) -> GalleryItem:
        """Store ``outcome`` in the gallery."""

        gallery = self._require_gallery()
        return await gallery.insert(
            outcome.form.theme,
            outcome.form.vibe.value,
            outcome.form.pose.value,
            outcome.url,
        )

    async def list_gallery(self) -> list[GalleryItem]:
        return await self._require_gallery().list_recent()

    async def clear_gallery(self) -> None:
        await self._require_gallery().clear_all()

    def _require_gallery(self) -> GalleryStore:
        if self._gallery is None:
            raise RuntimeError("Gallery storage is not configured.")
        return self._gallery
