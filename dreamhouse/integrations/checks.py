"""Connectivity checks for the external image generation API."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Awaitable, Callable

from dreamhouse.config.settings import get_settings
from dreamhouse.gallery.store import GalleryStore
from dreamhouse.imggen.generator_client import ImageGeneratorClient


@dataclass(slots=True)
class IntegrationCheckResult:
    """Structured result describing the integration check outcome."""

    name: str
    success: bool
    message: str


async def _run_check(
    name: str,
    factory: Callable[[], Awaitable[bool]],
    success_message: str,
) -> IntegrationCheckResult:
    try:
        result = await factory()
    except Exception as exc:  # pragma: no cover
        return IntegrationCheckResult(name=name, success=False, message=str(exc))

    if result:
        return IntegrationCheckResult(name=name, success=True, message=success_message)
    return IntegrationCheckResult(
        name=name,
        success=False,
        message="Service responded with non-success status.",
    )


async def check_image_api() -> IntegrationCheckResult:
    """Ping the OpenAI images API and return the result."""

    async def _ping() -> bool:
        client = ImageGeneratorClient(get_settings())
        try:
            return await client.ping()
        finally:
            await client.close()

    return await _run_check(
        name="OpenAI Images",
        factory=_ping,
        success_message="OpenAI API is reachable.",
    )


async def check_gallery_storage() -> IntegrationCheckResult:
    """Open the gallery database and read from it."""

    async def _probe() -> bool:
        store = GalleryStore.from_url(get_settings().gallery_database_url)
        try:
            await store.list_recent()
            return True
        finally:
            await store.close()

    return await _run_check(
        name="Gallery storage",
        factory=_probe,
        success_message="Gallery database is readable.",
    )


async def run_all_checks() -> list[IntegrationCheckResult]:
    """Execute all integration checks concurrently."""

    return list(await asyncio.gather(check_image_api(), check_gallery_storage()))
