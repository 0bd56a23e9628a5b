"""Shared fixtures for the test-suite."""

from __future__ import annotations

from io import BytesIO
from typing import Callable

import pytest
from PIL import Image

from dreamhouse.config.settings import get_settings


@pytest.fixture(autouse=True)
def _isolated_settings(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("OPENAI_API_KEY", "test-openai")
    monkeypatch.setenv("OPENAI_BASE_URL", "https://openai.test/v1")
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def _noise(size: tuple[int, int]) -> Image.Image:
    bands = [Image.effect_noise(size, 80) for _ in range(3)]
    return Image.merge("RGB", bands)


@pytest.fixture
def make_image() -> Callable[..., bytes]:
    """Return a helper that renders an in-memory image in the given format."""

    def _make(
        size: tuple[int, int] = (64, 48),
        fmt: str = "JPEG",
        *,
        noisy: bool = False,
        **save_kwargs,
    ) -> bytes:
        if noisy:
            image = _noise(size)
        else:
            image = Image.linear_gradient("L").resize(size).convert("RGB")
        buffer = BytesIO()
        image.save(buffer, format=fmt, **save_kwargs)
        return buffer.getvalue()

    return _make
