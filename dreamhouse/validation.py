"""Validation of the generation form."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, field_validator

MIN_THEME_LENGTH = 1
MAX_THEME_LENGTH = 120

PROHIBITED_WORDS = (
    "copyright",
    "trademark",
    "disney",
    "pokemon",
    "mario",
    "nintendo",
    "sony",
    "microsoft",
    "apple",
    "coca-cola",
    "mcdonald",
    "starbucks",
)


class Vibe(str, Enum):
    """Personality of the illustrated character."""

    ENERGETIC = "元気"
    ELEGANT = "上品"
    COOL = "クール"


class Pose(str, Enum):
    """Pose of the illustrated character."""

    WAVE = "手を振る"
    PEACE_SIGN = "ピース"
    HAND_ON_HIP = "腰に手"


class GenerationForm(BaseModel):
    """Style choices submitted together with the photo."""

    theme: str
    vibe: Vibe
    pose: Pose

    @field_validator("theme")
    @classmethod
    def _check_theme(cls, value: str) -> str:
        value = value.strip()
        if len(value) < MIN_THEME_LENGTH:
            raise ValueError(f"Theme must be at least {MIN_THEME_LENGTH} character long.")
        if len(value) > MAX_THEME_LENGTH:
            raise ValueError(f"Theme must be at most {MAX_THEME_LENGTH} characters long.")
        lowered = value.lower()
        if any(word in lowered for word in PROHIBITED_WORDS):
            raise ValueError(
                "Theme contains prohibited content. Please avoid brand names or copyrighted material."
            )
        return value
