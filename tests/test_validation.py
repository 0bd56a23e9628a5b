"""Tests for form validation and prompt building."""

import pytest
from pydantic import ValidationError

from dreamhouse.imggen import PromptBuilder
from dreamhouse.validation import GenerationForm, Pose, Vibe


def test_form_accepts_valid_choices() -> None:
    form = GenerationForm(theme="  雲の家  ", vibe="上品", pose="ピース")

    assert form.theme == "雲の家"
    assert form.vibe is Vibe.ELEGANT
    assert form.pose is Pose.PEACE_SIGN


@pytest.mark.parametrize("theme", ["", "   ", "あ" * 121, "Disney castle", "a STARBUCKS cafe"])
def test_form_rejects_bad_theme(theme: str) -> None:
    with pytest.raises(ValidationError):
        GenerationForm(theme=theme, vibe="元気", pose="手を振る")


def test_form_rejects_unknown_vibe_and_pose() -> None:
    with pytest.raises(ValidationError) as excinfo:
        GenerationForm(theme="お菓子の家", vibe="sleepy", pose="dab")

    fields = {error["loc"][0] for error in excinfo.value.errors()}
    assert fields == {"vibe", "pose"}


def test_theme_of_max_length_is_accepted() -> None:
    form = GenerationForm(theme="あ" * 120, vibe="クール", pose="腰に手")

    assert len(form.theme) == 120


def test_prompt_builder_includes_choices() -> None:
    form = GenerationForm(theme="ガラスの温室", vibe="クール", pose="腰に手")

    prompt = PromptBuilder().build(form)

    assert "ガラスの温室" in prompt
    assert "クールな性格" in prompt
    assert "腰に手のポーズ" in prompt
