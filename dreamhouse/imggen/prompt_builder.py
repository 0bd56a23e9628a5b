"""Prompt construction helpers for the illustration step."""

from __future__ import annotations

from dreamhouse.validation import GenerationForm

PROMPT_TEMPLATE = (
    "入力された写真の人物を参考に、{theme}の前に立つキャラクターの"
    "やさしい手描きアニメ風イラストを作成してください。"
    "キャラクターは{vibe}な性格で、{pose}のポーズをとっています。\n\n"
    "スタイル要件：\n"
    "- やわらかい線と水彩タッチの陰影、温かみのある色合い\n"
    "- 顔立ちと雰囲気は写真を尊重しつつ、アニメ調に自然変換\n"
    "- {theme}は細部まで丁寧に描き、小さな魔法のような要素を添える\n"
    "- キャラクターと家が自然に調和した、奥行きのある構図\n"
    "- 全年齢向けで、文字やロゴ、実在のブランドは含めない"
)


class PromptBuilder:
    """Builds the edit instruction sent along with the photo."""

    def __init__(self, template: str = PROMPT_TEMPLATE) -> None:
        self._template = template

    def build(self, form: GenerationForm) -> str:
        """Return the prompt for the given style choices."""

        return self._template.format(
            theme=form.theme,
            vibe=form.vibe.value,
            pose=form.pose.value,
        )
