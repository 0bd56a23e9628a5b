"""Prompt building and image generation utilities."""

from .errors import FailureKind, GenerationError, classify_openai_error
from .generator_client import GenerationResult, ImageGeneratorClient
from .prompt_builder import PromptBuilder

__all__ = [
    "FailureKind",
    "GenerationError",
    "GenerationResult",
    "ImageGeneratorClient",
    "PromptBuilder",
    "classify_openai_error",
]
