"""Failure kinds reported by the image generation API."""

from __future__ import annotations

from enum import Enum

from openai import (
    AuthenticationError,
    BadRequestError,
    OpenAIError,
    PermissionDeniedError,
    RateLimitError,
    UnprocessableEntityError,
)


class FailureKind(str, Enum):
    """Machine readable reason a generation request failed."""

    QUOTA_EXCEEDED = "quota_exceeded"
    RATE_LIMITED = "rate_limited"
    INVALID_INPUT = "invalid_input"
    AUTH_FAILURE = "auth_failure"
    CONTENT_POLICY_VIOLATION = "content_policy_violation"
    UNKNOWN = "unknown"


STATUS_CODES: dict[FailureKind, int] = {
    FailureKind.QUOTA_EXCEEDED: 503,
    FailureKind.RATE_LIMITED: 429,
    FailureKind.INVALID_INPUT: 400,
    FailureKind.AUTH_FAILURE: 502,
    FailureKind.CONTENT_POLICY_VIOLATION: 400,
    FailureKind.UNKNOWN: 500,
}

USER_MESSAGES: dict[FailureKind, str] = {
    FailureKind.QUOTA_EXCEEDED: "いまは がぞうを つくれません。しばらく たってから もういちど ためしてね。",
    FailureKind.RATE_LIMITED: "こみあっています。すこし まってから もういちど ためしてね。",
    FailureKind.INVALID_INPUT: "しゃしんを よみこめませんでした。べつの しゃしんで ためしてね。",
    FailureKind.AUTH_FAILURE: "サービスの せっていに もんだいが あります。",
    FailureKind.CONTENT_POLICY_VIOLATION: "この ないようでは がぞうを つくれません。テーマを かえてね。",
    FailureKind.UNKNOWN: "がぞうの せいせいに しっぱいしました。もういちど ためしてね。",
}

CONTENT_POLICY_CODES = frozenset({"content_policy_violation", "moderation_blocked"})


class GenerationError(RuntimeError):
    """Raised when the generation API returns no usable image."""

    def __init__(self, kind: FailureKind, detail: str = "") -> None:
        self.kind = kind
        self.detail = detail
        super().__init__(detail or kind.value)

    @property
    def status_code(self) -> int:
        return STATUS_CODES[self.kind]

    @property
    def user_message(self) -> str:
        return USER_MESSAGES[self.kind]


def classify_openai_error(exc: OpenAIError) -> FailureKind:
    """Map an OpenAI SDK exception to a :class:`FailureKind`."""

    code = str(getattr(exc, "code", None) or "").lower()
    if isinstance(exc, RateLimitError):
        if code == "insufficient_quota":
            return FailureKind.QUOTA_EXCEEDED
        return FailureKind.RATE_LIMITED
    if isinstance(exc, (AuthenticationError, PermissionDeniedError)):
        return FailureKind.AUTH_FAILURE
    if isinstance(exc, (BadRequestError, UnprocessableEntityError)):
        if code in CONTENT_POLICY_CODES or "safety system" in str(exc).lower():
            return FailureKind.CONTENT_POLICY_VIOLATION
        return FailureKind.INVALID_INPUT
    return FailureKind.UNKNOWN
