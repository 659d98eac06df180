"""Fixed question sequence for the DM onboarding flow."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

from modules.onboarding.validators import is_valid_email, is_valid_name, is_valid_phone

__all__ = ["QUESTIONS", "QuestionSpec", "question_at"]


@dataclass(frozen=True, slots=True)
class QuestionSpec:
    key: str
    prompt: str
    validator: Callable[[str], bool]
    error: str


QUESTIONS: tuple[QuestionSpec, ...] = (
    QuestionSpec(
        key="name",
        prompt="Please enter your **full name**:",
        validator=is_valid_name,
        error="❌ Please enter a valid name (at least 2 characters).",
    ),
    QuestionSpec(
        key="email",
        prompt="Great! Now, please enter your **email address**:",
        validator=is_valid_email,
        error="❌ Please enter a valid email address (e.g., user@example.com).",
    ),
    QuestionSpec(
        key="phone",
        prompt="Almost done! Please enter your **phone number**:",
        validator=is_valid_phone,
        error="❌ Please enter a valid phone number (10-15 digits).",
    ),
)


def question_at(index: int) -> QuestionSpec | None:
    if 0 <= index < len(QUESTIONS):
        return QUESTIONS[index]
    return None
