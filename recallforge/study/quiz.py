"""Quiz question generation.

Turns catalog entries into review questions: mostly multiple choice, with a
share of typed answers. Randomness comes from an injected ``random.Random``
so question sequences are reproducible under test.
"""

from __future__ import annotations

import random
from dataclasses import dataclass
from enum import Enum
from typing import List, Sequence, Tuple

from recallforge.core.exceptions import ValidationError

DEFAULT_TYPING_RATIO: float = 0.2
DISTRACTOR_COUNT: int = 3


class QuestionType(Enum):
    MULTIPLE_CHOICE = "multiple_choice"
    TYPING = "typing"


@dataclass(frozen=True)
class CatalogItem:
    """A learnable item: shown as ``term``, answered with ``translation``."""

    id: str
    term: str
    translation: str


@dataclass(frozen=True)
class QuizQuestion:
    """One question about ``item``.

    Attributes:
        item: The item being tested
        question_type: Multiple choice or typing
        correct_answer: Expected response (the translation)
        options: Answer choices for multiple choice, empty for typing
    """

    item: CatalogItem
    question_type: QuestionType
    correct_answer: str
    options: Tuple[str, ...] = ()


def generate_options(
    target: CatalogItem, catalog: Sequence[CatalogItem], rng: random.Random
) -> Tuple[str, ...]:
    """Pick up to three distinct wrong translations and shuffle in the answer."""
    seen = {normalize_answer(target.translation)}
    distractors: List[str] = []
    others = [item for item in catalog if item.id != target.id]
    rng.shuffle(others)
    for item in others:
        key = normalize_answer(item.translation)
        if key in seen:
            continue
        seen.add(key)
        distractors.append(item.translation)
        if len(distractors) == DISTRACTOR_COUNT:
            break

    options = distractors + [target.translation]
    rng.shuffle(options)
    return tuple(options)


def generate_question(
    target: CatalogItem,
    catalog: Sequence[CatalogItem],
    rng: random.Random,
    typing_ratio: float = DEFAULT_TYPING_RATIO,
) -> QuizQuestion:
    """Build a question for ``target``.

    Args:
        target: Item to ask about
        catalog: Pool of items to draw distractors from
        rng: Random source
        typing_ratio: Probability (0-1) of a typing question

    Returns:
        QuizQuestion

    Raises:
        ValidationError: If typing_ratio is outside [0, 1]
    """
    if not 0.0 <= typing_ratio <= 1.0:
        raise ValidationError(f"typing_ratio must be between 0 and 1, got {typing_ratio}")

    if rng.random() < typing_ratio:
        return QuizQuestion(
            item=target,
            question_type=QuestionType.TYPING,
            correct_answer=target.translation,
        )
    return QuizQuestion(
        item=target,
        question_type=QuestionType.MULTIPLE_CHOICE,
        correct_answer=target.translation,
        options=generate_options(target, catalog, rng),
    )


def normalize_answer(text: str) -> str:
    return text.strip().casefold()


def check_answer(question: QuizQuestion, response: str) -> bool:
    """Case-insensitive comparison after trimming whitespace."""
    return normalize_answer(response) == normalize_answer(question.correct_answer)
