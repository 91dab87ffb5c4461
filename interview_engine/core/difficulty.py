"""
Adaptive difficulty controller.

Maps the trailing window of answer scores to the next difficulty tier.
Pure and deterministic: the same window always yields the same tier.
"""

from typing import Iterable

from interview_engine.models.question import QuestionDifficulty

WINDOW_SIZE = 3
UNSCORED_DEFAULT = 50
HARD_THRESHOLD = 80
EASY_THRESHOLD = 40


def rolling_average(scores: Iterable[int | None], window: int = WINDOW_SIZE) -> float:
    """Mean of the last ``window`` scores, treating unscored slots as 50."""
    trailing = list(scores)[-window:]
    if not trailing:
        return float(UNSCORED_DEFAULT)
    values = [UNSCORED_DEFAULT if s is None else s for s in trailing]
    return sum(values) / len(values)


def compute_difficulty(scores: Iterable[int | None]) -> QuestionDifficulty:
    """
    Next difficulty from recent performance.

    Both thresholds are inclusive: an average of exactly 80 is hard and
    exactly 40 is easy.
    """
    average = rolling_average(scores)
    if average >= HARD_THRESHOLD:
        return QuestionDifficulty.HARD
    if average <= EASY_THRESHOLD:
        return QuestionDifficulty.EASY
    return QuestionDifficulty.MEDIUM
