"""
Question models for the interview engine
"""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field

from interview_engine.models.evaluation import AnswerEvaluation


class QuestionDifficulty(str, Enum):
    """Question difficulty tiers."""

    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


class QuestionType(str, Enum):
    """Types of interview questions."""

    TECHNICAL = "technical"
    BEHAVIORAL = "behavioral"
    SITUATIONAL = "situational"
    RESUME_BASED = "resume-based"
    FOLLOW_UP = "follow-up"


class AnswerMode(str, Enum):
    """How the candidate answers."""

    TEXT = "text"
    VOICE = "voice"
    MIXED = "mixed"
    LIVE = "live"


class Question(BaseModel):
    """
    A question embedded in an interview session.

    Questions are addressed by their 1-based sequence number within the
    owning session; follow-ups get their own number and point back to
    the question they probe.
    """

    number: int = Field(..., ge=1, description="Sequence number within the session")
    text: str
    question_type: QuestionType = QuestionType.TECHNICAL
    category: str = "General"
    difficulty: QuestionDifficulty = QuestionDifficulty.MEDIUM

    # Generator hints, used for evaluation and keyword analysis
    expected_keywords: list[str] = Field(default_factory=list)
    ideal_answer_points: list[str] = Field(default_factory=list)

    # Follow-up tracking
    is_follow_up: bool = False
    parent_question_number: int | None = None

    # Timing
    asked_at: datetime
    answered_at: datetime | None = None
    time_spent_seconds: int = 0

    # Response
    answer: str | None = None
    answer_mode: AnswerMode | None = None
    transcribed_text: str | None = None
    audio_duration_seconds: float | None = None
    skipped: bool = False

    evaluation: AnswerEvaluation | None = None

    @property
    def is_resolved(self) -> bool:
        """Answered or skipped."""
        return self.answer is not None or self.skipped

    @property
    def score(self) -> int | None:
        """Evaluation score, if any."""
        return self.evaluation.score if self.evaluation else None


class GeneratedQuestion(BaseModel):
    """A question as returned by the AI generator."""

    text: str
    question_type: QuestionType = QuestionType.TECHNICAL
    category: str = "General"
    difficulty: QuestionDifficulty = QuestionDifficulty.MEDIUM
    expected_keywords: list[str] = Field(default_factory=list)
    ideal_answer_points: list[str] = Field(default_factory=list)
    ai_model: str | None = None


class FollowUpDecision(BaseModel):
    """Outcome of the follow-up policy for one evaluated answer."""

    should_follow_up: bool
    reason: str | None = None
