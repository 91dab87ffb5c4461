"""
Evaluation models for the interview engine

Scores are on a 0-100 scale across five dimensions:
- Relevance
- Technical accuracy
- Clarity
- Confidence
- Role fit
"""

from datetime import datetime, timezone

from pydantic import BaseModel, Field

from interview_engine.models.roles import ExperienceLevel


SKIPPED_FEEDBACK = "Question was skipped"


class AnswerEvaluation(BaseModel):
    """Multi-dimensional evaluation of a single answer."""

    score: int = Field(..., ge=0, le=100, description="Overall answer score")

    # Dimension scores (0-100)
    relevance: int = Field(default=0, ge=0, le=100)
    technical_accuracy: int = Field(default=0, ge=0, le=100)
    clarity: int = Field(default=0, ge=0, le=100)
    confidence: int = Field(default=0, ge=0, le=100)
    role_fit: int = Field(default=0, ge=0, le=100)

    # Qualitative feedback
    strengths: list[str] = Field(default_factory=list)
    weaknesses: list[str] = Field(default_factory=list)
    missing_keywords: list[str] = Field(default_factory=list)
    suggested_answer: str = ""
    improvement_tips: list[str] = Field(default_factory=list)
    feedback: str = ""

    # Follow-up signal from the evaluator
    should_ask_follow_up: bool = False
    follow_up_reason: str | None = None

    ai_model: str | None = None
    evaluated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @classmethod
    def skipped(cls) -> "AnswerEvaluation":
        """Synthetic zero-score evaluation attached to skipped questions."""
        return cls(score=0, feedback=SKIPPED_FEEDBACK)

    @property
    def is_synthetic(self) -> bool:
        """True for evaluations not produced by the AI evaluator."""
        return self.ai_model is None


class EvaluationContext(BaseModel):
    """Everything the evaluator needs to score one answer."""

    session_id: str
    question_number: int
    question_text: str
    question_type: str
    category: str
    expected_keywords: list[str] = Field(default_factory=list)
    ideal_answer_points: list[str] = Field(default_factory=list)
    answer: str
    role: str
    experience_level: ExperienceLevel
