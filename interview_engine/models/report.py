"""
Report models for the interview engine

Defines the structure of the final interview result, created once per
completed session and never modified afterwards.
"""

from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class HiringDecision(str, Enum):
    """Final hiring recommendation."""

    STRONG_HIRE = "strong-hire"
    HIRE = "hire"
    MAYBE = "maybe"
    NO_HIRE = "no-hire"
    STRONG_NO_HIRE = "strong-no-hire"

    @property
    def display_text(self) -> str:
        """Human-readable decision."""
        return self.value.replace("-", " ").title()

    @classmethod
    def from_score(cls, score: float) -> "HiringDecision":
        """Decision band for an overall score."""
        if score >= 85:
            return cls.STRONG_HIRE
        if score >= 70:
            return cls.HIRE
        if score >= 55:
            return cls.MAYBE
        if score >= 40:
            return cls.NO_HIRE
        return cls.STRONG_NO_HIRE


class Trend(str, Enum):
    """Score movement against the previous same-role attempt."""

    IMPROVING = "improving"
    STABLE = "stable"
    DECLINING = "declining"


class SkillScore(BaseModel):
    """Score and feedback for one skill axis."""

    score: int = Field(default=0, ge=0, le=100)
    feedback: str = ""


class SkillBreakdown(BaseModel):
    """Five-axis skill breakdown."""

    communication: SkillScore = Field(default_factory=SkillScore)
    technical_knowledge: SkillScore = Field(default_factory=SkillScore)
    problem_solving: SkillScore = Field(default_factory=SkillScore)
    situational_awareness: SkillScore = Field(default_factory=SkillScore)
    cultural_fit: SkillScore = Field(default_factory=SkillScore)


class TopicScore(BaseModel):
    """Performance on one topic/category."""

    skill_name: str
    score: int = Field(default=0, ge=0, le=100)
    questions_asked: int = 0
    feedback: str = ""


class HiringRecommendation(BaseModel):
    decision: HiringDecision
    confidence: int = Field(default=50, ge=0, le=100)
    reasoning: str = ""


class ResultMetrics(BaseModel):
    """Counts and timings gathered from the session."""

    total_questions: int = 0
    answered_questions: int = 0
    skipped_questions: int = 0
    average_time_per_question: float = 0.0
    total_time_spent_seconds: int = 0
    total_duration_seconds: int = 0
    high_scoring_answers: int = 0


class ComparisonData(BaseModel):
    """Standing against the user's history and the role cohort."""

    previous_score: int | None = None
    score_change: int | None = None
    percentile_rank: int = 50
    trend: Trend | None = None


class ReportDraft(BaseModel):
    """Holistic report as produced by the AI report collaborator."""

    overall_score: int = Field(..., ge=0, le=100)
    skill_breakdown: SkillBreakdown = Field(default_factory=SkillBreakdown)
    topic_breakdown: list[TopicScore] = Field(default_factory=list)
    strengths: list[str] = Field(default_factory=list)
    weaknesses: list[str] = Field(default_factory=list)
    missed_keywords: list[str] = Field(default_factory=list)
    resume_improvements: list[str] = Field(default_factory=list)
    practice_areas: list[str] = Field(default_factory=list)
    summary: str = ""
    detailed_feedback: str = ""
    hiring_recommendation: HiringRecommendation | None = None


class InterviewResult(BaseModel):
    """Final scored result of a completed interview session."""

    model_config = ConfigDict(frozen=True)

    # Metadata
    result_id: str
    session_id: str
    user_id: str
    interview_type: str
    role: str
    experience_level: str
    ai_model: str
    is_ai_generated: bool = True
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    # === SCORES ===

    overall_score: int = Field(..., ge=0, le=100)
    skill_breakdown: SkillBreakdown
    topic_breakdown: list[TopicScore] = Field(default_factory=list)

    # === QUALITATIVE FEEDBACK ===

    strengths: list[str] = Field(default_factory=list)
    weaknesses: list[str] = Field(default_factory=list)
    expected_keywords: list[str] = Field(default_factory=list)
    mentioned_keywords: list[str] = Field(default_factory=list)
    missed_keywords: list[str] = Field(default_factory=list)
    resume_improvements: list[str] = Field(default_factory=list)
    practice_areas: list[str] = Field(default_factory=list)
    summary: str = ""
    detailed_feedback: str = ""

    # === METRICS & COMPARISON ===

    metrics: ResultMetrics
    comparison: ComparisonData
    hiring_recommendation: HiringRecommendation

    @property
    def grade(self) -> str:
        """Letter grade for the overall score."""
        bands = [
            (90, "A+"), (85, "A"), (80, "A-"),
            (75, "B+"), (70, "B"), (65, "B-"),
            (60, "C+"), (55, "C"), (50, "C-"),
            (45, "D"),
        ]
        for threshold, grade in bands:
            if self.overall_score >= threshold:
                return grade
        return "F"

    @property
    def performance_level(self) -> str:
        score = self.overall_score
        if score >= 85:
            return "Excellent"
        if score >= 70:
            return "Good"
        if score >= 55:
            return "Average"
        if score >= 40:
            return "Needs Improvement"
        return "Poor"


class RoleStats(BaseModel):
    """Aggregate scores for one role cohort."""

    role: str
    total_interviews: int = 0
    average_score: float = 0.0
    top_score: int = 0
    lowest_score: int = 0


class UserStats(BaseModel):
    """Aggregate interview statistics for one user."""

    total_interviews: int = 0
    average_score: float = 0.0
    total_time_spent_seconds: int = 0
    interviews_by_type: dict[str, int] = Field(default_factory=dict)
    recent_scores: list[int] = Field(default_factory=list)
    improvement_trend: list[dict] = Field(default_factory=list)
