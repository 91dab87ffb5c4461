"""
Interview session and state models for the interview engine
"""

from datetime import datetime, timezone
from enum import Enum
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field

from interview_engine.models.evaluation import AnswerEvaluation
from interview_engine.models.question import (
    AnswerMode,
    Question,
    QuestionDifficulty,
    QuestionType,
)
from interview_engine.models.report import InterviewResult
from interview_engine.models.roles import ExperienceLevel


def utcnow() -> datetime:
    """Timezone-aware current time."""
    return datetime.now(timezone.utc)


class InterviewType(str, Enum):
    """Interview flavours."""

    RESUME_BASED = "resume-based"
    JOB_DESCRIPTION = "job-description"
    TECHNICAL = "technical"
    BEHAVIORAL = "behavioral"
    MIXED = "mixed"


class SessionStatus(str, Enum):
    """Interview session lifecycle states."""

    CREATED = "created"
    IN_PROGRESS = "in-progress"
    PAUSED = "paused"
    COMPLETED = "completed"
    ABANDONED = "abandoned"

    @property
    def is_terminal(self) -> bool:
        return self in (SessionStatus.COMPLETED, SessionStatus.ABANDONED)


class InterviewSetup(BaseModel):
    """Candidate's interview configuration, fixed at creation."""

    model_config = ConfigDict(frozen=True)

    interview_type: InterviewType = Field(..., description="Kind of interview")
    role: str = Field(..., min_length=1, description="Target role (free text)")
    experience_level: ExperienceLevel = Field(default=ExperienceLevel.MID)
    mode: AnswerMode = Field(default=AnswerMode.TEXT, description="Answer mode")

    # Context sources
    resume_id: str | None = None
    resume_text: str | None = Field(
        default=None,
        description="Resolved from the resume store at creation",
    )
    job_description: str | None = None
    target_skills: list[str] = Field(default_factory=list)

    total_questions: int | None = Field(
        default=None,
        description="Requested question count; defaulted from settings and clamped on creation",
    )


class Resume(BaseModel):
    """Read-only resume reference used for resume-based interviews."""

    resume_id: str = Field(default_factory=lambda: str(uuid4()))
    user_id: str
    raw_text: str = ""

    # Structured fields, flattened when raw text is missing
    name: str | None = None
    summary: str | None = None
    skills: list[str] = Field(default_factory=list)
    experience: list[str] = Field(default_factory=list)
    education: list[str] = Field(default_factory=list)
    projects: list[str] = Field(default_factory=list)

    def to_text(self) -> str:
        """Plain-text rendering used as interview context."""
        if self.raw_text.strip():
            return self.raw_text

        sections = []
        if self.name:
            sections.append(f"Name: {self.name}")
        if self.summary:
            sections.append(f"Summary: {self.summary}")
        if self.skills:
            sections.append(f"Skills: {', '.join(self.skills)}")
        for title, items in (
            ("Experience", self.experience),
            ("Education", self.education),
            ("Projects", self.projects),
        ):
            if items:
                sections.append(f"{title}:\n" + "\n".join(f"- {item}" for item in items))
        return "\n\n".join(sections)


class InterviewSession(BaseModel):
    """
    One complete interview attempt by one user.

    The session is the single aggregate for its questions: questions are
    appended in order and only ever addressed by their sequence number.
    """

    session_id: str = Field(default_factory=lambda: str(uuid4()))
    user_id: str
    setup: InterviewSetup
    ai_model: str

    status: SessionStatus = SessionStatus.CREATED
    current_question_index: int = 0
    questions: list[Question] = Field(default_factory=list)

    # Timing
    created_at: datetime = Field(default_factory=utcnow)
    started_at: datetime | None = None
    completed_at: datetime | None = None
    paused_at: datetime | None = None
    paused_seconds: int = 0
    total_duration_seconds: int = 0

    # =========================================================================
    # QUESTION LIST
    # =========================================================================

    def add_question(
        self,
        text: str,
        question_type: QuestionType,
        category: str,
        difficulty: QuestionDifficulty,
        expected_keywords: list[str] | None = None,
        ideal_answer_points: list[str] | None = None,
        parent_question_number: int | None = None,
    ) -> Question:
        """Append the next question and point the cursor at it."""
        question = Question(
            number=len(self.questions) + 1,
            text=text,
            question_type=question_type,
            category=category,
            difficulty=difficulty,
            expected_keywords=expected_keywords or [],
            ideal_answer_points=ideal_answer_points or [],
            is_follow_up=parent_question_number is not None,
            parent_question_number=parent_question_number,
            asked_at=utcnow(),
        )
        self.questions.append(question)
        self.current_question_index = len(self.questions) - 1
        return question

    def get_question(self, number: int) -> Question | None:
        """Get a question by its sequence number."""
        if 1 <= number <= len(self.questions):
            return self.questions[number - 1]
        return None

    @property
    def latest_question(self) -> Question | None:
        return self.questions[-1] if self.questions else None

    @property
    def answered_count(self) -> int:
        """Questions resolved by an answer or a skip."""
        return sum(1 for q in self.questions if q.is_resolved)

    @property
    def skipped_count(self) -> int:
        return sum(1 for q in self.questions if q.skipped)

    @property
    def needs_next_question(self) -> bool:
        """Latest question resolved but the session is not yet complete."""
        latest = self.latest_question
        return (
            latest is not None
            and latest.is_resolved
            and self.answered_count < self.setup.total_questions
        )

    def follow_up_chain_length(self, number: int) -> int:
        """How many follow-ups already hang off a root question."""
        root = self.root_question_number(number)
        return sum(
            1 for q in self.questions
            if q.is_follow_up and self.root_question_number(q.number) == root
        )

    def root_question_number(self, number: int) -> int:
        """Walk parent links back to the primary question."""
        question = self.get_question(number)
        while question and question.parent_question_number is not None:
            question = self.get_question(question.parent_question_number)
        return question.number if question else number

    def recent_scores(self, window: int = 3) -> list[int | None]:
        """Scores of the trailing resolved questions (None when unscored or skipped)."""
        resolved = [q for q in self.questions if q.is_resolved]
        return [None if q.skipped else q.score for q in resolved[-window:]]

    @property
    def average_score(self) -> float:
        """Mean score over questions with a positive evaluation score."""
        scores = [q.score for q in self.questions if q.score]
        if not scores:
            return 0.0
        return round(sum(scores) / len(scores), 1)

    @property
    def progress(self) -> "Progress":
        total = self.setup.total_questions
        answered = self.answered_count
        return Progress(
            answered=answered,
            total=total,
            percentage=min(100, round(answered / total * 100)) if total else 0,
        )

    # =========================================================================
    # TIMING
    # =========================================================================

    def elapsed_seconds(self, now: datetime | None = None) -> int:
        """Active interview time, excluding pauses."""
        if not self.started_at:
            return 0
        end = now or utcnow()
        if self.paused_at:
            end = min(end, self.paused_at)
        return max(0, int((end - self.started_at).total_seconds()) - self.paused_seconds)


class Progress(BaseModel):
    """Answered-or-skipped progress through a session."""

    answered: int
    total: int
    percentage: int


class QuestionContext(BaseModel):
    """Context for generating a primary question."""

    session_id: str
    question_number: int
    interview_type: InterviewType
    role: str
    experience_level: ExperienceLevel
    resume_text: str | None = None
    job_description: str | None = None
    target_skills: list[str] = Field(default_factory=list)
    prior_questions: list[str] = Field(default_factory=list)
    prior_answers: list[str] = Field(default_factory=list)
    target_difficulty: QuestionDifficulty = QuestionDifficulty.MEDIUM


class FollowUpContext(BaseModel):
    """Context for generating a follow-up to the latest answer."""

    session_id: str
    question_number: int
    role: str
    experience_level: ExperienceLevel
    previous_question: str
    previous_answer: str
    reason: str | None = None


class Transcription(BaseModel):
    """Result of transcribing a voice answer."""

    text: str
    duration_seconds: float = 0.0
    word_count: int = 0


class TurnOutcome(BaseModel):
    """What the caller gets back after an answer, skip or advance."""

    session_id: str
    question_number: int | None = None
    evaluation: AnswerEvaluation | None = None
    transcription: Transcription | None = None
    next_question: Question | None = None
    next_question_audio: bytes | None = Field(default=None, exclude=True)
    is_complete: bool = False
    progress: Progress
    result: InterviewResult | None = None
