"""
pytest configuration and shared fixtures.
"""
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest

from interview_engine.config.settings import Settings
from interview_engine.core.evaluation_engine import EvaluationEngine
from interview_engine.core.followup_policy import FollowUpPolicy
from interview_engine.core.interview_orchestrator import InterviewOrchestrator
from interview_engine.core.report_generator import ReportGenerator
from interview_engine.core.storage import (
    InMemoryResultRepository,
    InMemoryResumeRepository,
    InMemorySessionRepository,
)
from interview_engine.models.evaluation import AnswerEvaluation
from interview_engine.models.interview import (
    InterviewSession,
    InterviewSetup,
    InterviewType,
    SessionStatus,
)
from interview_engine.models.question import GeneratedQuestion, QuestionDifficulty
from interview_engine.models.report import (
    ComparisonData,
    InterviewResult,
    ReportDraft,
    ResultMetrics,
    SkillBreakdown,
)

GOOD_ANSWER = "I would add a composite index and check the query plan with EXPLAIN."


class StubAIReasoning:
    """
    Stand-in for AIReasoningLayer.

    Every answer scores ``score`` (an int, or a callable taking the
    evaluation context); the evaluator asks for a follow-up only on the
    question numbers in ``follow_up_on``.
    """

    def __init__(self, score=85, follow_up_on=(), report_score=None):
        self.score = score
        self.follow_up_on = set(follow_up_on)
        self.report_score = report_score

        self.generate_question = AsyncMock(side_effect=self._question)
        self.generate_followup = AsyncMock(side_effect=self._followup)
        self.evaluate_answer = AsyncMock(side_effect=self._evaluate)
        self.generate_report = AsyncMock(side_effect=self._report)
        self.close = AsyncMock()

    async def _question(self, context, model, user_id=None):
        return GeneratedQuestion(
            text=f"Primary question {context.question_number} for {context.role}",
            category=f"Topic {context.question_number}",
            difficulty=QuestionDifficulty.EASY,
            expected_keywords=["indexing", "caching"],
            ai_model=model,
        )

    async def _followup(self, context, model, user_id=None):
        return GeneratedQuestion(
            text=f"Can you go deeper on: {context.previous_question}?",
            category="Clarification",
            ai_model=model,
        )

    async def _evaluate(self, context, model, user_id=None):
        score = self.score(context) if callable(self.score) else self.score
        follow_up = context.question_number in self.follow_up_on
        return AnswerEvaluation(
            score=score,
            relevance=score,
            technical_accuracy=score,
            clarity=score,
            confidence=score,
            role_fit=score,
            strengths=["Concrete example"],
            weaknesses=["Could mention trade-offs"],
            missing_keywords=["sharding"],
            should_ask_follow_up=follow_up,
            follow_up_reason="Mentioned caching without detail" if follow_up else None,
            ai_model=model,
        )

    async def _report(self, session, model):
        scores = [q.score or 0 for q in session.questions]
        overall = self.report_score if self.report_score is not None else round(sum(scores) / len(scores))
        return ReportDraft(
            overall_score=overall,
            strengths=["Clear communication"],
            weaknesses=["Depth on distributed systems"],
            summary="Solid interview.",
        )


@pytest.fixture
def settings():
    """Settings isolated from any local .env file."""
    return Settings(_env_file=None, tts_enabled=False, langfuse_enabled=False)


@pytest.fixture
def stub_ai():
    return StubAIReasoning()


@pytest.fixture
def make_orchestrator(settings):
    """
    Factory fixture for a fully wired orchestrator on in-memory stores.

    Usage:
        orchestrator = make_orchestrator(ai=StubAIReasoning(score=40), follow_up_probability=1.0)
    """
    def _make(ai=None, follow_up_probability=0.0, audio_processor=None):
        ai = ai or StubAIReasoning()
        results = InMemoryResultRepository()
        evaluation_engine = EvaluationEngine(ai)
        report_generator = ReportGenerator(ai, evaluation_engine, results, settings)
        return InterviewOrchestrator(
            ai_reasoning=ai,
            evaluation_engine=evaluation_engine,
            report_generator=report_generator,
            sessions=InMemorySessionRepository(),
            results=results,
            resumes=InMemoryResumeRepository(),
            audio_processor=audio_processor,
            follow_up_policy=FollowUpPolicy(follow_up_probability),
            settings=settings,
        )

    return _make


@pytest.fixture
def technical_setup():
    return InterviewSetup(
        interview_type=InterviewType.TECHNICAL,
        role="Backend Developer",
        experience_level="mid",
        total_questions=5,
    )


@pytest.fixture
def mock_audio_processor():
    """Audio processor double with a canned transcript and audio."""
    from interview_engine.models.interview import Transcription

    processor = MagicMock()
    processor.transcribe = AsyncMock(
        return_value=Transcription(text=GOOD_ANSWER, duration_seconds=12.5, word_count=13)
    )
    processor.synthesize = AsyncMock(return_value=b"ID3-mp3-bytes")
    return processor


def build_answered_session(
    scores: list[int | None],
    role: str = "Backend Developer",
    user_id: str = "user-1",
) -> InterviewSession:
    """A completed session whose questions carry the given scores (None = skipped)."""
    session = InterviewSession(
        user_id=user_id,
        setup=InterviewSetup(
            interview_type=InterviewType.TECHNICAL,
            role=role,
            total_questions=len(scores),
        ),
        ai_model="gpt-4o",
    )
    for i, score in enumerate(scores, 1):
        question = session.add_question(
            text=f"Question {i}",
            question_type="technical",
            category="Databases" if i % 2 else "APIs",
            difficulty=QuestionDifficulty.MEDIUM,
            expected_keywords=["index"] if i == 1 else ["idempotency"],
        )
        question.time_spent_seconds = 60
        if score is None:
            question.skipped = True
            question.evaluation = AnswerEvaluation.skipped()
        else:
            question.answer = f"Answer {i} uses an index for lookups"
            question.evaluation = AnswerEvaluation(
                score=score,
                relevance=score,
                technical_accuracy=score,
                clarity=score,
                confidence=score,
                role_fit=score,
                strengths=[f"Strength {i}"],
                ai_model="gpt-4o",
            )
    session.status = SessionStatus.COMPLETED
    session.total_duration_seconds = 60 * len(scores)
    return session


def make_result(
    score: int,
    role: str = "Backend Developer",
    user_id: str | None = None,
    age_days: int = 1,
) -> InterviewResult:
    """A stored result for cohort and trend lookups."""
    return InterviewResult(
        result_id=str(uuid4()),
        session_id=str(uuid4()),
        user_id=user_id or str(uuid4()),
        interview_type="technical",
        role=role,
        experience_level="mid",
        ai_model="gpt-4o",
        created_at=datetime.now(timezone.utc) - timedelta(days=age_days),
        overall_score=score,
        skill_breakdown=SkillBreakdown(),
        metrics=ResultMetrics(),
        comparison=ComparisonData(),
        hiring_recommendation={"decision": "maybe"},
    )
