"""
Report Generator for the interview engine

Generates the final interview result with:
- Session metrics
- AI narrative (or a local fallback)
- Trend against the candidate's previous attempt for the role
- Percentile rank within the role cohort
- Hiring recommendation
"""

import logging
from uuid import uuid4

from interview_engine.config.settings import Settings, get_settings
from interview_engine.core.ai_reasoning import AIReasoningLayer
from interview_engine.core.errors import ReportGenerationFailed
from interview_engine.core.evaluation_engine import EvaluationEngine, synthesize_recommendation
from interview_engine.core.storage import ResultRepository
from interview_engine.models.interview import InterviewSession
from interview_engine.models.report import (
    ComparisonData,
    InterviewResult,
    ResultMetrics,
    RoleStats,
    Trend,
)

logger = logging.getLogger(__name__)

DEFAULT_PERCENTILE = 50


def compute_percentile(score: int, cohort_scores: list[int]) -> int:
    """
    Percentile rank of a score within a cohort.

    Share of cohort results strictly below the score, rounded; 50 when
    the cohort is empty.
    """
    if not cohort_scores:
        return DEFAULT_PERCENTILE
    below = sum(1 for s in cohort_scores if s < score)
    return round(below / len(cohort_scores) * 100)


def compute_trend(score: int, previous_score: int | None) -> Trend | None:
    if previous_score is None:
        return None
    if score > previous_score:
        return Trend.IMPROVING
    if score < previous_score:
        return Trend.DECLINING
    return Trend.STABLE


class ReportGenerator:
    """
    Generates and persists interview results.

    One result per completed session: a repeat call returns the stored
    result unchanged.
    """

    def __init__(
        self,
        ai_reasoning: AIReasoningLayer,
        evaluation_engine: EvaluationEngine,
        results: ResultRepository,
        settings: Settings | None = None,
    ):
        """
        Initialize report generator.

        Args:
            ai_reasoning: AI reasoning layer for the narrative report
            evaluation_engine: Aggregation and local fallback report
            results: Result store, also the source of cohort data
        """
        self.ai_reasoning = ai_reasoning
        self.evaluation_engine = evaluation_engine
        self.results = results
        self.settings = settings or get_settings()

    async def generate(self, session: InterviewSession) -> InterviewResult:
        """
        Generate the result for a completed session.

        Args:
            session: Completed interview session

        Returns:
            The stored InterviewResult
        """
        existing = await self.results.get_by_session(session.session_id)
        if existing:
            logger.info(f"Returning existing result for session {session.session_id}")
            return existing

        metrics = self._compute_metrics(session)

        # AI narrative, falling back to a locally computed report
        is_ai_generated = True
        try:
            draft = await self.ai_reasoning.generate_report(session, session.ai_model)
        except ReportGenerationFailed as e:
            logger.warning(f"AI report unavailable for session {session.session_id}, using local report: {e}")
            draft = self.evaluation_engine.build_local_report(session)
            is_ai_generated = False

        comparison = await self._compare(session, draft.overall_score)
        expected, mentioned, missed = self.evaluation_engine.analyze_keywords(
            session, draft.missed_keywords
        )
        topics = draft.topic_breakdown or self.evaluation_engine.topic_breakdown(session)

        result = InterviewResult(
            result_id=str(uuid4()),
            session_id=session.session_id,
            user_id=session.user_id,
            interview_type=session.setup.interview_type.value,
            role=session.setup.role,
            experience_level=session.setup.experience_level.value,
            ai_model=session.ai_model,
            is_ai_generated=is_ai_generated,
            overall_score=draft.overall_score,
            skill_breakdown=draft.skill_breakdown,
            topic_breakdown=topics,
            strengths=draft.strengths,
            weaknesses=draft.weaknesses,
            expected_keywords=expected,
            mentioned_keywords=mentioned,
            missed_keywords=missed,
            resume_improvements=draft.resume_improvements,
            practice_areas=draft.practice_areas,
            summary=draft.summary,
            detailed_feedback=draft.detailed_feedback,
            metrics=metrics,
            comparison=comparison,
            hiring_recommendation=(
                draft.hiring_recommendation or synthesize_recommendation(draft.overall_score)
            ),
        )

        stored = await self.results.insert_once(result)
        logger.info(
            f"Stored result for session {session.session_id}: "
            f"score={stored.overall_score} grade={stored.grade} "
            f"percentile={stored.comparison.percentile_rank}"
        )
        return stored

    def _compute_metrics(self, session: InterviewSession) -> ResultMetrics:
        answered = [q for q in session.questions if q.answer is not None]
        total_time = sum(q.time_spent_seconds for q in session.questions)
        answered_time = sum(q.time_spent_seconds for q in answered)
        threshold = self.settings.high_score_threshold

        return ResultMetrics(
            total_questions=len(session.questions),
            answered_questions=len(answered),
            skipped_questions=session.skipped_count,
            average_time_per_question=round(answered_time / len(answered), 1) if answered else 0.0,
            total_time_spent_seconds=total_time,
            total_duration_seconds=session.total_duration_seconds,
            high_scoring_answers=sum(1 for q in answered if (q.score or 0) >= threshold),
        )

    async def _compare(self, session: InterviewSession, score: int) -> ComparisonData:
        """Trend against the last same-role attempt and cohort percentile."""
        previous = await self.results.latest_for_user_role(
            session.user_id,
            session.setup.role,
            exclude_session_id=session.session_id,
        )
        previous_score = previous.overall_score if previous else None
        cohort = await self.results.scores_for_role(session.setup.role)

        return ComparisonData(
            previous_score=previous_score,
            score_change=score - previous_score if previous_score is not None else None,
            percentile_rank=compute_percentile(score, cohort),
            trend=compute_trend(score, previous_score),
        )

    # =========================================================================
    # STATISTICS
    # =========================================================================

    async def role_stats(self, role: str) -> RoleStats:
        """Aggregate scores for a role cohort."""
        scores = await self.results.scores_for_role(role)
        if not scores:
            return RoleStats(role=role)
        return RoleStats(
            role=role,
            total_interviews=len(scores),
            average_score=round(sum(scores) / len(scores), 1),
            top_score=max(scores),
            lowest_score=min(scores),
        )

    async def improvement_trend(self, user_id: str, limit: int = 10) -> list[dict]:
        """A user's last results, oldest first."""
        results = await self.results.list_for_user(user_id, limit=limit)
        return [
            {
                "session_id": r.session_id,
                "role": r.role,
                "overall_score": r.overall_score,
                "grade": r.grade,
                "created_at": r.created_at.isoformat(),
            }
            for r in results
        ]
