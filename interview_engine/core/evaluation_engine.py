"""
Evaluation Engine for the interview engine

Handles scoring of candidate answers and the aggregation of per-answer
evaluations into session-level scores. Works in conjunction with the AI
Reasoning Layer, which does the actual answer scoring.
"""

import logging
from collections import defaultdict

from interview_engine.core.ai_reasoning import AIReasoningLayer
from interview_engine.models.evaluation import AnswerEvaluation, EvaluationContext
from interview_engine.models.interview import InterviewSession
from interview_engine.models.question import Question
from interview_engine.models.report import (
    HiringDecision,
    HiringRecommendation,
    ReportDraft,
    SkillBreakdown,
    SkillScore,
    TopicScore,
)

logger = logging.getLogger(__name__)

# Skill axis <- evaluation dimension used when building a local breakdown
AXIS_DIMENSIONS = {
    "communication": "clarity",
    "technical_knowledge": "technical_accuracy",
    "problem_solving": "relevance",
    "situational_awareness": "role_fit",
    "cultural_fit": "confidence",
}

MAX_LISTED_ITEMS = 5


class EvaluationEngine:
    """
    Central evaluation component for interview answers.

    Responsibilities:
    - Score individual answers through the AI evaluator
    - Aggregate scores by skill axis and topic
    - Analyse expected versus mentioned keywords
    - Build a minimal local report when the AI report is unavailable
    """

    def __init__(self, ai_reasoning: AIReasoningLayer):
        """
        Initialize evaluation engine.

        Args:
            ai_reasoning: AI reasoning layer for answer evaluation
        """
        self.ai_reasoning = ai_reasoning

    # =========================================================================
    # ANSWER EVALUATION
    # =========================================================================

    async def evaluate_answer(
        self,
        session: InterviewSession,
        question: Question,
        answer: str,
    ) -> AnswerEvaluation:
        """
        Evaluate one answer in the context of its session.

        Args:
            session: Owning session (role, level and model)
            question: Question being answered
            answer: Candidate's answer text

        Returns:
            AnswerEvaluation from the AI evaluator

        Raises:
            EvaluationFailed: The evaluator failed after retries
        """
        context = EvaluationContext(
            session_id=session.session_id,
            question_number=question.number,
            question_text=question.text,
            question_type=question.question_type.value,
            category=question.category,
            expected_keywords=question.expected_keywords,
            ideal_answer_points=question.ideal_answer_points,
            answer=answer,
            role=session.setup.role,
            experience_level=session.setup.experience_level,
        )
        return await self.ai_reasoning.evaluate_answer(
            context, session.ai_model, user_id=session.user_id
        )

    # =========================================================================
    # AGGREGATION
    # =========================================================================

    def skill_breakdown(self, session: InterviewSession) -> SkillBreakdown:
        """Average each evaluation dimension over answered questions."""
        evaluations = [
            q.evaluation for q in session.questions
            if q.evaluation and not q.skipped
        ]

        axes = {}
        for axis, dimension in AXIS_DIMENSIONS.items():
            values = [getattr(e, dimension) for e in evaluations]
            score = round(sum(values) / len(values)) if values else 0
            axes[axis] = SkillScore(score=score, feedback=self._axis_feedback(score))
        return SkillBreakdown(**axes)

    def _axis_feedback(self, score: int) -> str:
        if score >= 80:
            return "Consistently strong"
        if score >= 60:
            return "Solid with room to grow"
        if score >= 40:
            return "Inconsistent, needs practice"
        return "Significant gaps"

    def topic_breakdown(self, session: InterviewSession) -> list[TopicScore]:
        """Group questions by category; skipped questions count as zero."""
        grouped: dict[str, list[int]] = defaultdict(list)
        for question in session.questions:
            if question.is_resolved:
                grouped[question.category].append(question.score or 0)

        return [
            TopicScore(
                skill_name=category,
                score=round(sum(scores) / len(scores)),
                questions_asked=len(scores),
                feedback=self._axis_feedback(round(sum(scores) / len(scores))),
            )
            for category, scores in grouped.items()
        ]

    def overall_score(self, session: InterviewSession) -> int:
        """Mean score over resolved questions, skips counting as zero."""
        scores = [q.score or 0 for q in session.questions if q.is_resolved]
        if not scores:
            return 0
        return round(sum(scores) / len(scores))

    def analyze_keywords(
        self,
        session: InterviewSession,
        reported_missed: list[str] | None = None,
    ) -> tuple[list[str], list[str], list[str]]:
        """
        Compare generator keywords against what the answers mention.

        Returns:
            (expected, mentioned, missed) keyword lists, order preserved
        """
        expected: list[str] = []
        for question in session.questions:
            for keyword in question.expected_keywords:
                if keyword.lower() not in (k.lower() for k in expected):
                    expected.append(keyword)

        answers = " ".join(q.answer or "" for q in session.questions).lower()
        mentioned = [k for k in expected if k.lower() in answers]

        missed: list[str] = []
        candidates = list(reported_missed or [])
        for question in session.questions:
            if question.evaluation:
                candidates.extend(question.evaluation.missing_keywords)
        candidates.extend(k for k in expected if k not in mentioned)
        for keyword in candidates:
            if keyword.lower() in answers:
                continue
            if keyword.lower() not in (m.lower() for m in missed):
                missed.append(keyword)

        return expected, mentioned, missed

    # =========================================================================
    # LOCAL REPORT
    # =========================================================================

    def build_local_report(self, session: InterviewSession) -> ReportDraft:
        """
        Minimal report computed without the AI narrative.

        Used when the AI report collaborator is unavailable, so that
        completing a session never depends on it.
        """
        score = self.overall_score(session)
        strengths = _dedupe(
            s for q in session.questions if q.evaluation for s in q.evaluation.strengths
        )
        weaknesses = _dedupe(
            w for q in session.questions if q.evaluation for w in q.evaluation.weaknesses
        )
        topics = self.topic_breakdown(session)
        practice_areas = [t.skill_name for t in sorted(topics, key=lambda t: t.score) if t.score < 70]

        answered = sum(1 for q in session.questions if q.answer is not None)
        summary = (
            f"Interview completed with an overall score of {score}/100 across "
            f"{answered} answered and {session.skipped_count} skipped questions. "
            "Review individual question feedback for details."
        )
        logger.info(f"Built local report for session {session.session_id}: score={score}")

        return ReportDraft(
            overall_score=score,
            skill_breakdown=self.skill_breakdown(session),
            topic_breakdown=topics,
            strengths=strengths[:MAX_LISTED_ITEMS],
            weaknesses=weaknesses[:MAX_LISTED_ITEMS],
            practice_areas=practice_areas[:MAX_LISTED_ITEMS],
            summary=summary,
            hiring_recommendation=synthesize_recommendation(score),
        )


def synthesize_recommendation(score: int) -> HiringRecommendation:
    """Hiring recommendation derived from the score band alone."""
    decision = HiringDecision.from_score(score)
    return HiringRecommendation(
        decision=decision,
        confidence=50,
        reasoning=f"Derived from an overall score of {score}/100 ({decision.display_text}).",
    )


def _dedupe(items) -> list[str]:
    seen: set[str] = set()
    result = []
    for item in items:
        key = item.strip().lower()
        if key and key not in seen:
            seen.add(key)
            result.append(item.strip())
    return result
