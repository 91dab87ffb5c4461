"""
Unit tests for the AI Reasoning Layer.

The chat completions gateway is replaced by an httpx.MockTransport, so the
real request building, JSON extraction and retry paths are exercised.
"""
import json
from unittest.mock import AsyncMock

import httpx
import pytest

from conftest import build_answered_session
from interview_engine.core.ai_reasoning import AIReasoningLayer, select_ai_model
from interview_engine.core.errors import (
    EvaluationFailed,
    GenerationFailed,
    ReportGenerationFailed,
)
from interview_engine.core.retry import RetryPolicy
from interview_engine.core.storage import InMemoryUsageCounter
from interview_engine.models.evaluation import EvaluationContext
from interview_engine.models.interview import FollowUpContext, InterviewType, QuestionContext
from interview_engine.models.question import QuestionDifficulty, QuestionType
from interview_engine.models.report import HiringDecision


def _chat_reply(content: str, status_code: int = 200) -> httpx.Response:
    return httpx.Response(
        status_code,
        json={"choices": [{"message": {"role": "assistant", "content": content}}]},
    )


class FakeGateway:
    """Replays queued replies and records every request body."""

    def __init__(self, *replies: httpx.Response):
        self.replies = list(replies)
        self.requests: list[dict] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(json.loads(request.content))
        return self.replies.pop(0)


def _layer(settings, gateway, usage_counter=None):
    client = httpx.AsyncClient(
        transport=httpx.MockTransport(gateway),
        base_url="http://ai.test",
    )
    return AIReasoningLayer(
        settings=settings,
        client=client,
        usage_counter=usage_counter,
        retry_policy=RetryPolicy(max_attempts=3, base_delay=0.0, max_delay=0.0, jitter=0.0),
        sleep=AsyncMock(),
    )


@pytest.fixture
def question_context():
    return QuestionContext(
        session_id="session-1",
        question_number=2,
        interview_type=InterviewType.TECHNICAL,
        role="Backend Developer",
        experience_level="senior",
        prior_questions=["How do indexes work?"],
        prior_answers=["They speed up lookups using B-trees."],
        target_difficulty=QuestionDifficulty.HARD,
    )


@pytest.fixture
def evaluation_context():
    return EvaluationContext(
        session_id="session-1",
        question_number=1,
        question_text="How would you design a rate limiter?",
        question_type="technical",
        category="System Design",
        expected_keywords=["token bucket"],
        answer="I would use a token bucket per client stored in Redis.",
        role="Backend Developer",
        experience_level="mid",
    )


# =============================================================================
# MODEL SELECTION
# =============================================================================

class TestSelectAIModel:
    def test_premium_tiers_get_premium_model(self, settings):
        for tier in ("pro", "Premium", " lifetime ", "one-time"):
            assert select_ai_model(tier, settings) == settings.premium_ai_model

    def test_other_tiers_get_default_model(self, settings):
        for tier in (None, "", "free", "trial"):
            assert select_ai_model(tier, settings) == settings.default_ai_model


# =============================================================================
# QUESTION GENERATION
# =============================================================================

class TestGenerateQuestion:
    """Tests for primary and follow-up question generation."""

    @pytest.mark.asyncio
    async def test_parses_question_wrapped_in_prose(self, settings, question_context):
        gateway = FakeGateway(_chat_reply(
            "Here is the question:\n```json\n"
            + json.dumps({
                "question": "How would you shard a write-heavy table?",
                "questionType": "technical",
                "category": "Databases",
                "difficulty": "hard",
                "expectedKeywords": ["shard key", "rebalancing"],
                "idealAnswerPoints": ["Choose a shard key"],
            })
            + "\n```"
        ))
        layer = _layer(settings, gateway)

        question = await layer.generate_question(question_context, "gpt-4o")

        assert question.text == "How would you shard a write-heavy table?"
        assert question.category == "Databases"
        assert question.difficulty == QuestionDifficulty.HARD
        assert question.expected_keywords == ["shard key", "rebalancing"]
        assert question.ai_model == "gpt-4o"

        body = gateway.requests[0]
        assert body["model"] == "gpt-4o"
        assert body["temperature"] == 0.7
        assert "hard" in body["messages"][0]["content"].lower()

    @pytest.mark.asyncio
    async def test_unknown_fields_fall_back_to_defaults(self, settings, question_context):
        gateway = FakeGateway(_chat_reply(json.dumps({
            "question": "Explain CAP.",
            "questionType": "trivia",
            "difficulty": "impossible",
        })))
        question = await _layer(settings, gateway).generate_question(question_context, "m")

        assert question.question_type == QuestionType.TECHNICAL
        assert question.difficulty == QuestionDifficulty.HARD
        assert question.category == "General"

    @pytest.mark.asyncio
    async def test_malformed_reply_is_retried(self, settings, question_context):
        gateway = FakeGateway(
            _chat_reply("Sorry, I cannot help with that."),
            _chat_reply(json.dumps({"question": "What is a deadlock?"})),
        )
        layer = _layer(settings, gateway)

        question = await layer.generate_question(question_context, "m")

        assert question.text == "What is a deadlock?"
        assert len(gateway.requests) == 2
        assert layer._sleep.await_count == 1

    @pytest.mark.asyncio
    async def test_server_errors_exhaust_retries(self, settings, question_context):
        gateway = FakeGateway(*[httpx.Response(503, json={"error": "busy"}) for _ in range(3)])

        with pytest.raises(GenerationFailed):
            await _layer(settings, gateway).generate_question(question_context, "m")

        assert len(gateway.requests) == 3

    @pytest.mark.asyncio
    async def test_followup_generation(self, settings):
        gateway = FakeGateway(_chat_reply(json.dumps({
            "question": "Which eviction policy would you pick and why?",
            "questionType": "follow-up",
            "category": "Caching",
        })))
        context = FollowUpContext(
            session_id="session-1",
            question_number=3,
            role="Backend Developer",
            experience_level="mid",
            previous_question="How would you cache product pages?",
            previous_answer="Use Redis in front of the database.",
            reason="No mention of eviction",
        )

        question = await _layer(settings, gateway).generate_followup(context, "m")

        assert question.text.startswith("Which eviction policy")
        assert "Use Redis in front of the database." in gateway.requests[0]["messages"][0]["content"]

    @pytest.mark.asyncio
    async def test_followup_failure_raises_generation_failed(self, settings):
        gateway = FakeGateway(httpx.Response(400, json={"error": "bad request"}))
        context = FollowUpContext(
            session_id="s",
            question_number=2,
            role="QA",
            experience_level="junior",
            previous_question="q",
            previous_answer="a",
        )
        with pytest.raises(GenerationFailed):
            await _layer(settings, gateway).generate_followup(context, "m")
        assert len(gateway.requests) == 1


# =============================================================================
# ANSWER EVALUATION
# =============================================================================

class TestEvaluateAnswer:
    """Tests for answer evaluation parsing and failure handling."""

    @pytest.mark.asyncio
    async def test_parses_dimensions_and_clamps(self, settings, evaluation_context):
        gateway = FakeGateway(_chat_reply(json.dumps({
            "score": 104,
            "relevance": 90,
            "technicalAccuracy": 85.6,
            "clarity": -3,
            "confidence": 70,
            "roleFit": 80,
            "strengths": ["Named the algorithm", ""],
            "weaknesses": ["No burst handling"],
            "missingKeywords": ["sliding window"],
            "feedback": "Good start.",
            "shouldAskFollowUp": True,
            "followUpReason": "Burst behaviour unclear",
        })))

        evaluation = await _layer(settings, gateway).evaluate_answer(evaluation_context, "gpt-4o")

        assert evaluation.score == 100
        assert evaluation.technical_accuracy == 86
        assert evaluation.clarity == 0
        assert evaluation.strengths == ["Named the algorithm"]
        assert evaluation.should_ask_follow_up is True
        assert evaluation.follow_up_reason == "Burst behaviour unclear"
        assert evaluation.ai_model == "gpt-4o"
        assert not evaluation.is_synthetic
        assert gateway.requests[0]["temperature"] == 0.3

    @pytest.mark.asyncio
    async def test_missing_score_is_retried_then_fails(self, settings, evaluation_context):
        gateway = FakeGateway(*[_chat_reply(json.dumps({"feedback": "ok"})) for _ in range(3)])

        with pytest.raises(EvaluationFailed):
            await _layer(settings, gateway).evaluate_answer(evaluation_context, "m")

        assert len(gateway.requests) == 3

    @pytest.mark.asyncio
    async def test_usage_is_recorded(self, settings, evaluation_context):
        counter = InMemoryUsageCounter()
        gateway = FakeGateway(
            _chat_reply(json.dumps({"score": 70})),
            httpx.Response(401, json={"error": "unauthorized"}),
        )
        layer = _layer(settings, gateway, usage_counter=counter)

        await layer.evaluate_answer(evaluation_context, "m", user_id="user-1")
        with pytest.raises(EvaluationFailed):
            await layer.evaluate_answer(evaluation_context, "m", user_id="user-1")

        assert await counter.count("user-1", "interview_evaluation") == 2
        assert [r.success for r in counter.records] == [True, False]
        assert counter.records[1].error_message


# =============================================================================
# REPORT GENERATION
# =============================================================================

class TestGenerateReport:
    @pytest.mark.asyncio
    async def test_parses_report(self, settings):
        session = build_answered_session([80, 60, None])
        gateway = FakeGateway(_chat_reply(json.dumps({
            "overallScore": 47,
            "skillBreakdown": {
                "communication": {"score": 75, "feedback": "Clear"},
                "technicalKnowledge": {"score": 65},
            },
            "topicBreakdown": [{"skillName": "Databases", "score": 70, "questionsAsked": 2}],
            "strengths": ["Structured answers"],
            "missedKeywords": ["sharding"],
            "summary": "Mixed performance.",
            "hiringRecommendation": {
                "recommendation": "no-hire",
                "confidence": 72,
                "reasoning": "Too many gaps",
            },
        })))

        draft = await _layer(settings, gateway).generate_report(session, "gpt-4o")

        assert draft.overall_score == 47
        assert draft.skill_breakdown.communication.score == 75
        assert draft.skill_breakdown.cultural_fit.score == 0
        assert draft.topic_breakdown[0].skill_name == "Databases"
        assert draft.hiring_recommendation.decision == HiringDecision.NO_HIRE
        assert draft.hiring_recommendation.confidence == 72

    @pytest.mark.asyncio
    async def test_unknown_recommendation_is_dropped(self, settings):
        session = build_answered_session([80])
        gateway = FakeGateway(_chat_reply(json.dumps({
            "overallScore": 80,
            "hiringRecommendation": {"recommendation": "definitely"},
        })))

        draft = await _layer(settings, gateway).generate_report(session, "m")

        assert draft.hiring_recommendation is None

    @pytest.mark.asyncio
    async def test_failure_raises_report_generation_failed(self, settings):
        session = build_answered_session([80])
        gateway = FakeGateway(*[httpx.Response(500) for _ in range(3)])

        with pytest.raises(ReportGenerationFailed):
            await _layer(settings, gateway).generate_report(session, "m")
