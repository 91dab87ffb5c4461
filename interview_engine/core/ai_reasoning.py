"""
AI Reasoning Layer for the interview engine

Handles all AI-powered operations:
- Question generation
- Follow-up question generation
- Answer evaluation
- Holistic report generation

Talks to an OpenAI-compatible chat completions endpoint. Every call is
retried with capped exponential backoff; once retries are exhausted the
failure surfaces as the matching engine error.
Integrated with Langfuse for observability and tracing.
"""

import asyncio
import json
import logging
from typing import Any, Awaitable, Callable

import httpx
from langfuse import Langfuse

from interview_engine.config.settings import Settings, get_settings
from interview_engine.core.errors import (
    EvaluationFailed,
    GenerationFailed,
    MalformedResponseError,
    ReportGenerationFailed,
)
from interview_engine.core.retry import RetryPolicy, retry_async
from interview_engine.core.storage import UsageCounter
from interview_engine.models.evaluation import AnswerEvaluation, EvaluationContext
from interview_engine.models.interview import FollowUpContext, InterviewSession, QuestionContext
from interview_engine.models.question import GeneratedQuestion, QuestionDifficulty, QuestionType
from interview_engine.models.report import (
    HiringDecision,
    HiringRecommendation,
    ReportDraft,
    SkillBreakdown,
    SkillScore,
    TopicScore,
)
from interview_engine.prompts.evaluator import EvaluatorPrompts
from interview_engine.prompts.interviewer import InterviewerPrompts
from interview_engine.prompts.report import ReportPrompts

logger = logging.getLogger(__name__)


# Sampling parameters per operation: (temperature, max_tokens)
QUESTION_PARAMS = (0.7, 800)
FOLLOWUP_PARAMS = (0.7, 600)
EVALUATION_PARAMS = (0.3, 1200)
REPORT_PARAMS = (0.4, 2000)

SKILL_AXES = {
    "communication": "communication",
    "technicalKnowledge": "technical_knowledge",
    "problemSolving": "problem_solving",
    "situationalAwareness": "situational_awareness",
    "culturalFit": "cultural_fit",
}


def select_ai_model(subscription_tier: str | None, settings: Settings | None = None) -> str:
    """
    Resolve the AI model for a subscription tier.

    Called once when a session is created; the session keeps the model
    even if the user's tier changes mid-interview.
    """
    settings = settings or get_settings()
    if subscription_tier and subscription_tier.strip().lower() in settings.premium_tiers:
        return settings.premium_ai_model
    return settings.default_ai_model


class AIReasoningLayer:
    """
    Central AI reasoning component.

    Observability:
    - Langfuse integration for tracing all LLM calls
    - Optional usage counter fed on every call, success or failure
    """

    def __init__(
        self,
        settings: Settings | None = None,
        client: httpx.AsyncClient | None = None,
        usage_counter: UsageCounter | None = None,
        retry_policy: RetryPolicy | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        """Initialize AI reasoning layer with gateway configuration."""
        self.settings = settings or get_settings()
        self.client = client or httpx.AsyncClient(
            base_url=self.settings.ai_base_url.rstrip("/"),
            headers={
                "Authorization": f"Bearer {self.settings.ai_api_key}",
                "Content-Type": "application/json",
            },
            timeout=self.settings.ai_timeout_seconds,
        )
        self.usage_counter = usage_counter
        self.retry_policy = retry_policy or RetryPolicy.from_settings(self.settings)
        self._sleep = sleep

        # Prompt templates
        self.interviewer_prompts = InterviewerPrompts()
        self.evaluator_prompts = EvaluatorPrompts()
        self.report_prompts = ReportPrompts()

        # Initialize Langfuse for observability
        self.langfuse = None
        if self.settings.langfuse_enabled:
            if self.settings.langfuse_secret_key and self.settings.langfuse_public_key:
                try:
                    self.langfuse = Langfuse(
                        secret_key=self.settings.langfuse_secret_key,
                        public_key=self.settings.langfuse_public_key,
                        host=self.settings.langfuse_base_url,
                    )
                    logger.info("Langfuse initialized for LLM observability")
                except Exception as e:
                    logger.warning(f"Failed to initialize Langfuse: {e}")
            else:
                logger.info("Langfuse keys not configured, tracing disabled")

    async def close(self):
        """Close the HTTP client and flush Langfuse."""
        await self.client.aclose()
        if self.langfuse:
            try:
                self.langfuse.flush()
            except Exception as e:
                logger.warning(f"Failed to flush Langfuse: {e}")

    # =========================================================================
    # TRACING
    # =========================================================================

    def _start_span(self, name: str, metadata: dict[str, Any]) -> Any:
        if not self.langfuse:
            return None
        try:
            return self.langfuse.start_span(name=name, metadata=metadata)
        except Exception as lf_err:
            logger.warning(f"Langfuse span start failed: {lf_err}")
            return None

    def _end_span(self, span: Any, output: dict[str, Any]) -> None:
        if not span:
            return
        try:
            span.update(output=output)
            span.end()
        except Exception as lf_err:
            logger.warning(f"Langfuse span end failed: {lf_err}")

    # =========================================================================
    # CORE AI OPERATIONS
    # =========================================================================

    def _extract_content(self, result: dict) -> str:
        """Extract text content from API response, handling list/dict formats."""
        content = result.get("choices", [{}])[0].get("message", {}).get("content", "")

        # Handle case where content is a list (multi-part response)
        if isinstance(content, list):
            text_parts = []
            for part in content:
                if isinstance(part, str):
                    text_parts.append(part)
                elif isinstance(part, dict) and "text" in part:
                    text_parts.append(part["text"])
            content = "".join(text_parts)

        return content if isinstance(content, str) else str(content)

    def _parse_json(self, response: str) -> dict[str, Any]:
        """Pull the first JSON object out of a model reply."""
        json_start = response.find("{")
        json_end = response.rfind("}") + 1
        if json_start < 0 or json_end <= json_start:
            raise MalformedResponseError(f"No JSON object in response: {response[:200]!r}")
        try:
            data = json.loads(response[json_start:json_end])
        except json.JSONDecodeError as e:
            raise MalformedResponseError(f"Invalid JSON in response: {e}") from e
        if not isinstance(data, dict):
            raise MalformedResponseError("Response JSON is not an object")
        return data

    async def _call_model(
        self,
        prompt: str,
        model: str,
        temperature: float,
        max_tokens: int,
    ) -> str:
        """
        Single chat completion call.

        Args:
            prompt: The prompt to send
            model: Model identifier resolved for the session
            temperature: Sampling temperature
            max_tokens: Maximum tokens in response

        Returns:
            Model response text
        """
        payload = {
            "model": model,
            "messages": [
                {"role": "user", "content": prompt}
            ],
            "max_tokens": max_tokens,
            "temperature": temperature,
        }

        response = await self.client.post(self.settings.ai_chat_path, json=payload)
        response.raise_for_status()
        return self._extract_content(response.json())

    async def _call_json(
        self,
        prompt: str,
        model: str,
        params: tuple[float, int],
        parse: Callable[[dict[str, Any]], Any],
        action: str,
        user_id: str | None = None,
    ) -> Any:
        """Call the model and parse its JSON reply, retrying transient failures."""
        temperature, max_tokens = params

        async def attempt():
            response = await self._call_model(prompt, model, temperature, max_tokens)
            try:
                return parse(self._parse_json(response))
            except (KeyError, TypeError, ValueError) as e:
                raise MalformedResponseError(f"Unusable {action} payload: {e}") from e

        try:
            result = await retry_async(attempt, self.retry_policy, action, sleep=self._sleep)
        except Exception as e:
            await self._record_usage(user_id, action, model, success=False, error_message=str(e))
            raise

        await self._record_usage(user_id, action, model, success=True)
        return result

    async def _record_usage(
        self,
        user_id: str | None,
        action: str,
        model: str,
        success: bool,
        error_message: str | None = None,
    ) -> None:
        if not self.usage_counter or not user_id:
            return
        await self.usage_counter.increment(
            user_id, action, model, success=success, error_message=error_message
        )

    # =========================================================================
    # QUESTION GENERATION
    # =========================================================================

    async def generate_question(
        self,
        context: QuestionContext,
        model: str,
        user_id: str | None = None,
    ) -> GeneratedQuestion:
        """
        Generate the next primary interview question.

        Args:
            context: Role, sources, history and target difficulty
            model: Model identifier for the session
            user_id: Owner of the session, for usage accounting

        Returns:
            GeneratedQuestion with type, category, difficulty and hints

        Raises:
            GenerationFailed: Retries exhausted or non-retryable error
        """
        span = self._start_span(
            "generate_question",
            {
                "session_id": context.session_id,
                "question_number": context.question_number,
                "difficulty": context.target_difficulty.value,
                "interview_type": context.interview_type.value,
                "model": model,
            },
        )
        logger.info(
            f"Generating question #{context.question_number} | "
            f"Difficulty: {context.target_difficulty.value} | "
            f"Previous questions: {len(context.prior_questions)}"
        )

        prompt = self.interviewer_prompts.generate_question_prompt(context)
        try:
            question = await self._call_json(
                prompt,
                model,
                QUESTION_PARAMS,
                lambda data: self._parse_question(data, context.target_difficulty, model),
                "interview_question",
                user_id,
            )
        except Exception as e:
            self._end_span(span, {"error": str(e)})
            raise GenerationFailed(f"Question generation failed: {e}") from e

        self._end_span(span, {"category": question.category, "difficulty": question.difficulty.value})
        return question

    async def generate_followup(
        self,
        context: FollowUpContext,
        model: str,
        user_id: str | None = None,
    ) -> GeneratedQuestion:
        """
        Generate a follow-up probing the latest answer.

        The caller decides whether to follow up; this only writes the
        question.

        Raises:
            GenerationFailed: Retries exhausted or non-retryable error
        """
        span = self._start_span(
            "generate_followup",
            {
                "session_id": context.session_id,
                "question_number": context.question_number,
                "reason": context.reason,
            },
        )
        prompt = self.interviewer_prompts.generate_followup_prompt(context)
        try:
            question = await self._call_json(
                prompt,
                model,
                FOLLOWUP_PARAMS,
                lambda data: self._parse_question(data, QuestionDifficulty.MEDIUM, model),
                "interview_followup",
                user_id,
            )
        except Exception as e:
            self._end_span(span, {"error": str(e)})
            raise GenerationFailed(f"Follow-up generation failed: {e}") from e

        self._end_span(span, {"question": question.text[:100]})
        logger.info(f"Generated follow-up for question #{context.question_number - 1}")
        return question

    def _parse_question(
        self,
        data: dict[str, Any],
        default_difficulty: QuestionDifficulty,
        model: str,
    ) -> GeneratedQuestion:
        """Parse question JSON into a GeneratedQuestion."""
        text = str(data.get("question", "")).strip()
        if not text:
            raise ValueError("question text is empty")

        type_map = {t.value: t for t in QuestionType}
        difficulty_map = {d.value: d for d in QuestionDifficulty}

        return GeneratedQuestion(
            text=text,
            question_type=type_map.get(
                str(data.get("questionType", "technical")).lower(),
                QuestionType.TECHNICAL,
            ),
            category=str(data.get("category") or "General"),
            difficulty=difficulty_map.get(
                str(data.get("difficulty", "")).lower(),
                default_difficulty,
            ),
            expected_keywords=_string_list(data.get("expectedKeywords")),
            ideal_answer_points=_string_list(data.get("idealAnswerPoints")),
            ai_model=model,
        )

    # =========================================================================
    # ANSWER EVALUATION
    # =========================================================================

    async def evaluate_answer(
        self,
        context: EvaluationContext,
        model: str,
        user_id: str | None = None,
    ) -> AnswerEvaluation:
        """
        Evaluate one answer across the five scoring dimensions.

        Args:
            context: Question, answer and candidate profile
            model: Model identifier for the session
            user_id: Owner of the session, for usage accounting

        Returns:
            AnswerEvaluation including the follow-up signal

        Raises:
            EvaluationFailed: Retries exhausted or non-retryable error
        """
        span = self._start_span(
            "evaluate_answer",
            {
                "session_id": context.session_id,
                "question_number": context.question_number,
                "answer_length": len(context.answer),
            },
        )
        prompt = self.evaluator_prompts.generate_evaluation_prompt(context)
        try:
            evaluation = await self._call_json(
                prompt,
                model,
                EVALUATION_PARAMS,
                lambda data: self._parse_evaluation(data, model),
                "interview_evaluation",
                user_id,
            )
        except Exception as e:
            self._end_span(span, {"error": str(e)})
            raise EvaluationFailed(f"Answer evaluation failed: {e}") from e

        self._end_span(span, {"score": evaluation.score, "follow_up": evaluation.should_ask_follow_up})
        logger.info(f"Evaluated question #{context.question_number}: score={evaluation.score}")
        return evaluation

    def _parse_evaluation(self, data: dict[str, Any], model: str) -> AnswerEvaluation:
        """Parse evaluation JSON into an AnswerEvaluation."""
        if "score" not in data:
            raise KeyError("score")

        reason = data.get("followUpReason")
        return AnswerEvaluation(
            score=_clamp_score(data["score"]),
            relevance=_clamp_score(data.get("relevance")),
            technical_accuracy=_clamp_score(data.get("technicalAccuracy")),
            clarity=_clamp_score(data.get("clarity")),
            confidence=_clamp_score(data.get("confidence")),
            role_fit=_clamp_score(data.get("roleFit")),
            strengths=_string_list(data.get("strengths")),
            weaknesses=_string_list(data.get("weaknesses")),
            missing_keywords=_string_list(data.get("missingKeywords")),
            suggested_answer=str(data.get("suggestedAnswer") or ""),
            improvement_tips=_string_list(data.get("improvementTips")),
            feedback=str(data.get("feedback") or ""),
            should_ask_follow_up=bool(data.get("shouldAskFollowUp", False)),
            follow_up_reason=str(reason) if reason else None,
            ai_model=model,
        )

    # =========================================================================
    # REPORT GENERATION
    # =========================================================================

    async def generate_report(
        self,
        session: InterviewSession,
        model: str,
    ) -> ReportDraft:
        """
        Generate the holistic report for a finished session.

        Raises:
            ReportGenerationFailed: Retries exhausted or non-retryable error
        """
        span = self._start_span(
            "generate_report",
            {
                "session_id": session.session_id,
                "questions": len(session.questions),
                "role": session.setup.role,
            },
        )
        prompt = self.report_prompts.generate_report_prompt(session)
        try:
            draft = await self._call_json(
                prompt,
                model,
                REPORT_PARAMS,
                self._parse_report,
                "interview_report",
                session.user_id,
            )
        except Exception as e:
            self._end_span(span, {"error": str(e)})
            raise ReportGenerationFailed(f"Report generation failed: {e}") from e

        self._end_span(span, {"overall_score": draft.overall_score})
        return draft

    def _parse_report(self, data: dict[str, Any]) -> ReportDraft:
        """Parse report JSON into a ReportDraft."""
        if "overallScore" not in data:
            raise KeyError("overallScore")

        skills = data.get("skillBreakdown") or {}
        breakdown = SkillBreakdown(**{
            field: SkillScore(
                score=_clamp_score((skills.get(key) or {}).get("score")),
                feedback=str((skills.get(key) or {}).get("feedback") or ""),
            )
            for key, field in SKILL_AXES.items()
        })

        topics = [
            TopicScore(
                skill_name=str(topic.get("skillName") or "General"),
                score=_clamp_score(topic.get("score")),
                questions_asked=int(topic.get("questionsAsked") or 0),
                feedback=str(topic.get("feedback") or ""),
            )
            for topic in data.get("topicBreakdown") or []
            if isinstance(topic, dict)
        ]

        recommendation = None
        raw = data.get("hiringRecommendation")
        if isinstance(raw, dict):
            decision_map = {d.value: d for d in HiringDecision}
            decision = decision_map.get(str(raw.get("recommendation", "")).lower())
            if decision:
                recommendation = HiringRecommendation(
                    decision=decision,
                    confidence=_clamp_score(raw.get("confidence", 50)),
                    reasoning=str(raw.get("reasoning") or ""),
                )

        return ReportDraft(
            overall_score=_clamp_score(data["overallScore"]),
            skill_breakdown=breakdown,
            topic_breakdown=topics,
            strengths=_string_list(data.get("strengths")),
            weaknesses=_string_list(data.get("weaknesses")),
            missed_keywords=_string_list(data.get("missedKeywords")),
            resume_improvements=_string_list(data.get("resumeImprovements")),
            practice_areas=_string_list(data.get("practiceAreas")),
            summary=str(data.get("summary") or ""),
            detailed_feedback=str(data.get("detailedFeedback") or ""),
            hiring_recommendation=recommendation,
        )


def _clamp_score(value: Any) -> int:
    """Coerce a model-supplied score into 0-100."""
    if value is None:
        return 0
    return max(0, min(100, round(float(value))))


def _string_list(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return [str(item).strip() for item in value if str(item).strip()]
