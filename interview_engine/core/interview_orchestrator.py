"""
Interview Orchestrator - State machine for managing interview lifecycle.

This is the central coordinator for the entire interview process.
It manages state transitions, coordinates between components, and
decides after every answer whether to follow up, ask a new question or
finish the interview.
"""

import logging
from contextlib import asynccontextmanager
from typing import Any

from pydantic import ValidationError

from interview_engine.config.settings import Settings, get_settings
from interview_engine.core.ai_reasoning import AIReasoningLayer, select_ai_model
from interview_engine.core.audio_processor import AudioProcessor
from interview_engine.core.difficulty import compute_difficulty
from interview_engine.core.errors import (
    AnswerTooShort,
    InvalidConfiguration,
    InvalidState,
    ResourceNotFound,
    SessionConflict,
    TranscriptionFailed,
    TranscriptionTooShort,
)
from interview_engine.core.evaluation_engine import EvaluationEngine
from interview_engine.core.followup_policy import FollowUpGate, FollowUpPolicy
from interview_engine.core.report_generator import ReportGenerator
from interview_engine.core.storage import ResultRepository, ResumeRepository, SessionRepository
from interview_engine.models.evaluation import AnswerEvaluation
from interview_engine.models.interview import (
    FollowUpContext,
    InterviewSession,
    InterviewSetup,
    InterviewType,
    QuestionContext,
    SessionStatus,
    Transcription,
    TurnOutcome,
    utcnow,
)
from interview_engine.models.question import AnswerMode, Question, QuestionDifficulty, QuestionType
from interview_engine.models.report import InterviewResult, UserStats

logger = logging.getLogger(__name__)

RECENT_SCORES_LIMIT = 5


class InterviewOrchestrator:
    """
    Manages the interview lifecycle using a state machine pattern.

    States:
        CREATED → IN_PROGRESS ⇄ PAUSED
                      ↓
              (COMPLETED | ABANDONED)

    Any non-terminal state may be abandoned. COMPLETED is only reached
    once every configured question has been answered or skipped.

    The orchestrator coordinates between:
    - AI Reasoning Layer (question generation)
    - Evaluation Engine (answer scoring)
    - Audio Processing (STT, TTS)
    - Report Generator (final result)
    - Session, result and resume storage
    """

    VALID_TRANSITIONS: dict[SessionStatus, list[SessionStatus]] = {
        SessionStatus.CREATED: [SessionStatus.IN_PROGRESS, SessionStatus.ABANDONED],
        SessionStatus.IN_PROGRESS: [SessionStatus.PAUSED, SessionStatus.COMPLETED, SessionStatus.ABANDONED],
        SessionStatus.PAUSED: [SessionStatus.IN_PROGRESS, SessionStatus.ABANDONED],
        SessionStatus.COMPLETED: [],  # Terminal state
        SessionStatus.ABANDONED: [],  # Terminal state
    }

    def __init__(
        self,
        ai_reasoning: AIReasoningLayer,
        evaluation_engine: EvaluationEngine,
        report_generator: ReportGenerator,
        sessions: SessionRepository,
        results: ResultRepository,
        resumes: ResumeRepository,
        audio_processor: AudioProcessor | None = None,
        follow_up_policy: FollowUpGate | None = None,
        settings: Settings | None = None,
    ):
        """
        Initialize the orchestrator with component dependencies.

        Args:
            ai_reasoning: AI reasoning layer for question generation
            evaluation_engine: Answer evaluation
            report_generator: Final result generation
            sessions: Session store
            results: Result store
            resumes: Read-only resume lookup
            audio_processor: STT/TTS; voice answers are unavailable without it
            follow_up_policy: Gate deciding on follow-up questions
            settings: Interview limits
        """
        self.settings = settings or get_settings()
        self.ai_reasoning = ai_reasoning
        self.evaluation_engine = evaluation_engine
        self.report_generator = report_generator
        self.audio_processor = audio_processor
        self.sessions = sessions
        self.results = results
        self.resumes = resumes
        self.follow_up_policy = follow_up_policy or FollowUpPolicy(
            self.settings.follow_up_probability
        )

        # Sessions with a mutating operation in flight
        self._in_flight: set[str] = set()

    # =========================================================================
    # SESSION MANAGEMENT
    # =========================================================================

    @staticmethod
    def build_setup(payload: dict[str, Any]) -> InterviewSetup:
        """Validate a raw setup payload, reporting problems as InvalidConfiguration."""
        try:
            return InterviewSetup.model_validate(payload)
        except ValidationError as e:
            problems = "; ".join(
                f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}"
                for err in e.errors()
            )
            raise InvalidConfiguration(f"Invalid interview setup: {problems}") from e

    async def create_session(
        self,
        user_id: str,
        setup: InterviewSetup,
        subscription_tier: str | None = None,
    ) -> InterviewSession:
        """
        Create a new interview session from setup configuration.

        The caller is expected to have passed the entitlement gate already.

        Args:
            user_id: Owner of the session
            setup: Interview configuration
            subscription_tier: Tier used to pick the AI model, once

        Returns:
            New session in CREATED state

        Raises:
            InvalidConfiguration: Missing job description or resume reference
            ResourceNotFound: Resume absent or owned by someone else
        """
        requested = setup.total_questions
        if requested is None:
            requested = self.settings.default_questions
        updates: dict[str, Any] = {
            "role": setup.role.strip(),
            "total_questions": max(
                self.settings.min_questions,
                min(self.settings.max_questions, requested),
            ),
        }
        if not updates["role"]:
            raise InvalidConfiguration("Target role is required")

        if setup.interview_type == InterviewType.RESUME_BASED and not setup.resume_id:
            raise InvalidConfiguration("Resume-based interviews require a resume")
        if setup.resume_id:
            updates["resume_text"] = await self._resolve_resume(user_id, setup.resume_id)

        if setup.interview_type == InterviewType.JOB_DESCRIPTION:
            if not (setup.job_description or "").strip():
                raise InvalidConfiguration("Job-description interviews require a job description")
            updates["job_description"] = setup.job_description.strip()

        session = InterviewSession(
            user_id=user_id,
            setup=setup.model_copy(update=updates),
            ai_model=select_ai_model(subscription_tier, self.settings),
        )
        await self.sessions.save(session)

        logger.info(
            f"Created interview session: {session.session_id} | "
            f"type={session.setup.interview_type.value} role={session.setup.role} "
            f"questions={session.setup.total_questions} model={session.ai_model}"
        )
        return session

    async def _resolve_resume(self, user_id: str, resume_id: str) -> str:
        resume = await self.resumes.get(resume_id)
        if not resume or resume.user_id != user_id:
            raise ResourceNotFound(f"Resume not found: {resume_id}")
        text = resume.to_text()
        if not text.strip():
            raise InvalidConfiguration("Resume has no text content")
        return text

    async def get_session(self, user_id: str, session_id: str) -> InterviewSession:
        """Get a session owned by the caller."""
        session = await self.sessions.get(session_id)
        if not session or session.user_id != user_id:
            raise ResourceNotFound(f"Session not found: {session_id}")
        return session

    @asynccontextmanager
    async def _exclusive(self, session_id: str):
        """Reject a second concurrent mutation of the same session."""
        if session_id in self._in_flight:
            raise SessionConflict(f"Another operation is in progress for session {session_id}")
        self._in_flight.add(session_id)
        try:
            yield
        finally:
            self._in_flight.discard(session_id)

    async def _commit(self, session: InterviewSession) -> None:
        """Persist, unless the session was abandoned while we were working."""
        stored = await self.sessions.get(session.session_id)
        if (
            stored
            and stored.status == SessionStatus.ABANDONED
            and session.status != SessionStatus.ABANDONED
        ):
            logger.info(f"Discarding in-flight result for abandoned session {session.session_id}")
            raise InvalidState("Session was abandoned")
        await self.sessions.save(session)

    # =========================================================================
    # STATE MACHINE
    # =========================================================================

    def _transition(self, session: InterviewSession, new_status: SessionStatus) -> None:
        """
        Move a session to a new status.

        Raises:
            InvalidState: If the transition is not allowed
        """
        old_status = session.status
        valid_next = self.VALID_TRANSITIONS.get(old_status, [])
        if new_status not in valid_next:
            raise InvalidState(
                f"Cannot move session from {old_status.value} to {new_status.value}"
            )

        now = utcnow()
        if new_status == SessionStatus.IN_PROGRESS:
            if old_status == SessionStatus.CREATED:
                session.started_at = now
            elif session.paused_at:
                session.paused_seconds += int((now - session.paused_at).total_seconds())
                session.paused_at = None
        elif new_status == SessionStatus.PAUSED:
            session.paused_at = now
        elif new_status in (SessionStatus.COMPLETED, SessionStatus.ABANDONED):
            session.total_duration_seconds = session.elapsed_seconds(now)
            if session.paused_at:
                session.paused_at = None
            if new_status == SessionStatus.COMPLETED and session.completed_at is None:
                session.completed_at = now

        session.status = new_status
        logger.info(f"Session {session.session_id}: {old_status.value} -> {new_status.value}")

    async def start_interview(self, user_id: str, session_id: str) -> TurnOutcome:
        """
        Start the interview by generating the first question.

        Returns:
            TurnOutcome carrying question #1 (and its audio in live mode)

        Raises:
            InvalidState: Session already started or ended
            GenerationFailed: The first question could not be generated
        """
        async with self._exclusive(session_id):
            session = await self.get_session(user_id, session_id)
            if session.status != SessionStatus.CREATED:
                raise InvalidState(f"Session already {session.status.value}")

            question = await self._generate_primary(session, QuestionDifficulty.MEDIUM)
            self._transition(session, SessionStatus.IN_PROGRESS)
            audio = await self._question_audio(session, question)
            await self._commit(session)

            return TurnOutcome(
                session_id=session.session_id,
                next_question=question,
                next_question_audio=audio,
                progress=session.progress,
            )

    async def pause_session(self, user_id: str, session_id: str) -> InterviewSession:
        async with self._exclusive(session_id):
            session = await self.get_session(user_id, session_id)
            self._transition(session, SessionStatus.PAUSED)
            await self._commit(session)
            return session

    async def resume_session(self, user_id: str, session_id: str) -> InterviewSession:
        async with self._exclusive(session_id):
            session = await self.get_session(user_id, session_id)
            if session.status != SessionStatus.PAUSED:
                raise InvalidState(f"Session is {session.status.value}, not paused")
            self._transition(session, SessionStatus.IN_PROGRESS)
            await self._commit(session)
            return session

    async def abandon_session(self, user_id: str, session_id: str) -> InterviewSession:
        """
        Abandon a session from any non-terminal state.

        Does not wait for in-flight operations; their results are discarded
        when they try to commit.
        """
        session = await self.get_session(user_id, session_id)
        if session.status.is_terminal:
            raise InvalidState(f"Cannot abandon a {session.status.value} session")
        self._transition(session, SessionStatus.ABANDONED)
        await self.sessions.save(session)
        return session

    # =========================================================================
    # ANSWERS
    # =========================================================================

    def _answerable_question(self, session: InterviewSession, question_number: int) -> Question:
        """The question an answer or skip may target right now."""
        if session.status != SessionStatus.IN_PROGRESS:
            raise InvalidState(f"Session is {session.status.value}, not in progress")

        question = session.get_question(question_number)
        if question is None:
            raise ResourceNotFound(f"Question {question_number} not found")
        if question.is_resolved:
            raise InvalidState(f"Question {question_number} was already answered")
        if question is not session.latest_question:
            raise InvalidState(f"Question {question_number} is not the current question")
        return question

    async def submit_answer(
        self,
        user_id: str,
        session_id: str,
        question_number: int,
        answer_text: str,
        mode: AnswerMode = AnswerMode.TEXT,
    ) -> TurnOutcome:
        """
        Submit a text answer to the current question.

        The answer is evaluated before anything is recorded, so an
        evaluation failure leaves the session untouched.

        Args:
            user_id: Session owner
            session_id: Session ID
            question_number: Number of the question being answered
            answer_text: Candidate's answer
            mode: How the answer was given

        Returns:
            TurnOutcome with the evaluation and the next step

        Raises:
            AnswerTooShort: Fewer than the minimum characters after trimming
            EvaluationFailed: Evaluation failed after retries
            GenerationFailed: Answer stored, but the next question failed
        """
        async with self._exclusive(session_id):
            session = await self.get_session(user_id, session_id)
            question = self._answerable_question(session, question_number)

            answer = answer_text.strip()
            if len(answer) < self.settings.min_answer_length:
                raise AnswerTooShort(
                    f"Answer must be at least {self.settings.min_answer_length} characters"
                )

            evaluation = await self.evaluation_engine.evaluate_answer(session, question, answer)
            self._record_answer(question, answer, mode, evaluation)

            return await self._after_resolution(session, question, evaluation)

    async def submit_voice_answer(
        self,
        user_id: str,
        session_id: str,
        question_number: int,
        audio_data: bytes,
        filename: str = "answer.webm",
        content_type: str = "audio/webm",
    ) -> TurnOutcome:
        """
        Submit a recorded answer; it is transcribed, then handled as text.

        Raises:
            TranscriptionFailed: Audio could not be transcribed
            TranscriptionTooShort: Transcript under the minimum length
            EvaluationFailed: Evaluation failed after retries
            GenerationFailed: Answer stored, but the next question failed
        """
        async with self._exclusive(session_id):
            session = await self.get_session(user_id, session_id)
            question = self._answerable_question(session, question_number)

            if self.audio_processor is None:
                raise TranscriptionFailed("Voice answers are not available")

            transcription = await self.audio_processor.transcribe(audio_data, filename, content_type)
            answer = transcription.text.strip()
            if len(answer) < self.settings.min_answer_length:
                raise TranscriptionTooShort(
                    "Transcription too short. Please speak clearly and try again."
                )

            evaluation = await self.evaluation_engine.evaluate_answer(session, question, answer)
            self._record_answer(question, answer, AnswerMode.VOICE, evaluation)
            question.transcribed_text = transcription.text
            question.audio_duration_seconds = transcription.duration_seconds

            return await self._after_resolution(session, question, evaluation, transcription)

    async def skip_question(self, user_id: str, session_id: str, question_number: int) -> TurnOutcome:
        """Skip the current question; it scores zero and still counts toward the total."""
        async with self._exclusive(session_id):
            session = await self.get_session(user_id, session_id)
            question = self._answerable_question(session, question_number)

            now = utcnow()
            question.skipped = True
            question.answered_at = now
            question.time_spent_seconds = int((now - question.asked_at).total_seconds())
            question.evaluation = AnswerEvaluation.skipped()
            logger.info(f"Session {session_id}: question {question_number} skipped")

            return await self._after_resolution(session, question, question.evaluation)

    def _record_answer(
        self,
        question: Question,
        answer: str,
        mode: AnswerMode,
        evaluation: AnswerEvaluation,
    ) -> None:
        now = utcnow()
        question.answer = answer
        question.answer_mode = mode
        question.answered_at = now
        question.time_spent_seconds = int((now - question.asked_at).total_seconds())
        question.evaluation = evaluation

    async def advance_session(self, user_id: str, session_id: str) -> TurnOutcome:
        """
        Issue the next question after a failed generation.

        Raises:
            InvalidState: The current question is still open, or the
                session is not in progress
        """
        async with self._exclusive(session_id):
            session = await self.get_session(user_id, session_id)
            if session.status != SessionStatus.IN_PROGRESS:
                raise InvalidState(f"Session is {session.status.value}, not in progress")
            if not session.needs_next_question:
                raise InvalidState("Current question is still awaiting an answer")

            latest = session.latest_question
            question = await self._next_question(session, latest, latest.evaluation)
            audio = await self._question_audio(session, question)
            await self._commit(session)

            return TurnOutcome(
                session_id=session.session_id,
                question_number=latest.number,
                next_question=question,
                next_question_audio=audio,
                progress=session.progress,
            )

    # =========================================================================
    # NEXT STEP
    # =========================================================================

    async def _after_resolution(
        self,
        session: InterviewSession,
        question: Question,
        evaluation: AnswerEvaluation | None,
        transcription: Transcription | None = None,
    ) -> TurnOutcome:
        """
        Persist the resolved question, then complete or issue the next one.

        The answer is committed before generation starts, so a generation
        failure keeps it and leaves the session ready for ``advance_session``.
        """
        await self._commit(session)

        outcome = TurnOutcome(
            session_id=session.session_id,
            question_number=question.number,
            evaluation=evaluation,
            transcription=transcription,
            progress=session.progress,
        )

        if session.answered_count >= session.setup.total_questions:
            outcome.result = await self._complete(session)
            outcome.is_complete = True
            outcome.progress = session.progress
            return outcome

        next_question = await self._next_question(session, question, evaluation)
        outcome.next_question_audio = await self._question_audio(session, next_question)
        await self._commit(session)

        outcome.next_question = next_question
        outcome.progress = session.progress
        return outcome

    async def _next_question(
        self,
        session: InterviewSession,
        previous: Question,
        evaluation: AnswerEvaluation | None,
    ) -> Question:
        """Follow up on the previous answer, or ask a new primary question."""
        decision = self.follow_up_policy.decide(evaluation)
        if decision.should_follow_up and self._has_follow_up_capacity(session, previous):
            return await self._generate_followup(session, previous, decision.reason)

        difficulty = compute_difficulty(session.recent_scores())
        return await self._generate_primary(session, difficulty)

    def _has_follow_up_capacity(self, session: InterviewSession, previous: Question) -> bool:
        if previous.answer is None:
            return False
        if len(session.questions) >= session.setup.total_questions:
            return False
        chain = session.follow_up_chain_length(previous.number)
        return chain < self.settings.max_follow_ups_per_question

    async def _generate_primary(
        self,
        session: InterviewSession,
        difficulty: QuestionDifficulty,
    ) -> Question:
        setup = session.setup
        context = QuestionContext(
            session_id=session.session_id,
            question_number=len(session.questions) + 1,
            interview_type=setup.interview_type,
            role=setup.role,
            experience_level=setup.experience_level,
            resume_text=setup.resume_text,
            job_description=setup.job_description,
            target_skills=setup.target_skills,
            prior_questions=[q.text for q in session.questions],
            prior_answers=[q.answer or "(Skipped)" for q in session.questions],
            target_difficulty=difficulty,
        )
        generated = await self.ai_reasoning.generate_question(
            context, session.ai_model, user_id=session.user_id
        )

        question_type = generated.question_type
        if question_type == QuestionType.FOLLOW_UP:
            question_type = QuestionType.TECHNICAL

        return session.add_question(
            text=generated.text,
            question_type=question_type,
            category=generated.category,
            difficulty=difficulty,
            expected_keywords=generated.expected_keywords,
            ideal_answer_points=generated.ideal_answer_points,
        )

    async def _generate_followup(
        self,
        session: InterviewSession,
        parent: Question,
        reason: str | None,
    ) -> Question:
        context = FollowUpContext(
            session_id=session.session_id,
            question_number=len(session.questions) + 1,
            role=session.setup.role,
            experience_level=session.setup.experience_level,
            previous_question=parent.text,
            previous_answer=parent.answer or "",
            reason=reason,
        )
        generated = await self.ai_reasoning.generate_followup(
            context, session.ai_model, user_id=session.user_id
        )
        logger.info(f"Session {session.session_id}: follow-up on question {parent.number}")

        return session.add_question(
            text=generated.text,
            question_type=QuestionType.FOLLOW_UP,
            category=parent.category,
            difficulty=parent.difficulty,
            expected_keywords=generated.expected_keywords,
            ideal_answer_points=generated.ideal_answer_points,
            parent_question_number=parent.number,
        )

    async def _question_audio(self, session: InterviewSession, question: Question) -> bytes | None:
        """Spoken question for live mode; None when unavailable."""
        if session.setup.mode != AnswerMode.LIVE or self.audio_processor is None:
            return None
        return await self.audio_processor.synthesize(question.text)

    # =========================================================================
    # COMPLETION
    # =========================================================================

    async def complete_session(self, user_id: str, session_id: str) -> InterviewResult:
        """
        Complete a session and return its result.

        Idempotent: once a result exists it is returned unchanged.

        Raises:
            InvalidState: Questions remain unanswered, or the session was
                abandoned or never started
        """
        async with self._exclusive(session_id):
            session = await self.get_session(user_id, session_id)

            existing = await self.results.get_by_session(session_id)
            if existing:
                return existing

            if session.status == SessionStatus.COMPLETED:
                return await self.report_generator.generate(session)

            if session.status != SessionStatus.IN_PROGRESS:
                raise InvalidState(f"Cannot complete a {session.status.value} session")
            if session.answered_count < session.setup.total_questions:
                raise InvalidState(
                    f"{session.answered_count} of {session.setup.total_questions} questions "
                    "answered; abandon the session to end it early"
                )

            return await self._complete(session)

    async def _complete(self, session: InterviewSession) -> InterviewResult:
        self._transition(session, SessionStatus.COMPLETED)
        await self._commit(session)
        return await self.report_generator.generate(session)

    # =========================================================================
    # RESULTS & HISTORY
    # =========================================================================

    async def get_result(self, user_id: str, session_id: str) -> InterviewResult:
        await self.get_session(user_id, session_id)
        result = await self.results.get_by_session(session_id)
        if not result:
            raise ResourceNotFound(f"No result for session {session_id}")
        return result

    async def get_history(
        self,
        user_id: str,
        limit: int = 10,
        skip: int = 0,
        status: SessionStatus | None = None,
    ) -> dict[str, Any]:
        """Paginated interview history, newest first."""
        sessions, total = await self.sessions.list_for_user(user_id, status, limit, skip)

        items = []
        for session in sessions:
            result = await self.results.get_by_session(session.session_id)
            items.append({
                "session_id": session.session_id,
                "interview_type": session.setup.interview_type.value,
                "role": session.setup.role,
                "experience_level": session.setup.experience_level.value,
                "status": session.status.value,
                "progress": session.progress.model_dump(),
                "created_at": session.created_at.isoformat(),
                "completed_at": session.completed_at.isoformat() if session.completed_at else None,
                "overall_score": result.overall_score if result else None,
                "grade": result.grade if result else None,
            })

        return {
            "interviews": items,
            "pagination": {
                "total": total,
                "limit": limit,
                "skip": skip,
                "has_more": total > skip + limit,
            },
        }

    async def get_stats(self, user_id: str) -> UserStats:
        """Aggregate statistics over the user's completed interviews."""
        results = await self.results.list_for_user(user_id)
        if not results:
            return UserStats()

        by_type: dict[str, int] = {}
        for result in results:
            by_type[result.interview_type] = by_type.get(result.interview_type, 0) + 1

        return UserStats(
            total_interviews=len(results),
            average_score=round(sum(r.overall_score for r in results) / len(results), 1),
            total_time_spent_seconds=sum(r.metrics.total_duration_seconds for r in results),
            interviews_by_type=by_type,
            recent_scores=[r.overall_score for r in results[-RECENT_SCORES_LIMIT:]],
            improvement_trend=await self.report_generator.improvement_trend(user_id),
        )
