"""
Interview API endpoints

Handles interview session lifecycle:
- Creating sessions
- Starting interviews
- Submitting text and voice answers, skipping
- Pausing, resuming, abandoning and completing
"""

import base64
from typing import Any

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from pydantic import BaseModel, Field

from interview_engine.api.dependencies import (
    get_current_user_id,
    get_orchestrator,
    get_subscription_tier,
    to_http_error,
)
from interview_engine.core.errors import InterviewEngineError
from interview_engine.core.interview_orchestrator import InterviewOrchestrator
from interview_engine.models.interview import InterviewSession, TurnOutcome
from interview_engine.models.question import AnswerMode, Question

router = APIRouter()


# ============================================================================
# REQUEST/RESPONSE MODELS
# ============================================================================

class CreateSessionRequest(BaseModel):
    """Request model for interview setup."""
    interview_type: str
    role: str
    experience_level: str = "mid"
    mode: str = "text"
    resume_id: str | None = None
    job_description: str | None = None
    target_skills: list[str] = []
    total_questions: int | None = None


class AnswerRequest(BaseModel):
    """Request model for a text answer."""
    question_number: int = Field(..., ge=1)
    answer: str
    mode: AnswerMode = AnswerMode.TEXT


class SkipRequest(BaseModel):
    question_number: int = Field(..., ge=1)


class SessionResponse(BaseModel):
    """Session state as seen by the candidate."""
    session_id: str
    status: str
    interview_type: str
    role: str
    experience_level: str
    mode: str
    ai_model: str
    total_questions: int
    answered: int
    progress: int
    average_score: float
    current_question: dict[str, Any] | None = None
    questions: list[dict[str, Any]]
    created_at: str
    started_at: str | None = None
    completed_at: str | None = None
    total_duration_seconds: int


def _question_payload(question: Question) -> dict[str, Any]:
    return question.model_dump(mode="json")


def _session_response(session: InterviewSession) -> SessionResponse:
    latest = session.latest_question
    progress = session.progress
    return SessionResponse(
        session_id=session.session_id,
        status=session.status.value,
        interview_type=session.setup.interview_type.value,
        role=session.setup.role,
        experience_level=session.setup.experience_level.value,
        mode=session.setup.mode.value,
        ai_model=session.ai_model,
        total_questions=session.setup.total_questions,
        answered=progress.answered,
        progress=progress.percentage,
        average_score=session.average_score,
        current_question=(
            _question_payload(latest) if latest and not latest.is_resolved else None
        ),
        questions=[_question_payload(q) for q in session.questions],
        created_at=session.created_at.isoformat(),
        started_at=session.started_at.isoformat() if session.started_at else None,
        completed_at=session.completed_at.isoformat() if session.completed_at else None,
        total_duration_seconds=session.total_duration_seconds,
    )


def _turn_response(outcome: TurnOutcome) -> dict[str, Any]:
    """Serialize a turn, inlining live-mode audio as base64."""
    payload = outcome.model_dump(mode="json")
    payload["next_question_audio"] = (
        base64.b64encode(outcome.next_question_audio).decode("utf-8")
        if outcome.next_question_audio else None
    )
    return payload


# ============================================================================
# REST ENDPOINTS
# ============================================================================

@router.post("/sessions", response_model=SessionResponse, status_code=201)
async def create_session(
    request: CreateSessionRequest,
    user_id: str = Depends(get_current_user_id),
    subscription_tier: str | None = Depends(get_subscription_tier),
    orchestrator: InterviewOrchestrator = Depends(get_orchestrator),
) -> SessionResponse:
    """
    Create a new interview session.

    This validates the setup but does not start the interview yet.
    """
    try:
        setup = orchestrator.build_setup(request.model_dump())
        session = await orchestrator.create_session(user_id, setup, subscription_tier)
        return _session_response(session)
    except InterviewEngineError as e:
        raise to_http_error(e)


@router.get("/sessions/{session_id}", response_model=SessionResponse)
async def get_session(
    session_id: str,
    user_id: str = Depends(get_current_user_id),
    orchestrator: InterviewOrchestrator = Depends(get_orchestrator),
) -> SessionResponse:
    """Get current session state."""
    try:
        session = await orchestrator.get_session(user_id, session_id)
        return _session_response(session)
    except InterviewEngineError as e:
        raise to_http_error(e)


@router.post("/sessions/{session_id}/start")
async def start_interview(
    session_id: str,
    user_id: str = Depends(get_current_user_id),
    orchestrator: InterviewOrchestrator = Depends(get_orchestrator),
) -> dict[str, Any]:
    """Start the interview and get the first question."""
    try:
        outcome = await orchestrator.start_interview(user_id, session_id)
        return _turn_response(outcome)
    except InterviewEngineError as e:
        raise to_http_error(e)


@router.post("/sessions/{session_id}/answer")
async def submit_answer(
    session_id: str,
    request: AnswerRequest,
    user_id: str = Depends(get_current_user_id),
    orchestrator: InterviewOrchestrator = Depends(get_orchestrator),
) -> dict[str, Any]:
    """
    Submit a text answer to the current question.

    Returns the evaluation plus either the next question or the final
    result when the interview is complete.
    """
    try:
        outcome = await orchestrator.submit_answer(
            user_id,
            session_id,
            request.question_number,
            request.answer,
            request.mode,
        )
        return _turn_response(outcome)
    except InterviewEngineError as e:
        raise to_http_error(e)


@router.post("/sessions/{session_id}/voice-answer")
async def submit_voice_answer(
    session_id: str,
    question_number: int = Form(..., ge=1),
    audio: UploadFile = File(...),
    user_id: str = Depends(get_current_user_id),
    orchestrator: InterviewOrchestrator = Depends(get_orchestrator),
) -> dict[str, Any]:
    """Submit a recorded answer; it is transcribed and then evaluated."""
    audio_data = await audio.read()
    if not audio_data:
        raise HTTPException(
            status_code=400,
            detail={"kind": "invalid_configuration", "message": "Audio file is empty"},
        )

    try:
        outcome = await orchestrator.submit_voice_answer(
            user_id,
            session_id,
            question_number,
            audio_data,
            filename=audio.filename or "answer.webm",
            content_type=audio.content_type or "audio/webm",
        )
        return _turn_response(outcome)
    except InterviewEngineError as e:
        raise to_http_error(e)


@router.post("/sessions/{session_id}/skip")
async def skip_question(
    session_id: str,
    request: SkipRequest,
    user_id: str = Depends(get_current_user_id),
    orchestrator: InterviewOrchestrator = Depends(get_orchestrator),
) -> dict[str, Any]:
    """Skip the current question."""
    try:
        outcome = await orchestrator.skip_question(user_id, session_id, request.question_number)
        return _turn_response(outcome)
    except InterviewEngineError as e:
        raise to_http_error(e)


@router.post("/sessions/{session_id}/advance")
async def advance_session(
    session_id: str,
    user_id: str = Depends(get_current_user_id),
    orchestrator: InterviewOrchestrator = Depends(get_orchestrator),
) -> dict[str, Any]:
    """Retry issuing the next question after a generation failure."""
    try:
        outcome = await orchestrator.advance_session(user_id, session_id)
        return _turn_response(outcome)
    except InterviewEngineError as e:
        raise to_http_error(e)


@router.post("/sessions/{session_id}/pause", response_model=SessionResponse)
async def pause_session(
    session_id: str,
    user_id: str = Depends(get_current_user_id),
    orchestrator: InterviewOrchestrator = Depends(get_orchestrator),
) -> SessionResponse:
    try:
        return _session_response(await orchestrator.pause_session(user_id, session_id))
    except InterviewEngineError as e:
        raise to_http_error(e)


@router.post("/sessions/{session_id}/resume", response_model=SessionResponse)
async def resume_session(
    session_id: str,
    user_id: str = Depends(get_current_user_id),
    orchestrator: InterviewOrchestrator = Depends(get_orchestrator),
) -> SessionResponse:
    try:
        return _session_response(await orchestrator.resume_session(user_id, session_id))
    except InterviewEngineError as e:
        raise to_http_error(e)


@router.post("/sessions/{session_id}/abandon", response_model=SessionResponse)
async def abandon_session(
    session_id: str,
    user_id: str = Depends(get_current_user_id),
    orchestrator: InterviewOrchestrator = Depends(get_orchestrator),
) -> SessionResponse:
    """Abandon the interview early. No result is produced."""
    try:
        return _session_response(await orchestrator.abandon_session(user_id, session_id))
    except InterviewEngineError as e:
        raise to_http_error(e)


@router.post("/sessions/{session_id}/complete")
async def complete_session(
    session_id: str,
    user_id: str = Depends(get_current_user_id),
    orchestrator: InterviewOrchestrator = Depends(get_orchestrator),
) -> dict[str, Any]:
    """Complete the interview and get its result (idempotent)."""
    try:
        result = await orchestrator.complete_session(user_id, session_id)
        return result.model_dump(mode="json") | {
            "grade": result.grade,
            "performance_level": result.performance_level,
        }
    except InterviewEngineError as e:
        raise to_http_error(e)
