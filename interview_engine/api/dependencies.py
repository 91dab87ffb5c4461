"""
API Dependencies

Provides dependency injection for API endpoints.
Manages singleton instances of core components and resolves the caller
identity forwarded by the upstream auth and entitlement layer.
"""

from fastapi import Header, HTTPException

from interview_engine.config.settings import get_settings
from interview_engine.core.ai_reasoning import AIReasoningLayer
from interview_engine.core.audio_processor import AudioProcessor
from interview_engine.core.errors import InterviewEngineError
from interview_engine.core.evaluation_engine import EvaluationEngine
from interview_engine.core.interview_orchestrator import InterviewOrchestrator
from interview_engine.core.report_generator import ReportGenerator
from interview_engine.core.storage import (
    InMemoryResultRepository,
    InMemoryResumeRepository,
    InMemorySessionRepository,
    InMemoryUsageCounter,
    ResumeRepository,
)


# ============================================================================
# SINGLETON INSTANCES
# ============================================================================

_orchestrator: InterviewOrchestrator | None = None
_audio_processor: AudioProcessor | None = None
_resume_repository: ResumeRepository | None = None


def set_resume_repository(repository: ResumeRepository) -> None:
    """
    Plug in the resume store owned by the resume service.

    Resume CRUD lives outside this service. Without an injected store the app
    falls back to an empty in-memory one, so resume-based sessions created
    over HTTP fail with not_found. An orchestrator that is already built is
    rebound to the new store.
    """
    global _resume_repository

    _resume_repository = repository
    if _orchestrator is not None:
        _orchestrator.resumes = repository


def get_resume_repository() -> ResumeRepository:
    """Get the resume store, creating the in-memory fallback on first use."""
    global _resume_repository

    if _resume_repository is None:
        _resume_repository = InMemoryResumeRepository()

    return _resume_repository


def get_audio_processor() -> AudioProcessor:
    """Get the audio processor singleton."""
    global _audio_processor

    if _audio_processor is None:
        _audio_processor = AudioProcessor()

    return _audio_processor


def get_orchestrator() -> InterviewOrchestrator:
    """
    Get the interview orchestrator singleton.

    Lazily initializes all required components.
    """
    global _orchestrator

    if _orchestrator is None:
        settings = get_settings()
        sessions = InMemorySessionRepository()
        results = InMemoryResultRepository()

        ai_reasoning = AIReasoningLayer(settings, usage_counter=InMemoryUsageCounter())
        evaluation_engine = EvaluationEngine(ai_reasoning)
        report_generator = ReportGenerator(ai_reasoning, evaluation_engine, results, settings)

        _orchestrator = InterviewOrchestrator(
            ai_reasoning=ai_reasoning,
            evaluation_engine=evaluation_engine,
            report_generator=report_generator,
            sessions=sessions,
            results=results,
            resumes=get_resume_repository(),
            audio_processor=get_audio_processor(),
            settings=settings,
        )

    return _orchestrator


async def cleanup():
    """Cleanup resources on shutdown."""
    global _orchestrator, _audio_processor

    if _audio_processor:
        await _audio_processor.close()
        _audio_processor = None

    if _orchestrator:
        await _orchestrator.ai_reasoning.close()

    _orchestrator = None


# ============================================================================
# CALLER CONTEXT
# ============================================================================

async def get_current_user_id(x_user_id: str = Header(..., min_length=1)) -> str:
    """Authenticated user ID, set by the upstream auth layer."""
    return x_user_id


async def get_subscription_tier(x_subscription_tier: str | None = Header(default=None)) -> str | None:
    """Subscription tier, set by the upstream entitlement gate."""
    return x_subscription_tier


def to_http_error(error: InterviewEngineError) -> HTTPException:
    """Map an engine error to an HTTP error with a stable machine-readable kind."""
    return HTTPException(status_code=error.status_code, detail=error.to_dict())
