"""
Report API endpoints

Handles:
- Result retrieval
- Interview history
- User and role statistics
"""

from typing import Any

from fastapi import APIRouter, Depends, Query

from interview_engine.api.dependencies import (
    get_current_user_id,
    get_orchestrator,
    to_http_error,
)
from interview_engine.core.errors import InterviewEngineError
from interview_engine.core.interview_orchestrator import InterviewOrchestrator
from interview_engine.models.interview import SessionStatus
from interview_engine.models.report import RoleStats, UserStats

router = APIRouter()


@router.get("/results/{session_id}")
async def get_result(
    session_id: str,
    user_id: str = Depends(get_current_user_id),
    orchestrator: InterviewOrchestrator = Depends(get_orchestrator),
) -> dict[str, Any]:
    """Get the result of a completed interview."""
    try:
        result = await orchestrator.get_result(user_id, session_id)
    except InterviewEngineError as e:
        raise to_http_error(e)

    return result.model_dump(mode="json") | {
        "grade": result.grade,
        "performance_level": result.performance_level,
    }


@router.get("/history")
async def get_history(
    limit: int = Query(default=10, ge=1, le=100),
    skip: int = Query(default=0, ge=0),
    status: SessionStatus | None = None,
    user_id: str = Depends(get_current_user_id),
    orchestrator: InterviewOrchestrator = Depends(get_orchestrator),
) -> dict[str, Any]:
    """Get the caller's interview history, newest first."""
    return await orchestrator.get_history(user_id, limit=limit, skip=skip, status=status)


@router.get("/stats", response_model=UserStats)
async def get_stats(
    user_id: str = Depends(get_current_user_id),
    orchestrator: InterviewOrchestrator = Depends(get_orchestrator),
) -> UserStats:
    """Aggregate statistics over the caller's completed interviews."""
    return await orchestrator.get_stats(user_id)


@router.get("/roles/{role}/stats", response_model=RoleStats)
async def get_role_stats(
    role: str,
    orchestrator: InterviewOrchestrator = Depends(get_orchestrator),
) -> RoleStats:
    """Aggregate scores for everyone interviewed for a role."""
    return await orchestrator.report_generator.role_stats(role)
