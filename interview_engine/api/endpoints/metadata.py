"""
Metadata API endpoints

Provides reference data for:
- Interview types and answer modes
- Roles and their topics
- Experience levels
- Question limits
"""

from typing import Any

from fastapi import APIRouter

from interview_engine.config.settings import get_settings
from interview_engine.models.interview import InterviewType
from interview_engine.models.question import AnswerMode
from interview_engine.models.roles import get_available_roles, get_experience_levels

router = APIRouter()


@router.get("/config")
async def get_interview_config() -> dict[str, Any]:
    """Everything a client needs to build the setup form."""
    settings = get_settings()
    return {
        "interview_types": [t.value for t in InterviewType],
        "answer_modes": [m.value for m in AnswerMode],
        "roles": get_available_roles(),
        "experience_levels": get_experience_levels(),
        "limits": {
            "min_questions": settings.min_questions,
            "max_questions": settings.max_questions,
            "default_questions": settings.default_questions,
            "min_answer_length": settings.min_answer_length,
            "follow_up_probability": settings.follow_up_probability,
        },
        "tts_enabled": settings.tts_enabled,
    }


@router.get("/roles")
async def get_roles() -> list[dict[str, Any]]:
    """Get all known interview roles with their topics."""
    return get_available_roles()


@router.get("/experience-levels")
async def get_levels() -> list[dict[str, Any]]:
    return get_experience_levels()
