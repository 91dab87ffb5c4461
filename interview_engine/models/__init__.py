"""
Data models and schemas for the interview engine

Contains Pydantic models for:
- Interview sessions and setup
- Questions and answers
- Evaluation results
- Final results and statistics
- Roles and experience levels
"""

from interview_engine.models.interview import (
    InterviewSession,
    InterviewSetup,
    InterviewType,
    SessionStatus,
    Resume,
    TurnOutcome,
)
from interview_engine.models.question import (
    AnswerMode,
    Question,
    QuestionDifficulty,
    QuestionType,
)
from interview_engine.models.evaluation import AnswerEvaluation
from interview_engine.models.report import (
    InterviewResult,
    HiringDecision,
    SkillBreakdown,
    Trend,
)
from interview_engine.models.roles import ExperienceLevel

__all__ = [
    # Interview
    "InterviewSession",
    "InterviewSetup",
    "InterviewType",
    "SessionStatus",
    "Resume",
    "TurnOutcome",
    # Question
    "AnswerMode",
    "Question",
    "QuestionDifficulty",
    "QuestionType",
    # Evaluation
    "AnswerEvaluation",
    # Report
    "InterviewResult",
    "HiringDecision",
    "SkillBreakdown",
    "Trend",
    # Roles
    "ExperienceLevel",
]
