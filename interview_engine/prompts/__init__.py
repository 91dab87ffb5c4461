"""
AI prompt templates for the interview engine

Contains structured prompts for:
- Question and follow-up generation
- Answer evaluation
- Report generation
"""

from interview_engine.prompts.interviewer import InterviewerPrompts
from interview_engine.prompts.evaluator import EvaluatorPrompts
from interview_engine.prompts.report import ReportPrompts

__all__ = [
    "InterviewerPrompts",
    "EvaluatorPrompts",
    "ReportPrompts",
]
