"""
Core business logic modules for the interview engine

Contains:
- Interview Orchestrator: State machine for the interview lifecycle
- AI Reasoning: Question generation, evaluation and report calls
- Audio Processing: STT/TTS integration
- Evaluation Engine: Scoring and aggregation
- Report Generator: Final result, percentile and trend
- Difficulty controller and follow-up policy
"""

from interview_engine.core.interview_orchestrator import InterviewOrchestrator
from interview_engine.core.ai_reasoning import AIReasoningLayer
from interview_engine.core.audio_processor import AudioProcessor
from interview_engine.core.evaluation_engine import EvaluationEngine
from interview_engine.core.report_generator import ReportGenerator

__all__ = [
    "InterviewOrchestrator",
    "AIReasoningLayer",
    "AudioProcessor",
    "EvaluationEngine",
    "ReportGenerator",
]
