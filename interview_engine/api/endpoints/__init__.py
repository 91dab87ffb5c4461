"""
API endpoint modules for the interview engine
"""

from interview_engine.api.endpoints import interview, report, metadata

__all__ = ["interview", "report", "metadata"]
