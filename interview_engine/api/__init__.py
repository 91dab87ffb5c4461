"""
API layer for the interview engine

Contains FastAPI routers for:
- Interview session lifecycle
- Results, history and statistics
- Reference metadata
"""

from interview_engine.api.router import api_router

__all__ = ["api_router"]
