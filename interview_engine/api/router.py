"""
Main API router for the interview engine

Aggregates all API routes and provides the main application router.
"""

from fastapi import APIRouter

from interview_engine.api.endpoints import interview, report, metadata

api_router = APIRouter()

# Include all endpoint routers
api_router.include_router(
    interview.router,
    prefix="/interview",
    tags=["Interview"]
)

api_router.include_router(
    report.router,
    prefix="/interview",
    tags=["Results"]
)

api_router.include_router(
    metadata.router,
    prefix="/interview",
    tags=["Metadata"]
)
