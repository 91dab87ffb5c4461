"""
Repository interfaces and in-memory backends.

The engine keeps no state between calls beyond what it persists through
these interfaces. Swap the in-memory classes for a database-backed
implementation in production.

Usage:
    sessions = InMemorySessionRepository()
    await sessions.save(session)
    session = await sessions.get(session_id)
"""

import logging
from abc import ABC, abstractmethod
from collections import Counter
from datetime import datetime, timezone

from pydantic import BaseModel, Field

from interview_engine.models.interview import InterviewSession, Resume, SessionStatus
from interview_engine.models.report import InterviewResult
from interview_engine.models.roles import normalize_role

logger = logging.getLogger(__name__)


# =============================================================================
# INTERFACES
# =============================================================================

class SessionRepository(ABC):
    """Persistence for interview sessions."""

    @abstractmethod
    async def get(self, session_id: str) -> InterviewSession | None:
        pass

    @abstractmethod
    async def save(self, session: InterviewSession) -> None:
        pass

    @abstractmethod
    async def list_for_user(
        self,
        user_id: str,
        status: SessionStatus | None = None,
        limit: int = 10,
        skip: int = 0,
    ) -> tuple[list[InterviewSession], int]:
        """
        List a user's sessions, newest first.

        Returns:
            The requested page and the total number of matching sessions
        """
        pass


class ResultRepository(ABC):
    """Persistence for interview results (write-once)."""

    @abstractmethod
    async def get_by_session(self, session_id: str) -> InterviewResult | None:
        pass

    @abstractmethod
    async def insert_once(self, result: InterviewResult) -> InterviewResult:
        """
        Store a result unless one exists for the session.

        Returns:
            The stored result, which is the existing one on a repeat call
        """
        pass

    @abstractmethod
    async def latest_for_user_role(
        self,
        user_id: str,
        role: str,
        exclude_session_id: str | None = None,
    ) -> InterviewResult | None:
        pass

    @abstractmethod
    async def scores_for_role(self, role: str) -> list[int]:
        pass

    @abstractmethod
    async def list_for_user(self, user_id: str, limit: int | None = None) -> list[InterviewResult]:
        """A user's results, oldest first."""
        pass


class ResumeRepository(ABC):
    @abstractmethod
    async def get(self, resume_id: str) -> Resume | None:
        pass

    @abstractmethod
    async def save(self, resume: Resume) -> None:
        pass


class UsageRecord(BaseModel):
    user_id: str
    action: str
    ai_model: str
    success: bool
    error_message: str | None = None
    recorded_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class UsageCounter(ABC):
    """Externally owned AI usage counter."""

    @abstractmethod
    async def increment(
        self,
        user_id: str,
        action: str,
        ai_model: str,
        success: bool = True,
        error_message: str | None = None,
    ) -> None:
        pass

    @abstractmethod
    async def count(self, user_id: str, action: str | None = None) -> int:
        pass


# =============================================================================
# IN-MEMORY BACKENDS
# =============================================================================

class InMemorySessionRepository(SessionRepository):
    """Stores deep copies so callers never share mutable state with the store."""

    def __init__(self):
        self._sessions: dict[str, InterviewSession] = {}

    async def get(self, session_id: str) -> InterviewSession | None:
        session = self._sessions.get(session_id)
        return session.model_copy(deep=True) if session else None

    async def save(self, session: InterviewSession) -> None:
        self._sessions[session.session_id] = session.model_copy(deep=True)

    async def list_for_user(
        self,
        user_id: str,
        status: SessionStatus | None = None,
        limit: int = 10,
        skip: int = 0,
    ) -> tuple[list[InterviewSession], int]:
        matching = [
            s for s in self._sessions.values()
            if s.user_id == user_id and (status is None or s.status == status)
        ]
        matching.sort(key=lambda s: s.created_at, reverse=True)
        page = matching[skip:skip + limit]
        return [s.model_copy(deep=True) for s in page], len(matching)


class InMemoryResultRepository(ResultRepository):
    """
    Write-once result store.

    Results are frozen only at the top level, so nested lists and metrics are
    copied on the way in and on the way out.
    """

    def __init__(self):
        self._results: dict[str, InterviewResult] = {}

    async def get_by_session(self, session_id: str) -> InterviewResult | None:
        result = self._results.get(session_id)
        return result.model_copy(deep=True) if result else None

    async def insert_once(self, result: InterviewResult) -> InterviewResult:
        existing = self._results.get(result.session_id)
        if existing is not None:
            logger.info(f"Result already stored for session {result.session_id}")
            return existing.model_copy(deep=True)
        self._results[result.session_id] = result.model_copy(deep=True)
        return result.model_copy(deep=True)

    async def latest_for_user_role(
        self,
        user_id: str,
        role: str,
        exclude_session_id: str | None = None,
    ) -> InterviewResult | None:
        role_key = normalize_role(role)
        candidates = [
            r for r in self._results.values()
            if r.user_id == user_id
            and normalize_role(r.role) == role_key
            and r.session_id != exclude_session_id
        ]
        latest = max(candidates, key=lambda r: r.created_at, default=None)
        return latest.model_copy(deep=True) if latest else None

    async def scores_for_role(self, role: str) -> list[int]:
        role_key = normalize_role(role)
        return [r.overall_score for r in self._results.values() if normalize_role(r.role) == role_key]

    async def list_for_user(self, user_id: str, limit: int | None = None) -> list[InterviewResult]:
        results = sorted(
            (r for r in self._results.values() if r.user_id == user_id),
            key=lambda r: r.created_at,
        )
        page = results[-limit:] if limit else results
        return [r.model_copy(deep=True) for r in page]


class InMemoryResumeRepository(ResumeRepository):
    def __init__(self):
        self._resumes: dict[str, Resume] = {}

    async def get(self, resume_id: str) -> Resume | None:
        resume = self._resumes.get(resume_id)
        return resume.model_copy(deep=True) if resume else None

    async def save(self, resume: Resume) -> None:
        self._resumes[resume.resume_id] = resume.model_copy(deep=True)


class InMemoryUsageCounter(UsageCounter):
    def __init__(self):
        self.records: list[UsageRecord] = []
        self._counts: Counter[tuple[str, str]] = Counter()

    async def increment(
        self,
        user_id: str,
        action: str,
        ai_model: str,
        success: bool = True,
        error_message: str | None = None,
    ) -> None:
        self.records.append(
            UsageRecord(
                user_id=user_id,
                action=action,
                ai_model=ai_model,
                success=success,
                error_message=error_message,
            )
        )
        self._counts[(user_id, action)] += 1

    async def count(self, user_id: str, action: str | None = None) -> int:
        if action is not None:
            return self._counts[(user_id, action)]
        return sum(n for (uid, _), n in self._counts.items() if uid == user_id)
