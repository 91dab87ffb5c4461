"""
Error taxonomy for the interview engine.

Every error carries a stable machine-readable ``kind`` and the HTTP status
the API layer maps it to.
"""


class InterviewEngineError(Exception):
    """Base class for all engine errors."""

    kind: str = "engine_error"
    status_code: int = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict[str, str]:
        return {"kind": self.kind, "message": self.message}


class InvalidConfiguration(InterviewEngineError):
    """Session setup is invalid and must be corrected by the caller."""

    kind = "invalid_configuration"
    status_code = 400


class InvalidState(InterviewEngineError):
    """Operation is not legal for the session's current status."""

    kind = "invalid_state"
    status_code = 409


class ResourceNotFound(InterviewEngineError):
    """Session, question, result or resume is absent or not owned by the caller."""

    kind = "not_found"
    status_code = 404


class AnswerTooShort(InterviewEngineError):
    kind = "answer_too_short"
    status_code = 422


class TranscriptionTooShort(InterviewEngineError):
    kind = "transcription_too_short"
    status_code = 422


class SessionConflict(InterviewEngineError):
    """Another mutating operation is already running on the session."""

    kind = "conflict"
    status_code = 409


# =============================================================================
# COLLABORATOR FAILURES (raised after retries are exhausted)
# =============================================================================

class CollaboratorFailure(InterviewEngineError):
    status_code = 502


class TranscriptionFailed(CollaboratorFailure):
    kind = "transcription_failed"


class GenerationFailed(CollaboratorFailure):
    kind = "generation_failed"


class EvaluationFailed(CollaboratorFailure):
    kind = "evaluation_failed"


class ReportGenerationFailed(CollaboratorFailure):
    kind = "report_generation_failed"


class MalformedResponseError(Exception):
    """Collaborator replied, but the payload could not be parsed."""
