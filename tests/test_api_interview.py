"""
API Endpoint Integration Tests for interview sessions and results.

Tests the FastAPI endpoints against an orchestrator wired to a stubbed AI
layer and in-memory stores, to verify:
- Request validation
- Response formats
- Error kinds and HTTP status codes
"""
import asyncio
import base64

import pytest
from fastapi.testclient import TestClient

from conftest import GOOD_ANSWER, StubAIReasoning
from interview_engine.api import dependencies
from interview_engine.api.dependencies import get_orchestrator
from interview_engine.core.storage import InMemoryResumeRepository
from interview_engine.models.interview import Resume
from main import app

API_PREFIX = "/api/interview"
HEADERS = {"X-User-Id": "user-1"}


@pytest.fixture
def orchestrator(make_orchestrator, mock_audio_processor):
    return make_orchestrator(ai=StubAIReasoning(score=80), audio_processor=mock_audio_processor)


@pytest.fixture
def client(orchestrator):
    app.dependency_overrides[get_orchestrator] = lambda: orchestrator
    yield TestClient(app)
    app.dependency_overrides.clear()


def _create(client, **overrides) -> dict:
    payload = {
        "interview_type": "technical",
        "role": "Backend Developer",
        "experience_level": "mid",
        "total_questions": 5,
    } | overrides
    response = client.post(f"{API_PREFIX}/sessions", json=payload, headers=HEADERS)
    assert response.status_code == 201, response.text
    return response.json()


class TestSessionEndpoints:
    """Tests for session creation and retrieval."""

    def test_create_session(self, client):
        data = _create(client)

        assert data["status"] == "created"
        assert data["total_questions"] == 5
        assert data["questions"] == []
        assert data["current_question"] is None

    def test_create_requires_user(self, client):
        response = client.post(
            f"{API_PREFIX}/sessions",
            json={"interview_type": "technical", "role": "QA"},
        )
        assert response.status_code == 422

    def test_invalid_setup_is_400(self, client):
        response = client.post(
            f"{API_PREFIX}/sessions",
            json={"interview_type": "trivia", "role": "QA"},
            headers=HEADERS,
        )

        assert response.status_code == 400
        assert response.json()["detail"]["kind"] == "invalid_configuration"

    def test_premium_tier_header_selects_model(self, client, settings):
        response = client.post(
            f"{API_PREFIX}/sessions",
            json={"interview_type": "behavioral", "role": "Product Manager"},
            headers=HEADERS | {"X-Subscription-Tier": "premium"},
        )

        assert response.status_code == 201
        assert response.json()["ai_model"] == settings.premium_ai_model

    def test_question_count_defaults_from_settings(self, client, settings):
        response = client.post(
            f"{API_PREFIX}/sessions",
            json={"interview_type": "technical", "role": "Backend Developer"},
            headers=HEADERS,
        )

        assert response.status_code == 201
        assert response.json()["total_questions"] == settings.default_questions

    def test_resume_session_uses_injected_store(self, orchestrator, monkeypatch):
        monkeypatch.setattr(dependencies, "_orchestrator", orchestrator)
        monkeypatch.setattr(dependencies, "_resume_repository", None)
        store = InMemoryResumeRepository()
        resume = Resume(user_id="user-1", raw_text="Five years building payment APIs in Go.")
        asyncio.run(store.save(resume))

        client = TestClient(app)
        payload = {
            "interview_type": "resume-based",
            "role": "Backend Developer",
            "resume_id": resume.resume_id,
        }
        missing = client.post(f"{API_PREFIX}/sessions", json=payload, headers=HEADERS)
        dependencies.set_resume_repository(store)
        created = client.post(f"{API_PREFIX}/sessions", json=payload, headers=HEADERS)

        assert missing.status_code == 404
        assert created.status_code == 201, created.text
        assert orchestrator.resumes is store
        assert dependencies.get_resume_repository() is store

    def test_other_users_cannot_see_session(self, client):
        session_id = _create(client)["session_id"]

        response = client.get(f"{API_PREFIX}/sessions/{session_id}", headers={"X-User-Id": "intruder"})

        assert response.status_code == 404
        assert response.json()["detail"]["kind"] == "not_found"


class TestInterviewEndpoints:
    """Tests for the answer loop."""

    def test_start_answer_and_complete(self, client):
        session_id = _create(client)["session_id"]

        started = client.post(f"{API_PREFIX}/sessions/{session_id}/start", headers=HEADERS)
        assert started.status_code == 200
        turn = started.json()
        assert turn["next_question"]["number"] == 1
        assert turn["next_question_audio"] is None

        while not turn["is_complete"]:
            number = turn["next_question"]["number"]
            response = client.post(
                f"{API_PREFIX}/sessions/{session_id}/answer",
                json={"question_number": number, "answer": GOOD_ANSWER},
                headers=HEADERS,
            )
            assert response.status_code == 200, response.text
            turn = response.json()
            assert turn["evaluation"]["score"] == 80

        assert turn["result"]["overall_score"] == 80
        assert turn["progress"]["percentage"] == 100

        completed = client.post(f"{API_PREFIX}/sessions/{session_id}/complete", headers=HEADERS)
        assert completed.status_code == 200
        assert completed.json()["result_id"] == turn["result"]["result_id"]
        assert completed.json()["grade"] == "A-"

        result = client.get(f"{API_PREFIX}/results/{session_id}", headers=HEADERS)
        assert result.status_code == 200
        assert result.json()["performance_level"] == "Good"

    def test_short_answer_is_422(self, client):
        session_id = _create(client)["session_id"]
        client.post(f"{API_PREFIX}/sessions/{session_id}/start", headers=HEADERS)

        response = client.post(
            f"{API_PREFIX}/sessions/{session_id}/answer",
            json={"question_number": 1, "answer": "too short"},
            headers=HEADERS,
        )

        assert response.status_code == 422
        assert response.json()["detail"]["kind"] == "answer_too_short"

    def test_answer_before_start_is_conflict(self, client):
        session_id = _create(client)["session_id"]

        response = client.post(
            f"{API_PREFIX}/sessions/{session_id}/answer",
            json={"question_number": 1, "answer": GOOD_ANSWER},
            headers=HEADERS,
        )

        assert response.status_code == 409
        assert response.json()["detail"]["kind"] == "invalid_state"

    def test_skip(self, client):
        session_id = _create(client)["session_id"]
        client.post(f"{API_PREFIX}/sessions/{session_id}/start", headers=HEADERS)

        response = client.post(
            f"{API_PREFIX}/sessions/{session_id}/skip",
            json={"question_number": 1},
            headers=HEADERS,
        )

        assert response.status_code == 200
        assert response.json()["evaluation"]["score"] == 0
        assert response.json()["next_question"]["number"] == 2

    def test_voice_answer(self, client, mock_audio_processor):
        session_id = _create(client)["session_id"]
        client.post(f"{API_PREFIX}/sessions/{session_id}/start", headers=HEADERS)

        response = client.post(
            f"{API_PREFIX}/sessions/{session_id}/voice-answer",
            data={"question_number": "1"},
            files={"audio": ("answer.wav", b"RIFF-audio", "audio/wav")},
            headers=HEADERS,
        )

        assert response.status_code == 200, response.text
        assert response.json()["transcription"]["text"] == GOOD_ANSWER
        mock_audio_processor.transcribe.assert_awaited_once_with(
            b"RIFF-audio", "answer.wav", "audio/wav"
        )

    def test_empty_voice_upload_is_400(self, client):
        session_id = _create(client)["session_id"]
        client.post(f"{API_PREFIX}/sessions/{session_id}/start", headers=HEADERS)

        response = client.post(
            f"{API_PREFIX}/sessions/{session_id}/voice-answer",
            data={"question_number": "1"},
            files={"audio": ("answer.wav", b"", "audio/wav")},
            headers=HEADERS,
        )

        assert response.status_code == 400

    def test_live_mode_returns_base64_audio(self, client):
        session_id = _create(client, mode="live")["session_id"]

        response = client.post(f"{API_PREFIX}/sessions/{session_id}/start", headers=HEADERS)

        assert base64.b64decode(response.json()["next_question_audio"]) == b"ID3-mp3-bytes"

    def test_pause_resume_abandon(self, client):
        session_id = _create(client)["session_id"]
        client.post(f"{API_PREFIX}/sessions/{session_id}/start", headers=HEADERS)

        paused = client.post(f"{API_PREFIX}/sessions/{session_id}/pause", headers=HEADERS)
        assert paused.json()["status"] == "paused"

        resumed = client.post(f"{API_PREFIX}/sessions/{session_id}/resume", headers=HEADERS)
        assert resumed.json()["status"] == "in-progress"

        abandoned = client.post(f"{API_PREFIX}/sessions/{session_id}/abandon", headers=HEADERS)
        assert abandoned.json()["status"] == "abandoned"

        again = client.post(f"{API_PREFIX}/sessions/{session_id}/abandon", headers=HEADERS)
        assert again.status_code == 409

    def test_complete_early_is_rejected(self, client):
        session_id = _create(client)["session_id"]
        client.post(f"{API_PREFIX}/sessions/{session_id}/start", headers=HEADERS)

        response = client.post(f"{API_PREFIX}/sessions/{session_id}/complete", headers=HEADERS)

        assert response.status_code == 409


class TestReportEndpoints:
    def test_history_and_stats_for_new_user(self, client):
        _create(client)

        history = client.get(f"{API_PREFIX}/history", headers=HEADERS).json()
        assert history["pagination"]["total"] == 1
        assert history["interviews"][0]["overall_score"] is None

        stats = client.get(f"{API_PREFIX}/stats", headers=HEADERS).json()
        assert stats["total_interviews"] == 0

    def test_missing_result_is_404(self, client):
        session_id = _create(client)["session_id"]

        response = client.get(f"{API_PREFIX}/results/{session_id}", headers=HEADERS)

        assert response.status_code == 404

    def test_role_stats(self, client):
        response = client.get(f"{API_PREFIX}/roles/Backend%20Developer/stats")
        assert response.status_code == 200
        assert response.json()["total_interviews"] == 0


class TestMetadataEndpoints:
    def test_config(self, client):
        data = client.get(f"{API_PREFIX}/config").json()

        assert "technical" in data["interview_types"]
        assert data["limits"]["min_questions"] == 5
        assert data["limits"]["max_questions"] == 15

    def test_roles_and_levels(self, client):
        roles = client.get(f"{API_PREFIX}/roles").json()
        levels = client.get(f"{API_PREFIX}/experience-levels").json()

        assert roles
        assert {level["id"] for level in levels} >= {"fresher", "senior"}

    def test_health(self, client):
        assert client.get("/health").json()["status"] == "healthy"
