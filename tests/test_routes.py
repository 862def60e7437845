# FILE: tests/test_routes.py

import pytest
from fastapi.testclient import TestClient

from bac_tutor.app import app
from bac_tutor.errors import ConfigurationError, UpstreamError
from bac_tutor.routes.deps import get_chat_service
from bac_tutor.services import record_store, session_registry
from bac_tutor.services.session_registry import SessionRegistry
from bac_tutor.services.tutor_chat import TutorChatService

AUTH = {"Authorization": "Bearer token-1"}
OTHER_AUTH = {"Authorization": "Bearer token-2"}


class StubProvider:
    def __init__(self, answer="answer", error=None):
        self.answer = answer
        self.error = error
        self.calls = 0

    async def generate(self, prompt):
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.answer


@pytest.fixture
def provider():
    return StubProvider(answer="• الجواب")


@pytest.fixture
def client(store, provider, monkeypatch):
    monkeypatch.setattr(record_store, "_record_store", store)
    monkeypatch.setattr(session_registry, "_registry", SessionRegistry(store))
    app.dependency_overrides[get_chat_service] = lambda: TutorChatService(
        provider_factory=lambda: provider, store=store
    )
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


# ---------------------------------------------------------------------------
# Quiz sessions
# ---------------------------------------------------------------------------

def test_session_requires_bearer_token(client):
    assert client.post("/quiz-sessions/attempt-daily").status_code == 401
    assert client.post("/quiz-sessions/attempt-daily", headers={"Authorization": "Bearer nope"}).status_code == 401


def test_open_session_view(client):
    response = client.post("/quiz-sessions/attempt-daily", headers=AUTH)

    assert response.status_code == 200
    view = response.json()
    assert view["state"] == "ready"
    assert view["clock"] == "30:00"
    assert view["question_count"] == 4
    assert view["label"] == "Mathematics - Limits"
    assert "correct_answer" not in view["question"]


def test_open_session_of_another_student(client):
    response = client.post("/quiz-sessions/attempt-other", headers=AUTH)

    assert response.status_code == 404
    body = response.json()
    assert body["error"] == "Failed to load quiz"
    assert body["redirect"] == "/quizzes"
    assert body["notification"]["variant"] == "destructive"


def test_empty_quiz_refuses_session(client):
    response = client.post("/quiz-sessions/attempt-empty", headers=AUTH)

    assert response.status_code == 404
    assert response.json()["redirect"] == "/quizzes"


def test_full_quiz_flow(client, store):
    client.post("/quiz-sessions/attempt-daily", headers=AUTH)

    for index, option in enumerate(["A", "B", "C", "A"]):
        response = client.put(
            f"/quiz-sessions/attempt-daily/answers/q{index + 1}",
            json={"option": option},
            headers=AUTH
        )
        assert response.status_code == 200
        assert response.json()["selections"][f"q{index + 1}"] == option
        if index < 3:
            client.post("/quiz-sessions/attempt-daily/next", headers=AUTH)

    view = client.post("/quiz-sessions/attempt-daily/previous", headers=AUTH).json()
    assert view["current_index"] == 2
    view = client.post("/quiz-sessions/attempt-daily/next", headers=AUTH).json()
    assert view["is_last_question"] is True

    response = client.post("/quiz-sessions/attempt-daily/submit", headers=AUTH)

    assert response.status_code == 200
    body = response.json()
    assert body["score"] == 75
    assert body["max_score"] == 100
    assert body["notification"]["description"] == "Your score: 75/100"
    assert body["redirect"] == "/quizzes"
    assert len(store.updates) == 1
    assert len(store.outcomes()) == 4

    assert client.get("/quiz-sessions/attempt-daily", headers=AUTH).status_code == 404


def test_invalid_answer_rejected(client):
    client.post("/quiz-sessions/attempt-daily", headers=AUTH)

    response = client.put("/quiz-sessions/attempt-daily/answers/q1", json={"option": "E"}, headers=AUTH)
    assert response.status_code == 400

    response = client.put("/quiz-sessions/attempt-daily/answers/q9", json={"option": "A"}, headers=AUTH)
    assert response.status_code == 400


def test_submit_only_from_last_question(client, store):
    client.post("/quiz-sessions/attempt-daily", headers=AUTH)

    response = client.post("/quiz-sessions/attempt-daily/submit", headers=AUTH)

    assert response.status_code == 400
    assert store.updates == []


def test_submit_persistence_failure(client, store):
    store.fail_update = True
    client.post("/quiz-sessions/attempt-daily", headers=AUTH)
    for _ in range(3):
        client.post("/quiz-sessions/attempt-daily/next", headers=AUTH)

    response = client.post("/quiz-sessions/attempt-daily/submit", headers=AUTH)

    assert response.status_code == 502
    body = response.json()
    assert body["error"] == "Failed to submit quiz"
    assert body["redirect"] == "/quizzes"
    assert store.outcomes() == []


def test_unexpected_load_error_returns_to_quiz_list(client, store, monkeypatch):
    async def broken_select(table, filters):
        raise RuntimeError("unexpected payload")

    monkeypatch.setattr(store, "select_one", broken_select)

    response = client.post("/quiz-sessions/attempt-daily", headers=AUTH)

    assert response.status_code == 500
    body = response.json()
    assert body["notification"]["description"] == "Failed to load quiz"
    assert body["redirect"] == "/quizzes"


def test_unexpected_submit_error_returns_to_quiz_list(client, store, monkeypatch):
    client.post("/quiz-sessions/attempt-daily", headers=AUTH)
    for _ in range(3):
        client.post("/quiz-sessions/attempt-daily/next", headers=AUTH)

    async def broken_update(table, filters, values):
        raise RuntimeError("unexpected payload")

    monkeypatch.setattr(store, "update", broken_update)

    response = client.post("/quiz-sessions/attempt-daily/submit", headers=AUTH)

    assert response.status_code == 500
    body = response.json()
    assert body["error"] == "Failed to submit quiz"
    assert body["notification"]["description"] == "Failed to submit quiz"
    assert body["redirect"] == "/quizzes"
    assert client.get("/quiz-sessions/attempt-daily", headers=AUTH).status_code == 404


def test_sessions_are_private(client):
    client.post("/quiz-sessions/attempt-daily", headers=AUTH)

    assert client.get("/quiz-sessions/attempt-daily", headers=OTHER_AUTH).status_code == 404
    assert client.post("/quiz-sessions/attempt-daily/next", headers=OTHER_AUTH).status_code == 404


def test_leave_session(client, store):
    client.post("/quiz-sessions/attempt-daily", headers=AUTH)

    response = client.delete("/quiz-sessions/attempt-daily", headers=AUTH)

    assert response.status_code == 200
    assert response.json()["redirect"] == "/quizzes"
    assert client.get("/quiz-sessions/attempt-daily", headers=AUTH).status_code == 404
    assert store.updates == []


# ---------------------------------------------------------------------------
# Tutoring proxy
# ---------------------------------------------------------------------------

def test_chat_answer(client, provider, store):
    response = client.post(
        "/gemini-chat",
        json={"question": "Explain limits", "subject": "Mathematics"},
        headers=AUTH
    )

    assert response.status_code == 200
    assert response.json() == {"answer": "• الجواب"}
    assert provider.calls == 1
    assert store.inserts[0][0] == "ai_learning_conversations"


@pytest.mark.parametrize("payload", [{"question": ""}, {"subject": "Physics"}, {"question": "  "}])
def test_chat_rejects_missing_question(client, provider, payload):
    response = client.post("/gemini-chat", json=payload)

    assert response.status_code == 400
    assert response.json() == {"error": "Question is required"}
    assert provider.calls == 0


def test_chat_rejects_malformed_body(client, provider):
    response = client.post(
        "/gemini-chat",
        content="not json",
        headers={"Content-Type": "application/json"}
    )

    assert response.status_code == 400
    assert response.json()["error"] == "Invalid request"
    assert provider.calls == 0


def test_chat_upstream_failure_is_distinct(client, provider):
    provider.error = UpstreamError("Gemini API error: 503 overloaded")

    response = client.post("/gemini-chat", json={"question": "Explain limits"})

    assert response.status_code == 502
    assert response.json()["error"].startswith("Gemini API error")
    assert provider.calls == 1


def test_chat_without_api_key(client, store):
    def missing_key():
        raise ConfigurationError("GEMINI_API_KEY not configured")

    app.dependency_overrides[get_chat_service] = lambda: TutorChatService(
        provider_factory=missing_key, store=store
    )

    response = client.post("/gemini-chat", json={"question": "Explain limits"})

    assert response.status_code == 500
    assert response.json() == {"error": "GEMINI_API_KEY not configured"}


def test_chat_storage_failure_keeps_answer(client, store):
    store.fail_inserts = True

    response = client.post("/gemini-chat", json={"question": "Explain limits"}, headers=AUTH)

    assert response.status_code == 200
    assert response.json() == {"answer": "• الجواب"}
