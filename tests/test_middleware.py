# FILE: tests/test_middleware.py

from collections import deque

from fastapi import FastAPI
from fastapi.testclient import TestClient

from bac_tutor.middleware.body_limit import BodySizeLimitMiddleware
from bac_tutor.middleware.rate_limit import RateLimitMiddleware


def build_client(**limits) -> TestClient:
    app = FastAPI()

    @app.post("/gemini-chat")
    async def chat():
        return {"ok": True}

    @app.post("/quiz-sessions/a1")
    async def session():
        return {"ok": True}

    app.add_middleware(RateLimitMiddleware, rpm=limits.get("rpm", 2), paths=("/gemini-chat",))
    app.add_middleware(BodySizeLimitMiddleware, max_size=limits.get("max_size", 16))
    return TestClient(app)


def test_rate_limit_applies_to_chat_only():
    client = build_client(rpm=2)

    assert client.post("/gemini-chat").status_code == 200
    assert client.post("/gemini-chat").status_code == 200
    limited = client.post("/gemini-chat")
    assert limited.status_code == 429
    assert limited.json() == {"error": "Rate limit exceeded"}

    for _ in range(5):
        assert client.post("/quiz-sessions/a1").status_code == 200


def test_oversized_body_rejected():
    client = build_client(max_size=16)

    response = client.post("/quiz-sessions/a1", content=b"x" * 64)

    assert response.status_code == 413
    assert response.json() == {"error": "Request body too large"}
    assert client.post("/quiz-sessions/a1", content=b"x" * 8).status_code == 200


def test_idle_clients_are_forgotten():
    limiter = RateLimitMiddleware(FastAPI(), rpm=2)
    limiter.requests["10.0.0.1"].append(0.0)
    limiter.requests["10.0.0.2"].append(50.0)
    limiter.requests["10.0.0.3"] = deque()

    limiter._forget_idle(now=70.0)

    assert list(limiter.requests) == ["10.0.0.2"]
