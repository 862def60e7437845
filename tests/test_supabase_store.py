# FILE: tests/test_supabase_store.py

import json

import httpx
import pytest

from bac_tutor.errors import PersistenceError
from bac_tutor.services.supabase_store import SupabaseRecordStore


def make_store(handler):
    return SupabaseRecordStore(
        url="https://project.supabase.co/",
        service_key="service-key",
        transport=httpx.MockTransport(handler)
    )


@pytest.mark.asyncio
async def test_select_one_uses_eq_filters():
    seen = {}

    def handler(request):
        seen["request"] = request
        return httpx.Response(200, json=[{"id": "attempt-1", "student_id": "student-1"}])

    store = make_store(handler)
    row = await store.select_one("quiz_attempts", {"id": "attempt-1", "student_id": "student-1"})
    await store.aclose()

    request = seen["request"]
    assert row == {"id": "attempt-1", "student_id": "student-1"}
    assert request.method == "GET"
    assert request.url.path == "/rest/v1/quiz_attempts"
    assert request.url.params["id"] == "eq.attempt-1"
    assert request.url.params["student_id"] == "eq.student-1"
    assert request.headers["apikey"] == "service-key"
    assert request.headers["authorization"] == "Bearer service-key"


@pytest.mark.asyncio
async def test_select_one_returns_none_for_no_rows():
    store = make_store(lambda request: httpx.Response(200, json=[]))

    assert await store.select_one("quizzes", {"id": "missing"}) is None
    await store.aclose()


@pytest.mark.asyncio
async def test_update_patches_with_minimal_return():
    seen = {}

    def handler(request):
        seen["request"] = request
        return httpx.Response(204)

    store = make_store(handler)
    await store.update("quiz_attempts", {"id": "attempt-1"}, {"score": 75})
    await store.aclose()

    request = seen["request"]
    assert request.method == "PATCH"
    assert request.url.params["id"] == "eq.attempt-1"
    assert request.headers["prefer"] == "return=minimal"
    assert json.loads(request.content) == {"score": 75}


@pytest.mark.asyncio
async def test_error_status_raises_persistence_error():
    store = make_store(lambda request: httpx.Response(500, json={"message": "boom"}))

    with pytest.raises(PersistenceError):
        await store.insert("quiz_question_results", {"question_id": "q1"})
    await store.aclose()


@pytest.mark.asyncio
async def test_transport_error_raises_persistence_error():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    store = make_store(handler)
    with pytest.raises(PersistenceError):
        await store.update("quiz_attempts", {"id": "attempt-1"}, {"score": 0})
    await store.aclose()


@pytest.mark.asyncio
async def test_resolve_user_id():
    def handler(request):
        assert request.url.path == "/auth/v1/user"
        if request.headers["authorization"] == "Bearer good-token":
            return httpx.Response(200, json={"id": "student-1", "email": "s@example.com"})
        return httpx.Response(401, json={"message": "invalid JWT"})

    store = make_store(handler)

    assert await store.resolve_user_id("good-token") == "student-1"
    assert await store.resolve_user_id("expired") is None
    await store.aclose()


@pytest.mark.asyncio
async def test_unreadable_body_raises_persistence_error():
    store = make_store(
        lambda request: httpx.Response(200, text="<html>gateway</html>", headers={"Content-Type": "text/html"})
    )

    with pytest.raises(PersistenceError):
        await store.select_one("quiz_attempts", {"id": "attempt-1"})
    with pytest.raises(PersistenceError):
        await store.resolve_user_id("good-token")
    await store.aclose()
