"""HTTP surface tests with the chat dependency overridden."""

from __future__ import annotations

import json
from datetime import timedelta

import pytest
from fastapi.testclient import TestClient
from langchain_core.language_models.fake_chat_models import FakeListChatModel

from ragchat.app import get_app
from ragchat.core.chat import RAGChat
from ragchat.core.deps import get_rag_chat
from ragchat.core.errors import RetrievalError
from ragchat.core.history import InMemoryHistory
from ragchat.core.ratelimit import LocalRatelimiter


@pytest.fixture(scope="module")
def app():
    # Instrumentator metrics live in the global registry; build once.
    return get_app()


@pytest.fixture
def use_chat(app, vector):
    """Install a fresh ``RAGChat`` behind the API and return it."""

    def use(**kwargs) -> RAGChat:
        kwargs.setdefault("model", FakeListChatModel(responses=["Ankara.", "Paris."]))
        kwargs.setdefault("vector", vector)
        kwargs.setdefault("history", InMemoryHistory())
        rag_chat = RAGChat(**kwargs)
        app.dependency_overrides[get_rag_chat] = lambda: rag_chat
        return rag_chat

    yield use
    app.dependency_overrides.clear()


@pytest.fixture
def client(app, use_chat):
    use_chat()
    return TestClient(app)


def _events(body: str) -> list[dict]:
    return [
        json.loads(line.removeprefix("data: "))
        for line in body.splitlines()
        if line.startswith("data: ")
    ]


class TestHealth:
    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok"}


class TestChatEndpoint:
    def test_json_answer(self, client):
        response = client.post("/api/v1/chat", json={"input": "Capital of Turkey?"})
        assert response.status_code == 200
        assert response.json() == {"output": "Ankara."}

    def test_streaming_answer(self, client):
        response = client.post(
            "/api/v1/chat", json={"input": "Capital?", "streaming": True}
        )
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/event-stream")
        events = _events(response.text)
        assert events[-1] == {"type": "end"}
        assert "".join(e["content"] for e in events if e["type"] == "chunk") == "Ankara."

    def test_options_forwarded(self, client, vector):
        client.post(
            "/api/v1/chat",
            json={"input": "q", "top_k": 1, "namespace": "geo", "session_id": "s1"},
        )
        assert vector.queries[-1]["top_k"] == 1
        assert vector.queries[-1]["namespace"] == "geo"
        history = client.get("/api/v1/history/s1").json()
        assert [m["role"] for m in history["messages"]] == ["user", "assistant"]

    def test_input_too_long(self, client):
        response = client.post("/api/v1/chat", json={"input": "x" * 5000})
        assert response.status_code == 422

    def test_ratelimited(self, client, use_chat):
        use_chat(ratelimit=LocalRatelimiter(max_requests=1, window=timedelta(minutes=1)))
        assert client.post("/api/v1/chat", json={"input": "one"}).status_code == 200

        response = client.post("/api/v1/chat", json={"input": "two"})
        assert response.status_code == 429
        body = response.json()
        assert body["code"] == "ERR:USER_RATELIMITED"
        assert response.headers["X-RateLimit-Reset"] == str(body["reset"])

    def test_retrieval_error_maps_to_bad_gateway(self, client, vector):
        async def failing_retrieve(*args, **kwargs):
            raise RetrievalError("store down")

        vector.retrieve = failing_retrieve
        response = client.post("/api/v1/chat", json={"input": "q"})
        assert response.status_code == 502
        assert response.json()["code"] == "RetrievalError"


class TestContextEndpoints:
    def test_add_and_remove(self, client, vector):
        response = client.post(
            "/api/v1/context",
            json={"texts": ["fact"], "metadata": {"source": "doc"}, "namespace": "ns"},
        )
        assert response.status_code == 201
        ids = response.json()["ids"]
        assert vector.stored[ids[0]] == ("fact", {"source": "doc", "namespace": "ns"})

        response = client.request("DELETE", "/api/v1/context", json={"ids": ids})
        assert response.status_code == 204
        assert vector.stored == {}

    def test_add_requires_texts(self, client):
        assert client.post("/api/v1/context", json={"texts": []}).status_code == 422


class TestHistoryEndpoints:
    def test_read_oldest_first_and_delete(self, client):
        client.post("/api/v1/chat", json={"input": "hello", "session_id": "h"})

        history = client.get("/api/v1/history/h").json()
        assert history["session_id"] == "h"
        assert [(m["role"], m["content"]) for m in history["messages"]] == [
            ("user", "hello"),
            ("assistant", "Ankara."),
        ]

        assert client.delete("/api/v1/history/h").status_code == 204
        assert client.get("/api/v1/history/h").json()["messages"] == []
