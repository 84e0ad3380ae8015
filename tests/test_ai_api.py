import json

import httpx
import pytest
from fastapi.testclient import TestClient

from tests.conftest import auth_headers
from src.app import create_app
from src.services.llm_service import FALLBACK_REPLY, SYSTEM_PROMPT


def login_token(client):
    return client.post("/auth/login", json={"email": "a@x.com"}).json()["token"]


@pytest.fixture
def upstream_client(settings):
    """创建使用模拟上游的客户端，handler 决定上游响应"""
    clients = []

    def _make(handler):
        app = create_app(
            settings.model_copy(update={"llm_api_key": "sk-test", "llm_model": "test-model"}),
            llm_transport=httpx.MockTransport(handler)
        )
        test_client = TestClient(app)
        clients.append(test_client)
        return test_client

    yield _make
    for test_client in clients:
        test_client.close()


def test_fallback_reply_without_credentials(client):
    token = login_token(client)
    response = client.post("/ai/chat", headers=auth_headers(token), json={"prompt": "I'm stressed"})
    assert response.status_code == 200
    assert response.json() == {"data": FALLBACK_REPLY}


def test_chat_requires_prompt(client):
    token = login_token(client)
    response = client.post("/ai/chat", headers=auth_headers(token), json={"prompt": "   "})
    assert response.status_code == 400
    assert response.json() == {"message": "Prompt is required"}


def test_chat_requires_auth(client):
    response = client.post("/ai/chat", json={"prompt": "hello"})
    assert response.status_code == 401


def test_chat_method_not_allowed(client):
    response = client.get("/ai/chat")
    assert response.status_code == 405
    assert response.headers["allow"] == "POST"


def test_upstream_reply_is_trimmed(upstream_client):
    seen = {}

    def handler(request):
        seen["url"] = str(request.url)
        seen["auth"] = request.headers["authorization"]
        seen["payload"] = json.loads(request.content)
        return httpx.Response(200, json={"choices": [{"message": {"content": "  Take a breath.  "}}]})

    client = upstream_client(handler)
    token = login_token(client)
    response = client.post("/ai/chat", headers=auth_headers(token), json={"prompt": "I'm stressed"})

    assert response.status_code == 200
    assert response.json() == {"data": "Take a breath."}
    assert seen["url"] == "https://api.openai.com/v1/chat/completions"
    assert seen["auth"] == "Bearer sk-test"
    assert seen["payload"]["model"] == "test-model"
    assert seen["payload"]["temperature"] == 0.7
    assert seen["payload"]["messages"] == [
        {"role": "system", "content": SYSTEM_PROMPT},
        {"role": "user", "content": "I'm stressed"}
    ]


def test_upstream_error_becomes_gateway_error(upstream_client):
    upstream_body = {"error": {"message": "Rate limit reached", "type": "rate_limit"}}
    client = upstream_client(lambda request: httpx.Response(429, json=upstream_body))
    token = login_token(client)

    response = client.post("/ai/chat", headers=auth_headers(token), json={"prompt": "hi"})
    assert response.status_code == 502
    assert response.json() == {"message": "Rate limit reached", "data": upstream_body}


def test_upstream_connection_failure(upstream_client):
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    client = upstream_client(handler)
    token = login_token(client)

    response = client.post("/ai/chat", headers=auth_headers(token), json={"prompt": "hi"})
    assert response.status_code == 502
    assert response.json() == {"message": "OpenAI request failed"}


def test_empty_upstream_reply_falls_back(upstream_client):
    client = upstream_client(
        lambda request: httpx.Response(200, json={"choices": [{"message": {"content": "   "}}]})
    )
    token = login_token(client)

    response = client.post("/ai/chat", headers=auth_headers(token), json={"prompt": "hi"})
    assert response.json() == {"data": FALLBACK_REPLY}
