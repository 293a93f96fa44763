"""
Shared fixtures: a fresh SQLite database per test, a TestClient, account
helpers and MockTransport-backed stand-ins for the AI gateway, Ollama and
ElevenLabs.
"""

import os
import json

import httpx
import pytest
from fastapi.testclient import TestClient


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path, monkeypatch):
    """Keep real keys/secrets out of tests and point uploads at tmp_path."""
    from nyayasetu.config import get_settings

    for name in ("AI_GATEWAY_API_KEY", "ELEVENLABS_API_KEY", "RAZORPAY_WEBHOOK_SECRET", "SMTP_HOST", "OLLAMA_ENDPOINT"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("UPLOAD_DIR", str(tmp_path / "uploads"))
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def sqlalchemy_db(tmp_path):
    """Configure a fresh SQLAlchemy SQLite DB for tests."""
    from nyayasetu.db.session import reset_engine, init_db

    old_db_url = os.environ.get("DATABASE_URL")
    db_path = tmp_path / "nyayasetu_test.db"
    os.environ["DATABASE_URL"] = f"sqlite:///{db_path}"
    reset_engine()
    init_db()

    yield

    if old_db_url is not None:
        os.environ["DATABASE_URL"] = old_db_url
    else:
        os.environ.pop("DATABASE_URL", None)
    reset_engine()


@pytest.fixture
def client(sqlalchemy_db):
    """Create test client"""
    from nyayasetu.api import app

    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def register(client):
    """
    Sign up a user and return (headers, user).

        headers, user = register("asha@nyayasetu.in")
    """
    def _register(email="asha@nyayasetu.in", password="secret123", display_name=None):
        payload = {"email": email, "password": password}
        if display_name:
            payload["display_name"] = display_name
        response = client.post("/api/auth/signup", json=payload)
        assert response.status_code == 200, response.text
        data = response.json()
        return {"Authorization": f"Bearer {data['access_token']}"}, data["user"]

    return _register


@pytest.fixture
def make_admin():
    def _make_admin(user_id):
        from nyayasetu.db.session import get_db_session
        from nyayasetu.db.models import User, UserRole

        with get_db_session() as db:
            db.query(User).filter(User.id == user_id).update({User.role: UserRole.ADMIN})

    return _make_admin


@pytest.fixture
def create_case(client):
    def _create_case(headers, **fields):
        payload = {"title": "State vs Ramesh Kumar", **fields}
        response = client.post("/api/cases", json=payload, headers=headers)
        assert response.status_code == 201, response.text
        return response.json()

    return _create_case


# =============================================================================
# Upstream stand-ins
# =============================================================================

def chat_completion_body(content, model="google/gemini-2.5-flash"):
    return {
        "id": "chatcmpl-test",
        "model": model,
        "choices": [{"index": 0, "message": {"role": "assistant", "content": content}, "finish_reason": "stop"}],
        "usage": {"prompt_tokens": 11, "completion_tokens": 7},
    }


class GatewayStub:
    """Records every chat-completions payload and replies with ``content``."""

    def __init__(self):
        self.requests = []
        self.content = "Stub reply"
        self.status_code = 200

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(json.loads(request.content))
        if self.status_code != 200:
            return httpx.Response(self.status_code, text="upstream failure")
        return httpx.Response(200, json=chat_completion_body(self.content))

    def client(self, api_key="test-gateway-key"):
        from nyayasetu.llm.gateway import GatewayClient

        return GatewayClient(
            api_key=api_key,
            url="https://gateway.test/v1/chat/completions",
            default_model="google/gemini-2.5-flash",
            transport=httpx.MockTransport(self.handler),
        )


@pytest.fixture
def gateway_stub(client):
    from nyayasetu.api import app
    from nyayasetu.llm.gateway import get_gateway_client

    stub = GatewayStub()
    app.dependency_overrides[get_gateway_client] = lambda: stub.client()
    return stub
