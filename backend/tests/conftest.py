"""
Pytest configuration and shared fixtures.

This module provides:
- Environment variable setup for tests
- Database table lifecycle on the in-memory SQLite engine
- An HTTP client bound to the ASGI app
- Fake vendor clients (LLM, speech WebSocket)
"""

import asyncio
import json
import os
import sys
import uuid
from pathlib import Path
from typing import Any, Dict, List, Optional

import pytest


# Set test environment variables BEFORE any imports
# This must happen first to ensure settings load with test values
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["SECRET_KEY"] = "test_secret_key_at_least_32_characters_long_for_jwt"
os.environ["ACCESS_TOKEN_EXPIRE_MINUTES"] = "60"
os.environ["ENVIRONMENT"] = "development"
os.environ["DISABLE_RATE_LIMIT"] = "true"  # Disable rate limiting for tests
os.environ["LLM_PROVIDER"] = "bailian"
os.environ["CORS_ORIGINS"] = '["http://localhost:3000"]'
for vendor_setting in (
    "IFLYTEK_APP_ID",
    "IFLYTEK_API_KEY",
    "IFLYTEK_API_SECRET",
    "ALIYUN_BAILIAN_ACCESS_KEY_ID",
    "ALIYUN_BAILIAN_ACCESS_KEY_SECRET",
    "LLM_API_KEY",
    "AMAP_API_KEY",
):
    os.environ[vendor_setting] = ""

# Add backend directory to path
backend_dir = Path(__file__).parent.parent
sys.path.insert(0, str(backend_dir))

from httpx import ASGITransport, AsyncClient  # noqa: E402

from travel_planner.services.interfaces.llm_client import ILLMClient, LLMResult  # noqa: E402


@pytest.fixture(autouse=True)
def fast_password_hashing(monkeypatch):
    """Use the cheapest bcrypt cost so registration-heavy tests stay fast."""
    from travel_planner.core import security

    monkeypatch.setattr(security, "BCRYPT_ROUNDS", 4)


@pytest.fixture(scope="function")
async def db_tables():
    """
    Create all tables before the test and drop them afterwards.

    The engine is disposed at the end so each test starts on a fresh
    in-memory database bound to its own event loop.
    """
    from travel_planner.core.database import create_tables, engine
    from travel_planner.models.base import Base

    await create_tables()

    yield

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture(scope="function")
async def db_session(db_tables):
    """Provide a database session for repository tests."""
    from travel_planner.core.database import async_session_maker

    async with async_session_maker() as session:
        yield session
        await session.rollback()


@pytest.fixture
def app():
    """The FastAPI app; dependency overrides are cleared after each test."""
    from travel_planner.main import app as fastapi_app

    yield fastapi_app
    fastapi_app.dependency_overrides.clear()


@pytest.fixture
async def client(app, db_tables):
    """HTTP client talking to the app in-process."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def register_user(client):
    """
    Factory registering an account through the API.

    Returns:
        async callable -> {"user": ..., "token": ..., "headers": ...}
    """
    async def _register(
        email: Optional[str] = None,
        password: str = "secret123",
        name: str = "Test Traveler",
    ) -> Dict[str, Any]:
        email = email or f"traveler-{uuid.uuid4().hex[:8]}@example.com"
        response = await client.post(
            "/api/auth/register",
            json={"email": email, "password": password, "name": name},
        )
        assert response.status_code == 201, response.text
        data = response.json()["data"]
        return {
            "user": data["user"],
            "token": data["token"],
            "headers": {"Authorization": f"Bearer {data['token']}"},
        }

    return _register


@pytest.fixture
async def auth_headers(register_user):
    account = await register_user()
    return account["headers"]


@pytest.fixture
def create_plan(client):
    """Factory creating a plan through the API and returning its row."""
    async def _create(headers: Dict[str, str], **overrides) -> Dict[str, Any]:
        body = {
            "title": "Spring in Hangzhou",
            "destination": "Hangzhou",
            "startDate": "2030-04-01",
            "endDate": "2030-04-03",
            "budget": 3000,
            "travelers": 2,
            "preferences": ["food", "culture"],
        }
        body.update(overrides)
        response = await client.post("/api/travel/plans", json=body, headers=headers)
        assert response.status_code == 201, response.text
        return response.json()["data"]

    return _create


class FakeLLMClient(ILLMClient):
    """ILLMClient returning canned completions and recording every call."""

    vendor = "Fake LLM"
    model = "fake-model"

    def __init__(self, responses: Optional[List[str]] = None, error: Optional[Exception] = None):
        self.responses = list(responses or [])
        self.error = error
        self.calls: List[Dict[str, Any]] = []

    def validate_config(self) -> None:
        if self.error is not None:
            raise self.error

    async def complete(self, messages, temperature=0.7, max_tokens=2000, correlation_id=None) -> LLMResult:
        self.calls.append({
            "messages": messages,
            "temperature": temperature,
            "max_tokens": max_tokens,
        })
        if self.error is not None:
            raise self.error
        content = self.responses.pop(0) if self.responses else ""
        return LLMResult(content=content, model=self.model, usage={"total_tokens": 42})


class FakeWebSocket:
    """
    Stand-in for a websockets client connection.

    Yields the scripted ``responses`` as JSON text (strings are sent as-is);
    with ``hang=True`` it then blocks forever, like a vendor that never sends
    the final result.
    """

    def __init__(self, responses: List[Any], hang: bool = False):
        self.responses = list(responses)
        self.hang = hang
        self.sent: List[Dict[str, Any]] = []

    async def send(self, message: str) -> None:
        self.sent.append(json.loads(message))

    def __aiter__(self):
        return self._messages()

    async def _messages(self):
        for response in self.responses:
            await asyncio.sleep(0)
            yield response if isinstance(response, str) else json.dumps(response)
        if self.hang:
            await asyncio.Event().wait()


class FakeConnect:
    """Callable replacing ``websockets.connect``; records the URLs it was given."""

    def __init__(self, websocket: FakeWebSocket, error: Optional[Exception] = None):
        self.websocket = websocket
        self.error = error
        self.urls: List[str] = []

    def __call__(self, url: str):
        self.urls.append(url)
        return self

    async def __aenter__(self) -> FakeWebSocket:
        if self.error is not None:
            raise self.error
        return self.websocket

    async def __aexit__(self, exc_type, exc, tb) -> bool:
        return False


@pytest.fixture
def fake_llm():
    """The FakeLLMClient class, for building AI services in tests."""
    return FakeLLMClient


@pytest.fixture
def fake_speech():
    """
    Factory building (service, websocket, connect) for speech tests.

    Example:
        service, ws, connect = fake_speech([{"code": 0, "data": {...}}])
    """
    from travel_planner.services.voice_service import VoiceRecognitionService

    def _build(responses=(), hang=False, error=None, timeout=5.0):
        websocket = FakeWebSocket(list(responses), hang=hang)
        connect = FakeConnect(websocket, error=error)
        service = VoiceRecognitionService(
            app_id="test-app",
            api_key="test-key",
            api_secret="test-secret",
            timeout=timeout,
            frame_interval=0,
            connect=connect,
        )
        return service, websocket, connect

    return _build


def recognition_message(sn: int, words: List[str], status: int = 1, **result_fields) -> Dict[str, Any]:
    """Vendor recognition payload carrying one sentence."""
    result = {"sn": sn, "ws": [{"cw": [{"w": word}]} for word in words], **result_fields}
    return {"code": 0, "message": "success", "data": {"status": status, "result": result}}


@pytest.fixture
def speech_message():
    return recognition_message
