"""Pytest configuration and fixtures."""
import sys
from pathlib import Path

import pytest

# Add backend to path
backend = Path(__file__).resolve().parent.parent / "backend"
sys.path.insert(0, str(backend))


class FakeLLM:
    """Scripted stand-in for LLMInterface. Replies are returned (or raised) in order."""

    def __init__(self):
        self.replies = []
        self.prompts = []

    async def generate(self, prompt):
        self.prompts.append(prompt)
        reply = self.replies.pop(0) if self.replies else "{}"
        if isinstance(reply, BaseException):
            raise reply
        return reply


@pytest.fixture(autouse=True)
def _log_to_tmp(tmp_path, monkeypatch):
    """Keep backend.log writes inside the test's tmp dir."""
    from utils import settings
    monkeypatch.setattr(settings, "BACKEND_LOG_PATH", tmp_path / "backend.log")


@pytest.fixture
def fake_llm():
    return FakeLLM()


@pytest.fixture
def sleeps():
    """Backoff durations requested by the retry policy."""
    return []


@pytest.fixture
def gateway(fake_llm, sleeps):
    from agents.ai_gateway import AIGateway, RetryPolicy

    async def _record_sleep(seconds):
        sleeps.append(seconds)

    return AIGateway(llm=fake_llm, retry_policy=RetryPolicy(max_attempts=3, backoff_seconds=2.0, sleep=_record_sleep))


@pytest.fixture
def store():
    from utils.model_store import InMemoryModelStore
    return InMemoryModelStore()


@pytest.fixture
def client(gateway, store):
    """Test client with the AI gateway and model store swapped for fakes."""
    from fastapi.testclient import TestClient
    from main import app, get_ai_gateway, get_model_store

    app.dependency_overrides[get_ai_gateway] = lambda: gateway
    app.dependency_overrides[get_model_store] = lambda: store
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def training_rows():
    """Ten records: two features and a numeric target."""
    return [{"size": str(50 + i), "rooms": str(1 + i % 4), "price": str(100 + 10 * i)} for i in range(10)]
