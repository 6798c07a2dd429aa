import os
import sys
import tempfile
from pathlib import Path

import httpx
import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
BACKEND_DIR = PROJECT_ROOT / "backend"
if str(BACKEND_DIR) not in sys.path:
    sys.path.insert(0, str(BACKEND_DIR))

# Settings are read at import time: point storage at a scratch directory first
_DATA_DIR = tempfile.mkdtemp(prefix="minutes-tests-")
os.environ["DATA_DIR"] = _DATA_DIR
os.environ.pop("DATABASE_URL", None)
os.environ["LOG_JSON"] = "false"
os.environ["STARTUP_HEALTH_CHECK"] = "false"

from minutes.database import Base, SessionLocal, engine  # noqa: E402
from minutes.services.health_service import SystemHealthService  # noqa: E402


@pytest.fixture(autouse=True)
def _reset_health():
    SystemHealthService().reset()
    yield
    SystemHealthService().reset()


@pytest.fixture
def db_session():
    """Fresh tables for every test."""
    from minutes import models  # noqa: F401

    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


class FakeUpstream:
    """
    Records requests sent to the ASR / LLM services and answers them with
    `handler(request) -> httpx.Response`.
    """

    def __init__(self):
        self.requests = []
        self.handler = lambda request: httpx.Response(500, text="no handler")

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.handler(request)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)


@pytest.fixture
def upstream():
    return FakeUpstream()


@pytest.fixture
def client(db_session, upstream):
    from fastapi.testclient import TestClient
    from minutes.api.v1.deps import get_http_transport
    from minutes.main import app

    app.dependency_overrides[get_http_transport] = lambda: upstream.transport
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def ollama_reply(content: str) -> httpx.Response:
    return httpx.Response(200, json={"message": {"role": "assistant", "content": content}})


def chat_completion_reply(content: str) -> httpx.Response:
    return httpx.Response(200, json={"choices": [{"message": {"role": "assistant", "content": content}}]})
