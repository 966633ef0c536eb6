"""
Shared fixtures: an in-memory SQLite database and a fake inference service
built on ``httpx.MockTransport``.
"""

import json
import os

# Point the application engine at memory before anything imports settings
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("HUGGINGFACE_API_KEY", "test-key")

import httpx
import pytest

from moodjournal.db.database import create_db_engine, create_session_factory, init_db
from moodjournal.models.user import User
from moodjournal.services.inference_client import InferenceClient

SENTIMENT_MODEL = "test/sentiment"
EMOTION_MODEL = "test/emotion"
GENERATION_MODEL = "test/generation"
EMBEDDING_MODEL = "test/embedding"
EMBEDDING_DIM = 8


class FakeInference:
    """Routes requests by model name to canned replies.

    A reply is either a JSON-able payload (served with status 200), an
    ``httpx.Response``, or an exception instance to raise. Models without a
    reply answer 503.
    """

    def __init__(self, replies=None):
        self.replies = dict(replies or {})
        self.requests = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        model = request.url.path.split("/models/", 1)[-1]
        self.requests.append((model, json.loads(request.content or b"{}")))
        reply = self.replies.get(model)
        if reply is None:
            return httpx.Response(503, json={"error": "Model is currently loading"})
        if isinstance(reply, Exception):
            raise reply
        if isinstance(reply, httpx.Response):
            return reply
        return httpx.Response(200, json=reply)

    def calls_to(self, model):
        return [body for name, body in self.requests if name == model]

    def client(self) -> InferenceClient:
        return InferenceClient(
            base_url="https://inference.test/models",
            api_key="test-key",
            timeout=5,
            transport=httpx.MockTransport(self.handler),
        )


@pytest.fixture
def fake_inference():
    return FakeInference()


@pytest.fixture
def db_engine():
    eng = create_db_engine("sqlite://")
    init_db(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(db_engine):
    return create_session_factory(db_engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def user(db):
    record = User(email="student@example.com", name="Student")
    db.add(record)
    db.commit()
    db.refresh(record)
    return record


@pytest.fixture
def other_user(db):
    record = User(email="other@example.com", name="Other")
    db.add(record)
    db.commit()
    db.refresh(record)
    return record
