import os

# Audit log goes to a throwaway in-memory database
os.environ["CLOUDMAP_DATABASE_URL"] = "sqlite://"
os.environ.setdefault("ENABLE_STREAMING", "true")

from typing import Dict, Iterator, List, Optional

import pytest
from fastapi.testclient import TestClient

from cloudmap.api.routes import get_client_factory
from cloudmap.assistant.sessions import get_session_store
from cloudmap.db.models import Base
from cloudmap.db.session import engine, init_db
from cloudmap.inference.base import LLMClient, LLMResult
from cloudmap.ir.architecture import Architecture
from cloudmap.main import app
from cloudmap.store.architecture_store import get_store


class FakeLLMClient(LLMClient):
    """Scripted model: returns queued responses in order, records every call."""

    provider = "fake"
    model = "fake-model"

    def __init__(self, responses=None, chunks=None, error: Optional[Exception] = None):
        self.responses = list(responses or [])
        self.chunks = list(chunks or [])
        self.error = error
        self.calls: List[dict] = []

    def _record(self, messages, temperature, max_tokens, model):
        self.calls.append({
            "messages": messages,
            "temperature": temperature,
            "max_tokens": max_tokens,
            "model": model,
        })
        if self.error is not None:
            raise self.error

    def generate(self, messages: List[Dict], temperature=None, max_tokens=None, model=None) -> LLMResult:
        self._record(messages, temperature, max_tokens, model)
        text = self.responses.pop(0) if self.responses else ""
        return LLMResult(text=text, model=model or self.model, tokens_used=42)

    def stream(self, messages: List[Dict], temperature=None, max_tokens=None, model=None) -> Iterator[str]:
        self._record(messages, temperature, max_tokens, model)
        for chunk in self.chunks:
            yield chunk

    @property
    def last_messages(self) -> List[Dict]:
        return self.calls[-1]["messages"]


def make_architecture(prompt: str = "A serverless image upload service") -> Architecture:
    return Architecture.model_validate({
        "nodes": [
            {
                "id": "1",
                "type": "awsService",
                "position": {"x": 100, "y": 100},
                "data": {"label": "Upload API", "service": "API Gateway", "description": "Public REST API"},
            },
            {
                "id": "2",
                "type": "awsService",
                "position": {"x": 300, "y": 100},
                "data": {"label": "Resize Function", "service": "Lambda"},
            },
            {
                "id": "3",
                "type": "awsService",
                "position": {"x": 500, "y": 100},
                "data": {"label": "Images", "service": "S3"},
            },
        ],
        "edges": [
            {"id": "e1-2", "source": "1", "target": "2", "data": {"protocol": "HTTPS"}},
            {"id": "e2-3", "source": "2", "target": "3"},
        ],
        "metadata": {"prompt": prompt},
    })


@pytest.fixture(autouse=True)
def clean_state():
    get_store().clear()
    get_session_store().clear_all()
    yield
    get_store().clear()
    get_session_store().clear_all()


@pytest.fixture
def audit_log():
    Base.metadata.drop_all(bind=engine)
    init_db(retries=1, delay=0)


@pytest.fixture
def architecture():
    return make_architecture()


@pytest.fixture
def stored_architecture(architecture):
    get_store().save("arch-1", architecture, edited_by="Generator")
    return "arch-1"


@pytest.fixture
def fake_llm():
    return FakeLLMClient()


@pytest.fixture
def client(fake_llm):
    app.dependency_overrides[get_client_factory] = lambda: (lambda: fake_llm)
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
