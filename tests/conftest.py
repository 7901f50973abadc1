import httpx
import openai
import pytest
from unittest.mock import AsyncMock, MagicMock
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from voke.config import Settings
from voke.database.models import Base

UPSTREAM_URL = "https://api.groq.com/openai/v1/chat/completions"


class FakeUpstreamResponse:
    def __init__(self, chunks, error=None):
        self.chunks = chunks
        self.error = error

    async def aiter_bytes(self):
        for chunk in self.chunks:
            yield chunk
        if self.error is not None:
            raise self.error


class FakeStream:
    """Stands in for openai.AsyncStream: only the raw response and close() are used."""

    def __init__(self, chunks, error=None):
        self.response = FakeUpstreamResponse(chunks, error)
        self.closed = False

    async def close(self):
        self.closed = True


def status_error(cls, status_code):
    request = httpx.Request("POST", UPSTREAM_URL)
    response = httpx.Response(status_code, request=request, json={"error": {"message": "upstream said no"}})
    return cls("upstream said no", response=response, body=None)


def connection_error():
    return openai.APIConnectionError(request=httpx.Request("POST", UPSTREAM_URL))


def completion(content):
    response = MagicMock()
    response.choices[0].message.content = content
    response.usage = None
    return response


@pytest.fixture
def settings():
    return Settings(
        _env_file=None,
        groq_api_key="test-key",
        postgres_dsn_override="sqlite://",
        log_file="logs/test.log",
    )


@pytest.fixture
def fake_llm_client():
    client = MagicMock()
    client.chat.completions.create = AsyncMock()
    return client


@pytest.fixture
def session_factory():
    engine = create_engine("sqlite://", poolclass=StaticPool, connect_args={"check_same_thread": False})
    Base.metadata.create_all(engine)
    factory = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
    yield factory
    engine.dispose()
