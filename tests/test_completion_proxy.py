import asyncio
import httpx
import openai
import pytest
from unittest.mock import patch
from conftest import FakeStream, completion, connection_error, status_error
from voke.config import Settings
from voke.errors import (
    ConfigurationError,
    UpstreamError,
    UpstreamQuotaError,
    UpstreamRateLimitError,
)
from voke.llm.completion_proxy import CompletionProxy

MESSAGES = [{"role": "system", "content": "SYSTEM"}, {"role": "user", "content": "Start"}]


async def drain(relay):
    return [chunk async for chunk in relay]


def test_missing_api_key_fails_before_client_is_built():
    settings = Settings(_env_file=None, groq_api_key=None)

    with patch("voke.llm.completion_proxy.get_groq_client") as mock_factory:
        with pytest.raises(ConfigurationError, match="GROQ_API_KEY is not configured"):
            CompletionProxy(settings)

    mock_factory.assert_not_called()


def test_stream_is_relayed_verbatim(settings, fake_llm_client):
    chunks = [b'data: {"choices":[{"delta":{"content":"Hel"}}]}\n\n', b'data: [DONE]\n\n']
    stream = FakeStream(chunks)
    fake_llm_client.chat.completions.create.return_value = stream
    proxy = CompletionProxy(settings, client=fake_llm_client)

    async def run():
        relay = await proxy.open_stream(MESSAGES)
        return await drain(relay)

    assert asyncio.run(run()) == chunks
    assert stream.closed

    kwargs = fake_llm_client.chat.completions.create.call_args.kwargs
    assert kwargs["stream"] is True
    assert kwargs["messages"] == MESSAGES
    assert kwargs["model"] == "llama-3.3-70b-versatile"
    assert kwargs["temperature"] == 0.7
    assert kwargs["max_tokens"] == 2000


def test_closing_relay_early_closes_upstream(settings, fake_llm_client):
    stream = FakeStream([b"data: a\n\n", b"data: b\n\n", b"data: c\n\n"])
    fake_llm_client.chat.completions.create.return_value = stream
    proxy = CompletionProxy(settings, client=fake_llm_client)

    async def run():
        relay = await proxy.open_stream(MESSAGES)
        first = await relay.__anext__()
        await relay.aclose()
        return first

    assert asyncio.run(run()) == b"data: a\n\n"
    assert stream.closed


def test_closing_unstarted_relay_closes_upstream(settings, fake_llm_client):
    stream = FakeStream([b"data: a\n\n"])
    fake_llm_client.chat.completions.create.return_value = stream
    proxy = CompletionProxy(settings, client=fake_llm_client)

    async def run():
        relay = await proxy.open_stream(MESSAGES)
        await relay.aclose()
        await relay.aclose()
        return relay

    relay = asyncio.run(run())
    assert stream.closed
    assert relay.released
    assert relay.chunk_count == 0


def test_mid_stream_failure_propagates_and_closes_upstream(settings, fake_llm_client):
    stream = FakeStream([b"data: partial\n\n"], error=httpx.ReadError("connection reset"))
    fake_llm_client.chat.completions.create.return_value = stream
    proxy = CompletionProxy(settings, client=fake_llm_client)

    async def run():
        relay = await proxy.open_stream(MESSAGES)
        received = []
        with pytest.raises(httpx.ReadError):
            async for chunk in relay:
                received.append(chunk)
        return received

    assert asyncio.run(run()) == [b"data: partial\n\n"]
    assert stream.closed


@pytest.mark.parametrize(
    "error, expected_type, expected_status",
    [
        (status_error(openai.RateLimitError, 429), UpstreamRateLimitError, 429),
        (status_error(openai.APIStatusError, 402), UpstreamQuotaError, 402),
        (status_error(openai.InternalServerError, 503), UpstreamError, 500),
        (status_error(openai.AuthenticationError, 401), UpstreamError, 500),
        (connection_error(), UpstreamError, 500),
    ],
)
def test_upstream_errors_are_mapped(settings, fake_llm_client, error, expected_type, expected_status):
    fake_llm_client.chat.completions.create.side_effect = error
    proxy = CompletionProxy(settings, client=fake_llm_client)

    with pytest.raises(expected_type) as exc_info:
        asyncio.run(proxy.open_stream(MESSAGES))

    assert type(exc_info.value) is expected_type
    assert exc_info.value.status_code == expected_status
    assert exc_info.value.cause is error


def test_rate_limit_message_is_caller_friendly(settings, fake_llm_client):
    fake_llm_client.chat.completions.create.side_effect = status_error(openai.RateLimitError, 429)
    proxy = CompletionProxy(settings, client=fake_llm_client)

    with pytest.raises(UpstreamRateLimitError, match="Please try again in a moment"):
        asyncio.run(proxy.complete(MESSAGES))


def test_complete_returns_first_choice_text(settings, fake_llm_client):
    fake_llm_client.chat.completions.create.return_value = completion("Here are the trends.")
    proxy = CompletionProxy(settings, client=fake_llm_client)

    assert asyncio.run(proxy.complete(MESSAGES)) == "Here are the trends."
    kwargs = fake_llm_client.chat.completions.create.call_args.kwargs
    assert "stream" not in kwargs
    assert kwargs["temperature"] == 0.7


def test_complete_rejects_empty_answer(settings, fake_llm_client):
    fake_llm_client.chat.completions.create.return_value = completion("")
    proxy = CompletionProxy(settings, client=fake_llm_client)

    with pytest.raises(UpstreamError, match="Empty response"):
        asyncio.run(proxy.complete(MESSAGES))
