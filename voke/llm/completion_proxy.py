from __future__ import annotations
from typing import AsyncIterator, Optional
import time
import anyio
import openai
from openai import AsyncOpenAI
from voke.config import Settings
from voke.errors import UpstreamError, UpstreamQuotaError, UpstreamRateLimitError
from voke.logger import get_logger
from .clients import get_groq_client

logger = get_logger(__name__)

RATE_LIMIT_MESSAGE = "Rate limit exceeded. Please try again in a moment."
QUOTA_EXHAUSTED_MESSAGE = "AI credits depleted. Please contact support."
UPSTREAM_ERROR_MESSAGE = "AI gateway error"


def map_upstream_error(error: openai.APIError, request_id: str = "unknown") -> UpstreamError:
    """Translate a provider failure into the caller-visible error kind."""
    if isinstance(error, openai.APIStatusError):
        status = error.status_code
        logger.error(f"[PROXY] AI gateway error | id={request_id} | status={status} | detail={error.message}")
        if status == 429:
            return UpstreamRateLimitError(RATE_LIMIT_MESSAGE, cause=error)
        if status == 402:
            return UpstreamQuotaError(QUOTA_EXHAUSTED_MESSAGE, cause=error)
        return UpstreamError(UPSTREAM_ERROR_MESSAGE, cause=error)

    logger.error(f"[PROXY] AI gateway unreachable | id={request_id} | error={error}")
    return UpstreamError(UPSTREAM_ERROR_MESSAGE, cause=error)


class UpstreamRelay:
    """
    Async iterator over the raw upstream body.

    The upstream response is released exactly once: when iteration ends, fails
    or is cancelled, or when `aclose` is called. `aclose` also covers a relay
    whose iteration never started, e.g. the caller disconnected before the
    first chunk was pulled.
    """

    def __init__(self, stream, request_id: str, start_time: float):
        self._stream = stream
        self.request_id = request_id
        self.start_time = start_time
        self.byte_count = 0
        self.chunk_count = 0
        self.completed = False
        self.released = False
        self._chunks = self._iterate()

    def __aiter__(self) -> "UpstreamRelay":
        return self

    async def __anext__(self) -> bytes:
        return await self._chunks.__anext__()

    async def aclose(self) -> None:
        await self._chunks.aclose()
        await self._release()

    async def _iterate(self) -> AsyncIterator[bytes]:
        try:
            async for chunk in self._stream.response.aiter_bytes():
                self.byte_count += len(chunk)
                self.chunk_count += 1
                yield chunk
            self.completed = True
        except Exception as e:
            # Bytes already relayed cannot be retracted; the caller sees a truncated stream
            logger.error(f"[PROXY] Upstream stream FAILED mid-flight | id={self.request_id} | relayed_bytes={self.byte_count} | error={e}")
            raise
        finally:
            await self._release()

    async def _release(self) -> None:
        if self.released:
            return
        self.released = True
        # Closing the upstream response also stops generation when the caller disconnects
        with anyio.CancelScope(shield=True):
            await self._stream.close()
        duration = (time.perf_counter() - self.start_time) * 1000
        if self.completed:
            logger.info(f"[PROXY] STREAM COMPLETE | id={self.request_id} | chunks={self.chunk_count} | bytes={self.byte_count} | total={duration:.0f}ms")
        else:
            logger.warning(f"[PROXY] Stream closed before upstream finished | id={self.request_id} | chunks={self.chunk_count} | bytes={self.byte_count} | total={duration:.0f}ms")


class CompletionProxy:
    """
    Forwards conversations to the completion provider with the server-side key.

    Streaming responses are relayed as raw bytes and never decoded here, so the
    caller can render deltas as soon as they arrive.
    """

    def __init__(self, settings: Settings, client: Optional[AsyncOpenAI] = None):
        self.settings = settings
        # Fails with ConfigurationError before any client exists when the key is missing
        settings.require_groq_api_key()
        self.client = client or get_groq_client(settings)
        self.model = settings.chat_model

    async def open_stream(self, messages: list[dict], request_id: str = "unknown") -> UpstreamRelay:
        """
        Submit a streaming completion and wait for the upstream headers only.

        Upstream status errors are raised here, before the caller commits to a
        streaming response. The returned relay yields the upstream body verbatim.
        """
        start_time = time.perf_counter()
        logger.info(f"[PROXY] Opening upstream stream | id={request_id} | model={self.model} | messages={len(messages)}")

        try:
            stream = await self.client.chat.completions.create(
                model=self.model,
                messages=messages,
                stream=True,
                temperature=self.settings.chat_temperature,
                max_tokens=self.settings.chat_max_tokens,
            )
        except openai.APIError as e:
            raise map_upstream_error(e, request_id) from e

        headers_ms = (time.perf_counter() - start_time) * 1000
        logger.info(f"[PROXY] Upstream stream opened | id={request_id} | headers={headers_ms:.0f}ms")
        return UpstreamRelay(stream, request_id, start_time)

    async def complete(
        self,
        messages: list[dict],
        temperature: Optional[float] = None,
        request_id: str = "unknown"
    ) -> str:
        """
        Single-shot completion. Returns the text of the first choice.
        """
        start_time = time.perf_counter()
        logger.info(f"[PROXY] Requesting completion | id={request_id} | model={self.model} | messages={len(messages)}")

        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=messages,
                temperature=self.settings.trends_temperature if temperature is None else temperature,
            )
        except openai.APIError as e:
            raise map_upstream_error(e, request_id) from e

        usage = getattr(response, "usage", None)
        if usage:
            logger.info(f"[LLM] Token usage | input={usage.prompt_tokens} | output={usage.completion_tokens} | total={usage.total_tokens}")

        content = response.choices[0].message.content if response.choices else None
        if not content:
            logger.error(f"[PROXY] Empty completion | id={request_id}")
            raise UpstreamError("Empty response from completion provider")

        duration = (time.perf_counter() - start_time) * 1000
        logger.info(f"[PROXY] Completion received | id={request_id} | chars={len(content)} | total={duration:.0f}ms")
        return content
