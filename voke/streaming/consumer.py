from __future__ import annotations
from contextlib import aclosing
from dataclasses import dataclass
from typing import Any, AsyncIterable, AsyncIterator, Callable, Optional, Protocol
import codecs
import inspect
import json
from voke.logger import get_logger
from .conversation import Conversation

logger = get_logger(__name__)

DATA_PREFIX = "data:"
DONE_SENTINEL = "[DONE]"


@dataclass(frozen=True)
class StreamFrame:
    """One `data:` payload of a completion stream."""
    payload: str

    @property
    def is_terminal(self) -> bool:
        return self.payload.strip() == DONE_SENTINEL

    def delta(self) -> str:
        """
        Incremental text carried by the frame, or "" when the chunk has none.
        Raises ValueError when the payload is not JSON or the content is not text.
        """
        parsed = json.loads(self.payload)
        try:
            content = parsed["choices"][0]["delta"].get("content")
        except (KeyError, IndexError, TypeError, AttributeError):
            return ""
        if content is None:
            return ""
        if not isinstance(content, str):
            raise ValueError(f"delta content is {type(content).__name__}, not text")
        return content


class SSEFrameDecoder:
    """
    Splits a byte stream into SSE data frames.

    Incomplete lines (and partial UTF-8 sequences) are kept until the next chunk,
    so a frame split across reads is decoded once it is complete.
    """

    def __init__(self):
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._pending = ""

    def feed(self, chunk: bytes) -> list[StreamFrame]:
        lines = (self._pending + self._decoder.decode(chunk)).split("\n")
        self._pending = lines.pop()
        frames = []
        for line in lines:
            frame = self._parse_line(line)
            if frame is not None:
                frames.append(frame)
        return frames

    def flush(self) -> list[StreamFrame]:
        """Frame for a last line the stream did not terminate, if any."""
        remainder = self._pending + self._decoder.decode(b"", final=True)
        self._pending = ""
        frame = self._parse_line(remainder)
        return [frame] if frame is not None else []

    @staticmethod
    def _parse_line(line: str) -> Optional[StreamFrame]:
        line = line.rstrip("\r")
        if not line.startswith(DATA_PREFIX):
            return None
        payload = line[len(DATA_PREFIX):]
        if payload.startswith(" "):
            payload = payload[1:]
        return StreamFrame(payload)


class Speaker(Protocol):
    def speak(self, text: str) -> Any: ...


class StreamConsumer:
    """
    Turns a completion byte stream into an incrementally updated assistant message.

    The last message of the conversation is replaced after every delta, so the
    transcript always holds a prefix of the final answer. When speaking is
    enabled the full answer goes to the speaker once, after the stream ends.
    """

    def __init__(
        self,
        conversation: Conversation,
        speaker: Optional[Speaker] = None,
        speak_aloud: bool = False,
        on_update: Optional[Callable[[str], Any]] = None
    ):
        self.conversation = conversation
        self.speaker = speaker
        self.speak_aloud = speak_aloud
        self.on_update = on_update
        self.skipped_frames = 0

    async def consume(self, chunks: AsyncIterable[bytes]) -> str:
        accumulated = ""
        delta_count = 0
        self.conversation.begin_assistant_message()

        async with aclosing(self._frames(chunks)) as frames:
            async for frame in frames:
                if frame.is_terminal:
                    break
                try:
                    delta = frame.delta()
                except ValueError:
                    self.skipped_frames += 1
                    logger.debug(f"[STREAM] Skipping malformed frame | payload='{frame.payload[:60]}'")
                    continue
                if not delta:
                    continue
                accumulated += delta
                delta_count += 1
                self.conversation.replace_last(accumulated)
                if self.on_update is not None:
                    self.on_update(accumulated)

        logger.debug(f"[STREAM] Consumed | deltas={delta_count} | skipped={self.skipped_frames} | chars={len(accumulated)}")

        if self.speak_aloud and self.speaker is not None and accumulated:
            result = self.speaker.speak(accumulated)
            if inspect.isawaitable(result):
                await result

        return accumulated

    @staticmethod
    async def _frames(chunks: AsyncIterable[bytes]) -> AsyncIterator[StreamFrame]:
        decoder = SSEFrameDecoder()
        async for chunk in chunks:
            for frame in decoder.feed(chunk):
                yield frame
        for frame in decoder.flush():
            yield frame
