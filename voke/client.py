"""
Async client for the Voke interview API.

Plays the part of the browser pages: posts a conversation to one of the chat
endpoints, decodes the relayed SSE stream with `StreamConsumer` and keeps the
`Conversation` transcript current while the answer arrives. Errors are
surfaced as `VokeAPIError`; nothing is retried.
"""
from __future__ import annotations
from typing import Any, Callable, List, Optional, Sequence
import httpx
from voke.llm.context import InterviewType, SkillGap
from voke.logger import get_logger
from voke.streaming.consumer import Speaker, StreamConsumer
from voke.streaming.conversation import Conversation
from voke.trends.schemas import TrendRecord

logger = get_logger(__name__)


class VokeAPIError(Exception):
    def __init__(self, status_code: int, message: str):
        super().__init__(f"{status_code}: {message}")
        self.status_code = status_code
        self.message = message


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    if isinstance(body, dict) and body.get("error"):
        return str(body["error"])
    return response.reason_phrase


class VokeClient:
    def __init__(
        self,
        base_url: str,
        timeout: float = 120.0,
        speaker: Optional[Speaker] = None,
        http_client: Optional[httpx.AsyncClient] = None
    ):
        self.base_url = base_url.rstrip("/")
        self.speaker = speaker
        self.speak_aloud = False
        self._owns_client = http_client is None
        self._http = http_client or httpx.AsyncClient(timeout=httpx.Timeout(timeout, connect=10.0))

    async def __aenter__(self) -> "VokeClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._http.aclose()

    async def interview_chat(
        self,
        conversation: Conversation,
        interview_type: Optional[InterviewType] = None,
        resume_content: Optional[str] = None,
        on_update: Optional[Callable[[str], Any]] = None
    ) -> str:
        body: dict = {"messages": self._messages_body(conversation)}
        if interview_type is not None:
            body["interviewType"] = InterviewType(interview_type).value
        if resume_content:
            body["resumeContent"] = resume_content
        return await self._stream_chat("/interview-chat", body, conversation, on_update)

    async def adaptive_interview_chat(
        self,
        conversation: Conversation,
        user_id: str,
        skill_gaps: Optional[Sequence[SkillGap]] = None,
        on_update: Optional[Callable[[str], Any]] = None
    ) -> str:
        body = {
            "messages": self._messages_body(conversation),
            "userId": user_id,
            "skillGaps": [gap.model_dump() for gap in skill_gaps] if skill_gaps is not None else None,
        }
        return await self._stream_chat("/adaptive-interview-chat", body, conversation, on_update)

    async def research_job_trends(self, category: str) -> List[TrendRecord]:
        logger.info(f"[CLIENT] Requesting trend research | category={category}")
        response = await self._http.post(f"{self.base_url}/research-job-trends", json={"category": category})
        if response.status_code != 200:
            raise VokeAPIError(response.status_code, _error_message(response))
        return [TrendRecord.model_validate(item) for item in response.json()["trends"]]

    async def _stream_chat(
        self,
        path: str,
        body: dict,
        conversation: Conversation,
        on_update: Optional[Callable[[str], Any]]
    ) -> str:
        logger.info(f"[CLIENT] Streaming chat | path={path} | messages={len(body['messages'])}")
        async with self._http.stream("POST", f"{self.base_url}{path}", json=body) as response:
            if response.status_code != 200:
                await response.aread()
                raise VokeAPIError(response.status_code, _error_message(response))
            consumer = StreamConsumer(
                conversation,
                speaker=self.speaker,
                speak_aloud=self.speak_aloud,
                on_update=on_update,
            )
            answer = await consumer.consume(response.aiter_bytes())
        logger.info(f"[CLIENT] Chat complete | path={path} | chars={len(answer)} | skipped_frames={consumer.skipped_frames}")
        return answer

    @staticmethod
    def _messages_body(conversation: Conversation) -> list[dict]:
        return [message.model_dump() for message in conversation.messages]
