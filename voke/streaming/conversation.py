from __future__ import annotations
from typing import Iterable, Optional
from voke.llm.context import ChatMessage


class Conversation:
    """Ordered transcript shown to the user. Messages are replaced, never edited."""

    def __init__(self, messages: Optional[Iterable[ChatMessage]] = None):
        self.messages: list[ChatMessage] = list(messages or [])

    def add_user_message(self, content: str) -> ChatMessage:
        message = ChatMessage(role="user", content=content)
        self.messages.append(message)
        return message

    def begin_assistant_message(self) -> None:
        self.messages.append(ChatMessage(role="assistant", content=""))

    def replace_last(self, content: str) -> None:
        last = self.messages[-1]
        self.messages[-1] = ChatMessage(role=last.role, content=content)

    @property
    def last(self) -> Optional[ChatMessage]:
        return self.messages[-1] if self.messages else None

    def __len__(self) -> int:
        return len(self.messages)
